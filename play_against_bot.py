#!/usr/bin/env python3
"""
Play Hanafuda against the heuristic bot in the terminal.

Usage:
    python play_against_bot.py
    python play_against_bot.py --rules sakura --difficulty hard
    python play_against_bot.py --watch --games 3
"""

import argparse
import logging
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent))

from hanafuda.cards import format_cards
from hanafuda.game import HanafudaGame, Phase, Action, ActionType
from hanafuda.rules import KOIKOI_RULES, SAKURA_RULES, HACHIHACHI_RULES, SHOP_RULES
from hanafuda.scoring import score_summary
from agents.heuristic_agent import HeuristicAgent

RULE_SETS = {
    "koikoi": KOIKOI_RULES,
    "sakura": SAKURA_RULES,
    "hachihachi": HACHIHACHI_RULES,
    "shop": SHOP_RULES,
}


def describe_action(action: Action) -> str:
    """Convert a game action to a human-readable name."""
    if action.action_type == ActionType.PLAY_HAND:
        return f"Play {action.card}"
    if action.action_type == ActionType.SELECT_FIELD:
        return f"Capture {action.card}"
    if action.action_type == ActionType.DRAW:
        return "Draw from the deck"
    if action.action_type == ActionType.REVEAL_DRAWN:
        return "Reveal the drawn card"
    return "Koi-koi (continue)" if action.choice.name == "CONTINUE" else "Stop"


def show_table(game: HanafudaGame, seat: int) -> None:
    player = game.players[seat]
    print()
    print(f"--- Round {game.round_number} | {game.phase.name} | deck {game.deck.remaining} ---")
    print(f"Field:    {format_cards(game.field)}")
    if game.drawn_card:
        print(f"Drawn:    {game.drawn_card}")
    for other in game.players:
        if other.index != seat:
            print(f"P{other.index} captured: {format_cards(other.captured)}")
            print(f"P{other.index} yaku:     {[y.name for y in other.active_yaku]}")
    print(f"Captured: {format_cards(player.captured)}")
    print(f"Yaku:     {[f'{y.name} ({y.points})' for y in player.active_yaku]}")
    print(f"Hand:     {format_cards(player.hand)}")


def ask_human(game: HanafudaGame, seat: int, valid_actions):
    show_table(game, seat)
    print("Your valid actions:")
    for i, action in enumerate(valid_actions):
        print(f"  [{i}] {describe_action(action)}")
    while True:
        user_input = input("Enter action number (or 'q' to quit): ").strip()
        if user_input.lower() == 'q':
            return None
        try:
            choice = int(user_input)
        except ValueError:
            print("Please enter a valid number")
            continue
        if 0 <= choice < len(valid_actions):
            return valid_actions[choice]
        print(f"Please enter a number between 0 and {len(valid_actions) - 1}")


def print_round_result(game: HanafudaGame) -> None:
    result = game.last_result
    print()
    print("=" * 60)
    print(f"Round {result.round_number} over ({result.end_reason.name})")
    for seat, score, names in score_summary(result):
        print(f"  P{seat}: {score:+d}  {', '.join(names) or '-'}")
    print(f"Match scores: {game.scores}")
    print("=" * 60)


def play_match(rules_name: str, difficulty: str, human_seat: int = 0, seed=None) -> None:
    """Play a full match against bots in the other seats."""
    rules = RULE_SETS[rules_name]
    game = HanafudaGame(rules=rules, seed=seed, human_players=(human_seat,), ai_difficulty=difficulty)
    bots = {
        i: HeuristicAgent(difficulty, seed=None if seed is None else seed + i)
        for i in range(game.num_players) if i != human_seat
    }

    print("=" * 60)
    print(f"Hanafuda - {rules.name} ({game.num_players} players, {rules.num_rounds} rounds)")
    print("=" * 60)

    game.start_match()
    while True:
        if game.phase == Phase.ROUND_ENDING:
            print_round_result(game)
            input("Press Enter for the next round...")
            game.next_round()
            continue
        if game.phase == Phase.MATCH_OVER:
            print_round_result(game)
            break

        seat = game.acting_player()
        valid = game.get_valid_actions(seat)
        if seat == human_seat:
            action = ask_human(game, seat, valid)
            if action is None:
                print("Thanks for playing!")
                return
        else:
            action = bots[seat].get_action(game, seat, valid)
            if action.action_type in (ActionType.PLAY_HAND, ActionType.KOIKOI_DECISION):
                print(f"Bot P{seat}: {describe_action(action)}")

        result = game.step(action)
        if not result.accepted:
            print(f"Rejected: {result.error}")

    match = game.match_result
    print()
    if match.winner == human_seat:
        print("YOU WIN!")
    elif match.winner is not None:
        print(f"Bot (Player {match.winner}) wins...")
    else:
        print("Draw!")
    print(f"Final totals: {match.totals}")


def watch_bots(rules_name: str, difficulty: str, num_games: int = 5, seed=None) -> None:
    """Watch bots play complete matches against each other."""
    rules = RULE_SETS[rules_name]
    wins = 0
    for g in range(num_games):
        game_seed = None if seed is None else seed + g
        game = HanafudaGame(rules=rules, seed=game_seed, ai_difficulty=difficulty)
        bots = [HeuristicAgent(difficulty, seed=game_seed) for _ in range(game.num_players)]
        game.start_match()
        while not game.is_match_over:
            if game.phase == Phase.ROUND_ENDING:
                print_round_result(game)
                game.next_round()
                continue
            seat = game.acting_player()
            game.step(bots[seat].get_action(game, seat, game.get_valid_actions(seat)))
        print_round_result(game)
        if game.match_result.winner == 0:
            wins += 1
    print(f"\n=== Results: P0 won {wins}/{num_games} matches ({100 * wins / num_games:.1f}%) ===")


def main():
    parser = argparse.ArgumentParser(description="Play Hanafuda against the heuristic bot")

    parser.add_argument("--rules", type=str, default="koikoi", choices=sorted(RULE_SETS))
    parser.add_argument("--difficulty", type=str, default="normal",
                        choices=["easy", "normal", "hard"])
    parser.add_argument("--seed", type=int, default=None)
    parser.add_argument("--watch", action="store_true",
                        help="Watch bots play instead of playing yourself")
    parser.add_argument("--games", type=int, default=5,
                        help="Number of matches to watch (with --watch)")
    parser.add_argument("--verbose", action="store_true", help="Debug logging")

    args = parser.parse_args()
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(name)s %(levelname)s %(message)s",
    )

    if args.watch:
        watch_bots(args.rules, args.difficulty, args.games, args.seed)
    else:
        play_match(args.rules, args.difficulty, seed=args.seed)


if __name__ == "__main__":
    main()
