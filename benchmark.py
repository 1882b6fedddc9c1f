#!/usr/bin/env python3
"""
Benchmark for Hanafuda agents

Plays seeded matches between two agents and reports win rates and
score statistics, alternating seats so neither agent keeps the first deal.

Usage:
    python benchmark.py --a hard --b random --matches 200
    python benchmark.py --rules sakura --a normal --b easy
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Sequence
from dataclasses import dataclass, field

import numpy as np

sys.path.insert(0, str(Path(__file__).parent))

from hanafuda.game import HanafudaGame, Phase
from hanafuda.rules import VariantConfig, KOIKOI_RULES, SAKURA_RULES, SHOP_RULES
from hanafuda.scoring import MatchResult
from agents.heuristic_agent import HeuristicAgent, PROFILES
from agents.random_agent import RandomAgent

RULE_SETS = {
    "koikoi": KOIKOI_RULES,
    "sakura": SAKURA_RULES,
    "shop": SHOP_RULES,
}


@dataclass
class BenchmarkStats:
    """Aggregated results for agent A against agent B."""
    wins: int = 0
    losses: int = 0
    draws: int = 0
    margins: List[int] = field(default_factory=list)

    @property
    def matches(self) -> int:
        return self.wins + self.losses + self.draws

    @property
    def win_rate(self) -> float:
        return self.wins / self.matches if self.matches else 0.0


def make_agent(name: str, seed: int):
    if name == "random":
        return RandomAgent(seed=seed)
    return HeuristicAgent(name, seed=seed)


def play_match(rules: VariantConfig, agents: Sequence, seed: int) -> MatchResult:
    """Play one full match with one agent per seat."""
    game = HanafudaGame(rules=rules, seed=seed)
    game.start_match()
    while not game.is_match_over:
        if game.phase == Phase.ROUND_ENDING:
            game.next_round()
            continue
        seat = game.acting_player()
        action = agents[seat].get_action(game, seat, game.get_valid_actions(seat))
        result = game.step(action)
        if not result.accepted:
            raise RuntimeError(f"Agent {agents[seat]!r} chose an invalid action: {result.error}")
    return game.match_result


def run_benchmark(rules: VariantConfig, name_a: str, name_b: str,
                  num_matches: int, seed: int = 0) -> BenchmarkStats:
    stats = BenchmarkStats()
    for m in range(num_matches):
        a_seat = m % 2
        agents = [None, None]
        agents[a_seat] = make_agent(name_a, seed + 2 * m)
        agents[1 - a_seat] = make_agent(name_b, seed + 2 * m + 1)

        match = play_match(rules, agents, seed + m)
        stats.margins.append(match.totals[a_seat] - match.totals[1 - a_seat])
        if match.winner is None:
            stats.draws += 1
        elif match.winner == a_seat:
            stats.wins += 1
        else:
            stats.losses += 1
    return stats


def print_report(rules: VariantConfig, name_a: str, name_b: str, stats: BenchmarkStats) -> None:
    margins = np.array(stats.margins, dtype=np.float64)
    print("\n" + "=" * 60)
    print(f"HANAFUDA BENCHMARK: {name_a} vs {name_b} ({rules.name})")
    print("=" * 60)
    print(f"Matches: {stats.matches}")
    print(f"Wins:    {stats.wins}")
    print(f"Losses:  {stats.losses}")
    print(f"Draws:   {stats.draws}")
    print(f"\nWin rate: {stats.win_rate * 100:.1f}%")
    if len(margins):
        print(f"Margin:   mean {margins.mean():+.2f}, std {margins.std():.2f}, "
              f"median {np.median(margins):+.1f}")
    print("=" * 60)


def main():
    agent_names = sorted(PROFILES) + ["random"]
    parser = argparse.ArgumentParser(description="Benchmark Hanafuda agents against each other")
    parser.add_argument("--rules", type=str, default="koikoi", choices=sorted(RULE_SETS))
    parser.add_argument("--a", type=str, default="hard", choices=agent_names, help="Agent under test")
    parser.add_argument("--b", type=str, default="random", choices=agent_names, help="Baseline agent")
    parser.add_argument("--matches", type=int, default=100)
    parser.add_argument("--seed", type=int, default=0)
    parser.add_argument("--verbose", action="store_true")

    args = parser.parse_args()
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(name)s %(levelname)s %(message)s",
    )

    rules = RULE_SETS[args.rules]
    stats = run_benchmark(rules, args.a, args.b, args.matches, args.seed)
    print_report(rules, args.a, args.b, stats)

    sys.exit(0 if stats.win_rate >= 0.5 else 1)


if __name__ == "__main__":
    main()
