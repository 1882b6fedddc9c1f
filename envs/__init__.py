"""
Hanafuda Gymnasium Environments
"""

from .hanafuda_env import HanafudaEnv, register_hanafuda_envs

__version__ = "0.1.0"

__all__ = ["HanafudaEnv", "register_hanafuda_envs"]
