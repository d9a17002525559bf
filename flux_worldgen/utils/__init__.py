"""
Shared utilities.
"""

from .random import derive_seed, get_prng, set_random_seed

__all__ = ["derive_seed", "get_prng", "set_random_seed"]
