"""
Random number generation utilities.

World generation threads an explicit AleaPRNG through every pass. This module
keeps a process-wide instance for callers that only need a stream (scripts,
the API's default seed); Python's random and NumPy's random are never used
for generation decisions.
"""

from typing import Optional, Union

from ..core.alea_prng import AleaPRNG

# Global PRNG instance
_prng: Optional[AleaPRNG] = None


def set_random_seed(seed: Union[int, str]) -> None:
    """
    Set the seed of the shared Alea PRNG.

    Args:
        seed: Seed integer or string
    """
    global _prng
    _prng = AleaPRNG(seed)


def get_prng() -> AleaPRNG:
    """
    Get the shared Alea PRNG instance.

    Returns:
        AleaPRNG instance
    """
    global _prng
    if _prng is None:
        _prng = AleaPRNG("default")
    return _prng


def derive_seed(prng: Optional[AleaPRNG] = None) -> int:
    """Draw a 31-bit integer seed from a PRNG stream."""
    stream = prng or get_prng()
    return int(stream.random() * 0x7FFFFFFF)
