"""
Alea pseudo-random number generator.

Based on Johannes Baagøe's Alea algorithm. Every random decision made during
world generation is drawn from one of these streams, so an identical seed and
configuration reproduce an identical world.
"""

from typing import List, Sequence, TypeVar

T = TypeVar("T")


def _uint32(n):
    """Convert to unsigned 32-bit integer."""
    return int(n) & 0xFFFFFFFF


class AleaPRNG:
    """
    Seeded stream of uniform reals in [0, 1).

    Seeds may be integers, strings or an iterable of either; they are mashed
    through their string form so ``AleaPRNG(42)`` and ``AleaPRNG("42")`` agree.
    """

    def __init__(self, seed):
        """Initialize with seed string or number."""
        self.seed = seed
        self.call_count = 0

        if hasattr(seed, "__iter__") and not isinstance(seed, str):
            args = list(seed)
        else:
            args = [seed]

        mash_n = 0xEFC8249D  # 4022871197

        def mash(data):
            nonlocal mash_n
            data = str(data)
            for char in data:
                mash_n = mash_n + ord(char)
                h = 0.02519603282416938 * mash_n
                mash_n = _uint32(h)
                h -= mash_n
                h *= mash_n
                mash_n = _uint32(h)
                h -= mash_n
                mash_n += h * 0x100000000  # 2^32
            return _uint32(mash_n) * 2.3283064365386963e-10  # 2^-32

        self.s0 = mash(" ")
        self.s1 = mash(" ")
        self.s2 = mash(" ")
        self.c = 1

        for arg in args:
            self.s0 -= mash(arg)
            if self.s0 < 0:
                self.s0 += 1
            self.s1 -= mash(arg)
            if self.s1 < 0:
                self.s1 += 1
            self.s2 -= mash(arg)
            if self.s2 < 0:
                self.s2 += 1

    def random(self) -> float:
        """Generate next random number in [0, 1)."""
        self.call_count += 1
        t = 2091639 * self.s0 + self.c * 2.3283064365386963e-10  # 2^-32
        self.s0 = self.s1
        self.s1 = self.s2
        self.c = int(t)
        self.s2 = t - self.c
        return self.s2

    def uniform(self, low: float, high: float) -> float:
        """Random float in [low, high)."""
        return low + self.random() * (high - low)

    def randint(self, upper: int) -> int:
        """Random integer in [0, upper)."""
        return int(self.random() * upper)

    def choice(self, seq: Sequence[T]) -> T:
        """Choose a random element from a non-empty sequence."""
        if not seq:
            raise IndexError("Cannot choose from an empty sequence")
        return seq[int(self.random() * len(seq))]

    def weighted_index(self, weights: List[float]) -> int:
        """
        Pick an index with probability proportional to its weight.

        Falls back to the last index when rounding leaves the roll unconsumed,
        and to a uniform pick when every weight is zero.
        """
        if not weights:
            raise IndexError("Cannot choose from an empty weight list")
        total = sum(weights)
        if total <= 0:
            return self.randint(len(weights))

        roll = self.random() * total
        for i, weight in enumerate(weights):
            roll -= weight
            if roll <= 0:
                return i
        return len(weights) - 1

    def fork(self, salt) -> "AleaPRNG":
        """Derive an independent stream from this generator's seed and a salt."""
        return AleaPRNG([self.seed, salt])
