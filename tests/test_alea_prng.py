"""Tests for the Alea PRNG and the shared random utilities."""

import pytest

from flux_worldgen.core.alea_prng import AleaPRNG
from flux_worldgen.utils.random import derive_seed, get_prng, set_random_seed


class TestAleaPRNG:
    """Test the seeded stream."""

    def test_same_seed_same_sequence(self):
        a = AleaPRNG("12345")
        b = AleaPRNG("12345")
        assert [a.random() for _ in range(50)] == [b.random() for _ in range(50)]

    def test_int_and_string_seeds_agree(self):
        assert AleaPRNG(42).random() == AleaPRNG("42").random()

    def test_different_seeds_differ(self):
        a = AleaPRNG("alpha")
        b = AleaPRNG("beta")
        assert [a.random() for _ in range(5)] != [b.random() for _ in range(5)]

    def test_values_in_unit_interval(self):
        prng = AleaPRNG("range")
        values = [prng.random() for _ in range(1000)]
        assert all(0.0 <= v < 1.0 for v in values)
        assert prng.call_count == 1000

    def test_randint_bounds(self):
        prng = AleaPRNG("ints")
        values = {prng.randint(4) for _ in range(500)}
        assert values == {0, 1, 2, 3}

    def test_choice_empty_raises(self):
        with pytest.raises(IndexError):
            AleaPRNG("x").choice([])

    def test_weighted_index_respects_zero_weights(self):
        prng = AleaPRNG("weights")
        picks = {prng.weighted_index([0.0, 1.0, 0.0]) for _ in range(200)}
        assert picks == {1}

    def test_weighted_index_all_zero_is_uniform(self):
        prng = AleaPRNG("zeros")
        picks = {prng.weighted_index([0.0, 0.0, 0.0]) for _ in range(300)}
        assert picks == {0, 1, 2}

    def test_fork_is_deterministic_and_independent(self):
        base = AleaPRNG(99)
        first = base.fork("growth")
        second = AleaPRNG(99).fork("growth")
        other = base.fork("dithering")

        seq = [first.random() for _ in range(10)]
        assert seq == [second.random() for _ in range(10)]
        assert seq != [other.random() for _ in range(10)]


class TestRandomUtils:
    """Test the module-level PRNG accessor."""

    def test_set_and_get(self):
        set_random_seed("shared")
        value = get_prng().random()
        set_random_seed("shared")
        assert get_prng().random() == value

    def test_derive_seed_range(self):
        seed = derive_seed(AleaPRNG("seeds"))
        assert isinstance(seed, int)
        assert 0 <= seed < 2**31
