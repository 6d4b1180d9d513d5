"""
Unit tests for shielded_output.snark.msm — multi-scalar multiplication on BLS12-381.
"""

import random

import pytest
from py_ecc.optimized_bls12_381 import G1, G2, Z1, Z2, add, curve_order, eq, is_inf, multiply

from shielded_output.snark.msm import FixedBaseTable, fixed_base_window, multiexp


def naive(bases, scalars, zero):
    acc = zero
    for base, scalar in zip(bases, scalars):
        acc = add(acc, multiply(base, scalar % curve_order))
    return acc


@pytest.fixture
def rng():
    return random.Random(11)


class TestMultiexp:
    @pytest.mark.parametrize("window", [None, 1, 4])
    def test_matches_naive_g1(self, rng, window):
        bases = [multiply(G1, rng.randrange(1, curve_order)) for _ in range(5)]
        scalars = [rng.randrange(curve_order) for _ in range(5)]
        assert eq(multiexp(bases, scalars, Z1, window), naive(bases, scalars, Z1))

    def test_matches_naive_g2(self, rng):
        bases = [G2, multiply(G2, 3)]
        scalars = [rng.randrange(curve_order), rng.randrange(curve_order)]
        assert eq(multiexp(bases, scalars, Z2), naive(bases, scalars, Z2))

    def test_zero_scalars_and_points(self):
        assert is_inf(multiexp([G1, Z1], [0, 5], Z1))
        assert is_inf(multiexp([], [], Z1))

    def test_scalars_reduced(self):
        assert eq(multiexp([G1], [curve_order + 2], Z1), multiply(G1, 2))

    def test_length_mismatch(self):
        with pytest.raises(ValueError, match="bases"):
            multiexp([G1], [1, 2], Z1)


class TestFixedBaseTable:
    def test_mul(self, rng):
        table = FixedBaseTable(G1, Z1, window=4)
        for _ in range(3):
            s = rng.randrange(curve_order)
            assert eq(table.mul(s), multiply(G1, s))
        assert is_inf(table.mul(0))
        assert is_inf(table.mul(curve_order))

    def test_batch_mul_g2(self):
        table = FixedBaseTable(G2, Z2, window=3)
        out = table.batch_mul([1, 2, 12345])
        assert eq(out[0], G2)
        assert eq(out[1], multiply(G2, 2))
        assert eq(out[2], multiply(G2, 12345))

    @pytest.mark.parametrize("window", [0, 17])
    def test_invalid_window(self, window):
        with pytest.raises(ValueError, match="window"):
            FixedBaseTable(G1, Z1, window)

    def test_window_grows_with_count(self):
        assert 2 <= fixed_base_window(1) <= fixed_base_window(100_000) <= 16
