"""
Unit tests for shielded_output.snark.domain — radix-2 FFT over Fr.
"""

import random

import pytest

from shielded_output.snark.domain import (
    FR,
    MULTIPLICATIVE_GENERATOR,
    ROOT_OF_UNITY,
    TWO_ADICITY,
    EvaluationDomain,
    batch_inverse,
)


def evaluate(coeffs, x):
    acc = 0
    for c in reversed(coeffs):
        acc = (acc * x + c) % FR
    return acc


@pytest.fixture
def rng():
    return random.Random(7)


class TestRootOfUnity:
    def test_order(self):
        assert pow(ROOT_OF_UNITY, 1 << TWO_ADICITY, FR) == 1
        assert pow(ROOT_OF_UNITY, 1 << (TWO_ADICITY - 1), FR) == FR - 1


class TestEvaluationDomain:
    @pytest.mark.parametrize("requested,size", [(1, 1), (2, 2), (3, 4), (8, 8), (9, 16)])
    def test_for_size(self, requested, size):
        domain = EvaluationDomain.for_size(requested)
        assert domain.size == size
        assert pow(domain.omega, size, FR) == 1

    def test_too_large(self):
        with pytest.raises(ValueError):
            EvaluationDomain.for_size((1 << TWO_ADICITY) + 1)

    def test_fft_evaluates(self, rng):
        domain = EvaluationDomain.for_size(8)
        coeffs = [rng.randrange(FR) for _ in range(8)]
        evals = domain.fft(coeffs)
        for w, e in zip(domain.elements(), evals):
            assert evaluate(coeffs, w) == e

    def test_ifft_inverts(self, rng):
        domain = EvaluationDomain.for_size(16)
        coeffs = [rng.randrange(FR) for _ in range(16)]
        assert domain.ifft(domain.fft(coeffs)) == coeffs

    def test_coset_fft(self, rng):
        domain = EvaluationDomain.for_size(4)
        coeffs = [rng.randrange(FR) for _ in range(4)]
        evals = domain.coset_fft(coeffs)
        for w, e in zip(domain.elements(), evals):
            assert evaluate(coeffs, MULTIPLICATIVE_GENERATOR * w % FR) == e
        assert domain.coset_ifft(evals) == coeffs

    def test_pads_short_input(self):
        domain = EvaluationDomain.for_size(4)
        assert domain.fft([5]) == [5, 5, 5, 5]

    def test_rejects_long_input(self):
        with pytest.raises(ValueError, match="do not fit"):
            EvaluationDomain.for_size(4).fft([1] * 5)

    def test_lagrange_coefficients(self, rng):
        """Σ L_i(τ)·y_i is the interpolant of y at τ."""
        domain = EvaluationDomain.for_size(8)
        coeffs = [rng.randrange(FR) for _ in range(8)]
        evals = domain.fft(coeffs)
        tau = rng.randrange(FR)
        lagrange = domain.evaluate_all_lagrange_coefficients(tau)
        assert sum(c * y for c, y in zip(lagrange, evals)) % FR == evaluate(coeffs, tau)

    def test_lagrange_at_domain_point(self):
        domain = EvaluationDomain.for_size(4)
        assert domain.evaluate_all_lagrange_coefficients(domain.elements()[2]) == [0, 0, 1, 0]

    def test_vanishing_polynomial(self):
        domain = EvaluationDomain.for_size(4)
        assert all(domain.evaluate_vanishing_polynomial(w) == 0 for w in domain.elements())
        assert domain.evaluate_vanishing_polynomial(2) == 15


def test_batch_inverse(rng):
    values = [rng.randrange(1, FR) for _ in range(10)]
    assert all(v * inv % FR == 1 for v, inv in zip(values, batch_inverse(values)))
