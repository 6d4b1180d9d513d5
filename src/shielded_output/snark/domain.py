"""
Radix-2 evaluation domains over the BLS12-381 scalar field.

A domain of size n = 2^k is the subgroup {ω^0, ..., ω^(n-1)} of the n-th
roots of unity. Polynomials move between coefficient form and evaluations
over the domain (or over the coset g·domain) with the FFT.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from py_ecc.optimized_bls12_381 import curve_order

FR = curve_order

TWO_ADICITY = 32
MULTIPLICATIVE_GENERATOR = 7
"""Generator of Fr^*; also the coset shift."""

ROOT_OF_UNITY = pow(MULTIPLICATIVE_GENERATOR, (FR - 1) >> TWO_ADICITY, FR)
"""A primitive 2^32-th root of unity."""


def _bit_reverse(values: list[int]) -> None:
    n = len(values)
    j = 0
    for i in range(1, n):
        bit = n >> 1
        while j & bit:
            j ^= bit
            bit >>= 1
        j |= bit
        if i < j:
            values[i], values[j] = values[j], values[i]


def fft(values: list[int], omega: int) -> list[int]:
    """
    Evaluate a polynomial at ω^0..ω^(n-1).

    Args:
        values: Coefficients, lowest degree first; len must be a power of 2.
        omega: A primitive n-th root of unity.
    """
    n = len(values)
    if n & (n - 1):
        raise ValueError(f"FFT size must be a power of 2, got {n}")
    a = [v % FR for v in values]
    _bit_reverse(a)

    m = 1
    while m < n:
        w_m = pow(omega, n // (2 * m), FR)
        twiddles = [1] * m
        for i in range(1, m):
            twiddles[i] = twiddles[i - 1] * w_m % FR
        for k in range(0, n, 2 * m):
            for j in range(m):
                t = twiddles[j] * a[k + j + m] % FR
                u = a[k + j]
                a[k + j] = (u + t) % FR
                a[k + j + m] = (u - t) % FR
        m *= 2
    return a


@dataclass(frozen=True)
class EvaluationDomain:
    """
    The multiplicative subgroup of order `size` in Fr.

    Usage:
        domain = EvaluationDomain.for_size(num_constraints)
        evals = domain.fft(coeffs)
    """
    size: int
    log_size: int
    omega: int
    omega_inv: int = field(repr=False)
    size_inv: int = field(repr=False)

    @classmethod
    def for_size(cls, min_size: int) -> EvaluationDomain:
        """
        The smallest domain with at least min_size points.

        Raises:
            ValueError: If no radix-2 domain in Fr is that large.
        """
        log_size = max(0, (max(min_size, 1) - 1).bit_length())
        if log_size > TWO_ADICITY:
            raise ValueError(f"No radix-2 domain of size {min_size} in Fr")
        size = 1 << log_size
        omega = pow(ROOT_OF_UNITY, 1 << (TWO_ADICITY - log_size), FR)
        return cls(
            size=size,
            log_size=log_size,
            omega=omega,
            omega_inv=pow(omega, -1, FR),
            size_inv=pow(size, -1, FR),
        )

    def elements(self) -> list[int]:
        out = [1] * self.size
        for i in range(1, self.size):
            out[i] = out[i - 1] * self.omega % FR
        return out

    def _padded(self, values: list[int]) -> list[int]:
        if len(values) > self.size:
            raise ValueError(f"{len(values)} values do not fit a domain of size {self.size}")
        return list(values) + [0] * (self.size - len(values))

    def fft(self, coeffs: list[int]) -> list[int]:
        return fft(self._padded(coeffs), self.omega)

    def ifft(self, evals: list[int]) -> list[int]:
        out = fft(self._padded(evals), self.omega_inv)
        return [v * self.size_inv % FR for v in out]

    def coset_fft(self, coeffs: list[int]) -> list[int]:
        """Evaluations over g·domain, g = MULTIPLICATIVE_GENERATOR."""
        return self.fft(_distribute_powers(self._padded(coeffs), MULTIPLICATIVE_GENERATOR))

    def coset_ifft(self, evals: list[int]) -> list[int]:
        coeffs = self.ifft(evals)
        return _distribute_powers(coeffs, pow(MULTIPLICATIVE_GENERATOR, -1, FR))

    def evaluate_vanishing_polynomial(self, tau: int) -> int:
        """Z(τ) = τ^n - 1."""
        return (pow(tau, self.size, FR) - 1) % FR

    def evaluate_all_lagrange_coefficients(self, tau: int) -> list[int]:
        """
        L_i(τ) for every i.

            L_i(τ) = (τ^n - 1)/n · ω^i/(τ - ω^i)

        At τ = ω^j this is the indicator of j.
        """
        z = self.evaluate_vanishing_polynomial(tau)
        elements = self.elements()
        if z == 0:
            return [1 if (tau - w) % FR == 0 else 0 for w in elements]
        scale = z * self.size_inv % FR
        denominators = [(tau - w) % FR for w in elements]
        inverses = batch_inverse(denominators)
        return [scale * w % FR * inv % FR for w, inv in zip(elements, inverses)]

    def divide_by_vanishing_poly_on_coset(self, evals: list[int]) -> list[int]:
        """Divide evaluations over the coset by Z, which is constant there."""
        z_inv = pow(self.evaluate_vanishing_polynomial(MULTIPLICATIVE_GENERATOR), -1, FR)
        return [v * z_inv % FR for v in evals]


def _distribute_powers(values: list[int], g: int) -> list[int]:
    out = []
    power = 1
    for v in values:
        out.append(v * power % FR)
        power = power * g % FR
    return out


def batch_inverse(values: list[int]) -> list[int]:
    """Montgomery's trick: n inversions for one modular exponentiation."""
    prefix = []
    acc = 1
    for v in values:
        prefix.append(acc)
        acc = acc * v % FR
    acc_inv = pow(acc, -1, FR)
    out = [0] * len(values)
    for i in reversed(range(len(values))):
        out[i] = acc_inv * prefix[i] % FR
        acc_inv = acc_inv * values[i] % FR
    return out
