"""
Multi-scalar multiplication over the BLS12-381 groups.

- multiexp: bucket (Pippenger) method for Σ s_i·P_i with varying bases
- FixedBaseTable: windowed precomputation for many products of one base

Both work on py_ecc optimized (projective) points of either G1 or G2.
Bucket slots start as None so that unused buckets cost nothing.
"""

from __future__ import annotations

from typing import Any, Sequence

from py_ecc.optimized_bls12_381 import add, curve_order, double, is_inf

SCALAR_BITS = curve_order.bit_length()

Point = Any  # py_ecc optimized point over FQ or FQ2


def _add_opt(acc: Point | None, p: Point) -> Point:
    return p if acc is None else add(acc, p)


def default_msm_window(count: int) -> int:
    if count < 32:
        return 3
    return min(16, max(1, count.bit_length() - 2))


def multiexp(
    bases: Sequence[Point],
    scalars: Sequence[int],
    zero: Point,
    window: int | None = None,
) -> Point:
    """
    Σ scalars[i]·bases[i].

    Args:
        bases: Points of one group.
        scalars: Integers, reduced mod the group order here.
        zero: The identity of that group (Z1 or Z2).
        window: Bucket width in bits; chosen from the input size when None.

    Raises:
        ValueError: If the two sequences differ in length.
    """
    if len(bases) != len(scalars):
        raise ValueError(f"{len(bases)} bases for {len(scalars)} scalars")

    pairs = []
    for base, scalar in zip(bases, scalars):
        scalar %= curve_order
        if scalar and not is_inf(base):
            pairs.append((base, scalar))
    if not pairs:
        return zero

    c = window or default_msm_window(len(pairs))
    mask = (1 << c) - 1
    num_windows = (SCALAR_BITS + c - 1) // c

    result: Point | None = None
    for w in reversed(range(num_windows)):
        if result is not None:
            for _ in range(c):
                result = double(result)

        buckets: list[Point | None] = [None] * mask
        shift = w * c
        for base, scalar in pairs:
            digit = (scalar >> shift) & mask
            if digit:
                buckets[digit - 1] = _add_opt(buckets[digit - 1], base)

        # Σ j·bucket_j via running sums
        running: Point | None = None
        window_sum: Point | None = None
        for bucket in reversed(buckets):
            if bucket is not None:
                running = _add_opt(running, bucket)
            if running is not None:
                window_sum = _add_opt(window_sum, running)

        if window_sum is not None:
            result = _add_opt(result, window_sum)

    return zero if result is None else result


def fixed_base_window(count: int) -> int:
    """Window minimizing table build plus `count` lookups."""
    best, best_cost = 2, None
    for c in range(2, 17):
        cost = ((SCALAR_BITS + c - 1) // c) * ((1 << c) + count)
        if best_cost is None or cost < best_cost:
            best, best_cost = c, cost
    return best


class FixedBaseTable:
    """
    Precomputed j·2^(i·c)·P for every window i and digit j.

    Usage:
        table = FixedBaseTable(G1, zero=Z1, window=fixed_base_window(n))
        points = table.batch_mul(scalars)
    """

    def __init__(self, base: Point, zero: Point, window: int) -> None:
        if not 1 <= window <= 16:
            raise ValueError(f"Fixed-base window must be in [1, 16], got {window}")
        self.zero = zero
        self.window = window
        self.num_windows = (SCALAR_BITS + window - 1) // window
        self.rows: list[list[Point]] = []

        row_base = base
        for _ in range(self.num_windows):
            row = [zero, row_base]
            for _ in range(2, 1 << window):
                row.append(add(row[-1], row_base))
            self.rows.append(row)
            # 2^c·row_base, the first entry past the end of this row
            row_base = add(row[-1], row_base)

    def mul(self, scalar: int) -> Point:
        scalar %= curve_order
        mask = (1 << self.window) - 1
        acc: Point | None = None
        for i, row in enumerate(self.rows):
            digit = (scalar >> (i * self.window)) & mask
            if digit:
                acc = _add_opt(acc, row[digit])
        return self.zero if acc is None else acc

    def batch_mul(self, scalars: Sequence[int]) -> list[Point]:
        return [self.mul(s) for s in scalars]
