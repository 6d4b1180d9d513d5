"""
Jubjub point gadgets.

Addition uses the complete twisted Edwards law (a = -1):

    x3 = (x1·y2 + y1·x2) / (1 + d·x1·x2·y1·y2)
    y3 = (y1·y2 + x1·x2) / (1 - d·x1·x2·y1·y2)

which costs 7 constraints (fewer when an operand coordinate is constant).
Fixed-base multiplication looks up two bits at a time from a table of
constant points, so each pair of scalar bits costs one product and one
addition.
"""

from __future__ import annotations

from dataclasses import dataclass

from shielded_output.circuit.gadgets import (
    Num,
    alloc_num,
    enforce_equal,
    mul,
    to_bits_le_strict,
)
from shielded_output.circuit.r1cs import ONE, ConstraintSystem, SynthesisError
from shielded_output.crypto.jubjub import (
    IDENTITY,
    JUBJUB_D,
    Affine,
    add_affine,
)


@dataclass(frozen=True)
class EdwardsPoint:
    """A Jubjub point whose coordinates are Nums."""
    x: Num
    y: Num

    @classmethod
    def constant(cls, point: Affine) -> EdwardsPoint:
        return cls(Num.constant(point[0]), Num.constant(point[1]))

    @classmethod
    def witness(
        cls,
        cs: ConstraintSystem,
        point: Affine | None,
        annotation: str = "",
    ) -> EdwardsPoint:
        """
        Allocate a point and enforce that it lies on the curve.

            d·x²·y² = y² - x² - 1
        """
        x = alloc_num(cs, point[0] if point is not None else None, f"{annotation}.x")
        y = alloc_num(cs, point[1] if point is not None else None, f"{annotation}.y")
        xx = mul(cs, x, x, f"{annotation} x²")
        yy = mul(cs, y, y, f"{annotation} y²")
        cs.enforce(xx.lc * JUBJUB_D, yy.lc, yy.lc - xx.lc - ONE, f"{annotation} on curve")
        return cls(x, y)

    @property
    def value(self) -> Affine | None:
        if self.x.value is None or self.y.value is None:
            return None
        return self.x.value, self.y.value

    def add(self, cs: ConstraintSystem, other: EdwardsPoint, annotation: str = "") -> EdwardsPoint:
        beta = mul(cs, self.x, other.y, f"{annotation} x1·y2")
        gamma = mul(cs, self.y, other.x, f"{annotation} y1·x2")
        delta = mul(cs, self.y, other.y, f"{annotation} y1·y2")
        epsilon = mul(cs, self.x, other.x, f"{annotation} x1·x2")
        tau = mul(cs, delta, epsilon, f"{annotation} tau")

        sum_values = self.value, other.value
        if None in sum_values:
            x3_value = y3_value = None
        else:
            x3_value, y3_value = add_affine(*sum_values)

        x3 = alloc_num(cs, x3_value, f"{annotation} x3")
        cs.enforce(x3.lc, ONE + tau.lc * JUBJUB_D, beta.lc + gamma.lc, f"{annotation} x3")
        y3 = alloc_num(cs, y3_value, f"{annotation} y3")
        cs.enforce(y3.lc, ONE - tau.lc * JUBJUB_D, delta.lc + epsilon.lc, f"{annotation} y3")
        return EdwardsPoint(x3, y3)

    def double(self, cs: ConstraintSystem, annotation: str = "") -> EdwardsPoint:
        return self.add(cs, self, annotation)

    def enforce_equal(self, cs: ConstraintSystem, other: EdwardsPoint, annotation: str = "") -> None:
        enforce_equal(cs, self.x, other.x, f"{annotation}.x")
        enforce_equal(cs, self.y, other.y, f"{annotation}.y")

    def compress(self, cs: ConstraintSystem, annotation: str = "") -> list[Num]:
        """
        Bits of the 32-byte point encoding: y little-endian, then low bit of x.
        """
        x_bits = to_bits_le_strict(cs, self.x, f"{annotation}.x bits")
        y_bits = to_bits_le_strict(cs, self.y, f"{annotation}.y bits")
        return y_bits + [x_bits[0]]


# ==============================================================================
# Selection and lookup
# ==============================================================================


def conditionally_select(
    cs: ConstraintSystem,
    bit: Num,
    point: EdwardsPoint,
    annotation: str = "",
) -> EdwardsPoint:
    """bit ? point : identity"""
    x = mul(cs, bit, point.x, f"{annotation} select x")

    if bit.value is None or point.y.value is None:
        y_value = None
    else:
        y_value = 1 + bit.value * (point.y.value - 1)
    y = alloc_num(cs, y_value, f"{annotation} select y")
    # b·(y_p - 1) = y - 1
    cs.enforce(bit.lc, point.y.lc - ONE, y.lc - ONE, f"{annotation} select y")
    return EdwardsPoint(x, y)


def _lookup1(bit: Num, table: tuple[Affine, Affine]) -> EdwardsPoint:
    p0, p1 = table
    x = Num.constant(p0[0]) + bit.scale(p1[0] - p0[0])
    y = Num.constant(p0[1]) + bit.scale(p1[1] - p0[1])
    return EdwardsPoint(x, y)


def _lookup2(
    cs: ConstraintSystem,
    b0: Num,
    b1: Num,
    table: tuple[Affine, Affine, Affine, Affine],
    annotation: str = "",
) -> EdwardsPoint:
    """table[b0 + 2·b1], with one constraint for b0·b1."""
    p0, p1, p2, p3 = table
    b01 = mul(cs, b0, b1, f"{annotation} lookup")
    coords = []
    for k in range(2):
        coords.append(
            Num.constant(p0[k])
            + b0.scale(p1[k] - p0[k])
            + b1.scale(p2[k] - p0[k])
            + b01.scale(p3[k] - p2[k] - p1[k] + p0[k])
        )
    return EdwardsPoint(coords[0], coords[1])


# ==============================================================================
# Scalar multiplication
# ==============================================================================


def fixed_base_multiexp(
    cs: ConstraintSystem,
    bits: list[Num],
    generators: tuple[Affine, ...] | list[Affine],
    annotation: str = "",
) -> EdwardsPoint:
    """
    Σ b_i·G_i for boolean b_i and constant points G_i.

    Bits are consumed in pairs through a 4-entry lookup table
    {O, G_i, G_{i+1}, G_i + G_{i+1}}.
    """
    if len(bits) != len(generators):
        raise SynthesisError(f"{len(bits)} bits for {len(generators)} generators")
    if not bits:
        return EdwardsPoint.constant(IDENTITY)

    acc: EdwardsPoint | None = None
    for i in range(0, len(bits), 2):
        if i + 1 < len(bits):
            g0, g1 = generators[i], generators[i + 1]
            table = (IDENTITY, g0, g1, add_affine(g0, g1))
            term = _lookup2(cs, bits[i], bits[i + 1], table, f"{annotation}[{i}]")
        else:
            term = _lookup1(bits[i], (IDENTITY, generators[i]))
        acc = term if acc is None else acc.add(cs, term, f"{annotation}[{i}]")
    return acc


def variable_base_mul(
    cs: ConstraintSystem,
    bits: list[Num],
    point: EdwardsPoint,
    annotation: str = "",
) -> EdwardsPoint:
    """Σ b_i·2^i·P by double-and-add over little-endian bits."""
    if not bits:
        return EdwardsPoint.constant(IDENTITY)

    acc: EdwardsPoint | None = None
    base = point
    for i, bit in enumerate(bits):
        term = conditionally_select(cs, bit, base, f"{annotation}[{i}]")
        acc = term if acc is None else acc.add(cs, term, f"{annotation}[{i}]")
        if i + 1 < len(bits):
            base = base.double(cs, f"{annotation} 2^{i + 1}")
    return acc


__all__ = [
    "EdwardsPoint",
    "conditionally_select",
    "fixed_base_multiexp",
    "variable_base_mul",
]
