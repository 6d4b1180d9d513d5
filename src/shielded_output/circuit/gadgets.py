"""
Field and boolean gadgets.

A Num pairs a linear combination with its value (None while synthesizing
for setup). Linear operations on Nums are free; only multiplication and
allocation touch the constraint system.
"""

from __future__ import annotations

from dataclasses import dataclass

from shielded_output.circuit.r1cs import (
    FIELD_MODULUS,
    ONE,
    ConstraintSystem,
    LinearCombination,
    SynthesisError,
)

FIELD_BITS = FIELD_MODULUS.bit_length()


def _known(*values: int | None) -> bool:
    return all(v is not None for v in values)


@dataclass(frozen=True)
class Num:
    """A linear combination with an optional value."""
    lc: LinearCombination
    value: int | None

    @classmethod
    def constant(cls, value: int) -> Num:
        value %= FIELD_MODULUS
        return cls(LinearCombination.constant(value), value)

    def is_constant(self) -> bool:
        return self.lc.is_constant()

    def __add__(self, other: Num | int) -> Num:
        other = as_num(other)
        value = (self.value + other.value) % FIELD_MODULUS if _known(self.value, other.value) else None
        return Num(self.lc + other.lc, value)

    __radd__ = __add__

    def __neg__(self) -> Num:
        return Num(-self.lc, (-self.value) % FIELD_MODULUS if self.value is not None else None)

    def __sub__(self, other: Num | int) -> Num:
        return self + (-as_num(other))

    def __rsub__(self, other: Num | int) -> Num:
        return as_num(other) - self

    def scale(self, k: int) -> Num:
        value = self.value * k % FIELD_MODULUS if self.value is not None else None
        return Num(self.lc * k, value)


def as_num(x: Num | int) -> Num:
    if isinstance(x, Num):
        return x
    return Num.constant(x)


# ==============================================================================
# Allocation
# ==============================================================================


def alloc_num(cs: ConstraintSystem, value: int | None, annotation: str = "") -> Num:
    var = cs.alloc(value, annotation)
    return Num(LinearCombination.from_variable(var), value % FIELD_MODULUS if value is not None else None)


def alloc_input_num(cs: ConstraintSystem, value: int | None, annotation: str = "") -> Num:
    var = cs.alloc_input(value, annotation)
    return Num(LinearCombination.from_variable(var), value % FIELD_MODULUS if value is not None else None)


def enforce_equal(cs: ConstraintSystem, a: Num, b: Num, annotation: str = "") -> None:
    """(a - b)·1 = 0"""
    cs.enforce(a.lc - b.lc, ONE, LinearCombination.zero(), annotation)


def mul(cs: ConstraintSystem, a: Num, b: Num, annotation: str = "") -> Num:
    """
    Product of two Nums.

    Multiplying by a constant is linear and adds no constraint.
    """
    if a.is_constant():
        return b.scale(a.lc.constant_value())
    if b.is_constant():
        return a.scale(b.lc.constant_value())
    value = a.value * b.value % FIELD_MODULUS if _known(a.value, b.value) else None
    c = alloc_num(cs, value, annotation)
    cs.enforce(a.lc, b.lc, c.lc, annotation)
    return c


# ==============================================================================
# Booleans
# ==============================================================================


def alloc_bit(cs: ConstraintSystem, value: int | None, annotation: str = "") -> Num:
    """Allocate b with b·(1 - b) = 0."""
    if value is not None and value not in (0, 1):
        raise SynthesisError(f"'{annotation}' is not a bit: {value}")
    b = alloc_num(cs, value, annotation)
    cs.enforce(b.lc, ONE - b.lc, LinearCombination.zero(), f"{annotation} boolean")
    return b


def alloc_bits_le(
    cs: ConstraintSystem,
    value: int | None,
    num_bits: int,
    annotation: str = "",
) -> list[Num]:
    """
    Allocate the little-endian bits of a value.

    Raises:
        SynthesisError: If the value does not fit in num_bits.
    """
    if value is not None and (value < 0 or value >> num_bits):
        raise SynthesisError(f"'{annotation}' does not fit in {num_bits} bits")
    return [
        alloc_bit(cs, (value >> i) & 1 if value is not None else None, f"{annotation}[{i}]")
        for i in range(num_bits)
    ]


def pack_bits(bits: list[Num]) -> Num:
    """Σ 2^i·b_i (linear, no constraints)."""
    total = Num.constant(0)
    for i, bit in enumerate(bits):
        total = total + bit.scale(1 << i)
    return total


def kary_and(cs: ConstraintSystem, bits: list[Num], annotation: str = "") -> Num:
    """AND of a non-empty list of bits."""
    if not bits:
        raise SynthesisError("kary_and of an empty list")
    acc = bits[0]
    for bit in bits[1:]:
        acc = mul(cs, acc, bit, f"{annotation} and")
    return acc


def enforce_le_constant(
    cs: ConstraintSystem,
    bits_le: list[Num],
    constant: int,
    annotation: str = "",
) -> None:
    """
    Enforce Σ 2^i·b_i <= constant for boolean b_i.

    Walk from the most significant bit. last_run is 1 iff every bit seen
    so far matches the constant; where the constant has a 0 and last_run
    is 1, the bit must be 0.
    """
    last_run: Num | None = None
    current_run: list[Num] = []
    for i in reversed(range(len(bits_le))):
        bit = bits_le[i]
        if (constant >> i) & 1:
            current_run.append(bit)
            continue
        if current_run:
            if last_run is not None:
                current_run.append(last_run)
            last_run = kary_and(cs, current_run, annotation)
            current_run = []
        if last_run is None:
            cs.enforce(bit.lc, ONE, LinearCombination.zero(), f"{annotation} leading zero")
        else:
            cs.enforce(last_run.lc, bit.lc, LinearCombination.zero(), f"{annotation} le")


def to_bits_le_strict(cs: ConstraintSystem, num: Num, annotation: str = "") -> list[Num]:
    """
    Canonical little-endian decomposition of a field element.

    The bits are constrained to pack to num and to encode a value
    <= q - 1, so the decomposition is unique.
    """
    bits = alloc_bits_le(cs, num.value, FIELD_BITS, annotation)
    enforce_equal(cs, pack_bits(bits), num, f"{annotation} pack")
    enforce_le_constant(cs, bits, FIELD_MODULUS - 1, annotation)
    return bits
