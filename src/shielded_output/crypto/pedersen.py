"""
Homomorphic Pedersen value commitments over Jubjub.

Provides:
- VALUE_GENERATOR / TRAPDOOR_GENERATOR: NUMS generators G_v, H_v
- ValueCommitTrapdoor: the commitment randomness rcv
- ValueCommitment: commit / verify / homomorphic addition

Mathematical foundation:
    cv = v·G_v + rcv·H_v

    - **Hiding**: reveals nothing about v without rcv
    - **Binding**: cannot open to a different (v', rcv') pair
    - **Homomorphic**: cv1 + cv2 = (v1+v2)·G_v + (rcv1+rcv2)·H_v

    Both generators come from hash_to_curve, so no discrete log relation
    between them is known.

Amounts are 64-bit unsigned integers.

Note: ecdsa's scalar multiplication is not constant time. commit() offsets
both scalars by r_J so a zero or one amount takes no shortcut, but callers
that need timing independence from the amount must not rely on this
module alone for it.

References:
    [Ped91] T.P. Pedersen, "Non-Interactive and Information-Theoretic Secure
            Verifiable Secret Sharing", CRYPTO '91, §3.
"""

from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache

import ecdsa.ellipticcurve as ec

from shielded_output.crypto.jubjub import (
    SCALAR_BITS,
    Affine,
    JubjubScalar,
    add_points,
    decode_point,
    encode_point,
    hash_to_curve,
    mul_point_offset,
    points_equal,
    powers_of_two,
    sub_points,
    to_affine,
)

# ==============================================================================
# Constants
# ==============================================================================

AMOUNT_BITS = 64

MAX_AMOUNT = 2**AMOUNT_BITS - 1
"""Largest committable amount (64-bit unsigned)."""

VALUE_COMMITMENT_PERSONALIZATION = b"shielded_cv"

VALUE_GENERATOR = hash_to_curve(VALUE_COMMITMENT_PERSONALIZATION, b"v")
"""G_v — multiplies the amount."""

TRAPDOOR_GENERATOR = hash_to_curve(VALUE_COMMITMENT_PERSONALIZATION, b"r")
"""H_v — multiplies the trapdoor rcv."""


def check_amount(value: int) -> int:
    """
    Validate a 64-bit unsigned amount.

    Raises:
        ValueError: If value is not an int in [0, 2^64).
    """
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"amount must be an integer, got {type(value).__name__}")
    if value < 0 or value > MAX_AMOUNT:
        raise ValueError(f"amount {value} out of range [0, 2^{AMOUNT_BITS})")
    return value


@lru_cache(maxsize=None)
def value_commitment_bit_generators() -> tuple[tuple[Affine, ...], tuple[Affine, ...]]:
    """
    Per-bit generators for in-circuit value commitments.

    Returns:
        (2^i·G_v for i < 64, 2^i·H_v for i < 252) as affine pairs.
    """
    return (
        powers_of_two(VALUE_GENERATOR, AMOUNT_BITS),
        powers_of_two(TRAPDOOR_GENERATOR, SCALAR_BITS),
    )


# ==============================================================================
# ValueCommitTrapdoor
# ==============================================================================


class ValueCommitTrapdoor(JubjubScalar):
    """
    The value commitment randomness rcv.

    Never reuse a trapdoor across commitments to different values: the
    difference of the two commitments would reveal the difference of the
    amounts.
    """


# ==============================================================================
# ValueCommitment
# ==============================================================================


@dataclass(frozen=True, eq=False)
class ValueCommitment:
    """
    A Pedersen commitment cv = v·G_v + rcv·H_v on Jubjub.

    Usage:
        rcv = ValueCommitTrapdoor.random()
        cv = ValueCommitment.commit(10, rcv)
        assert cv.verify(10, rcv)
    """
    point: ec.AbstractPoint

    @classmethod
    def commit(cls, value: int, trapdoor: ValueCommitTrapdoor | int) -> ValueCommitment:
        """
        Create a value commitment cv = v·G_v + rcv·H_v.

        Args:
            value: The amount (64-bit unsigned).
            trapdoor: The randomness rcv.

        Returns:
            The commitment.

        Raises:
            ValueError: If the amount is out of range.
        """
        check_amount(value)
        rcv = int(trapdoor)
        vG = mul_point_offset(value, VALUE_GENERATOR)
        rH = mul_point_offset(rcv, TRAPDOOR_GENERATOR)
        return cls(add_points(vG, rH))

    def verify(self, value: int, trapdoor: ValueCommitTrapdoor | int) -> bool:
        """
        Check that this commitment opens to (value, trapdoor).

        Returns:
            True if cv == v·G_v + rcv·H_v, False otherwise.
        """
        try:
            return self == ValueCommitment.commit(value, trapdoor)
        except ValueError:
            return False

    @classmethod
    def from_bytes(cls, data: bytes) -> ValueCommitment:
        return cls(decode_point(data))

    def to_bytes(self) -> bytes:
        return encode_point(self.point)

    def to_affine(self) -> Affine:
        return to_affine(self.point)

    def __add__(self, other: ValueCommitment) -> ValueCommitment:
        if not isinstance(other, ValueCommitment):
            return NotImplemented
        return ValueCommitment(add_points(self.point, other.point))

    def __sub__(self, other: ValueCommitment) -> ValueCommitment:
        if not isinstance(other, ValueCommitment):
            return NotImplemented
        return ValueCommitment(sub_points(self.point, other.point))

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ValueCommitment):
            return NotImplemented
        return points_equal(self.point, other.point)

    def __hash__(self) -> int:
        return hash(self.to_affine())

    def __repr__(self) -> str:
        return f"ValueCommitment({self.to_bytes().hex()})"
