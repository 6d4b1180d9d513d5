"""
Jubjub: the twisted Edwards curve embedded in BLS12-381.

Provides:
- Curve constants (base field = BLS12-381 scalar field, d, subgroup order)
- Point construction, affine conversion and arithmetic helpers
- encode_point / decode_point: 32-byte compressed encoding
- hash_to_curve: NUMS (Nothing-Up-My-Sleeve) generator derivation
- JubjubScalar: base type for commitment randomness

Curve:
    -x² + y² = 1 + d·x²·y²   over Fq,  d = -(10240/10241)

    Fq is the scalar field of BLS12-381, so Jubjub arithmetic is native
    arithmetic inside a BLS12-381 circuit. The full group has cofactor 8;
    every point handled by this package lives in the prime-order subgroup
    of order r_J.

Point arithmetic is delegated to the twisted Edwards support of the ecdsa
library. ecdsa represents the neutral element as INFINITY; every helper here
maps it to the affine identity (0, 1).

Encoding:
    32 bytes, y little-endian in bits 0..254, bit 255 = low bit of x.
"""

from __future__ import annotations

import hashlib
import random
from dataclasses import dataclass

import ecdsa.ellipticcurve as ec
from ecdsa.ellipticcurve import INFINITY

from shielded_output.crypto.rng import random_scalar

# ==============================================================================
# Curve constants
# ==============================================================================

FQ = 0x73EDA753299D7D483339D80809A1D80553BDA402FFFE5BFEFFFFFFFF00000001
"""Base field of Jubjub (= scalar field of BLS12-381)."""

FIELD_BITS = FQ.bit_length()

JUBJUB_A = FQ - 1
JUBJUB_D = (-10240 * pow(10241, -1, FQ)) % FQ

JUBJUB_ORDER = 0x0E7DB4EA6533AFA906673B0101343B00A6682093CCC81082D0970E5ED6F72CB7
"""Order r_J of the prime-order subgroup."""

JUBJUB_COFACTOR = 8

SCALAR_BITS = JUBJUB_ORDER.bit_length()
"""Bit length of a Jubjub scalar (252)."""

IDENTITY = (0, 1)

CURVE = ec.CurveEdTw(FQ, JUBJUB_A, JUBJUB_D, h=JUBJUB_COFACTOR)

Affine = tuple[int, int]


def _two_adic_split(n: int) -> tuple[int, int]:
    s = 0
    while n % 2 == 0:
        n //= 2
        s += 1
    return s, n


_TWO_ADICITY, _ODD_PART = _two_adic_split(FQ - 1)
_NON_RESIDUE = next(z for z in range(2, 1000) if pow(z, (FQ - 1) // 2, FQ) == FQ - 1)


# ==============================================================================
# Field helpers
# ==============================================================================


def sqrt_mod(n: int) -> int | None:
    """
    Square root in Fq via Tonelli-Shanks.

    Returns:
        Some root of n, or None if n is not a quadratic residue.
    """
    n %= FQ
    if n == 0:
        return 0
    if pow(n, (FQ - 1) // 2, FQ) != 1:
        return None

    m = _TWO_ADICITY
    c = pow(_NON_RESIDUE, _ODD_PART, FQ)
    t = pow(n, _ODD_PART, FQ)
    r = pow(n, (_ODD_PART + 1) // 2, FQ)
    while t != 1:
        i, t2 = 0, t
        while t2 != 1:
            t2 = t2 * t2 % FQ
            i += 1
        b = pow(c, 1 << (m - i - 1), FQ)
        m = i
        c = b * b % FQ
        t = t * c % FQ
        r = r * b % FQ
    return r


def is_on_curve(x: int, y: int) -> bool:
    """Check -x² + y² == 1 + d·x²·y² mod q."""
    xx = x * x % FQ
    yy = y * y % FQ
    return (yy - xx - 1 - JUBJUB_D * xx * yy) % FQ == 0


def recover_x(y: int, sign: int) -> int | None:
    """
    Solve the curve equation for x given y and the low bit of x.

        x² = (y² - 1) / (d·y² + 1)

    Returns:
        The x coordinate, or None if no point with this y exists.
    """
    yy = y * y % FQ
    x = sqrt_mod((yy - 1) * pow(JUBJUB_D * yy + 1, -1, FQ))
    if x is None:
        return None
    if x == 0 and sign:
        return None
    if x & 1 != sign:
        x = FQ - x
    return x


def add_affine(p: Affine, q: Affine) -> Affine:
    """Complete twisted Edwards addition on affine integer pairs."""
    x1, y1 = p
    x2, y2 = q
    t = JUBJUB_D * x1 * x2 * y1 * y2 % FQ
    x3 = (x1 * y2 + y1 * x2) * pow(1 + t, -1, FQ) % FQ
    y3 = (y1 * y2 + x1 * x2) * pow(1 - t, -1, FQ) % FQ
    return x3, y3


# ==============================================================================
# Point utilities (public API)
# ==============================================================================


def make_point(x: int, y: int, order: int | None = JUBJUB_ORDER) -> ec.AbstractPoint:
    """
    Build an ecdsa Edwards point from affine coordinates.

    Args:
        x, y: Affine coordinates (reduced mod q).
        order: Subgroup order attached to the point; pass None for points
               that may carry a small-order component.

    Raises:
        ValueError: If (x, y) is not on Jubjub.
    """
    x %= FQ
    y %= FQ
    if not is_on_curve(x, y):
        raise ValueError(f"Point (0x{x:064x}, 0x{y:064x}) is not on Jubjub")
    if (x, y) == IDENTITY:
        return INFINITY
    return ec.PointEdwards(CURVE, x, y, 1, x * y % FQ, order)


def is_identity(pt: ec.AbstractPoint) -> bool:
    return pt is INFINITY or pt == INFINITY


def to_affine(pt: ec.AbstractPoint) -> Affine:
    """Affine (x, y) of a point, mapping ecdsa's INFINITY to (0, 1)."""
    if is_identity(pt):
        return IDENTITY
    return pt.x() % FQ, pt.y() % FQ


def points_equal(p: ec.AbstractPoint, q: ec.AbstractPoint) -> bool:
    return to_affine(p) == to_affine(q)


def add_points(p: ec.AbstractPoint, q: ec.AbstractPoint) -> ec.AbstractPoint:
    if is_identity(p):
        return q
    if is_identity(q):
        return p
    return p + q


def neg_point(p: ec.AbstractPoint) -> ec.AbstractPoint:
    if is_identity(p):
        return INFINITY
    x, y = to_affine(p)
    return make_point(-x, y)


def sub_points(p: ec.AbstractPoint, q: ec.AbstractPoint) -> ec.AbstractPoint:
    return add_points(p, neg_point(q))


def mul_point(scalar: int, p: ec.AbstractPoint) -> ec.AbstractPoint:
    """Scalar multiplication in the prime-order subgroup (scalar mod r_J)."""
    scalar %= JUBJUB_ORDER
    if scalar == 0 or is_identity(p):
        return INFINITY
    return scalar * p


def mul_point_offset(scalar: int, p: ec.AbstractPoint) -> ec.AbstractPoint:
    """
    Scalar multiplication without the zero and one shortcuts.

    The scalar is reduced and then offset by r_J, so ecdsa always walks a
    full-length NAF in [r_J, 2·r_J) and a zero amount costs the same as any
    other. `p` must carry order r_J (every point from make_point does);
    the result equals mul_point(scalar, p).

    This removes the obvious small-scalar shortcuts only; ecdsa's NAF ladder
    is still not constant time.
    """
    if is_identity(p):
        return INFINITY
    return (scalar % JUBJUB_ORDER + JUBJUB_ORDER) * p


def double_point(p: ec.AbstractPoint) -> ec.AbstractPoint:
    if is_identity(p):
        return INFINITY
    return p.double()


def powers_of_two(p: ec.AbstractPoint, count: int) -> tuple[Affine, ...]:
    """Affine coordinates of 2^i·p for i in [0, count)."""
    powers = []
    current = p
    for _ in range(count):
        powers.append(to_affine(current))
        current = double_point(current)
    return tuple(powers)


def is_in_prime_subgroup(p: ec.AbstractPoint) -> bool:
    """
    Check that a point has no small-order component.

    ecdsa reports every x == 0 result as INFINITY, which would hide the
    order-2 point (0, -1); (r_J - 1)·P == -P sidesteps that.
    """
    if is_identity(p):
        return True
    x, y = to_affine(p)
    bare = ec.PointEdwards(CURVE, x, y, 1, x * y % FQ)
    return to_affine((JUBJUB_ORDER - 1) * bare) == ((-x) % FQ, y)


# ==============================================================================
# Encoding
# ==============================================================================


def encode_point(pt: ec.AbstractPoint) -> bytes:
    """
    Encode a Jubjub point as 32 bytes.

    Returns:
        y little-endian with the low bit of x stored in bit 255.
    """
    x, y = to_affine(pt)
    return (y | ((x & 1) << 255)).to_bytes(32, "little")


def decode_point(data: bytes, check_subgroup: bool = True) -> ec.AbstractPoint:
    """
    Decode a 32-byte compressed Jubjub point.

    Args:
        data: The 32-byte encoding.
        check_subgroup: Reject points outside the prime-order subgroup.

    Raises:
        ValueError: If the encoding is malformed, non-canonical, not on the
                    curve, or (when checked) not in the prime-order subgroup.
    """
    if len(data) != 32:
        raise ValueError(f"Expected 32 bytes, got {len(data)}")
    raw = int.from_bytes(data, "little")
    sign = raw >> 255
    y = raw & ((1 << 255) - 1)
    if y >= FQ:
        raise ValueError("Non-canonical y coordinate")

    x = recover_x(y, sign)
    if x is None:
        raise ValueError(f"y coordinate 0x{y:064x} does not correspond to a curve point")

    # (0, -1) has order 2 and looks like INFINITY to ecdsa
    if check_subgroup and x == 0 and y != 1:
        raise ValueError("Point is not in the prime-order subgroup")

    pt = make_point(x, y)
    if check_subgroup and not is_in_prime_subgroup(pt):
        raise ValueError("Point is not in the prime-order subgroup")
    return pt


# ==============================================================================
# hash_to_curve — NUMS generator derivation
# ==============================================================================


def hash_to_curve(personalization: bytes, message: bytes) -> ec.AbstractPoint:
    """
    Derive a NUMS point in the prime-order subgroup.

    Algorithm (try-and-increment):
        1. y = BLAKE2b-256(message || counter, person=personalization) mod q
        2. If no x with low bit 0 satisfies the curve equation: counter += 1
        3. P = 8·(x, y); reject the identity and retry

    Nobody knows the discrete log of the output with respect to any other
    generator derived here, since y is a hash output.

    Args:
        personalization: Domain separator, at most 16 bytes.
        message: Generator label within the domain.

    Returns:
        An ecdsa Edwards point of order r_J.
    """
    if len(personalization) > hashlib.blake2b.PERSON_SIZE:
        raise ValueError(
            f"Personalization must be at most {hashlib.blake2b.PERSON_SIZE} bytes"
        )

    for counter in range(256):
        digest = hashlib.blake2b(
            message + bytes([counter]), digest_size=32, person=personalization
        ).digest()
        y = int.from_bytes(digest, "little") % FQ
        x = recover_x(y, 0)
        if x is None or (x, y) == IDENTITY:
            continue
        # Clear the cofactor
        cleared = JUBJUB_COFACTOR * make_point(x, y, order=None)
        if is_identity(cleared):
            continue
        return make_point(*to_affine(cleared))

    raise RuntimeError("hash_to_curve: failed to find a valid point in 256 iterations")


# ==============================================================================
# Scalars
# ==============================================================================


@dataclass(frozen=True)
class JubjubScalar:
    """A scalar modulo r_J, reduced on construction."""
    scalar: int

    def __post_init__(self) -> None:
        object.__setattr__(self, "scalar", self.scalar % JUBJUB_ORDER)

    @classmethod
    def random(cls, rng: random.Random | None = None):
        """Uniform non-zero scalar from the OS CSPRNG (or an injected test rng)."""
        return cls(random_scalar(JUBJUB_ORDER, rng))

    def __add__(self, other):
        if not isinstance(other, JubjubScalar):
            return NotImplemented
        return type(self)(self.scalar + other.scalar)

    def __sub__(self, other):
        if not isinstance(other, JubjubScalar):
            return NotImplemented
        return type(self)(self.scalar - other.scalar)

    def __int__(self) -> int:
        return self.scalar
