"""
Windowed Pedersen note commitments over Jubjub.

A note commitment binds the recipient (diversifier base g_d, transmission
key pk_d) and the amount v:

    input = encode(g_d) || encode(pk_d) || LE64(v)          (72 bytes)
    cm    = Σ_i  W_i·B_i  +  rcm·H_cm

where W_i is the i-th 4-bit window of the input bits (little-endian within
each byte) and B_i is the NUMS base of window i. Equivalently each message
bit j of window i has its own generator 2^j·B_i, which is the form the
output circuit consumes.

The commitment is binding and hiding with respect to rcm, but not
homomorphic.

The parameter set is derived once per process (NoteCommitmentParams.setup)
and is read-only afterwards, so it can be shared across threads.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass

import ecdsa.ellipticcurve as ec
from ecdsa.ellipticcurve import INFINITY

from shielded_output.crypto.jubjub import (
    SCALAR_BITS,
    Affine,
    JubjubScalar,
    add_points,
    decode_point,
    encode_point,
    hash_to_curve,
    mul_point,
    points_equal,
    powers_of_two,
    to_affine,
)
from shielded_output.crypto.pedersen import AMOUNT_BITS, check_amount

logger = logging.getLogger("shielded_output.note_commitment")

# ==============================================================================
# Constants
# ==============================================================================

NOTE_COMMITMENT_PERSONALIZATION = b"shielded_cm"

WINDOW_SIZE = 4
NUM_WINDOWS = 144

NOTE_INPUT_BYTES = 32 + 32 + AMOUNT_BITS // 8
"""encode(g_d) || encode(pk_d) || LE64(v)."""


def bytes_to_bits_le(data: bytes) -> list[int]:
    """Bits of each byte, least significant first."""
    return [(byte >> i) & 1 for byte in data for i in range(8)]


# ==============================================================================
# Parameters
# ==============================================================================


@dataclass(frozen=True)
class NoteCommitmentParams:
    """
    Public parameters of the windowed Pedersen commitment.

    Attributes:
        window_size: Message bits per window.
        num_windows: Number of windows (capacity = window_size·num_windows bits).
        bases: NUMS base point B_i of each window.
        randomness_generator: H_cm, multiplied by rcm.
        bit_generators: Affine 2^j·B_i for every message bit, in bit order.
        randomness_bit_generators: Affine 2^k·H_cm for k < 252.
    """
    window_size: int
    num_windows: int
    bases: tuple[ec.AbstractPoint, ...]
    randomness_generator: ec.AbstractPoint
    bit_generators: tuple[Affine, ...]
    randomness_bit_generators: tuple[Affine, ...]

    @property
    def input_bits(self) -> int:
        return self.window_size * self.num_windows

    @classmethod
    def generate(
        cls,
        window_size: int = WINDOW_SIZE,
        num_windows: int = NUM_WINDOWS,
    ) -> NoteCommitmentParams:
        """
        Derive a parameter set from hash_to_curve.

        Args:
            window_size: Bits per window (1..248).
            num_windows: Number of windows.

        Raises:
            ValueError: On non-positive or oversized window dimensions.
        """
        if window_size < 1 or window_size >= SCALAR_BITS - 3:
            raise ValueError(f"window_size must be in [1, {SCALAR_BITS - 4}], got {window_size}")
        if num_windows < 1:
            raise ValueError(f"num_windows must be positive, got {num_windows}")

        bases = tuple(
            hash_to_curve(NOTE_COMMITMENT_PERSONALIZATION, i.to_bytes(4, "little"))
            for i in range(num_windows)
        )
        randomness_generator = hash_to_curve(NOTE_COMMITMENT_PERSONALIZATION, b"r")

        bit_generators: list[Affine] = []
        for base in bases:
            bit_generators.extend(powers_of_two(base, window_size))

        return cls(
            window_size=window_size,
            num_windows=num_windows,
            bases=bases,
            randomness_generator=randomness_generator,
            bit_generators=tuple(bit_generators),
            randomness_bit_generators=powers_of_two(randomness_generator, SCALAR_BITS),
        )

    @classmethod
    def setup(cls) -> NoteCommitmentParams:
        """The process-wide default parameter set, derived on first use."""
        global _DEFAULT_PARAMS
        if _DEFAULT_PARAMS is None:
            with _DEFAULT_PARAMS_LOCK:
                if _DEFAULT_PARAMS is None:
                    logger.debug(
                        f"Deriving note commitment parameters ({NUM_WINDOWS} windows of {WINDOW_SIZE} bits)"
                    )
                    _DEFAULT_PARAMS = cls.generate()
        return _DEFAULT_PARAMS


_DEFAULT_PARAMS: NoteCommitmentParams | None = None
_DEFAULT_PARAMS_LOCK = threading.Lock()


def pedersen_commit_bytes(
    params: NoteCommitmentParams,
    data: bytes,
    randomness: int,
) -> ec.AbstractPoint:
    """
    Windowed Pedersen commitment to a byte string.

    Args:
        params: The commitment parameters.
        data: Message bytes (zero padded up to the window capacity).
        randomness: The blinding scalar.

    Returns:
        Σ W_i·B_i + randomness·H.

    Raises:
        ValueError: If data exceeds the parameter capacity.
    """
    bits = bytes_to_bits_le(data)
    if len(bits) > params.input_bits:
        raise ValueError(
            f"Input of {len(bits)} bits exceeds commitment capacity of {params.input_bits} bits"
        )

    result = INFINITY
    for i, base in enumerate(params.bases):
        window = bits[i * params.window_size:(i + 1) * params.window_size]
        scalar = sum(bit << j for j, bit in enumerate(window))
        if scalar:
            result = add_points(result, mul_point(scalar, base))
    return add_points(result, mul_point(randomness, params.randomness_generator))


def note_commitment_input(
    g_d: ec.AbstractPoint,
    pk_d: ec.AbstractPoint,
    value: int,
) -> bytes:
    """
    Canonical byte encoding of the committed note fields.

    Returns:
        encode(g_d) || encode(pk_d) || v as 8 little-endian bytes.
    """
    check_amount(value)
    return encode_point(g_d) + encode_point(pk_d) + value.to_bytes(AMOUNT_BITS // 8, "little")


# ==============================================================================
# NoteCommitRandomness / NoteCommitment
# ==============================================================================


class NoteCommitRandomness(JubjubScalar):
    """The note commitment randomness rcm."""


@dataclass(frozen=True, eq=False)
class NoteCommitment:
    """A windowed Pedersen commitment to (g_d, pk_d, v)."""
    point: ec.AbstractPoint

    @classmethod
    def commit(
        cls,
        g_d: ec.AbstractPoint,
        pk_d: ec.AbstractPoint,
        value: int,
        randomness: NoteCommitRandomness | int,
        params: NoteCommitmentParams | None = None,
    ) -> NoteCommitment:
        """
        Commit to a note.

        Args:
            g_d: Diversifier base point of the recipient address.
            pk_d: Transmission key of the recipient address.
            value: The amount (64-bit unsigned).
            randomness: The commitment randomness rcm.
            params: Parameters; defaults to the process-wide set.

        Raises:
            ValueError: If the amount is out of range.
        """
        params = params or NoteCommitmentParams.setup()
        data = note_commitment_input(g_d, pk_d, value)
        return cls(pedersen_commit_bytes(params, data, int(randomness)))

    @classmethod
    def from_bytes(cls, data: bytes) -> NoteCommitment:
        return cls(decode_point(data))

    def to_bytes(self) -> bytes:
        return encode_point(self.point)

    def to_affine(self) -> Affine:
        return to_affine(self.point)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, NoteCommitment):
            return NotImplemented
        return points_equal(self.point, other.point)

    def __hash__(self) -> int:
        return hash(self.to_affine())

    def __repr__(self) -> str:
        return f"NoteCommitment({self.to_bytes().hex()})"


@dataclass(frozen=True)
class Note:
    """
    The recipient's claim on a value: address points, amount and rcm.

    Attributes:
        g_d: Diversifier base point.
        pk_d: Transmission key.
        value: The amount.
        rcm: Note commitment randomness.
    """
    g_d: ec.AbstractPoint
    pk_d: ec.AbstractPoint
    value: int
    rcm: NoteCommitRandomness

    def commitment(self, params: NoteCommitmentParams | None = None) -> NoteCommitment:
        return NoteCommitment.commit(self.g_d, self.pk_d, self.value, self.rcm, params)
