"""
Key material exchanged with the address and note-delivery layers.

- EphemeralKeyPair: (esk, epk = esk·g_d), single use per output
- Nullifier: 32-byte spend tag, declared for the spend side only
"""

from __future__ import annotations

import random
from dataclasses import dataclass

import ecdsa.ellipticcurve as ec

from shielded_output.crypto.jubjub import (
    JUBJUB_ORDER,
    encode_point,
    mul_point,
    points_equal,
)
from shielded_output.crypto.rng import random_scalar


@dataclass(frozen=True, eq=False)
class EphemeralKeyPair:
    """
    Ephemeral key pair for note-delivery key agreement.

    Attributes:
        secret: esk, a Jubjub scalar.
        public: epk = esk·g_d.
    """
    secret: int
    public: ec.AbstractPoint

    @classmethod
    def derive(cls, esk: int, g_d: ec.AbstractPoint) -> EphemeralKeyPair:
        esk %= JUBJUB_ORDER
        return cls(esk, mul_point(esk, g_d))

    @classmethod
    def random(cls, g_d: ec.AbstractPoint, rng: random.Random | None = None) -> EphemeralKeyPair:
        return cls.derive(random_scalar(JUBJUB_ORDER, rng), g_d)

    def public_bytes(self) -> bytes:
        return encode_point(self.public)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, EphemeralKeyPair):
            return NotImplemented
        return self.secret == other.secret and points_equal(self.public, other.public)

    def __hash__(self) -> int:
        return hash((self.secret, self.public_bytes()))


@dataclass(frozen=True)
class Nullifier:
    """A 32-byte nullifier. Produced and consumed by the spend side only."""
    data: bytes

    def __post_init__(self) -> None:
        if len(self.data) != 32:
            raise ValueError(f"Nullifier must be 32 bytes, got {len(self.data)}")

    def hex(self) -> str:
        return self.data.hex()
