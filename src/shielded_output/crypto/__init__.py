"""
shielded_output.crypto — Jubjub primitives for shielded outputs.

Provides:
- Jubjub curve constants, point encode/decode, NUMS generator derivation
- Homomorphic Pedersen value commitments (cv = v·G_v + rcv·H_v)
- Windowed Pedersen note commitments over (g_d, pk_d, v)
- Ephemeral key pairs and the Nullifier placeholder
"""

from shielded_output.crypto.jubjub import (
    FQ,
    JUBJUB_ORDER,
    SCALAR_BITS,
    decode_point,
    encode_point,
    hash_to_curve,
    make_point,
    to_affine,
)
from shielded_output.crypto.keys import EphemeralKeyPair, Nullifier
from shielded_output.crypto.note_commitment import (
    Note,
    NoteCommitment,
    NoteCommitmentParams,
    NoteCommitRandomness,
    note_commitment_input,
)
from shielded_output.crypto.pedersen import (
    MAX_AMOUNT,
    TRAPDOOR_GENERATOR,
    VALUE_GENERATOR,
    ValueCommitment,
    ValueCommitTrapdoor,
)
from shielded_output.crypto.rng import RandomnessError, random_scalar

__all__ = [
    # Jubjub
    "FQ",
    "JUBJUB_ORDER",
    "SCALAR_BITS",
    "decode_point",
    "encode_point",
    "hash_to_curve",
    "make_point",
    "to_affine",
    # Value commitments
    "MAX_AMOUNT",
    "VALUE_GENERATOR",
    "TRAPDOOR_GENERATOR",
    "ValueCommitment",
    "ValueCommitTrapdoor",
    # Note commitments
    "Note",
    "NoteCommitment",
    "NoteCommitmentParams",
    "NoteCommitRandomness",
    "note_commitment_input",
    # Keys
    "EphemeralKeyPair",
    "Nullifier",
    # Randomness
    "RandomnessError",
    "random_scalar",
]
