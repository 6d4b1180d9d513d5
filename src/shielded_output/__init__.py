"""
shielded-output: zero-knowledge shielded outputs on Jubjub / BLS12-381.

Usage:
    from shielded_output import OutputDescription, OutputParameters
    from shielded_output.crypto import ValueCommitment, NoteCommitment
"""

from shielded_output.circuit.r1cs import AssignmentMissingError, SynthesisError
from shielded_output.config import ProverConfig
from shielded_output.core.description import (
    OutputDescription,
    OutputOpening,
    OutputParameters,
)
from shielded_output.crypto.keys import EphemeralKeyPair, Nullifier
from shielded_output.crypto.note_commitment import Note, NoteCommitment
from shielded_output.crypto.pedersen import ValueCommitment
from shielded_output.crypto.rng import RandomnessError
from shielded_output.snark.groth16 import (
    KeyShapeMismatchError,
    Proof,
    UnsatisfiedWitnessError,
)

__version__ = "0.1.0"
__all__ = [
    "OutputDescription",
    "OutputOpening",
    "OutputParameters",
    "ProverConfig",
    "EphemeralKeyPair",
    "Note",
    "NoteCommitment",
    "Nullifier",
    "Proof",
    "ValueCommitment",
    "AssignmentMissingError",
    "KeyShapeMismatchError",
    "RandomnessError",
    "SynthesisError",
    "UnsatisfiedWitnessError",
]
