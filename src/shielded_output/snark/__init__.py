"""
shielded_output.snark — Groth16 over BLS12-381.

Provides:
- setup / prove / preprocess / verify
- ProvingKey, VerifyingKey, PreparedVerifyingKey, Proof (192-byte encoding)
- Radix-2 evaluation domains and multi-scalar multiplication
"""

from shielded_output.snark.domain import EvaluationDomain
from shielded_output.snark.groth16 import (
    PROOF_BYTES,
    KeyShapeMismatchError,
    PreparedVerifyingKey,
    Proof,
    ProvingKey,
    UnsatisfiedWitnessError,
    VerifyingKey,
    preprocess,
    prove,
    setup,
    verify,
)
from shielded_output.snark.msm import FixedBaseTable, multiexp

__all__ = [
    "EvaluationDomain",
    "FixedBaseTable",
    "multiexp",
    "PROOF_BYTES",
    "KeyShapeMismatchError",
    "UnsatisfiedWitnessError",
    "PreparedVerifyingKey",
    "Proof",
    "ProvingKey",
    "VerifyingKey",
    "preprocess",
    "prove",
    "setup",
    "verify",
]
