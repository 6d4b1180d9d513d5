"""
shielded_output.circuit — R1CS synthesis and the output circuit.

Provides:
- ConstraintSystem with setup / prove synthesis modes
- Field, boolean and Jubjub point gadgets
- OutputCircuit: cv, cm and epk consistency over a private witness
"""

from shielded_output.circuit.output import PUBLIC_INPUT_COUNT, OutputCircuit, public_inputs
from shielded_output.circuit.r1cs import (
    ONE,
    AssignmentMissingError,
    ConstraintSynthesizer,
    ConstraintSystem,
    LinearCombination,
    SynthesisError,
    SynthesisMode,
    Variable,
    synthesize,
)

__all__ = [
    "ONE",
    "AssignmentMissingError",
    "ConstraintSynthesizer",
    "ConstraintSystem",
    "LinearCombination",
    "SynthesisError",
    "SynthesisMode",
    "Variable",
    "synthesize",
    "PUBLIC_INPUT_COUNT",
    "OutputCircuit",
    "public_inputs",
]
