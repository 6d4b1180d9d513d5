"""
Rank-1 constraint systems over the BLS12-381 scalar field.

A circuit is anything with a `synthesize(cs)` method. Synthesis runs in one
of two modes:

    SETUP  — only the constraint topology is recorded; no values are kept,
             so a circuit with every witness field absent synthesizes fine.
    PROVE  — every allocation must carry a value; a missing one raises
             AssignmentMissingError.

Both modes must produce the same shape for the same circuit type; the
shape is identified by `shape_digest()`, which the proving system stores in
its keys.

Variable layout (the order the proving system sees):
    z = [1, public inputs in allocation order..., aux witnesses...]
"""

from __future__ import annotations

import enum
import hashlib
from dataclasses import dataclass
from typing import Protocol

from shielded_output.crypto.jubjub import FQ

FIELD_MODULUS = FQ


class SynthesisError(Exception):
    """Raised when a circuit cannot be synthesized."""
    pass


class AssignmentMissingError(SynthesisError):
    """Raised when a value is missing while synthesizing for a proof."""
    pass


class SynthesisMode(enum.Enum):
    SETUP = "setup"
    PROVE = "prove"


@dataclass(frozen=True, order=True)
class Variable:
    kind: str  # "input" or "aux"
    index: int


ONE = Variable("input", 0)


# ==============================================================================
# LinearCombination
# ==============================================================================


class LinearCombination:
    """A sparse Σ coeff·variable over the field."""

    __slots__ = ("terms",)

    def __init__(self, terms: dict[Variable, int] | None = None) -> None:
        self.terms: dict[Variable, int] = {}
        for var, coeff in (terms or {}).items():
            coeff %= FIELD_MODULUS
            if coeff:
                self.terms[var] = coeff

    @classmethod
    def zero(cls) -> LinearCombination:
        return cls()

    @classmethod
    def constant(cls, value: int) -> LinearCombination:
        return cls({ONE: value})

    @classmethod
    def from_variable(cls, var: Variable, coeff: int = 1) -> LinearCombination:
        return cls({var: coeff})

    def is_constant(self) -> bool:
        return all(var == ONE for var in self.terms)

    def constant_value(self) -> int:
        return self.terms.get(ONE, 0)

    def __add__(self, other: LinearCombination | Variable | int) -> LinearCombination:
        other = as_lc(other)
        terms = dict(self.terms)
        for var, coeff in other.terms.items():
            terms[var] = (terms.get(var, 0) + coeff) % FIELD_MODULUS
        return LinearCombination(terms)

    __radd__ = __add__

    def __neg__(self) -> LinearCombination:
        return LinearCombination({var: -coeff for var, coeff in self.terms.items()})

    def __sub__(self, other: LinearCombination | Variable | int) -> LinearCombination:
        return self + (-as_lc(other))

    def __rsub__(self, other: LinearCombination | Variable | int) -> LinearCombination:
        return as_lc(other) - self

    def __mul__(self, scalar: int) -> LinearCombination:
        return LinearCombination({var: coeff * scalar for var, coeff in self.terms.items()})

    __rmul__ = __mul__

    def __repr__(self) -> str:
        inner = " + ".join(f"{coeff}·{var.kind}[{var.index}]" for var, coeff in self.terms.items())
        return f"LC({inner or '0'})"


def as_lc(x: LinearCombination | Variable | int) -> LinearCombination:
    if isinstance(x, LinearCombination):
        return x
    if isinstance(x, Variable):
        return LinearCombination.from_variable(x)
    if isinstance(x, int):
        return LinearCombination.constant(x)
    raise TypeError(f"Cannot build a linear combination from {type(x).__name__}")


# ==============================================================================
# ConstraintSystem
# ==============================================================================


class ConstraintSynthesizer(Protocol):
    def synthesize(self, cs: ConstraintSystem) -> None: ...


class ConstraintSystem:
    """
    Records allocations and a·b = c constraints.

    Usage:
        cs = ConstraintSystem(SynthesisMode.PROVE)
        circuit.synthesize(cs)
        assert cs.is_satisfied()
    """

    def __init__(self, mode: SynthesisMode = SynthesisMode.PROVE) -> None:
        self.mode = mode
        self.input_values: list[int | None] = [1 if mode is SynthesisMode.PROVE else None]
        self.aux_values: list[int | None] = []
        self.constraints: list[tuple[LinearCombination, LinearCombination, LinearCombination]] = []
        self.annotations: list[str] = []

    @property
    def has_values(self) -> bool:
        return self.mode is SynthesisMode.PROVE

    @property
    def num_inputs(self) -> int:
        """Number of input variables, including the constant ONE."""
        return len(self.input_values)

    @property
    def num_aux(self) -> int:
        return len(self.aux_values)

    @property
    def num_constraints(self) -> int:
        return len(self.constraints)

    def _assignment(self, value: int | None, annotation: str) -> int | None:
        if not self.has_values:
            return None
        if value is None:
            raise AssignmentMissingError(f"Missing assignment for '{annotation}'")
        return value % FIELD_MODULUS

    def alloc(self, value: int | None, annotation: str = "") -> Variable:
        """Allocate a private witness variable."""
        self.aux_values.append(self._assignment(value, annotation))
        return Variable("aux", len(self.aux_values) - 1)

    def alloc_input(self, value: int | None, annotation: str = "") -> Variable:
        """Allocate a public input variable; allocation order is input order."""
        self.input_values.append(self._assignment(value, annotation))
        return Variable("input", len(self.input_values) - 1)

    def enforce(
        self,
        a: LinearCombination | Variable | int,
        b: LinearCombination | Variable | int,
        c: LinearCombination | Variable | int,
        annotation: str = "",
    ) -> None:
        """Record the constraint a·b = c."""
        self.constraints.append((as_lc(a), as_lc(b), as_lc(c)))
        self.annotations.append(annotation)

    # ------------------------------------------------------------------
    # Evaluation
    # ------------------------------------------------------------------

    def column(self, var: Variable) -> int:
        """Index of a variable in z = [inputs..., aux...]."""
        return var.index if var.kind == "input" else self.num_inputs + var.index

    def evaluate(self, lc: LinearCombination) -> int:
        if not self.has_values:
            raise SynthesisError("Cannot evaluate a constraint system synthesized for setup")
        total = 0
        for var, coeff in lc.terms.items():
            values = self.input_values if var.kind == "input" else self.aux_values
            total += coeff * values[var.index]
        return total % FIELD_MODULUS

    def which_is_unsatisfied(self) -> str | None:
        """
        Find the first violated constraint.

        Returns:
            "#index: annotation" of the first violated constraint, or None.
        """
        for i, (a, b, c) in enumerate(self.constraints):
            if self.evaluate(a) * self.evaluate(b) % FIELD_MODULUS != self.evaluate(c):
                return f"#{i}: {self.annotations[i]}"
        return None

    def is_satisfied(self) -> bool:
        return self.which_is_unsatisfied() is None

    def assignment(self) -> list[int]:
        """The full vector z = [1, inputs..., aux...]."""
        if not self.has_values:
            raise SynthesisError("Cannot read values of a constraint system synthesized for setup")
        return list(self.input_values) + list(self.aux_values)

    def public_inputs(self) -> list[int]:
        """Public input values, excluding the constant ONE."""
        if not self.has_values:
            raise SynthesisError("Cannot read values of a constraint system synthesized for setup")
        return list(self.input_values[1:])

    # ------------------------------------------------------------------
    # Shape
    # ------------------------------------------------------------------

    def shape_digest(self) -> bytes:
        """
        BLAKE2b-256 over the variable counts and the constraint matrices.

        Two synthesis runs share a digest iff they produced the same shape,
        independent of the witness values.
        """
        hasher = hashlib.blake2b(digest_size=32, person=b"shielded_r1cs")
        hasher.update(self.num_inputs.to_bytes(8, "little"))
        hasher.update(self.num_aux.to_bytes(8, "little"))
        hasher.update(self.num_constraints.to_bytes(8, "little"))
        for constraint in self.constraints:
            for lc in constraint:
                hasher.update(len(lc.terms).to_bytes(4, "little"))
                for var, coeff in sorted(lc.terms.items()):
                    hasher.update(b"i" if var.kind == "input" else b"a")
                    hasher.update(var.index.to_bytes(4, "little"))
                    hasher.update(coeff.to_bytes(32, "little"))
        return hasher.digest()


def synthesize(circuit: ConstraintSynthesizer, mode: SynthesisMode) -> ConstraintSystem:
    cs = ConstraintSystem(mode)
    circuit.synthesize(cs)
    return cs
