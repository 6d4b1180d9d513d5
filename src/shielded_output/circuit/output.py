"""
The output circuit.

Proves knowledge of (v, rcv, rcm, g_d, pk_d, esk) such that

    cv  = v·G_v + rcv·H_v
    cm  = NoteCommit(g_d, pk_d, v; rcm)
    epk = esk·g_d

for the public points cv, cm and epk. The public input vector is

    [cm.x, cm.y, cv.x, cv.y, epk.x, epk.y]

A blank circuit (no witness) and an assigned one synthesize to the same
shape, so keys generated from `OutputCircuit.blank()` prove assigned
instances.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

import ecdsa.ellipticcurve as ec

from shielded_output.circuit.ecc import (
    EdwardsPoint,
    fixed_base_multiexp,
    variable_base_mul,
)
from shielded_output.circuit.gadgets import (
    Num,
    alloc_bits_le,
    alloc_input_num,
)
from shielded_output.circuit.r1cs import ConstraintSystem, SynthesisError
from shielded_output.crypto.jubjub import SCALAR_BITS, Affine, to_affine
from shielded_output.crypto.note_commitment import NoteCommitmentParams
from shielded_output.crypto.pedersen import AMOUNT_BITS, value_commitment_bit_generators

PUBLIC_INPUT_COUNT = 6


def _as_affine(point: Any) -> Affine | None:
    """Affine pair of an ecdsa point, a commitment, or an (x, y) tuple."""
    if point is None:
        return None
    if isinstance(point, tuple):
        return point
    # ecdsa points have their own to_affine() returning a point
    if isinstance(point, ec.AbstractPoint):
        return to_affine(point)
    if hasattr(point, "to_affine"):
        return point.to_affine()
    raise TypeError(f"Cannot read a Jubjub point from {type(point).__name__}")


def _as_int(scalar: Any) -> int | None:
    return None if scalar is None else int(scalar)


def public_inputs(cv: Any, cm: Any, epk: Any) -> list[int]:
    """
    The public input vector for an output proof.

    Args:
        cv: Value commitment (ValueCommitment, ecdsa point or affine pair).
        cm: Note commitment.
        epk: Ephemeral public key.

    Returns:
        [cm.x, cm.y, cv.x, cv.y, epk.x, epk.y]
    """
    cm_x, cm_y = _as_affine(cm)
    cv_x, cv_y = _as_affine(cv)
    epk_x, epk_y = _as_affine(epk)
    return [cm_x, cm_y, cv_x, cv_y, epk_x, epk_y]


@dataclass(frozen=True)
class OutputCircuit:
    """
    The output relation with an optional witness.

    Every field except note_params may be None; synthesizing for setup
    needs none of them, synthesizing for a proof needs all of them.
    """
    note_params: NoteCommitmentParams
    cv: Affine | None = None
    cm: Affine | None = None
    epk: Affine | None = None
    value: int | None = None
    rcv: int | None = None
    rcm: int | None = None
    g_d: Affine | None = None
    pk_d: Affine | None = None
    esk: int | None = None

    @classmethod
    def blank(cls, note_params: NoteCommitmentParams | None = None) -> OutputCircuit:
        """The witness-free instance used for key generation."""
        return cls(note_params=note_params or NoteCommitmentParams.setup())

    @classmethod
    def assigned(
        cls,
        *,
        cv: Any,
        cm: Any,
        epk: Any,
        g_d: Any,
        pk_d: Any,
        value: int,
        rcv: Any,
        rcm: Any,
        esk: Any,
        note_params: NoteCommitmentParams | None = None,
    ) -> OutputCircuit:
        """
        A fully witnessed instance.

        Points may be ecdsa points, commitments or affine pairs; scalars
        may be ints or anything with __int__.
        """
        return cls(
            note_params=note_params or NoteCommitmentParams.setup(),
            cv=_as_affine(cv),
            cm=_as_affine(cm),
            epk=_as_affine(epk),
            value=value,
            rcv=_as_int(rcv),
            rcm=_as_int(rcm),
            g_d=_as_affine(g_d),
            pk_d=_as_affine(pk_d),
            esk=_as_int(esk),
        )

    def public_inputs(self) -> list[int]:
        if None in (self.cv, self.cm, self.epk):
            raise SynthesisError("Public inputs are not assigned")
        return public_inputs(self.cv, self.cm, self.epk)

    def synthesize(self, cs: ConstraintSystem) -> None:
        params = self.note_params

        # Public inputs, in verifier order
        cm = self._input_point(cs, self.cm, "cm")
        cv = self._input_point(cs, self.cv, "cv")
        epk = self._input_point(cs, self.epk, "epk")

        # cv = v·G_v + rcv·H_v
        value_bits = alloc_bits_le(cs, self.value, AMOUNT_BITS, "value")
        rcv_bits = alloc_bits_le(cs, self.rcv, SCALAR_BITS, "rcv")
        value_generators, trapdoor_generators = value_commitment_bit_generators()
        computed_cv = fixed_base_multiexp(
            cs,
            value_bits + rcv_bits,
            value_generators + trapdoor_generators,
            "cv",
        )
        computed_cv.enforce_equal(cs, cv, "cv")

        # cm = NoteCommit(g_d, pk_d, v; rcm)
        g_d = EdwardsPoint.witness(cs, self.g_d, "g_d")
        pk_d = EdwardsPoint.witness(cs, self.pk_d, "pk_d")
        message = g_d.compress(cs, "g_d") + pk_d.compress(cs, "pk_d") + value_bits
        if len(message) > params.input_bits:
            raise SynthesisError(
                f"Note of {len(message)} bits exceeds commitment capacity of {params.input_bits} bits"
            )
        message += [Num.constant(0)] * (params.input_bits - len(message))

        rcm_bits = alloc_bits_le(cs, self.rcm, SCALAR_BITS, "rcm")
        computed_cm = fixed_base_multiexp(
            cs,
            message + rcm_bits,
            params.bit_generators + params.randomness_bit_generators,
            "cm",
        )
        computed_cm.enforce_equal(cs, cm, "cm")

        # epk = esk·g_d
        esk_bits = alloc_bits_le(cs, self.esk, SCALAR_BITS, "esk")
        computed_epk = variable_base_mul(cs, esk_bits, g_d, "epk")
        computed_epk.enforce_equal(cs, epk, "epk")

    @staticmethod
    def _input_point(cs: ConstraintSystem, point: Affine | None, annotation: str) -> EdwardsPoint:
        x = alloc_input_num(cs, point[0] if point is not None else None, f"{annotation}.x")
        y = alloc_input_num(cs, point[1] if point is not None else None, f"{annotation}.y")
        return EdwardsPoint(x, y)
