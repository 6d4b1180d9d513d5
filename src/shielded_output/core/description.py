"""
Output descriptions: the public artifact of one shielded output.

An OutputDescription carries the value commitment, the note commitment,
the ephemeral public key, a Groth16 proof that the three are consistent,
and the prepared verifying key to check it with.

Keys are generated once per circuit shape and held by OutputParameters.
Callers create parameters once and pass them to every build; when none
are passed, a process-wide set is generated on first use.

Usage:
    params = OutputParameters.generate()
    description, opening = OutputDescription.build(g_d, pk_d, 10, params=params)
    assert description.verify()
"""

from __future__ import annotations

import logging
import random
import threading
from dataclasses import dataclass

import ecdsa.ellipticcurve as ec

from shielded_output.circuit.output import OutputCircuit, public_inputs
from shielded_output.config import ProverConfig
from shielded_output.crypto.jubjub import Affine, JubjubScalar, encode_point, make_point
from shielded_output.crypto.keys import EphemeralKeyPair
from shielded_output.crypto.note_commitment import (
    Note,
    NoteCommitment,
    NoteCommitmentParams,
    NoteCommitRandomness,
)
from shielded_output.crypto.pedersen import (
    ValueCommitment,
    ValueCommitTrapdoor,
    check_amount,
)
from shielded_output.snark import groth16
from shielded_output.snark.groth16 import PreparedVerifyingKey, Proof, ProvingKey

logger = logging.getLogger("shielded_output.description")


# ==============================================================================
# OutputParameters
# ==============================================================================


@dataclass(frozen=True)
class OutputParameters:
    """
    Groth16 keys for the output circuit, bound to one note commitment
    parameter set. Read-only; share freely across threads.
    """
    proving_key: ProvingKey
    verifying_key: PreparedVerifyingKey
    note_params: NoteCommitmentParams

    @classmethod
    def generate(
        cls,
        note_params: NoteCommitmentParams | None = None,
        rng: random.Random | None = None,
        config: ProverConfig | None = None,
    ) -> OutputParameters:
        """
        Run Groth16 setup on the blank output circuit.

        This is slow (minutes in pure Python); cache the result.
        """
        note_params = note_params or NoteCommitmentParams.setup()
        pk, vk = groth16.setup(OutputCircuit.blank(note_params), rng=rng, config=config)
        return cls(pk, groth16.preprocess(vk), note_params)

    @classmethod
    def default(cls) -> OutputParameters:
        """The process-wide parameter set, generated on first use."""
        global _DEFAULT_PARAMETERS
        if _DEFAULT_PARAMETERS is None:
            with _DEFAULT_PARAMETERS_LOCK:
                if _DEFAULT_PARAMETERS is None:
                    logger.warning(
                        "No output parameters given; generating process-wide keys. "
                        "Pass OutputParameters explicitly to control setup."
                    )
                    _DEFAULT_PARAMETERS = cls.generate(config=ProverConfig.from_env())
        return _DEFAULT_PARAMETERS


_DEFAULT_PARAMETERS: OutputParameters | None = None
_DEFAULT_PARAMETERS_LOCK = threading.Lock()


def _as_point(point: ec.AbstractPoint | Affine) -> ec.AbstractPoint:
    if isinstance(point, tuple):
        return make_point(*point)
    return point


# ==============================================================================
# OutputOpening
# ==============================================================================


@dataclass(frozen=True)
class OutputOpening:
    """
    The secrets behind an OutputDescription.

    Attributes:
        note: The note plaintext (g_d, pk_d, value, rcm) for delivery.
        rcv: Value commitment trapdoor, needed to balance the transaction.
        ephemeral_key: (esk, epk) for note-delivery key agreement.
    """
    note: Note
    rcv: ValueCommitTrapdoor
    ephemeral_key: EphemeralKeyPair


# ==============================================================================
# OutputDescription
# ==============================================================================


@dataclass(frozen=True, eq=False)
class OutputDescription:
    """
    A proven shielded output.

    Attributes:
        cv: Value commitment.
        cm: Note commitment.
        epk: Ephemeral public key.
        proof: Groth16 proof over (cv, cm, epk).
        verifying_key: Prepared verifying key for the output circuit.
    """
    cv: ValueCommitment
    cm: NoteCommitment
    epk: ec.AbstractPoint
    proof: Proof
    verifying_key: PreparedVerifyingKey

    @classmethod
    def from_values(
        cls,
        cv: ValueCommitment | ec.AbstractPoint | Affine,
        cm: NoteCommitment | ec.AbstractPoint | Affine,
        epk: ec.AbstractPoint | Affine,
        g_d: ec.AbstractPoint,
        pk_d: ec.AbstractPoint,
        value: int,
        rcv: ValueCommitTrapdoor | int,
        rcm: NoteCommitRandomness | int,
        esk: JubjubScalar | int,
        params: OutputParameters | None = None,
        rng: random.Random | None = None,
        config: ProverConfig | None = None,
    ) -> OutputDescription:
        """
        Prove and bundle precomputed commitments.

        cv, cm and epk may be given as commitments, bare ecdsa points or
        affine (x, y) pairs.

        Raises:
            UnsatisfiedWitnessError: If the commitments do not match the witness.
            KeyShapeMismatchError: If params were generated for another circuit.
            RandomnessError: If the OS entropy source fails.
        """
        if not isinstance(cv, ValueCommitment):
            cv = ValueCommitment(_as_point(cv))
        if not isinstance(cm, NoteCommitment):
            cm = NoteCommitment(_as_point(cm))
        epk = _as_point(epk)
        params = params or OutputParameters.default()
        circuit = OutputCircuit.assigned(
            cv=cv,
            cm=cm,
            epk=epk,
            g_d=g_d,
            pk_d=pk_d,
            value=value,
            rcv=rcv,
            rcm=rcm,
            esk=esk,
            note_params=params.note_params,
        )
        proof = groth16.prove(params.proving_key, circuit, rng=rng, config=config)
        logger.debug(f"Proved output with cm {cm.to_bytes().hex()[:16]}")
        return cls(cv, cm, epk, proof, params.verifying_key)

    @classmethod
    def build(
        cls,
        g_d: ec.AbstractPoint,
        pk_d: ec.AbstractPoint,
        value: int,
        *,
        esk: JubjubScalar | int | None = None,
        rcv: ValueCommitTrapdoor | int | None = None,
        rcm: NoteCommitRandomness | int | None = None,
        params: OutputParameters | None = None,
        rng: random.Random | None = None,
        config: ProverConfig | None = None,
    ) -> tuple[OutputDescription, OutputOpening]:
        """
        Commit to a note for (g_d, pk_d) and prove the output.

        Randomness that is not supplied is drawn fresh.

        Returns:
            (description, opening)

        Raises:
            ValueError: If the amount is out of range.
        """
        check_amount(value)
        params = params or OutputParameters.default()

        rcv = ValueCommitTrapdoor.random(rng) if rcv is None else ValueCommitTrapdoor(int(rcv))
        rcm = NoteCommitRandomness.random(rng) if rcm is None else NoteCommitRandomness(int(rcm))
        ephemeral_key = (
            EphemeralKeyPair.random(g_d, rng) if esk is None else EphemeralKeyPair.derive(int(esk), g_d)
        )

        note = Note(g_d, pk_d, value, rcm)
        cv = ValueCommitment.commit(value, rcv)
        cm = note.commitment(params.note_params)

        description = cls.from_values(
            cv,
            cm,
            ephemeral_key.public,
            g_d,
            pk_d,
            value,
            rcv,
            rcm,
            ephemeral_key.secret,
            params=params,
            rng=rng,
            config=config,
        )
        return description, OutputOpening(note, rcv, ephemeral_key)

    def public_inputs(self) -> list[int]:
        """[cm.x, cm.y, cv.x, cv.y, epk.x, epk.y]"""
        return public_inputs(self.cv, self.cm, self.epk)

    def verify(self) -> bool:
        return groth16.verify(self.verifying_key, self.public_inputs(), self.proof)

    def epk_bytes(self) -> bytes:
        return encode_point(self.epk)
