"""
Integration tests for shielded_output.core.description — full Groth16 over the output circuit.

Setup and proving run over roughly twelve thousand constraints in pure
Python and take minutes, so the module is marked slow and deselected by
default.

Run with: python -m pytest tests/integration/test_output_description.py -v -m slow
"""

import dataclasses
import random

import pytest

from shielded_output import (
    KeyShapeMismatchError,
    NoteCommitment,
    OutputDescription,
    OutputParameters,
    UnsatisfiedWitnessError,
    ValueCommitment,
)
from shielded_output.crypto.jubjub import hash_to_curve, mul_point, to_affine
from shielded_output.crypto.note_commitment import NoteCommitmentParams
from shielded_output.crypto.pedersen import ValueCommitTrapdoor
from shielded_output.snark import groth16
from shielded_output.snark.groth16 import Proof

pytestmark = pytest.mark.slow

G_D = hash_to_curve(b"test_diversifier", b"g_d")
IVK = 0x0A5B1C2D3E4F
PK_D = mul_point(IVK, G_D)
VALUE = 10
RCM = 46
ESK = 5345345


@pytest.fixture(scope="module")
def rng():
    return random.Random(2024)


@pytest.fixture(scope="module")
def params(rng):
    return OutputParameters.generate(rng=rng)


@pytest.fixture(scope="module")
def built(params, rng):
    rcv = ValueCommitTrapdoor.random(rng)
    return OutputDescription.build(G_D, PK_D, VALUE, esk=ESK, rcv=rcv, rcm=RCM, params=params, rng=rng)


class TestConcreteScenario:
    """amount 10, rcm 46, esk 5345345."""

    def test_verifies(self, built):
        description, _ = built
        assert description.verify() is True

    def test_public_inputs_match_recomputation(self, built):
        description, opening = built
        cm = NoteCommitment.commit(G_D, PK_D, VALUE, RCM)
        cv = ValueCommitment.commit(VALUE, opening.rcv)
        epk = mul_point(ESK, G_D)
        expected = [*cm.to_affine(), *cv.to_affine(), *to_affine(epk)]
        assert description.public_inputs() == expected

    def test_opening(self, built):
        description, opening = built
        assert opening.note.value == VALUE
        assert int(opening.note.rcm) == RCM
        assert opening.ephemeral_key.secret == ESK
        assert description.cm == opening.note.commitment()

    def test_amount_eleven_rejected(self, built):
        """cm recomputed for amount 11, proof unchanged."""
        description, _ = built
        cm_11 = NoteCommitment.commit(G_D, PK_D, 11, RCM)
        assert dataclasses.replace(description, cm=cm_11).verify() is False

    def test_mutated_value_commitment_rejected(self, built):
        description, opening = built
        cv = ValueCommitment.commit(VALUE, int(opening.rcv) + 1)
        assert dataclasses.replace(description, cv=cv).verify() is False

    def test_mutated_epk_rejected(self, built):
        description, _ = built
        assert dataclasses.replace(description, epk=mul_point(ESK + 1, G_D)).verify() is False

    @pytest.mark.parametrize("index", range(6))
    def test_single_bit_flip_rejected(self, built, index):
        """Flipping the low bit of any public coordinate breaks the proof."""
        description, _ = built
        inputs = description.public_inputs()
        inputs[index] ^= 1
        assert groth16.verify(description.verifying_key, inputs, description.proof) is False

    def test_proof_survives_encoding(self, built):
        description, _ = built
        proof = Proof.from_bytes(description.proof.to_bytes())
        assert dataclasses.replace(description, proof=proof).verify() is True


class TestParameterReuse:
    def test_second_output_same_keys(self, params, rng):
        """One key pair proves many outputs of the same shape."""
        description, _ = OutputDescription.build(G_D, PK_D, 123_456, params=params, rng=rng)
        assert description.verify() is True

    def test_wrong_commitment_fails_to_prove(self, params, rng):
        rcv = ValueCommitTrapdoor.random(rng)
        with pytest.raises(UnsatisfiedWitnessError):
            OutputDescription.from_values(
                ValueCommitment.commit(VALUE, rcv),
                NoteCommitment.commit(G_D, PK_D, VALUE + 1, RCM),
                mul_point(ESK, G_D),
                G_D,
                PK_D,
                VALUE,
                rcv,
                RCM,
                ESK,
                params=params,
                rng=rng,
            )

    def test_other_note_params_shape_mismatch(self, params, rng):
        """Keys are bound to the note commitment parameters they were made with."""
        other = NoteCommitmentParams.generate(window_size=3, num_windows=192)
        mismatched = dataclasses.replace(params, note_params=other)
        with pytest.raises(KeyShapeMismatchError):
            OutputDescription.build(G_D, PK_D, VALUE, params=mismatched, rng=rng)

    def test_amount_out_of_range(self, params):
        with pytest.raises(ValueError):
            OutputDescription.build(G_D, PK_D, 2**64, params=params)
