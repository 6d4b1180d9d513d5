"""
Unit tests for shielded_output.crypto.note_commitment — windowed Pedersen note commitments.
"""

import random
import threading

import pytest

from shielded_output.crypto.jubjub import (
    add_points,
    hash_to_curve,
    make_point,
    mul_point,
    to_affine,
)
from shielded_output.crypto.note_commitment import (
    NOTE_INPUT_BYTES,
    NUM_WINDOWS,
    WINDOW_SIZE,
    Note,
    NoteCommitment,
    NoteCommitmentParams,
    NoteCommitRandomness,
    bytes_to_bits_le,
    note_commitment_input,
    pedersen_commit_bytes,
)

G_D = hash_to_curve(b"test_diversifier", b"g_d")
PK_D = mul_point(0x1234567, G_D)


@pytest.fixture(scope="module")
def params():
    return NoteCommitmentParams.setup()


@pytest.fixture(scope="module")
def small_params():
    return NoteCommitmentParams.generate(window_size=2, num_windows=4)


# ==============================================================================
# Parameters
# ==============================================================================


class TestParams:
    """Tests for parameter derivation."""

    def test_dimensions(self, params):
        assert params.window_size == WINDOW_SIZE
        assert params.num_windows == NUM_WINDOWS
        assert params.input_bits == 8 * NOTE_INPUT_BYTES
        assert len(params.bases) == NUM_WINDOWS
        assert len(params.bit_generators) == params.input_bits

    def test_bit_generators_are_powers(self, small_params):
        """Bit j of window i uses 2^j·B_i."""
        b1 = small_params.bases[1]
        assert small_params.bit_generators[2] == to_affine(b1)
        assert small_params.bit_generators[3] == to_affine(mul_point(2, b1))

    def test_bases_distinct(self, params):
        affine = {to_affine(b) for b in params.bases}
        assert len(affine) == NUM_WINDOWS
        assert to_affine(params.randomness_generator) not in affine

    def test_setup_is_memoized(self, params):
        assert NoteCommitmentParams.setup() is params

    def test_setup_concurrent(self, params):
        """Concurrent callers all see the same parameter object."""
        seen = []
        threads = [
            threading.Thread(target=lambda: seen.append(NoteCommitmentParams.setup()))
            for _ in range(8)
        ]
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        assert all(p is params for p in seen)

    @pytest.mark.parametrize("window_size,num_windows", [(0, 4), (4, 0), (250, 1)])
    def test_invalid_dimensions(self, window_size, num_windows):
        with pytest.raises(ValueError):
            NoteCommitmentParams.generate(window_size=window_size, num_windows=num_windows)


# ==============================================================================
# Byte-level commitment
# ==============================================================================


class TestPedersenCommitBytes:
    def test_bits_le(self):
        assert bytes_to_bits_le(b"\x01\x80") == [1, 0, 0, 0, 0, 0, 0, 0] + [0] * 7 + [1]

    def test_window_formula(self, small_params):
        """0b1101 over 2-bit windows: W_0 = 1, W_1 = 3."""
        commitment = pedersen_commit_bytes(small_params, b"\x0d", 5)
        expected = add_points(
            add_points(small_params.bases[0], mul_point(3, small_params.bases[1])),
            mul_point(5, small_params.randomness_generator),
        )
        assert to_affine(commitment) == to_affine(expected)

    def test_zero_padding(self, params):
        """A short message commits like its zero-padded extension."""
        assert to_affine(pedersen_commit_bytes(params, b"\x0d", 5)) == to_affine(
            pedersen_commit_bytes(params, b"\x0d\x00", 5)
        )

    def test_too_long(self, small_params):
        with pytest.raises(ValueError, match="exceeds commitment capacity"):
            pedersen_commit_bytes(small_params, b"\x00\x00", 1)

    def test_matches_bit_generators(self, small_params):
        """Σ bit_j·G_j over per-bit generators equals the windowed sum."""
        data = b"\xa7"
        bits = bytes_to_bits_le(data)
        acc = mul_point(9, small_params.randomness_generator)
        for bit, generator in zip(bits, small_params.bit_generators):
            if bit:
                acc = add_points(acc, make_point(*generator))
        assert to_affine(acc) == to_affine(pedersen_commit_bytes(small_params, data, 9))


# ==============================================================================
# NoteCommitment
# ==============================================================================


class TestNoteCommitment:
    """Tests for commitments over (g_d, pk_d, v)."""

    def test_input_layout(self):
        data = note_commitment_input(G_D, PK_D, 10)
        assert len(data) == NOTE_INPUT_BYTES
        assert data[64:] == (10).to_bytes(8, "little")

    def test_deterministic(self, params):
        a = NoteCommitment.commit(G_D, PK_D, 10, 46, params)
        b = NoteCommitment.commit(G_D, PK_D, 10, 46)
        assert a == b

    def test_binds_each_field(self, params):
        base = NoteCommitment.commit(G_D, PK_D, 10, 46, params)
        assert NoteCommitment.commit(G_D, PK_D, 11, 46, params) != base
        assert NoteCommitment.commit(G_D, PK_D, 10, 47, params) != base
        assert NoteCommitment.commit(G_D, mul_point(2, PK_D), 10, 46, params) != base
        assert NoteCommitment.commit(PK_D, G_D, 10, 46, params) != base

    def test_random_randomness(self, params):
        rng = random.Random(3)
        r1, r2 = NoteCommitRandomness.random(rng), NoteCommitRandomness.random(rng)
        assert NoteCommitment.commit(G_D, PK_D, 1, r1, params) != NoteCommitment.commit(G_D, PK_D, 1, r2, params)

    def test_not_homomorphic(self, params):
        """Unlike value commitments, note commitments do not add up."""
        total = add_points(
            NoteCommitment.commit(G_D, PK_D, 1, 1, params).point,
            NoteCommitment.commit(G_D, PK_D, 2, 2, params).point,
        )
        assert to_affine(total) != NoteCommitment.commit(G_D, PK_D, 3, 3, params).to_affine()

    def test_rejects_out_of_range(self, params):
        with pytest.raises(ValueError):
            NoteCommitment.commit(G_D, PK_D, -1, 1, params)

    def test_bytes_roundtrip(self, params):
        cm = NoteCommitment.commit(G_D, PK_D, 10, 46, params)
        assert NoteCommitment.from_bytes(cm.to_bytes()) == cm

    def test_note_commitment(self, params):
        note = Note(G_D, PK_D, 10, NoteCommitRandomness(46))
        assert note.commitment(params) == NoteCommitment.commit(G_D, PK_D, 10, 46, params)
