"""
Unit tests for shielded_output.circuit.ecc — Jubjub point gadgets.
"""

import pytest

from shielded_output.circuit.ecc import (
    EdwardsPoint,
    conditionally_select,
    fixed_base_multiexp,
    variable_base_mul,
)
from shielded_output.circuit.gadgets import alloc_bit, alloc_bits_le
from shielded_output.circuit.r1cs import ConstraintSystem, SynthesisError, SynthesisMode
from shielded_output.crypto.jubjub import (
    IDENTITY,
    add_affine,
    encode_point,
    hash_to_curve,
    mul_point,
    powers_of_two,
    to_affine,
)
from shielded_output.crypto.note_commitment import bytes_to_bits_le

G = hash_to_curve(b"ecc_test", b"G")
H = hash_to_curve(b"ecc_test", b"H")


@pytest.fixture
def cs():
    return ConstraintSystem(SynthesisMode.PROVE)


class TestEdwardsPoint:
    def test_witness_on_curve(self, cs):
        p = EdwardsPoint.witness(cs, to_affine(G), "G")
        assert p.value == to_affine(G)
        assert cs.is_satisfied()

    def test_witness_off_curve(self, cs):
        EdwardsPoint.witness(cs, (1, 1), "bad")
        assert "on curve" in cs.which_is_unsatisfied()

    def test_add(self, cs):
        p = EdwardsPoint.witness(cs, to_affine(G), "G")
        q = EdwardsPoint.witness(cs, to_affine(H), "H")
        before = cs.num_constraints
        r = p.add(cs, q, "G+H")
        assert cs.num_constraints - before == 7
        assert r.value == add_affine(to_affine(G), to_affine(H))
        assert cs.is_satisfied()

    def test_add_constant_is_cheaper(self, cs):
        p = EdwardsPoint.witness(cs, to_affine(G), "G")
        before = cs.num_constraints
        r = p.add(cs, EdwardsPoint.constant(to_affine(H)), "G+H")
        assert cs.num_constraints - before == 3
        assert r.value == add_affine(to_affine(G), to_affine(H))
        assert cs.is_satisfied()

    def test_double_and_identity(self, cs):
        p = EdwardsPoint.witness(cs, to_affine(G), "G")
        assert p.double(cs).value == to_affine(mul_point(2, G))
        assert p.add(cs, EdwardsPoint.constant(IDENTITY)).value == to_affine(G)
        assert cs.is_satisfied()

    def test_wrong_sum_unsatisfied(self, cs):
        p = EdwardsPoint.witness(cs, to_affine(G), "G")
        p.add(cs, p, "2G")
        cs.aux_values[-1] += 1
        assert not cs.is_satisfied()

    def test_compress_matches_encoding(self, cs):
        p = EdwardsPoint.witness(cs, to_affine(G), "G")
        bits = p.compress(cs, "G")
        assert [b.value for b in bits] == bytes_to_bits_le(encode_point(G))
        assert cs.is_satisfied()

    def test_enforce_equal(self, cs):
        p = EdwardsPoint.witness(cs, to_affine(G), "G")
        p.enforce_equal(cs, EdwardsPoint.constant(to_affine(H)), "eq")
        assert not cs.is_satisfied()


class TestSelection:
    @pytest.mark.parametrize("bit", [0, 1])
    def test_conditionally_select(self, cs, bit):
        b = alloc_bit(cs, bit, "b")
        p = EdwardsPoint.witness(cs, to_affine(G), "G")
        selected = conditionally_select(cs, b, p, "sel")
        assert selected.value == (to_affine(G) if bit else IDENTITY)
        assert cs.is_satisfied()


class TestScalarMultiplication:
    @pytest.mark.parametrize("scalar,num_bits", [(13, 4), (0, 4), (21, 5), (1, 1)])
    def test_fixed_base(self, cs, scalar, num_bits):
        bits = alloc_bits_le(cs, scalar, num_bits, "s")
        result = fixed_base_multiexp(cs, bits, powers_of_two(G, num_bits), "mul")
        assert result.value == to_affine(mul_point(scalar, G))
        assert cs.is_satisfied()

    def test_fixed_base_two_generators(self, cs):
        """Σ b_i·G_i works for unrelated generators too."""
        bits = alloc_bits_le(cs, 0b11, 2, "s")
        result = fixed_base_multiexp(cs, bits, (to_affine(G), to_affine(H)), "sum")
        assert result.value == add_affine(to_affine(G), to_affine(H))
        assert cs.is_satisfied()

    def test_fixed_base_length_mismatch(self, cs):
        bits = alloc_bits_le(cs, 1, 2, "s")
        with pytest.raises(SynthesisError, match="generators"):
            fixed_base_multiexp(cs, bits, powers_of_two(G, 3))

    @pytest.mark.parametrize("scalar", [0, 1, 37, 63])
    def test_variable_base(self, cs, scalar):
        base = EdwardsPoint.witness(cs, to_affine(G), "G")
        bits = alloc_bits_le(cs, scalar, 6, "s")
        result = variable_base_mul(cs, bits, base, "mul")
        assert result.value == to_affine(mul_point(scalar, G))
        assert cs.is_satisfied()

    def test_setup_mode_shape_matches(self):
        def build(mode, scalar, point):
            cs = ConstraintSystem(mode)
            base = EdwardsPoint.witness(cs, point, "P")
            bits = alloc_bits_le(cs, scalar, 8, "s")
            variable_base_mul(cs, bits, base, "mul")
            fixed_base_multiexp(cs, bits, powers_of_two(H, 8), "fixed")
            return cs

        blank = build(SynthesisMode.SETUP, None, None)
        assigned = build(SynthesisMode.PROVE, 200, to_affine(G))
        assert assigned.is_satisfied()
        assert blank.shape_digest() == assigned.shape_digest()
