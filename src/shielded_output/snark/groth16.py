"""
Groth16 over BLS12-381.

Provides:
- setup: circuit-specific key generation from a witness-free circuit
- prove: proof generation for an assigned circuit
- preprocess / verify: pairing check against a prepared verifying key

QAP reduction:
    Constraint i contributes row i of A, B, C. Every input variable j
    (including ONE) gets an extra A-row m + j with B = C = 0, which makes
    the input polynomials linearly independent. Rows are interpolated
    over the smallest radix-2 domain holding m + num_inputs points.

Verification equation:
    e(A, B) = e(α, β) · e(Σ x_j·γ_abc_j, γ) · e(C, δ)

Keys carry the shape digest of the circuit they were generated for;
proving with another shape fails before any group work is done.

References:
    [Gro16] J. Groth, "On the Size of Pairing-based Non-interactive
            Arguments", EUROCRYPT 2016.
"""

from __future__ import annotations

import logging
import random
import time
from dataclasses import dataclass

from py_ecc.bls.point_compression import (
    compress_G1,
    compress_G2,
    decompress_G1,
    decompress_G2,
)
from py_ecc.optimized_bls12_381 import (
    FQ12,
    G1,
    G2,
    Z1,
    Z2,
    add,
    b,
    b2,
    curve_order,
    final_exponentiate,
    is_inf,
    is_on_curve,
    multiply,
    neg,
    pairing,
)

from shielded_output.circuit.r1cs import (
    ConstraintSynthesizer,
    ConstraintSystem,
    SynthesisMode,
    synthesize,
)
from shielded_output.config import ProverConfig
from shielded_output.crypto.rng import random_scalar
from shielded_output.snark.domain import EvaluationDomain
from shielded_output.snark.msm import FixedBaseTable, fixed_base_window, multiexp

logger = logging.getLogger("shielded_output.groth16")

FR = curve_order

G1_COMPRESSED_BYTES = 48
G2_COMPRESSED_BYTES = 96
PROOF_BYTES = 2 * G1_COMPRESSED_BYTES + G2_COMPRESSED_BYTES


class UnsatisfiedWitnessError(Exception):
    """Raised when the witness does not satisfy the circuit."""
    pass


class KeyShapeMismatchError(Exception):
    """Raised when a key is used with a circuit of a different shape."""
    pass


# ==============================================================================
# Keys and proofs
# ==============================================================================


@dataclass(frozen=True)
class VerifyingKey:
    alpha_g1: tuple
    beta_g2: tuple
    gamma_g2: tuple
    delta_g2: tuple
    gamma_abc_g1: tuple
    shape_digest: bytes

    @property
    def num_public_inputs(self) -> int:
        """Public inputs expected by verify (ONE excluded)."""
        return len(self.gamma_abc_g1) - 1


@dataclass(frozen=True)
class PreparedVerifyingKey:
    """A verifying key with e(α, β) and the negated G2 elements precomputed."""
    vk: VerifyingKey
    alpha_g1_beta_g2: FQ12
    neg_gamma_g2: tuple
    neg_delta_g2: tuple

    @property
    def shape_digest(self) -> bytes:
        return self.vk.shape_digest


@dataclass(frozen=True)
class ProvingKey:
    """
    Attributes:
        vk: The matching verifying key.
        beta_g1, delta_g1: β and δ in G1.
        a_query: A_k(τ) for every variable.
        b_g1_query, b_g2_query: B_k(τ) for every variable.
        h_query: τ^i·Z(τ)/δ for i < n - 1.
        l_query: (β·A_k + α·B_k + C_k)(τ)/δ for every aux variable.
        num_inputs: Input variables, ONE included.
        num_constraints: Constraint count of the circuit.
    """
    vk: VerifyingKey
    beta_g1: tuple
    delta_g1: tuple
    a_query: tuple
    b_g1_query: tuple
    b_g2_query: tuple
    h_query: tuple
    l_query: tuple
    num_inputs: int
    num_constraints: int

    @property
    def shape_digest(self) -> bytes:
        return self.vk.shape_digest


@dataclass(frozen=True)
class Proof:
    """A Groth16 proof (A ∈ G1, B ∈ G2, C ∈ G1)."""
    a: tuple
    b: tuple
    c: tuple

    def to_bytes(self) -> bytes:
        """
        192-byte compressed encoding.

        Returns:
            A (48 bytes) || B (96 bytes) || C (48 bytes), ZCash point
            compression, big-endian.
        """
        b_c1, b_c0 = compress_G2(self.b)
        return (
            compress_G1(self.a).to_bytes(G1_COMPRESSED_BYTES, "big")
            + b_c1.to_bytes(G1_COMPRESSED_BYTES, "big")
            + b_c0.to_bytes(G1_COMPRESSED_BYTES, "big")
            + compress_G1(self.c).to_bytes(G1_COMPRESSED_BYTES, "big")
        )

    @classmethod
    def from_bytes(cls, data: bytes) -> Proof:
        """
        Decode a 192-byte proof.

        Raises:
            ValueError: On a wrong length or an invalid point encoding.
        """
        if len(data) != PROOF_BYTES:
            raise ValueError(f"Proof must be {PROOF_BYTES} bytes, got {len(data)}")
        chunks = [
            int.from_bytes(data[i:i + G1_COMPRESSED_BYTES], "big")
            for i in range(0, PROOF_BYTES, G1_COMPRESSED_BYTES)
        ]
        try:
            a = decompress_G1(chunks[0])
            b_point = decompress_G2((chunks[1], chunks[2]))
            c = decompress_G1(chunks[3])
        except (ValueError, AssertionError) as e:
            raise ValueError(f"Invalid proof encoding: {e}") from e
        return cls(a, b_point, c)


# ==============================================================================
# QAP helpers
# ==============================================================================


def _domain_for(cs: ConstraintSystem) -> EvaluationDomain:
    return EvaluationDomain.for_size(cs.num_constraints + cs.num_inputs)


def _qap_at(cs: ConstraintSystem, domain: EvaluationDomain, tau: int) -> tuple[list[int], list[int], list[int]]:
    """A_k(τ), B_k(τ), C_k(τ) for every column k of z."""
    lagrange = domain.evaluate_all_lagrange_coefficients(tau)
    num_vars = cs.num_inputs + cs.num_aux
    a = [0] * num_vars
    b_ = [0] * num_vars
    c = [0] * num_vars

    for i, (a_lc, b_lc, c_lc) in enumerate(cs.constraints):
        u = lagrange[i]
        for lc, out in ((a_lc, a), (b_lc, b_), (c_lc, c)):
            for var, coeff in lc.terms.items():
                k = cs.column(var)
                out[k] = (out[k] + coeff * u) % FR

    for j in range(cs.num_inputs):
        a[j] = (a[j] + lagrange[cs.num_constraints + j]) % FR

    return a, b_, c


def _random_nonzero(rng: random.Random | None) -> int:
    return random_scalar(FR, rng)


# ==============================================================================
# Setup
# ==============================================================================


def setup(
    circuit: ConstraintSynthesizer,
    rng: random.Random | None = None,
    config: ProverConfig | None = None,
) -> tuple[ProvingKey, VerifyingKey]:
    """
    Generate a key pair for the shape of a circuit.

    The circuit is synthesized without values, so a witness-free instance
    is enough. The toxic waste (τ, α, β, γ, δ) lives only in this frame.

    Raises:
        SynthesisError: If the circuit cannot be synthesized.
        RandomnessError: If the OS entropy source fails.
    """
    config = config or ProverConfig()
    start = time.perf_counter()

    cs = synthesize(circuit, SynthesisMode.SETUP)
    domain = _domain_for(cs)
    logger.info(
        f"Groth16 setup: {cs.num_constraints} constraints, {cs.num_inputs} inputs, "
        f"{cs.num_aux} aux, domain 2^{domain.log_size}"
    )

    tau = _random_nonzero(rng)
    while domain.evaluate_vanishing_polynomial(tau) == 0:
        tau = _random_nonzero(rng)
    alpha = _random_nonzero(rng)
    beta = _random_nonzero(rng)
    gamma = _random_nonzero(rng)
    delta = _random_nonzero(rng)
    gamma_inv = pow(gamma, -1, FR)
    delta_inv = pow(delta, -1, FR)

    a, b_, c = _qap_at(cs, domain, tau)
    num_inputs = cs.num_inputs

    combined = [(beta * a[k] + alpha * b_[k] + c[k]) % FR for k in range(len(a))]
    gamma_abc = [v * gamma_inv % FR for v in combined[:num_inputs]]
    l_scalars = [v * delta_inv % FR for v in combined[num_inputs:]]

    z_tau = domain.evaluate_vanishing_polynomial(tau)
    h_scalars = []
    power = z_tau * delta_inv % FR
    for _ in range(domain.size - 1):
        h_scalars.append(power)
        power = power * tau % FR

    g1_scalars = len(a) + len(b_) + len(h_scalars) + len(l_scalars) + len(gamma_abc)
    g1_table = FixedBaseTable(G1, Z1, config.fixed_base_window or fixed_base_window(g1_scalars))
    g2_table = FixedBaseTable(G2, Z2, config.fixed_base_window or fixed_base_window(len(b_)))

    vk = VerifyingKey(
        alpha_g1=g1_table.mul(alpha),
        beta_g2=g2_table.mul(beta),
        gamma_g2=g2_table.mul(gamma),
        delta_g2=g2_table.mul(delta),
        gamma_abc_g1=tuple(g1_table.batch_mul(gamma_abc)),
        shape_digest=cs.shape_digest(),
    )
    pk = ProvingKey(
        vk=vk,
        beta_g1=g1_table.mul(beta),
        delta_g1=g1_table.mul(delta),
        a_query=tuple(g1_table.batch_mul(a)),
        b_g1_query=tuple(g1_table.batch_mul(b_)),
        b_g2_query=tuple(g2_table.batch_mul(b_)),
        h_query=tuple(g1_table.batch_mul(h_scalars)),
        l_query=tuple(g1_table.batch_mul(l_scalars)),
        num_inputs=num_inputs,
        num_constraints=cs.num_constraints,
    )

    logger.info(f"Groth16 setup finished in {time.perf_counter() - start:.1f}s")
    return pk, vk


# ==============================================================================
# Prove
# ==============================================================================


def _quotient(cs: ConstraintSystem, domain: EvaluationDomain) -> list[int]:
    """Coefficients of h = (A·B - C) / Z, degree <= n - 2."""
    a_evals = [cs.evaluate(a_lc) for a_lc, _, _ in cs.constraints]
    b_evals = [cs.evaluate(b_lc) for _, b_lc, _ in cs.constraints]
    c_evals = [cs.evaluate(c_lc) for _, _, c_lc in cs.constraints]
    a_evals.extend(cs.input_values)

    a_coset = domain.coset_fft(domain.ifft(a_evals))
    b_coset = domain.coset_fft(domain.ifft(b_evals))
    c_coset = domain.coset_fft(domain.ifft(c_evals))

    h_coset = domain.divide_by_vanishing_poly_on_coset(
        [(x * y - z) % FR for x, y, z in zip(a_coset, b_coset, c_coset)]
    )
    return domain.coset_ifft(h_coset)[:domain.size - 1]


def prove(
    pk: ProvingKey,
    circuit: ConstraintSynthesizer,
    rng: random.Random | None = None,
    config: ProverConfig | None = None,
) -> Proof:
    """
    Prove that an assigned circuit is satisfied.

    Raises:
        AssignmentMissingError: If a witness value is absent.
        KeyShapeMismatchError: If the circuit shape differs from the key's.
        UnsatisfiedWitnessError: If a constraint is violated.
        RandomnessError: If the OS entropy source fails.
    """
    config = config or ProverConfig()
    start = time.perf_counter()

    cs = synthesize(circuit, SynthesisMode.PROVE)
    if cs.shape_digest() != pk.shape_digest:
        raise KeyShapeMismatchError(
            f"Circuit shape {cs.shape_digest().hex()[:16]} does not match "
            f"proving key shape {pk.shape_digest.hex()[:16]}"
        )
    unsatisfied = cs.which_is_unsatisfied()
    if unsatisfied is not None:
        raise UnsatisfiedWitnessError(f"Constraint {unsatisfied} is not satisfied")

    domain = _domain_for(cs)
    h = _quotient(cs, domain)
    z = cs.assignment()
    aux = z[cs.num_inputs:]

    r = _random_nonzero(rng)
    s = _random_nonzero(rng)
    window = config.msm_window

    proof_a = add(add(pk.vk.alpha_g1, multiexp(pk.a_query, z, Z1, window)), multiply(pk.delta_g1, r))
    proof_b = add(add(pk.vk.beta_g2, multiexp(pk.b_g2_query, z, Z2, window)), multiply(pk.vk.delta_g2, s))
    b_g1 = add(add(pk.beta_g1, multiexp(pk.b_g1_query, z, Z1, window)), multiply(pk.delta_g1, s))

    proof_c = add(multiexp(pk.l_query, aux, Z1, window), multiexp(pk.h_query, h, Z1, window))
    proof_c = add(proof_c, multiply(proof_a, s))
    proof_c = add(proof_c, multiply(b_g1, r))
    proof_c = add(proof_c, neg(multiply(pk.delta_g1, r * s % FR)))

    proof = Proof(proof_a, proof_b, proof_c)
    logger.info(f"Groth16 proof over {cs.num_constraints} constraints in {time.perf_counter() - start:.1f}s")

    if config.self_verify and not verify(preprocess(pk.vk), cs.public_inputs(), proof):
        raise UnsatisfiedWitnessError("Proof failed self-verification")
    return proof


# ==============================================================================
# Verify
# ==============================================================================


def preprocess(vk: VerifyingKey) -> PreparedVerifyingKey:
    """Precompute the parts of the pairing check that do not depend on the proof."""
    return PreparedVerifyingKey(
        vk=vk,
        alpha_g1_beta_g2=pairing(vk.beta_g2, vk.alpha_g1),
        neg_gamma_g2=neg(vk.gamma_g2),
        neg_delta_g2=neg(vk.delta_g2),
    )


def _in_g1(point: tuple) -> bool:
    return is_on_curve(point, b) and is_inf(multiply(point, FR))


def _in_g2(point: tuple) -> bool:
    return is_on_curve(point, b2) and is_inf(multiply(point, FR))


def verify(pvk: PreparedVerifyingKey, public_inputs: list[int], proof: Proof) -> bool:
    """
    Check a proof against public inputs.

    Returns:
        True iff the proof is valid for exactly these inputs. Malformed
        inputs and proofs are rejected, never raised.
    """
    vk = pvk.vk
    if len(public_inputs) != vk.num_public_inputs:
        logger.debug(f"Rejected: {len(public_inputs)} public inputs, expected {vk.num_public_inputs}")
        return False
    for i, x in enumerate(public_inputs):
        if isinstance(x, bool) or not isinstance(x, int) or not 0 <= x < FR:
            logger.debug(f"Rejected: public input {i} is not a canonical field element")
            return False

    try:
        if not (_in_g1(proof.a) and _in_g2(proof.b) and _in_g1(proof.c)):
            logger.debug("Rejected: proof point not in its prime-order group")
            return False

        acc = multiexp(vk.gamma_abc_g1, [1] + list(public_inputs), Z1)
        product = (
            pairing(proof.b, proof.a, final_exponentiate=False)
            * pairing(pvk.neg_gamma_g2, acc, final_exponentiate=False)
            * pairing(pvk.neg_delta_g2, proof.c, final_exponentiate=False)
        )
        accepted = final_exponentiate(product) == pvk.alpha_g1_beta_g2
    except (ValueError, TypeError, AssertionError, ZeroDivisionError) as e:
        logger.debug(f"Rejected: malformed proof ({e})")
        return False

    if not accepted:
        logger.debug("Rejected: pairing check failed")
    return accepted
