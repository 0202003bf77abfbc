"""PLONKish prover with KZG commitments.

Proof generation flow:
    0. Precheck: every constraint holds on every row (MockProver)
    1. Seed transcript with the VK digest and the public instances
    2. Commit to blinded advice columns, squeeze y
    3. Quotient t = sum(y^i C_i) / Z_H on the extended coset, split into
       blinded pieces, commit, squeeze zeta
    4. Evaluate at zeta and zeta * omega, squeeze v
    5. GWC openings at zeta and zeta * omega
"""

import secrets

import numpy as np

from semaphore_spec.constraints.base import ProverConstraintContext
from semaphore_spec.constraints.merkle import ADVICE_COLUMNS, FIXED_COLUMNS
from semaphore_spec.errors import VerificationError
from semaphore_spec.primitives.field import (
    BN254_R,
    COSET_SHIFT,
    Fr,
    get_omega,
    random_scalar,
    to_ints,
)
from semaphore_spec.primitives.ntt import NTT
from semaphore_spec.primitives.polynomial import blind_with_vanishing, evaluate
from semaphore_spec.primitives.transcript import TranscriptWrite
from semaphore_spec.protocol.circuit import MerkleTreeCircuit
from semaphore_spec.protocol.data import ProverData
from semaphore_spec.protocol.keys import ProvingKey
from semaphore_spec.protocol.mock import MockProver, instance_column
from semaphore_spec.protocol.pcs import commit, open_at
from semaphore_spec.protocol.setup import Srs
from semaphore_spec.protocol.verifier import verify_proof


def create_proof(
    srs: Srs,
    pk: ProvingKey,
    circuit: MerkleTreeCircuit,
    instances: list,
    rng=None,
    check: bool = False,
) -> bytes:
    """Generate a proof that circuit's witness satisfies pk's circuit shape.

    Args:
        srs: Reference string the keys were generated from
        pk: Proving key for the circuit shape
        circuit: Circuit with a witness
        instances: Public instances (the Merkle root)
        rng: Blinding randomness with randrange(); defaults to secrets.SystemRandom()
        check: Verify the finished proof before returning it

    Returns:
        Proof bytes

    Raises:
        WitnessError: circuit has no witness or it does not fit the shape
        UnsatisfiedConstraintError: the witness fails the precheck
        VerificationError: check is set and the proof does not verify
    """
    vk = pk.vk
    if circuit.depth != vk.depth or circuit.spec != vk.spec:
        raise ValueError("circuit shape does not match the proving key")
    rng = rng if rng is not None else secrets.SystemRandom()

    n = vk.n
    ext = pk.extension
    module = vk.constraint_module()
    instances = [Fr(int(value)) for value in instances]

    # --- Precheck ---
    advice = circuit.assign_advice(n)
    pi_values = instance_column(instances, list(vk.instance_rows), n)
    MockProver(module, pk.fixed_values, advice, pi_values).assert_satisfied()

    transcript = TranscriptWrite()
    transcript.common_scalar(vk.digest)
    for value in instances:
        transcript.common_scalar(value)

    ntt = NTT(n)
    ntt_ext = NTT(n * ext)

    # --- Advice Commitments ---
    advice_polys = {}
    for name in ADVICE_COLUMNS:
        poly = blind_with_vanishing(ntt.intt(advice[name]), [random_scalar(rng), random_scalar(rng)])
        advice_polys[name] = poly
        transcript.write_point(commit(srs, poly))
    y = transcript.squeeze_challenge()

    # --- Quotient ---
    columns = {name: ntt_ext.coset_ntt(poly, COSET_SHIFT) for name, poly in advice_polys.items()}
    columns.update(pk.fixed_cosets)
    pi_coset = ntt_ext.coset_ntt(ntt.intt(pi_values), COSET_SHIFT)
    ctx = ProverConstraintContext(ProverData(columns=columns, instance=pi_coset, extend=ext))
    numerator = module.constraint_polynomial(ctx, y)

    t_coeffs = ntt_ext.coset_intt(numerator * _vanishing_inverse_on_coset(n, ext), COSET_SHIFT)
    pieces = _split_quotient(t_coeffs, n, vk.num_quotient_pieces, rng)
    for piece in pieces:
        transcript.write_point(commit(srs, piece))
    zeta = transcript.squeeze_challenge()
    zeta_omega = Fr(int(zeta) * get_omega(vk.k) % BN254_R)

    # --- Evaluations ---
    advice_list = [advice_polys[name] for name in ADVICE_COLUMNS]
    fixed_list = [pk.fixed_coeffs[name] for name in FIXED_COLUMNS]
    for poly in advice_list:
        transcript.write_scalar(evaluate(poly, zeta))
    for poly in advice_list:
        transcript.write_scalar(evaluate(poly, zeta_omega))
    for poly in fixed_list + pieces:
        transcript.write_scalar(evaluate(poly, zeta))
    v = transcript.squeeze_challenge()

    # --- Openings ---
    transcript.write_point(open_at(srs, advice_list + fixed_list + pieces, zeta, v))
    transcript.write_point(open_at(srs, advice_list, zeta_omega, v))

    proof = transcript.finalize()
    if check and not verify_proof(srs, vk, instances, proof):
        raise VerificationError("generated proof does not verify")
    return proof


def _vanishing_inverse_on_coset(n: int, ext: int) -> np.ndarray:
    """1 / (x^n - 1) over the coset g * <omega_{n * ext}>.

    x^n only takes ext distinct values there: g^n * w^j for an ext-th root w.
    """
    w = get_omega((ext).bit_length() - 1)
    g_n = pow(COSET_SHIFT, n, BN254_R)
    inverses = []
    for j in range(ext):
        z = (g_n * pow(w, j, BN254_R) - 1) % BN254_R
        inverses.append(pow(z, BN254_R - 2, BN254_R))
    return Fr(inverses * n)


def _split_quotient(t_coeffs: np.ndarray, n: int, num_pieces: int, rng) -> list[np.ndarray]:
    """Split t into pieces t_i with t = sum X^(i n) t_i, blinding adjacent pieces.

    Piece i gains b_i X^n and piece i + 1 loses b_i, so the sum is unchanged.
    """
    coeffs = to_ints(t_coeffs)
    if any(coeffs[num_pieces * n:]):
        raise ValueError("quotient degree exceeds the number of pieces")

    chunks = [coeffs[i * n:(i + 1) * n] + [0] for i in range(num_pieces)]
    for i in range(num_pieces - 1):
        b = rng.randrange(BN254_R)
        chunks[i][n] = b
        chunks[i + 1][0] = (chunks[i + 1][0] - b) % BN254_R
    return [Fr(chunk) for chunk in chunks]
