"""Verifier for Merkle membership proofs.

verify_with_loader() is the single verifier body. Run on the NativeLoader it
checks a proof directly (verify_proof); run on the EVM loader it compiles to
bytecode (evm/compiler.py).

Verification steps:
    1. Replay the transcript: VK digest, instances, commitments, challenges
    2. Evaluate all constraints at zeta from the opened values and check
       sum(y^i C_i(zeta)) == Z_H(zeta) * sum(zeta^(i n) t_i(zeta))
    3. GWC batch opening at zeta and zeta * omega as one pairing equation
"""

from semaphore_spec.constraints.base import VerifierConstraintContext
from semaphore_spec.constraints.merkle import ADVICE_COLUMNS, FIXED_COLUMNS
from semaphore_spec.errors import ProofFormatError, VerificationError
from semaphore_spec.primitives.curve import g2_to_ints
from semaphore_spec.primitives.field import BN254_R
from semaphore_spec.protocol.data import VerifierData
from semaphore_spec.protocol.keys import VerifyingKey
from semaphore_spec.protocol.loader import Loader, NativeLoader
from semaphore_spec.protocol.proof import proof_size
from semaphore_spec.protocol.setup import Srs


def verify_proof(srs: Srs, vk: VerifyingKey, instances: list, proof: bytes) -> bool:
    """Check a proof against public instances.

    Args:
        srs: Parameters the verifying key was generated with
        vk: Verifying key of the circuit shape
        instances: Public instances (the claimed root)
        proof: Proof bytes from create_proof

    Returns:
        True if the proof is valid, False otherwise
    """
    if g2_to_ints(srs.s_g2) != g2_to_ints(vk.s_g2):
        print("ERROR: SRS does not match the verifying key")
        return False
    try:
        expected = proof_size(vk.num_quotient_pieces)
        if len(proof) != expected:
            raise ProofFormatError(f"proof has {len(proof)} bytes, expected {expected}")
        verify_with_loader(NativeLoader(instances, proof), vk)
    except ProofFormatError as e:
        print(f"ERROR: Malformed proof: {e}")
        return False
    except VerificationError as e:
        print(f"ERROR: Proof rejected: {e}")
        return False
    return True


def verify_with_loader(loader: Loader, vk: VerifyingKey) -> None:
    """Run every verifier check on the given loader."""
    module = vk.constraint_module()
    pieces = vk.num_quotient_pieces
    n = vk.n
    omega = vk.omega

    # --- Transcript ---
    transcript = loader.transcript()
    transcript.common_scalar(loader.const(vk.digest))
    instances = loader.load_instances(vk.num_instances)
    for value in instances:
        transcript.common_scalar(value)

    advice_commitments = [transcript.read_point() for _ in ADVICE_COLUMNS]
    y = transcript.squeeze_challenge()
    quotient_commitments = [transcript.read_point() for _ in range(pieces)]
    zeta = transcript.squeeze_challenge()

    advice_at_zeta = [transcript.read_scalar() for _ in ADVICE_COLUMNS]
    advice_at_next = [transcript.read_scalar() for _ in ADVICE_COLUMNS]
    fixed_at_zeta = [transcript.read_scalar() for _ in FIXED_COLUMNS]
    quotient_at_zeta = [transcript.read_scalar() for _ in range(pieces)]
    v = transcript.squeeze_challenge()

    w_zeta = transcript.read_point()
    w_next = transcript.read_point()
    u = transcript.squeeze_challenge()

    # --- Vanishing and Public Inputs ---
    one = loader.const(1)
    zeta_n = loader.pow_const(zeta, n)
    z_h = zeta_n - one

    # L_row(zeta) = omega^row (zeta^n - 1) / (n (zeta - omega^row))
    pi = loader.const(0)
    for value, row in zip(instances, vk.instance_rows):
        w_row = loader.const(pow(omega, row, BN254_R))
        lagrange = w_row * z_h * loader.invert(loader.const(n) * (zeta - w_row))
        pi = pi + value * lagrange

    # --- Constraint Identity ---
    evals = {}
    for name, at_zeta, at_next in zip(ADVICE_COLUMNS, advice_at_zeta, advice_at_next):
        evals[(name, 0)] = at_zeta
        evals[(name, 1)] = at_next
    for name, at_zeta in zip(FIXED_COLUMNS, fixed_at_zeta):
        evals[(name, 0)] = at_zeta
    ctx = VerifierConstraintContext(VerifierData(evals=evals, instance=pi, constant=loader.const))
    numerator = module.constraint_polynomial(ctx, y)

    t_at_zeta = quotient_at_zeta[-1]
    for piece in reversed(quotient_at_zeta[:-1]):
        t_at_zeta = t_at_zeta * zeta_n + piece
    loader.assert_equal(numerator, z_h * t_at_zeta, "quotient identity")

    # --- Batch Opening ---
    fixed_commitments = [loader.ec_point(p) for p in vk.fixed_commitments]
    zeta_commitments = advice_commitments + fixed_commitments + quotient_commitments
    zeta_evals = advice_at_zeta + fixed_at_zeta + quotient_at_zeta

    v_powers = [one]
    for _ in range(len(zeta_commitments) - 1):
        v_powers.append(v_powers[-1] * v)

    # Advice columns are opened at both points: coefficient v^i + u v^i
    terms = []
    for i, point in enumerate(zeta_commitments):
        scalar = v_powers[i] + u * v_powers[i] if i < len(ADVICE_COLUMNS) else v_powers[i]
        terms.append((scalar, point))

    e_zeta = zeta_evals[0]
    for i in range(1, len(zeta_evals)):
        e_zeta = e_zeta + v_powers[i] * zeta_evals[i]
    e_next = advice_at_next[0]
    for i in range(1, len(advice_at_next)):
        e_next = e_next + v_powers[i] * advice_at_next[i]
    evaluation = e_zeta + u * e_next

    zeta_omega = zeta * loader.const(omega)
    terms.append((loader.const(0) - evaluation, loader.generator()))
    terms.append((zeta, w_zeta))
    terms.append((u * zeta_omega, w_next))

    lhs = loader.msm([(one, w_zeta), (u, w_next)])
    rhs = loader.msm(terms)
    loader.pairing_check(lhs, rhs, loader.g2_point(vk.g2), loader.g2_point(vk.s_g2))
