"""Proof byte layout.

A proof is the transcript written by the prover, in order:

    G1:  advice commitments (a, b, c)
    G1:  quotient piece commitments t_0 .. t_{d-1}
    Fr:  advice at zeta, advice at zeta * omega
    Fr:  fixed columns at zeta
    Fr:  quotient pieces at zeta
    G1:  opening witnesses W_zeta, W_zeta_omega

G1 elements take 64 bytes (x || y), scalars 32 bytes, both big-endian. The
layout is not a stable format across versions.
"""

from semaphore_spec.constraints.merkle import ADVICE_COLUMNS, FIXED_COLUMNS
from semaphore_spec.primitives.curve import G1_BYTES
from semaphore_spec.primitives.field import SCALAR_BYTES

NUM_OPENING_WITNESSES = 2


def num_points(num_quotient_pieces: int) -> int:
    return len(ADVICE_COLUMNS) + num_quotient_pieces + NUM_OPENING_WITNESSES


def num_evaluations(num_quotient_pieces: int) -> int:
    return 2 * len(ADVICE_COLUMNS) + len(FIXED_COLUMNS) + num_quotient_pieces


def proof_size(num_quotient_pieces: int) -> int:
    """Exact byte length of a proof."""
    return (num_points(num_quotient_pieces) * G1_BYTES
            + num_evaluations(num_quotient_pieces) * SCALAR_BYTES)
