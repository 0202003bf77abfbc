"""Tests for setup, KZG commitments and key generation."""

import random

import pytest

from semaphore_spec.primitives.curve import (
    G1,
    G2,
    add,
    encode_g1,
    multiply,
    neg,
    pairing_product_is_one,
)
from semaphore_spec.primitives.field import BN254_R, Fr
from semaphore_spec.primitives.polynomial import evaluate
from semaphore_spec.primitives.poseidon import PoseidonSpec
from semaphore_spec.protocol.circuit import MerkleTreeCircuit
from semaphore_spec.protocol.keys import VerifyingKey, extension_factor, keygen_pk, keygen_vk
from semaphore_spec.protocol.pcs import commit, open_at, powers
from semaphore_spec.protocol.proof import proof_size
from semaphore_spec.protocol.setup import setup


class TestSetup:

    @pytest.mark.parametrize("k", [0, 29])
    def test_invalid_k(self, k: int) -> None:
        with pytest.raises(ValueError):
            setup(k)

    def test_power_count(self) -> None:
        srs = setup(2, random.Random(1))
        assert srs.n == 4
        assert len(srs.g1_powers) == 6
        assert srs.g1 == G1

    def test_circuit_larger_than_srs(self) -> None:
        srs = setup(3, random.Random(1))
        with pytest.raises(ValueError):
            keygen_vk(srs, MerkleTreeCircuit(1))


class TestKzg:

    def test_commit_is_evaluation_at_tau(self) -> None:
        """With a known tau, commit(p) == p(tau) G1."""
        tau_rng = random.Random(3)
        srs = setup(2, random.Random(3))
        tau = tau_rng.randrange(1, BN254_R)
        coeffs = Fr([3, 1, 4, 1, 5])
        assert encode_g1(commit(srs, coeffs)) == encode_g1(multiply(G1, int(evaluate(coeffs, tau))))

    def test_commit_too_long(self) -> None:
        srs = setup(1, random.Random(1))
        with pytest.raises(ValueError):
            commit(srs, Fr([1, 2, 3, 4, 5]))

    def test_powers(self) -> None:
        assert powers(3, 4) == [1, 3, 9, 27]

    @pytest.mark.slow
    def test_batch_opening_pairing(self) -> None:
        """e(W, [tau]G2) == e(C - E G1 + z W, G2) for a batched opening."""
        srs = setup(3, random.Random(5))
        rng = random.Random(6)
        polys = [Fr([rng.randrange(BN254_R) for _ in range(9)]) for _ in range(2)]
        z, v = rng.randrange(BN254_R), rng.randrange(BN254_R)

        witness = open_at(srs, polys, z, v)
        commitment = add(commit(srs, polys[0]), multiply(commit(srs, polys[1]), v))
        value = (int(evaluate(polys[0], z)) + v * int(evaluate(polys[1], z))) % BN254_R
        rhs = add(add(commitment, neg(multiply(G1, value))), multiply(witness, z))
        assert pairing_product_is_one([(witness, srs.s_g2), (neg(rhs), G2)])


class TestKeys:

    def test_quotient_shape(self, keys_depth5) -> None:
        _, vk = keys_depth5
        assert vk.num_quotient_pieces == 6
        assert extension_factor(6) == 8
        assert proof_size(vk.num_quotient_pieces) == 1344

    def test_vk_fields(self, keys_depth5) -> None:
        pk, vk = keys_depth5
        assert vk.k == 9 and vk.depth == 5
        assert vk.instance_rows == (330,)
        assert pk.vk is vk
        assert pk.extension == 8

    def test_vk_bytes_roundtrip(self, keys_depth5) -> None:
        _, vk = keys_depth5
        data = vk.to_bytes()
        parsed = VerifyingKey.from_bytes(data)
        assert parsed.to_bytes() == data
        assert parsed.digest == vk.digest

    def test_vk_bytes_rejects_garbage(self, keys_depth5) -> None:
        _, vk = keys_depth5
        with pytest.raises(ValueError):
            VerifyingKey.from_bytes(b"XXXX" + vk.to_bytes()[4:])
        with pytest.raises(ValueError):
            VerifyingKey.from_bytes(vk.to_bytes() + b"\x00")
        with pytest.raises(ValueError):
            VerifyingKey.from_bytes(vk.to_bytes()[:20])

    def test_digest_depends_on_shape(self, keys_depth5, keys_depth2) -> None:
        assert keys_depth5[1].digest != keys_depth2[1].digest

    def test_keygen_ignores_witness(self, srs, keys_depth2) -> None:
        from semaphore_spec.witness.merkle import MerkleWitness

        circuit = MerkleTreeCircuit.from_witness(MerkleWitness(leaf=1, siblings=[2, 3], path_bits=[0, 1]))
        assert keygen_vk(srs, circuit).to_bytes() == keys_depth2[1].to_bytes()

    def test_pk_shape_mismatch(self, srs, keys_depth2) -> None:
        _, vk = keys_depth2
        with pytest.raises(ValueError):
            keygen_pk(srs, vk, MerkleTreeCircuit(3))
        with pytest.raises(ValueError):
            keygen_pk(srs, vk, MerkleTreeCircuit(2, spec=PoseidonSpec(partial_rounds=56)))
