"""End-to-end prove/verify tests for the Merkle membership circuit."""

import random

import pytest

from semaphore_spec.errors import UnsatisfiedConstraintError, VerificationError, WitnessError
from semaphore_spec.primitives.field import BN254_R
from semaphore_spec.primitives.poseidon import PoseidonSpec
from semaphore_spec.protocol import prover
from semaphore_spec.protocol.circuit import MerkleTreeCircuit
from semaphore_spec.protocol.keys import keygen
from semaphore_spec.protocol.prover import create_proof
from semaphore_spec.protocol.setup import setup
from semaphore_spec.protocol.verifier import verify_proof
from semaphore_spec.witness.merkle import MerkleWitness

pytestmark = pytest.mark.slow


class TestScenario:
    """Leaf 123, siblings 0..4, all path bits zero."""

    def test_proof_size(self, scenario) -> None:
        _, _, proof = scenario
        assert len(proof) == 1344

    def test_verifies(self, srs, keys_depth5, scenario) -> None:
        _, vk = keys_depth5
        _, root, proof = scenario
        assert verify_proof(srs, vk, [root], proof)

    def test_root_matches_tree_fold(self, scenario) -> None:
        circuit, root, _ = scenario
        spec = circuit.spec
        running = 123
        for sibling in range(5):
            running = int(spec.compress(running, sibling))
        assert int(root) == running

    def test_wrong_root_rejected(self, srs, keys_depth5, scenario) -> None:
        _, vk = keys_depth5
        _, root, proof = scenario
        assert not verify_proof(srs, vk, [(int(root) + 1) % BN254_R], proof)

    @pytest.mark.parametrize("instances", [[], [1, 2], [BN254_R]])
    def test_bad_instances_rejected(self, srs, keys_depth5, scenario, instances) -> None:
        _, vk = keys_depth5
        _, _, proof = scenario
        assert not verify_proof(srs, vk, instances, proof)

    def test_truncated_proof_rejected(self, srs, keys_depth5, scenario) -> None:
        _, vk = keys_depth5
        _, root, proof = scenario
        assert not verify_proof(srs, vk, [root], proof[:-1])
        assert not verify_proof(srs, vk, [root], proof + b"\x00")

    @pytest.mark.parametrize("offset", [5, 64 * 9 + 31, 64 * 9 + 32 * 19 + 3, 1343])
    def test_tampered_byte_rejected(self, srs, keys_depth5, scenario, offset: int) -> None:
        """Flipping a byte in a commitment, an evaluation or an opening rejects."""
        _, vk = keys_depth5
        _, root, proof = scenario
        tampered = bytearray(proof)
        tampered[offset] ^= 1
        assert not verify_proof(srs, vk, [root], bytes(tampered))

    def test_other_srs_rejected(self, keys_depth5, scenario, capsys) -> None:
        _, vk = keys_depth5
        _, root, proof = scenario
        assert not verify_proof(setup(3, random.Random(99)), vk, [root], proof)
        assert "ERROR:" in capsys.readouterr().out

    def test_other_vk_rejected(self, srs, keys_depth2, scenario) -> None:
        _, vk2 = keys_depth2
        _, root, proof = scenario
        assert not verify_proof(srs, vk2, [root], proof)

    def test_checked_proof(self, srs, keys_depth5, scenario) -> None:
        pk, vk = keys_depth5
        circuit, root, _ = scenario
        proof = create_proof(srs, pk, circuit, [root], random.Random(9), check=True)
        assert verify_proof(srs, vk, [root], proof)

    def test_checked_proof_failing_verification(self, srs, keys_depth5, scenario, monkeypatch) -> None:
        """With check set, a proof the verifier rejects is never returned."""
        pk, _ = keys_depth5
        circuit, root, _ = scenario
        monkeypatch.setattr(prover, "verify_proof", lambda *args: False)
        with pytest.raises(VerificationError):
            create_proof(srs, pk, circuit, [root], random.Random(10), check=True)

    def test_proofs_are_blinded(self, srs, keys_depth5, scenario) -> None:
        """Fresh randomness gives a different, equally valid proof."""
        pk, vk = keys_depth5
        circuit, root, proof = scenario
        other = create_proof(srs, pk, circuit, [root], random.Random(8))
        assert other != proof
        assert verify_proof(srs, vk, [root], other)


class TestPrecheck:
    """Bad witnesses fail before any commitment is made."""

    def test_reversed_path_bits(self, srs, keys_depth5, scenario_witness) -> None:
        pk, _ = keys_depth5
        bits = [0, 1, 1, 0, 1]
        root = scenario_witness(bits).root(pk.vk.spec)
        circuit = MerkleTreeCircuit.from_witness(scenario_witness(bits[::-1]))
        with pytest.raises(UnsatisfiedConstraintError) as excinfo:
            create_proof(srs, pk, circuit, [root])
        assert [f.constraint for f in excinfo.value.failures] == ["public root"]

    def test_all_ones_path_against_all_zeros_root(self, srs, keys_depth5, scenario, scenario_witness) -> None:
        pk, _ = keys_depth5
        _, root, _ = scenario
        circuit = MerkleTreeCircuit.from_witness(scenario_witness([1] * 5))
        with pytest.raises(UnsatisfiedConstraintError) as excinfo:
            create_proof(srs, pk, circuit, [root])
        assert [(f.constraint, f.row) for f in excinfo.value.failures] == [("public root", 330)]

    def test_root_from_other_hash_parameters(self, srs, keys_depth2) -> None:
        """A root folded with 56 partial rounds does not match the 57-round circuit."""
        pk, _ = keys_depth2
        witness = MerkleWitness(leaf=5, siblings=[8, 13], path_bits=[0, 1])
        root = witness.root(PoseidonSpec(partial_rounds=56))
        with pytest.raises(UnsatisfiedConstraintError):
            create_proof(srs, pk, MerkleTreeCircuit.from_witness(witness), [root])

    @pytest.mark.parametrize("level", [0, 2, 4])
    def test_flipped_sibling_bit(self, srs, keys_depth5, scenario_witness, level: int) -> None:
        pk, _ = keys_depth5
        honest = scenario_witness()
        root = honest.root(pk.vk.spec)
        siblings = [int(s) for s in honest.siblings]
        siblings[level] ^= 1
        tampered = MerkleWitness(leaf=123, siblings=siblings, path_bits=honest.path_bits)
        with pytest.raises(UnsatisfiedConstraintError):
            create_proof(srs, pk, MerkleTreeCircuit.from_witness(tampered), [root])

    def test_no_witness(self, srs, keys_depth5) -> None:
        pk, _ = keys_depth5
        with pytest.raises(WitnessError):
            create_proof(srs, pk, MerkleTreeCircuit(5), [0])

    def test_shape_mismatch(self, srs, keys_depth5) -> None:
        pk, _ = keys_depth5
        circuit = MerkleTreeCircuit.from_witness(MerkleWitness(leaf=1, siblings=[2], path_bits=[0]))
        with pytest.raises(ValueError):
            create_proof(srs, pk, circuit, [0])


class TestOtherDepths:

    def test_depth_zero(self) -> None:
        """With no levels the root is the leaf itself."""
        srs = setup(3, random.Random(11))
        circuit = MerkleTreeCircuit.from_witness(MerkleWitness(leaf=77, siblings=[], path_bits=[]))
        pk, vk = keygen(srs, circuit)
        proof = create_proof(srs, pk, circuit, [77], random.Random(12))
        assert verify_proof(srs, vk, [77], proof)
        assert not verify_proof(srs, vk, [78], proof)

    def test_depth_two_mixed_bits(self, srs, keys_depth2) -> None:
        pk, vk = keys_depth2
        witness = MerkleWitness(leaf=5, siblings=[8, 13], path_bits=[1, 0])
        circuit = MerkleTreeCircuit.from_witness(witness)
        root = witness.root(circuit.spec)
        proof = create_proof(srs, pk, circuit, [root], random.Random(13))
        assert verify_proof(srs, vk, [root], proof)
