"""Tests for the EVM loader and the compiled on-chain verifier."""

import random

import pytest

from semaphore_spec.evm.compiler import compile_verifier, deployment_code
from semaphore_spec.evm.harness import encode_calldata, evm_verify
from semaphore_spec.evm.loader import EvmLoader
from semaphore_spec.evm.vm import Executor
from semaphore_spec.primitives.curve import G1, G2, encode_g1, multiply
from semaphore_spec.primitives.field import BN254_R
from semaphore_spec.primitives.transcript import Transcript
from semaphore_spec.protocol.circuit import MerkleTreeCircuit
from semaphore_spec.protocol.keys import keygen
from semaphore_spec.protocol.prover import create_proof
from semaphore_spec.protocol.setup import setup
from semaphore_spec.witness.merkle import MerkleWitness


def _compile(body, num_instance: int, proof_len: int) -> bytes:
    loader = EvmLoader(num_instance, proof_len)
    body(loader)
    return deployment_code(loader.runtime_code())


def _scalars(*values: int) -> bytes:
    return b"".join(v.to_bytes(32, "big") for v in values)


class TestEvmLoader:
    """Small programs built directly on the loader, checked against Python arithmetic."""

    @staticmethod
    def _arithmetic(loader: EvmLoader) -> None:
        [expected] = loader.load_instances(1)
        transcript = loader.transcript()
        a = transcript.read_scalar()
        b = transcript.read_scalar()
        value = loader.pow_const(a, 5) * loader.invert(b) - a + loader.const(3)
        loader.assert_equal(value, expected, "arithmetic")

    @staticmethod
    def _expected(a: int, b: int) -> int:
        return (pow(a, 5, BN254_R) * pow(b, BN254_R - 2, BN254_R) - a + 3) % BN254_R

    def test_arithmetic_accepts(self) -> None:
        code = _compile(self._arithmetic, 1, 64)
        a, b = 2**200 + 7, BN254_R - 5
        assert evm_verify(code, [self._expected(a, b)], _scalars(a, b)).accepted

    def test_arithmetic_rejects_wrong_value(self) -> None:
        code = _compile(self._arithmetic, 1, 64)
        a, b = 11, 13
        assert not evm_verify(code, [self._expected(a, b) + 1], _scalars(a, b)).accepted

    def test_inverse_of_zero_reverts(self) -> None:
        code = _compile(self._arithmetic, 1, 64)
        assert not evm_verify(code, [0], _scalars(4, 0)).accepted

    def test_non_canonical_scalar_reverts(self) -> None:
        code = _compile(self._arithmetic, 1, 64)
        assert not evm_verify(code, [0], _scalars(BN254_R, 1)).accepted

    def test_transcript_matches_native(self) -> None:
        def body(loader: EvmLoader) -> None:
            [expected] = loader.load_instances(1)
            transcript = loader.transcript()
            transcript.common_scalar(loader.const(99))
            transcript.read_scalar()
            transcript.squeeze_challenge()
            loader.assert_equal(transcript.squeeze_challenge(), expected, "challenge")

        native = Transcript()
        native.common_scalar(99)
        native.common_scalar(42)
        native.squeeze_challenge()
        expected = int(native.squeeze_challenge())

        code = _compile(body, 1, 32)
        assert evm_verify(code, [expected], _scalars(42)).accepted
        assert not evm_verify(code, [expected], _scalars(43)).accepted

    def test_constant_folding(self) -> None:
        """Arithmetic on constants emits no code."""
        loader = EvmLoader(0, 0)
        value = loader.const(3) * loader.const(5) - loader.const(20)
        assert value.is_const and value.value == BN254_R - 5
        assert loader.pow_const(loader.const(2), 10).value == 1024
        assert loader.invert(loader.const(2)).value * 2 % BN254_R == 1
        assert loader.runtime_code() == EvmLoader(0, 0).runtime_code()

    def test_instance_count_mismatch(self) -> None:
        with pytest.raises(ValueError):
            EvmLoader(1, 0).load_instances(2)

    def test_unread_proof(self) -> None:
        loader = EvmLoader(0, 64)
        loader.transcript().read_scalar()
        with pytest.raises(ValueError):
            loader.runtime_code()

    @pytest.mark.slow
    def test_msm_and_pairing(self) -> None:
        """With g2 == s_g2 the pairing check reduces to lhs == rhs."""
        expected = multiply(G1, 3 * 7 + 2)

        def body(loader: EvmLoader) -> None:
            transcript = loader.transcript()
            point = transcript.read_point()
            scalar = transcript.read_scalar()
            lhs = loader.msm([(scalar, point), (loader.const(2), loader.generator())])
            rhs = loader.ec_point(expected)
            loader.pairing_check(lhs, rhs, loader.g2_point(G2), loader.g2_point(G2))

        code = _compile(body, 0, 96)
        point = encode_g1(multiply(G1, 3))
        assert evm_verify(code, [], point + _scalars(7)).accepted
        assert not evm_verify(code, [], point + _scalars(8)).accepted


@pytest.fixture(scope="module")
def deployment(srs, keys_depth5):
    """Compiled verifier for the five-level circuit."""
    _, vk = keys_depth5
    return compile_verifier(srs, vk, [1])


@pytest.mark.slow
class TestCompiledVerifier:

    def test_accepts_valid_proof(self, deployment, scenario) -> None:
        _, root, proof = scenario
        result = evm_verify(deployment, [root], proof)
        assert result.accepted
        assert 200_000 < result.gas_used < 1_000_000

    def test_rejects_wrong_root(self, deployment, scenario) -> None:
        _, root, proof = scenario
        assert not evm_verify(deployment, [(int(root) + 1) % BN254_R], proof).accepted

    def test_rejects_tampered_opening(self, deployment, scenario) -> None:
        """A different valid point in place of W_zeta fails the pairing."""
        _, root, proof = scenario
        tampered = proof[:-128] + encode_g1(G1) + proof[-64:]
        assert not evm_verify(deployment, [root], tampered).accepted

    def test_rejects_tampered_evaluation(self, deployment, scenario) -> None:
        _, root, proof = scenario
        tampered = bytearray(proof)
        tampered[64 * 9 + 31] ^= 1
        assert not evm_verify(deployment, [root], bytes(tampered)).accepted

    def test_mismatched_vk_reverts(self, srs, keys_depth2, scenario) -> None:
        """A verifier compiled for another depth rejects the proof."""
        _, vk2 = keys_depth2
        _, root, proof = scenario
        result = evm_verify(compile_verifier(srs, vk2, [1]), [root], proof)
        assert result.reverted

    @pytest.mark.parametrize("instances,proof_slice", [
        ([], slice(None)),
        (None, slice(0, -32)),
        (None, slice(0, 1300)),
    ])
    def test_malformed_calldata_reverts(self, deployment, scenario, instances, proof_slice) -> None:
        _, root, proof = scenario
        instances = [root] if instances is None else instances
        assert evm_verify(deployment, instances, proof[proof_slice]).reverted

    def test_extra_instance_reverts(self, deployment, scenario) -> None:
        _, root, proof = scenario
        assert evm_verify(deployment, [root, 0], proof).reverted

    def test_non_canonical_instance_reverts(self, deployment, scenario) -> None:
        _, root, proof = scenario
        assert evm_verify(deployment, [int(root) + BN254_R], proof).reverted

    def test_trailing_calldata_reverts(self, deployment, scenario) -> None:
        _, root, proof = scenario
        executor = Executor()
        address = executor.deploy(deployment)
        calldata = encode_calldata([root], proof)
        assert executor.call(address, calldata).accepted
        assert executor.call(address, calldata + bytes(32)).reverted

    def test_num_instance_mismatch(self, srs, keys_depth5) -> None:
        _, vk = keys_depth5
        with pytest.raises(ValueError):
            compile_verifier(srs, vk, [2])
        with pytest.raises(ValueError):
            compile_verifier(srs, vk, [1, 0])

    def test_srs_mismatch(self, keys_depth5) -> None:
        _, vk = keys_depth5
        with pytest.raises(ValueError):
            compile_verifier(setup(2, random.Random(4)), vk, [1])

    def test_depth_zero_tree(self) -> None:
        """The one-leaf tree proves and verifies on chain too."""
        srs = setup(3, random.Random(11))
        circuit = MerkleTreeCircuit.from_witness(MerkleWitness(leaf=77, siblings=[], path_bits=[]))
        pk, vk = keygen(srs, circuit)
        proof = create_proof(srs, pk, circuit, [77], random.Random(12))
        code = compile_verifier(srs, vk, [1])
        assert evm_verify(code, [77], proof).accepted
        assert evm_verify(code, [78], proof).reverted
