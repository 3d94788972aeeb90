"""Tests for hotkey-attested proofs."""

import pytest

from polyvisor.ledger.determinism import canonical_json, compute_hash
from polyvisor.ledger.models import Proof
from polyvisor.ledger.signer import sign_proof, verify_proof_signature
from polyvisor.ledger.verifier import HotkeyAttestationEngine


@pytest.fixture
def mock_wallet():
    """Create a mock wallet with real keypair for signing."""
    import bittensor as bt
    wallet = bt.Wallet(name="test_polyvisor_signer", hotkey="test_polyvisor_hk")
    wallet.create_if_non_existent(coldkey_use_password=False, hotkey_use_password=False)
    return wallet


class TestSigning:

    def test_sign_verify_roundtrip(self, mock_wallet):
        proof = sign_proof(mock_wallet, [6125], circuit_id=3)
        assert proof.public_inputs == (6125,)
        assert proof.circuit_id == 3
        assert proof.verification_key_bytes == mock_wallet.hotkey.ss58_address.encode()
        assert verify_proof_signature(proof, mock_wallet.hotkey.ss58_address)

    def test_verify_rejects_tampered_inputs(self, mock_wallet):
        proof = sign_proof(mock_wallet, [6125])
        tampered = proof.model_copy(update={"public_inputs": (6126,)})
        assert not verify_proof_signature(tampered, mock_wallet.hotkey.ss58_address)

    def test_verify_rejects_wrong_circuit(self, mock_wallet):
        proof = sign_proof(mock_wallet, [6125], circuit_id=1)
        tampered = proof.model_copy(update={"circuit_id": 2})
        assert not verify_proof_signature(tampered, mock_wallet.hotkey.ss58_address)

    def test_verify_rejects_wrong_hotkey(self, mock_wallet):
        proof = sign_proof(mock_wallet, [6125])
        assert not verify_proof_signature(proof, "5GNJqTPyNqANBkUVMN1LPPrxXnFouWA2MRQg3gKrUYgw")

    def test_verify_rejects_empty_signature(self, mock_wallet):
        proof = Proof(proof_bytes=b"", public_inputs=[1])
        assert not verify_proof_signature(proof, mock_wallet.hotkey.ss58_address)

    def test_verify_rejects_invalid_address(self, mock_wallet):
        proof = sign_proof(mock_wallet, [6125])
        assert not verify_proof_signature(proof, "not-an-address")


class TestHotkeyAttestationEngine:

    def test_accepts_allowed_signer(self, mock_wallet):
        engine = HotkeyAttestationEngine([mock_wallet.hotkey.ss58_address])
        assert engine.check(sign_proof(mock_wallet, [42]))

    def test_rejects_signer_not_allowed(self, mock_wallet):
        engine = HotkeyAttestationEngine(["5GNJqTPyNqANBkUVMN1LPPrxXnFouWA2MRQg3gKrUYgw"])
        assert not engine.check(sign_proof(mock_wallet, [42]))


class TestCanonicalHash:

    def test_key_order_irrelevant(self):
        assert compute_hash({"b": 2, "a": 1}) == compute_hash({"a": 1, "b": 2})

    def test_no_whitespace(self):
        assert canonical_json({"a": [1, 2]}) == '{"a":[1,2]}'

    def test_different_data_different_hash(self):
        assert compute_hash({"a": 1}) != compute_hash({"a": 2})

    def test_hash_is_sha256_hex(self):
        h = compute_hash({"a": 1})
        assert len(h) == 64
        int(h, 16)
