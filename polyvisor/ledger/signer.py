"""Hotkey attestations used as proofs.

A reporter signs the canonical hash of (circuit_id, public_inputs) with
its hotkey. The resulting Proof carries the signature in proof_bytes and
the signer's SS58 address in verification_key_bytes.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Sequence

from .determinism import compute_hash

if TYPE_CHECKING:
    from .models import Proof


def _proof_signing_payload(circuit_id: int, public_inputs: Sequence[int]) -> str:
    """Build the canonical string to sign.

    Inputs are serialized as decimal strings so u128 values survive JSON.
    """
    return compute_hash({
        "circuit_id": circuit_id,
        "public_inputs": [str(v) for v in public_inputs],
    })


def sign_proof(wallet: Any, public_inputs: Sequence[int], circuit_id: int = 0) -> Proof:
    """Produce a hotkey-attested proof.

    Args:
        wallet: Bittensor wallet with hotkey access.
        public_inputs: Public inputs; the first is the claimed metric value.
        circuit_id: Circuit the attestation is made for.

    Returns:
        Proof ready to submit.
    """
    from .models import Proof

    payload_hash = _proof_signing_payload(circuit_id, public_inputs)
    signature = wallet.hotkey.sign(payload_hash.encode())
    sig_bytes = signature if isinstance(signature, bytes) else bytes.fromhex(str(signature))
    return Proof(
        proof_bytes=sig_bytes,
        public_inputs=tuple(public_inputs),
        verification_key_bytes=wallet.hotkey.ss58_address.encode(),
        circuit_id=circuit_id,
    )


def verify_proof_signature(proof: Proof, hotkey_ss58: str) -> bool:
    """Verify a proof's signature against a hotkey.

    Returns:
        True if proof_bytes is a valid signature by hotkey_ss58.
    """
    import bittensor as bt

    if not proof.proof_bytes:
        return False

    payload_hash = _proof_signing_payload(proof.circuit_id, proof.public_inputs)
    try:
        keypair = bt.Keypair(ss58_address=hotkey_ss58)
        return keypair.verify(payload_hash.encode(), proof.proof_bytes)
    except Exception:
        return False


__all__ = ["sign_proof", "verify_proof_signature"]
