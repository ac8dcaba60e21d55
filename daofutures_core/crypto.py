"""
daofutures_core.crypto
----------------------
Ed25519 signing primitives used at the two trust boundaries:

- decryption proofs: the oracle signs (request_id, cleartexts)
- reveal challenges: a wallet key signs the human-readable challenge
- envelopes: notifications may be signed by the publishing context
"""

from __future__ import annotations
from typing import Tuple
from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives.asymmetric import ed25519
import hashlib
from .utils import b64e, b64d, canonical_json
from .envelope import Envelope

# --------- Ed25519 (sign/verify) ----------
def ed25519_generate() -> Tuple[bytes, bytes]:
    sk = ed25519.Ed25519PrivateKey.generate()
    pk = sk.public_key()
    return sk.private_bytes_raw(), pk.public_bytes_raw()

def ed25519_public_key(priv_raw: bytes) -> bytes:
    return ed25519.Ed25519PrivateKey.from_private_bytes(priv_raw).public_key().public_bytes_raw()

def ed25519_sign(priv_raw: bytes, data: bytes) -> bytes:
    sk = ed25519.Ed25519PrivateKey.from_private_bytes(priv_raw)
    return sk.sign(data)

def ed25519_verify(pub_raw: bytes, sig: bytes, data: bytes) -> bool:
    try:
        ed25519.Ed25519PublicKey.from_public_bytes(pub_raw).verify(sig, data)
        return True
    except (InvalidSignature, ValueError):
        return False

# --------- Decryption proofs ----------
def proof_message(request_id: str, cleartexts: bytes) -> bytes:
    return canonical_json({"requestId": request_id, "cleartexts": b64e(cleartexts)})

def sign_decryption_proof(priv_raw: bytes, request_id: str, cleartexts: bytes) -> bytes:
    return ed25519_sign(priv_raw, proof_message(request_id, cleartexts))

def verify_decryption_proof(pub_raw: bytes, request_id: str, cleartexts: bytes, proof: bytes) -> bool:
    return ed25519_verify(pub_raw, proof, proof_message(request_id, cleartexts))

# --------- Envelope helpers ----------
def sign_envelope(env: Envelope, priv_raw: bytes, key_id: str) -> Envelope:
    env.key_id = key_id
    sig = ed25519_sign(priv_raw, env.to_signing_bytes())
    env.sig = b64e(sig)
    return env

def verify_envelope(env: Envelope, pub_raw: bytes) -> bool:
    if not env.sig:
        return False
    return ed25519_verify(pub_raw, b64d(env.sig), env.to_signing_bytes())

def compute_pubkey_fingerprint(pub_raw: bytes) -> str:
    """
    Stable short fingerprint of an Ed25519 public key.

    Hex SHA256 truncated to 32 chars; used to name the oracle signing
    authority in logs and audit events.
    """
    return hashlib.sha256(pub_raw).hexdigest()[:32]
