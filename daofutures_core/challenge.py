# daofutures_core/challenge.py

from __future__ import annotations
from typing import Union

from .codec import CiphertextCodec
from .crypto import ed25519_verify
from .errors import ProofInvalid
from .logger import get_logger

log = get_logger("DAOF.Challenge")


def build_challenge(
    public_key: str,
    contract_address: str,
    chain_id: int,
    start_timestamp: int,
    duration_days: int,
) -> str:
    """Human-readable message a wallet signs before a value is revealed locally."""
    return (
        f"publickey:{public_key}\n"
        f"contractAddresses:{contract_address}\n"
        f"chainId:{chain_id}\n"
        f"startTimestamp:{start_timestamp}\n"
        f"durationDays:{duration_days}"
    )


def reveal(
    codec: CiphertextCodec,
    ciphertext: str,
    challenge: str,
    signature: bytes,
    signer_public_key: bytes,
) -> Union[int, float]:
    """
    Decrypt ``ciphertext`` once the signer confirmed ``challenge``.

    This is a confirmation step for the person looking at the value, not part
    of the settlement trust boundary.
    """
    if not ed25519_verify(signer_public_key, signature, challenge.encode("utf-8")):
        log.warning("[REVEAL] challenge signature rejected")
        raise ProofInvalid("challenge signature does not verify")
    return codec.decrypt(ciphertext)
