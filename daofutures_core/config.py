# daofutures_core/config.py

from __future__ import annotations
import os
from dataclasses import dataclass
from typing import Any, Dict, Optional

from .constants import DEFAULT_CONTEXT_ID, DEFAULT_COOLDOWN_SECONDS, DEFAULT_REQUEST_TTL
from .utils import b64d


def decode_key(value: str) -> bytes:
    """Key material from the environment: hex, else standard base64."""
    value = value.strip()
    try:
        return bytes.fromhex(value)
    except ValueError:
        pass
    try:
        return b64d(value)
    except ValueError as e:
        raise ValueError("key must be hex or base64") from e


@dataclass
class MarketConfig:
    storage_provider: str = "sqlite"
    db_path: str = "db/daofutures.db"
    codec: str = "tagged"
    codec_key: Optional[bytes] = None
    cooldown_seconds: int = DEFAULT_COOLDOWN_SECONDS
    context_id: str = DEFAULT_CONTEXT_ID
    request_ttl: int = DEFAULT_REQUEST_TTL      # seconds; 0 disables expiry
    oracle_url: Optional[str] = None            # None -> in-process LocalOracle
    oracle_token: Optional[str] = None
    oracle_public_key: Optional[bytes] = None   # raw Ed25519 key of the remote oracle
    transport: str = "local"

    @classmethod
    def from_env(cls) -> "MarketConfig":
        key_hex = os.getenv("DAOFUTURES_CODEC_KEY")
        oracle_key = os.getenv("DAOFUTURES_ORACLE_PUBLIC_KEY")
        return cls(
            storage_provider=os.getenv("DAOFUTURES_STORAGE_PROVIDER", "sqlite"),
            db_path=os.getenv("DAOFUTURES_DB_PATH", "db/daofutures.db"),
            codec=os.getenv("DAOFUTURES_CODEC", "tagged"),
            codec_key=bytes.fromhex(key_hex) if key_hex else None,
            cooldown_seconds=int(os.getenv("DAOFUTURES_COOLDOWN_SECONDS", DEFAULT_COOLDOWN_SECONDS)),
            context_id=os.getenv("DAOFUTURES_CONTEXT_ID", DEFAULT_CONTEXT_ID),
            request_ttl=int(os.getenv("DAOFUTURES_REQUEST_TTL", DEFAULT_REQUEST_TTL)),
            oracle_url=os.getenv("DAOFUTURES_ORACLE_URL") or None,
            oracle_token=os.getenv("DAOFUTURES_ORACLE_TOKEN") or None,
            oracle_public_key=decode_key(oracle_key) if oracle_key else None,
            transport=os.getenv("DAOFUTURES_TRANSPORT", "local"),
        )

    def storage_config(self) -> Dict[str, Any]:
        return {"provider": self.storage_provider, "sqlite_path": self.db_path}

    def codec_config(self) -> Dict[str, Any]:
        return {"codec": self.codec, "codec_key": self.codec_key}
