"""
daofutures_core.envelope
------------------------
Envelope is the notification container published on the transport when a
decryption request is issued, completed or rejected.

- Deterministic canonicalization for signing
- corr_id carries the decryption request id
"""

from __future__ import annotations
from dataclasses import dataclass, asdict, field
from typing import Any, Dict, Optional
from .constants import SCHEMA_VERSION
from .utils import canonical_json, new_id, now_ts


@dataclass
class Envelope:
    schema_ver: str = SCHEMA_VERSION
    msg_id: str = field(default_factory=new_id)
    corr_id: Optional[str] = None
    ts: str = field(default_factory=now_ts)
    producer: str = ""          # context id of the market
    subject: str = ""           # e.g. "aggregate.requested"
    key_id: str = ""            # identifies signing key
    sig: Optional[str] = None   # base64 signature over canonical body
    payload: Any = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    def to_signing_bytes(self) -> bytes:
        return canonical_json({
            "producer": self.producer,
            "subject": self.subject,
            "corr_id": self.corr_id,
            "payload": self.payload,
        })

    @classmethod
    def from_dict(cls, data: dict) -> "Envelope":
        return cls(
            schema_ver=data.get("schema_ver", SCHEMA_VERSION),
            msg_id=data.get("msg_id") or new_id(),
            corr_id=data.get("corr_id"),
            ts=data.get("ts", now_ts()),
            producer=data.get("producer", ""),
            subject=data.get("subject", ""),
            key_id=data.get("key_id", ""),
            sig=data.get("sig"),
            payload=data.get("payload"),
        )
