"""
daofutures_core.utils
---------------------
Lightweight helpers for ids, timestamping, base64 utilities, and canonical JSON serialization.
Everything that gets hashed or signed goes through canonical_json so the bytes are stable.
"""

from __future__ import annotations
import base64, json, time, uuid, hashlib, random, string
from typing import Any

_BASE36 = string.digits + string.ascii_lowercase


def b64e(b: bytes) -> str:
    return base64.b64encode(b).decode("ascii")

def b64d(s: str) -> bytes:
    return base64.b64decode(s.encode("ascii"), validate=True)

def now_ts() -> str:
    # RFC3339 / ISO 8601 in UTC, second precision
    return time.strftime("%Y-%m-%dT%H:%M:%SZ", time.gmtime())

def new_id() -> str:
    return uuid.uuid4().hex

def new_record_id(now: float | None = None) -> str:
    """Record ids look like ``<unix ms>-<7 base36 chars>``."""
    ms = int((time.time() if now is None else now) * 1000)
    suffix = "".join(random.choice(_BASE36) for _ in range(7))
    return f"{ms}-{suffix}"

def normalize_address(address: str) -> str:
    return (address or "").strip().lower()

def canonical_json(obj: Any) -> bytes:
    # Deterministic, minimal JSON for hashing and signing
    return json.dumps(obj, separators=(",", ":"), sort_keys=True, ensure_ascii=False).encode("utf-8")

def sha256(data: bytes) -> str:
    return hashlib.sha256(data).hexdigest()
