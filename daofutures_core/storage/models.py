# daofutures_core/storage/models.py
from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict
import json
import time


class RecordStatus(str, Enum):
    ACTIVE = "active"
    SETTLED = "settled"
    EXPIRED = "expired"


@dataclass
class Record:
    """
    Storage-level representation of one futures contract.

    ``fields`` only ever holds ciphertexts (name -> ciphertext); the cleartext
    ``dao_name`` is a display label. Records are never deleted, only moved
    out of ``active``.
    """
    id: str
    owner: str
    dao_name: str = ""
    created_at: int = field(default_factory=lambda: int(time.time()))
    status: RecordStatus = RecordStatus.ACTIVE
    fields: Dict[str, str] = field(default_factory=dict)
    batch_id: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "daoName": self.dao_name,
            "owner": self.owner,
            "timestamp": self.created_at,
            "status": self.status.value,
            "batchId": self.batch_id,
            "fields": dict(self.fields),
        }

    def to_bytes(self) -> bytes:
        return json.dumps(self.to_dict(), sort_keys=True).encode("utf-8")

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Record":
        if not isinstance(data, dict):
            raise ValueError("record must be an object")
        fields = data.get("fields")
        if not isinstance(fields, dict):
            raise ValueError("record fields must be an object")
        return cls(
            id=data["id"],
            owner=data.get("owner", ""),
            dao_name=data.get("daoName", ""),
            created_at=int(data.get("timestamp", 0)),
            status=RecordStatus(data.get("status") or "active"),
            fields={str(k): str(v) for k, v in fields.items()},
            batch_id=int(data.get("batchId", 0)),
        )

    @classmethod
    def from_bytes(cls, raw: bytes) -> "Record":
        return cls.from_dict(json.loads(raw.decode("utf-8")))
