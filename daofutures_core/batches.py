# daofutures_core/batches.py

from __future__ import annotations
import json
from dataclasses import dataclass, field
from typing import Any, Dict, List

from .access import AccessControlState
from .constants import BATCH_CURRENT_KEY, BATCH_KEY_PREFIX
from .errors import AlreadyClosed, BatchClosed, InvalidBatch
from .logger import get_logger
from .storage import cas
from .storage.provider import StorageProvider
from .utils import canonical_json

log = get_logger("DAOF.Batches")


def batch_key(batch_id: int) -> str:
    return f"{BATCH_KEY_PREFIX}{batch_id}"


def _empty_batch(batch_id: int) -> Dict[str, Any]:
    return {"id": batch_id, "closed": False, "submissions": []}


@dataclass
class Batch:
    id: int
    closed: bool = False
    submissions: List[str] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Batch":
        return cls(
            id=int(data["id"]),
            closed=bool(data.get("closed", False)),
            submissions=list(data.get("submissions", [])),
        )


class BatchManager:
    """
    Sequential batches: Open(n) -> Closed(n), and the owner may open n+1 at any time.

    Each batch keeps an append-only log of the record ids submitted into it,
    in submission order. Opening a new batch does not close the previous one;
    only the current batch ever receives submissions.
    """

    def __init__(self, storage: StorageProvider):
        self.storage = storage
        # First batch exists and is open from initialization on
        if self.storage.compare_and_set(BATCH_CURRENT_KEY, b"", b"1"):
            self.storage.compare_and_set(batch_key(1), b"", canonical_json(_empty_batch(1)))
            log.info("[BATCH] initialized batch 1")

    @property
    def current_batch_id(self) -> int:
        raw = self.storage.get_data(BATCH_CURRENT_KEY)
        return int(json.loads(raw.decode("utf-8"))) if raw else 1

    def _check_range(self, batch_id: int) -> None:
        if not 1 <= batch_id <= self.current_batch_id:
            raise InvalidBatch(f"batch {batch_id} does not exist")

    def get_batch(self, batch_id: int) -> Batch:
        self._check_range(batch_id)
        raw = self.storage.get_data(batch_key(batch_id))
        if not raw:
            return Batch(id=batch_id)
        return Batch.from_dict(json.loads(raw.decode("utf-8")))

    def is_closed(self, batch_id: int) -> bool:
        return self.get_batch(batch_id).closed

    def submissions(self, batch_id: int) -> List[str]:
        return self.get_batch(batch_id).submissions

    def open_new_batch(self, access: AccessControlState, caller: str) -> int:
        access.require_owner(caller)
        access.require_not_paused()
        new_id = cas.update_json(self.storage, BATCH_CURRENT_KEY, lambda cur: int(cur) + 1, default=1)
        self.storage.compare_and_set(batch_key(new_id), b"", canonical_json(_empty_batch(new_id)))
        log.info(f"[BATCH] opened batch {new_id}")
        return new_id

    def close_current_batch(self, access: AccessControlState, caller: str) -> int:
        access.require_owner(caller)
        access.require_not_paused()
        batch_id = self.current_batch_id

        def _close(batch: Dict[str, Any]):
            if batch.get("closed"):
                raise AlreadyClosed(f"batch {batch_id} already closed")
            batch["closed"] = True
            return batch

        cas.update_json(self.storage, batch_key(batch_id), _close, default=_empty_batch(batch_id))
        log.info(f"[BATCH] closed batch {batch_id}")
        return batch_id

    def submit(self, record_id: str) -> int:
        """Append ``record_id`` to the current batch log and return the batch id."""
        batch_id = self.current_batch_id

        def _append(batch: Dict[str, Any]):
            if batch.get("closed"):
                raise BatchClosed(f"batch {batch_id} is closed")
            if record_id in batch["submissions"]:
                return None
            batch["submissions"].append(record_id)
            return batch

        cas.update_json(self.storage, batch_key(batch_id), _append, default=_empty_batch(batch_id))
        log.debug(f"[BATCH] {record_id} -> batch {batch_id}")
        return batch_id
