"""
daofutures_core.records
-----------------------
Record Store: futures contracts persisted as JSON blobs under ``contract_<id>``
plus an append-only key index under ``contract_keys``.

The record body is written before its id is appended to the index, so every
indexed id resolves to a persisted record. The index append goes through
compare-and-swap so concurrent appenders never drop each other's ids.
"""

from __future__ import annotations
import json
from typing import Dict, Iterator, List

from .constants import KEYS_INDEX, RECORD_KEY_PREFIX
from .errors import RecordNotFound
from .logger import get_logger
from .storage import cas
from .storage.models import Record, RecordStatus
from .storage.provider import StorageProvider

log = get_logger("DAOF.Records")


def record_key(record_id: str) -> str:
    return f"{RECORD_KEY_PREFIX}{record_id}"


class RecordStore:
    def __init__(self, storage: StorageProvider):
        self.storage = storage

    def put(self, record: Record) -> None:
        if not record.id:
            raise ValueError("record id must be non-empty")
        self.storage.set_data(record_key(record.id), record.to_bytes())

        def _append(keys: List[str]):
            if record.id in keys:
                return None
            return keys + [record.id]

        cas.update_json(self.storage, KEYS_INDEX, _append, default=[])
        log.debug(f"[RECORD PUT] {record.id} status={record.status.value}")

    def get(self, record_id: str) -> Record:
        raw = self.storage.get_data(record_key(record_id))
        if not raw:
            raise RecordNotFound(record_id)
        return Record.from_bytes(raw)

    def list_ids(self) -> Iterator[str]:
        """Ids in insertion order, snapshotted when called."""
        raw = self.storage.get_data(KEYS_INDEX)
        if not raw:
            return iter([])
        try:
            keys = json.loads(raw.decode("utf-8"))
        except (UnicodeDecodeError, ValueError) as e:
            log.error(f"[RECORD INDEX] unreadable key index: {e}")
            return iter([])
        if not isinstance(keys, list):
            log.error(f"[RECORD INDEX] key index is {type(keys).__name__}, not a list")
            return iter([])
        return iter([str(k) for k in keys])

    def list_records(self) -> Iterator[Record]:
        """Best-effort listing: unreadable records are logged and skipped."""
        for record_id in self.list_ids():
            raw = self.storage.get_data(record_key(record_id))
            if not raw:
                log.warning(f"[RECORD LIST] missing body for {record_id}")
                continue
            try:
                yield Record.from_bytes(raw)
            except (UnicodeDecodeError, ValueError, KeyError, TypeError) as e:
                log.warning(f"[RECORD LIST] skipping {record_id}: {e}")

    def stats(self) -> Dict[str, int]:
        counts = {status.value: 0 for status in RecordStatus}
        for record in self.list_records():
            counts[record.status.value] += 1
        counts["total"] = sum(counts.values())
        return counts
