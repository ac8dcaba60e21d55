# daofutures_core/gate.py

from __future__ import annotations
import json
import time
from typing import Callable

from .access import AccessControlState
from .batches import BatchManager
from .constants import COOLDOWN_KEY_PREFIX
from .errors import BatchClosed, CooldownActive, NotAuthorizedProvider
from .logger import get_logger
from .records import RecordStore
from .storage.models import Record
from .storage.provider import StorageProvider
from .utils import normalize_address

log = get_logger("DAOF.Gate")


class Cooldown:
    """Per-address wall-clock cooldown, persisted under ``cooldown_<scope>_<address>``."""

    def __init__(self, storage: StorageProvider, scope: str, clock: Callable[[], float] = time.time):
        self.storage = storage
        self.scope = scope
        self.clock = clock

    def _key(self, address: str) -> str:
        return f"{COOLDOWN_KEY_PREFIX}{self.scope}_{normalize_address(address)}"

    def last(self, address: str) -> float | None:
        raw = self.storage.get_data(self._key(address))
        return float(json.loads(raw.decode("utf-8"))) if raw else None

    def check(self, address: str, seconds: int) -> None:
        last = self.last(address)
        if last is None:
            return
        retry_at = last + seconds
        if self.clock() < retry_at:
            raise CooldownActive(normalize_address(address), retry_at)

    def mark(self, address: str) -> float:
        now = self.clock()
        self.storage.set_data(self._key(address), json.dumps(now).encode("utf-8"))
        return now


class SubmissionGate:
    def __init__(self, storage: StorageProvider, clock: Callable[[], float] = time.time):
        self.cooldown = Cooldown(storage, "submit", clock)

    def check(self, submitter: str, access: AccessControlState) -> None:
        access.require_not_paused()
        if not access.is_provider(submitter):
            raise NotAuthorizedProvider(f"{submitter} is not an authorized provider")
        self.cooldown.check(submitter, access.cooldown_seconds)

    def authorize(self, submitter: str, access: AccessControlState) -> None:
        self.check(submitter, access)
        self.cooldown.mark(submitter)

    def submit(
        self,
        submitter: str,
        record: Record,
        access: AccessControlState,
        batches: BatchManager,
        records: RecordStore,
    ) -> Record:
        """
        Gate a submission, persist the record, then append it to the current batch.

        The cooldown is only consumed once the submission went through.
        """
        self.check(submitter, access)
        batch_id = batches.current_batch_id
        if batches.is_closed(batch_id):
            raise BatchClosed(f"batch {batch_id} is closed")

        record.batch_id = batch_id
        records.put(record)
        record.batch_id = batches.submit(record.id)
        if record.batch_id != batch_id:
            records.put(record)
        self.cooldown.mark(submitter)
        log.info(f"[SUBMIT] {record.id} by {normalize_address(submitter)} batch={record.batch_id}")
        return record
