# daofutures_core/storage/cas.py
from __future__ import annotations
import copy
import json
from typing import Any, Callable, Optional

from daofutures_core.constants import CAS_MAX_RETRIES
from daofutures_core.errors import StorageConflict
from daofutures_core.logger import get_logger
from daofutures_core.storage.provider import StorageProvider

log = get_logger("DAOF.Storage.CAS")


def update_json(
    storage: StorageProvider,
    key: str,
    mutate: Callable[[Any], Optional[Any]],
    default: Any,
    max_retries: int = CAS_MAX_RETRIES,
) -> Any:
    """
    Read-modify-write a JSON value under ``key`` with compare-and-swap.

    ``mutate`` receives a private copy of the current value and returns the
    new value, or None to leave storage untouched. Exceptions raised by
    ``mutate`` abort the update. A concurrent writer makes the swap fail and
    the whole read-mutate-swap cycle is retried.
    """
    for attempt in range(max_retries):
        raw = storage.get_data(key)
        current = json.loads(raw.decode("utf-8")) if raw else copy.deepcopy(default)
        new = mutate(current)
        if new is None:
            return current
        encoded = json.dumps(new, sort_keys=True).encode("utf-8")
        if storage.compare_and_set(key, raw, encoded):
            return new
        log.debug(f"[CAS] conflict on {key} attempt={attempt + 1}")

    log.error(f"[CAS] retries exhausted on {key}")
    raise StorageConflict(f"could not update {key} after {max_retries} attempts")
