import threading
from typing import Any, Dict, List, Optional, Tuple
from daofutures_core.storage.provider import StorageProvider


class InMemoryStorage(StorageProvider):
    def __init__(self):
        self.data: Dict[str, bytes] = {}
        self.audit: List[Tuple[str, Dict[str, Any]]] = []
        self._lock = threading.Lock()

    def get_data(self, key: str) -> bytes:
        with self._lock:
            return self.data.get(key, b"")

    def set_data(self, key: str, value: bytes) -> None:
        with self._lock:
            self.data[key] = bytes(value)

    def compare_and_set(self, key: str, expected: bytes, new: bytes) -> bool:
        with self._lock:
            if self.data.get(key, b"") != expected:
                return False
            self.data[key] = bytes(new)
            return True

    # audit
    def log_event(self, event_type: str, payload: Dict[str, Any]) -> None:
        with self._lock:
            self.audit.append((event_type, dict(payload)))

    def list_events(self, event_type: Optional[str] = None):
        with self._lock:
            return [(t, p) for t, p in self.audit if event_type is None or t == event_type]

    def close(self) -> None:
        return
