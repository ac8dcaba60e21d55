# daofutures_core/storage/provider.py
from typing import Any, Dict, List, Optional, Tuple


class StorageProvider:
    """
    Generic key-value boundary of the contract storage.

    Values are UTF-8 JSON bytes; ``b""`` means not found. ``compare_and_set``
    is the only read-modify-write primitive: it swaps ``key`` to ``new`` only
    when the stored value still equals ``expected`` (``b""`` = absent).
    """
    # Interface
    def get_data(self, key: str) -> bytes: ...
    def set_data(self, key: str, value: bytes) -> None: ...
    def compare_and_set(self, key: str, expected: bytes, new: bytes) -> bool: ...
    def log_event(self, event_type: str, payload: Dict[str, Any]) -> None: ...
    def list_events(self, event_type: Optional[str] = None) -> List[Tuple[str, Dict[str, Any]]]: ...
    def close(self) -> None: ...
