from __future__ import annotations
from typing import Any, Callable, Dict, Optional
import json

Headers = Dict[str, str]


class BaseTransport:
    """
    Notification transport contract.

    Canonical payload at the transport boundary is bytes; dict payloads are
    serialized with to_bytes(). Handlers receive the decoded dict.
    """
    name: str = "base"

    def publish(
        self,
        topic: str,
        payload: bytes | dict,
        headers: Optional[Headers] = None,
    ) -> Any:
        raise NotImplementedError

    def subscribe(self, topic: str, handler: Callable[[dict], None]) -> Any:
        raise NotImplementedError

    @staticmethod
    def to_bytes(payload: bytes | dict) -> bytes:
        if isinstance(payload, bytes):
            return payload
        return json.dumps(payload, ensure_ascii=False).encode("utf-8")
