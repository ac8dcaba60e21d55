# daofutures_core/transport/transport_local.py
import json
from collections import defaultdict
from typing import Callable, Dict, List, Optional
from daofutures_core.logger import get_logger
from daofutures_core.transport.transport_base import BaseTransport, Headers

log = get_logger("DAOF.Transport.Local")


class LocalAdapter(BaseTransport):
    """In-process pub/sub; handlers run synchronously inside publish()."""

    name = "local"

    def __init__(self):
        self.handlers: Dict[str, List[Callable[[dict], None]]] = defaultdict(list)
        self.published: List[tuple] = []

    def publish(self, topic: str, payload, headers: Optional[Headers] = None):
        data = self.to_bytes(payload)
        message = json.loads(data.decode("utf-8"))
        self.published.append((topic, message))
        log.info(f"[LOCAL PUB] {topic} bytes={len(data)}")
        for handler in list(self.handlers.get(topic, [])):
            handler(message)

    def subscribe(self, topic: str, handler: Callable[[dict], None]):
        self.handlers[topic].append(handler)
        log.info(f"[LOCAL SUB] {topic}")
