# daofutures_core/transport/__init__.py
import os
from daofutures_core.transport.transport_base import BaseTransport
from daofutures_core.transport.transport_local import LocalAdapter
from daofutures_core.transport.transport_http import HTTPAdapter


def transport_factory(mode: str | None = None) -> BaseTransport:
    """
    mode:
      - "local" → in-process pub/sub (default)
      - "http"  → POST envelopes to DAOFUTURES_EVENTS_URL
    """
    mode = (mode or os.getenv("DAOFUTURES_TRANSPORT", "local")).lower()

    if mode == "http":
        return HTTPAdapter(
            os.getenv("DAOFUTURES_EVENTS_URL", "http://localhost:8080"),
            token=os.getenv("DAOFUTURES_EVENTS_TOKEN"),
        )

    return LocalAdapter()


__all__ = ["BaseTransport", "LocalAdapter", "HTTPAdapter", "transport_factory"]
