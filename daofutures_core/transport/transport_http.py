# daofutures_core/transport/transport_http.py
import requests
from typing import Optional
from daofutures_core.logger import get_logger
from daofutures_core.transport.transport_base import BaseTransport, Headers

log = get_logger("DAOF.Transport.HTTP")


class HTTPAdapter(BaseTransport):
    """
    Posts notification envelopes to ``<base_url>/events/<topic>``.

    Publish-only; a failed post is logged and reported back to the caller
    as an error dict, never raised into the settlement path.
    """

    name = "http"

    def __init__(self, base_url: str, token: Optional[str] = None, timeout: float = 5):
        self.base_url = base_url.rstrip("/")
        self.token = token
        self.timeout = timeout

    def publish(self, topic: str, payload, headers: Optional[Headers] = None):
        url = f"{self.base_url}/events/{topic}"
        req_headers = {"Content-Type": "application/json"}
        if self.token:
            req_headers["Authorization"] = f"Bearer {self.token}"
        req_headers.update(headers or {})

        log.debug(f"[HTTP PUB] -> {url}")
        try:
            res = requests.post(url, data=self.to_bytes(payload), headers=req_headers, timeout=self.timeout)
            if res.ok:
                log.info(f"[HTTP PUB] {topic} {res.status_code}")
                return {"status": res.status_code}
            log.error(f"[HTTP PUB] {topic} {res.status_code}: {res.text}")
            return {"error": res.text, "status": res.status_code}
        except requests.RequestException as e:
            log.exception(f"[HTTP PUB] {topic} exception: {e}")
            return {"error": str(e)}

    def subscribe(self, topic: str, handler):
        raise NotImplementedError("HTTP transport is publish-only")
