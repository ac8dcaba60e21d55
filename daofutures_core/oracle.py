"""
daofutures_core.oracle
----------------------
Decryption oracle boundary.

Outbound: ``request_decryption(ciphertexts, callback_selector) -> request_id``.
Inbound: the oracle later delivers ``(request_id, cleartexts, proof)`` to the
callback registered under ``callback_selector``. Cleartexts are canonical
JSON bytes of the decrypted values, in request order; the proof is an
Ed25519 signature over ``(request_id, cleartexts)``.

- LocalOracle: in-process oracle holding the codec and a signing key
- HTTPOracle: client for a remote decryption gateway
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Tuple

import requests

from .codec import CiphertextCodec
from .crypto import (
    compute_pubkey_fingerprint, ed25519_generate, ed25519_public_key, sign_decryption_proof,
)
from .errors import OracleUnavailable, UnknownRequest
from .logger import get_logger
from .utils import canonical_json, new_id

log = get_logger("DAOF.Oracle")

Callback = Callable[[str, bytes, bytes], Any]


@dataclass
class DecryptionResponse:
    request_id: str
    cleartexts: bytes
    proof: bytes


class DecryptionOracle:
    name: str = "base"

    def request_decryption(self, ciphertexts: List[str], callback_selector: str) -> str:
        raise NotImplementedError


class LocalOracle(DecryptionOracle):
    """
    Queues requests until fulfill() is called, which makes delivery order
    and timing fully controllable by the caller.
    """

    name = "local"

    def __init__(self, codec: CiphertextCodec, private_key: Optional[bytes] = None):
        self.codec = codec
        if private_key is None:
            private_key, _ = ed25519_generate()
        self._private_key = private_key
        self.public_key = ed25519_public_key(private_key)
        self.pending: Dict[str, Tuple[List[str], str]] = {}
        self.callbacks: Dict[str, Callback] = {}
        log.info(f"[ORACLE] local authority fpr={compute_pubkey_fingerprint(self.public_key)}")

    def register_callback(self, selector: str, callback: Callback) -> None:
        self.callbacks[selector] = callback

    def request_decryption(self, ciphertexts: List[str], callback_selector: str) -> str:
        request_id = new_id()
        self.pending[request_id] = (list(ciphertexts), callback_selector)
        log.info(f"[ORACLE] queued {request_id} n={len(ciphertexts)}")
        return request_id

    def respond(self, request_id: str) -> DecryptionResponse:
        """Decrypt and sign a queued request without delivering it."""
        try:
            ciphertexts, _ = self.pending.pop(request_id)
        except KeyError:
            raise UnknownRequest(request_id) from None
        cleartexts = canonical_json([self.codec.decrypt(ct) for ct in ciphertexts])
        proof = sign_decryption_proof(self._private_key, request_id, cleartexts)
        return DecryptionResponse(request_id, cleartexts, proof)

    def fulfill(self, request_id: str) -> Any:
        """Decrypt, sign and deliver to the registered callback."""
        selector = self.pending.get(request_id, (None, None))[1]
        response = self.respond(request_id)
        callback = self.callbacks.get(selector)
        if callback is None:
            log.warning(f"[ORACLE] no callback for selector={selector}; returning response")
            return response
        return callback(response.request_id, response.cleartexts, response.proof)

    def fulfill_all(self) -> List[Any]:
        return [self.fulfill(request_id) for request_id in list(self.pending)]


class HTTPOracle(DecryptionOracle):
    """
    POSTs ``{"ciphertexts": [...], "callback": selector}`` to ``<base_url>/decrypt``
    and expects ``{"requestId": "..."}`` back. The gateway calls back on its own
    schedule; delivery into the protocol is the host application's job.
    """

    name = "http"

    def __init__(self, base_url: str, token: Optional[str] = None, timeout: float = 10):
        self.base_url = base_url.rstrip("/")
        self.token = token
        self.timeout = timeout

    def request_decryption(self, ciphertexts: List[str], callback_selector: str) -> str:
        url = f"{self.base_url}/decrypt"
        headers = {"Content-Type": "application/json"}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"

        log.debug(f"[HTTP ORACLE] -> {url} n={len(ciphertexts)}")
        try:
            res = requests.post(
                url,
                json={"ciphertexts": list(ciphertexts), "callback": callback_selector},
                headers=headers,
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            log.error(f"[HTTP ORACLE] request failed: {e}")
            raise OracleUnavailable(str(e)) from e

        if not res.ok:
            log.error(f"[HTTP ORACLE] {res.status_code}: {res.text}")
            raise OracleUnavailable(f"gateway returned {res.status_code}")

        try:
            body = res.json()
        except ValueError as e:
            log.error(f"[HTTP ORACLE] reply is not JSON: {e}")
            raise OracleUnavailable("gateway reply is not JSON") from e
        if not isinstance(body, dict):
            raise OracleUnavailable("gateway reply is not a JSON object")

        request_id = body.get("requestId")
        if not request_id:
            raise OracleUnavailable("gateway reply carried no requestId")
        log.info(f"[HTTP ORACLE] requested {request_id}")
        return str(request_id)
