"""
daofutures_core.aggregation
---------------------------
Aggregation / decryption request protocol.

request_aggregate() snapshots the encrypted aggregate of a batch (sum and
count of the submitted power ciphertexts), fingerprints it, and hands the
ciphertexts to the decryption oracle. on_decryption_result() accepts the
oracle's cleartexts only if

- the request is known, still open and not past its TTL,
- the batch state recomputed *now* hashes to the fingerprint taken at
  request time (state-swap defence), and
- the oracle's Ed25519 proof over (request_id, cleartexts) verifies
  (result-forgery defence).

Both checks run independently on every callback. A state mismatch aborts
the request for good; callers re-request, which mints a new request id.
A bad proof leaves the request open so a forged delivery cannot cancel
the genuine one.
"""

from __future__ import annotations
import json
import time
from dataclasses import dataclass, asdict, field
from typing import Any, Callable, Dict, Iterator, List, Optional

from .access import AccessControlState
from .batches import BatchManager
from .codec import CiphertextCodec
from .constants import (
    DEFAULT_REQUEST_TTL, FIELD_POWER, REQUEST_KEY_PREFIX, RESULT_KEY_PREFIX,
    SUBJECT_COMPLETED, SUBJECT_REJECTED, SUBJECT_REQUESTED,
)
from .crypto import compute_pubkey_fingerprint, sign_envelope, verify_decryption_proof
from .envelope import Envelope
from .errors import (
    IntegrityError, InvalidBatch, MalformedCiphertext, ProofInvalid, ReplayRejected,
    RequestExpired, StateMismatch, UnknownRequest,
)
from .gate import Cooldown
from .logger import get_logger
from .oracle import DecryptionOracle
from .records import RecordStore
from .storage import cas
from .storage.provider import StorageProvider
from .transport.transport_base import BaseTransport
from .utils import canonical_json, normalize_address, sha256

log = get_logger("DAOF.Aggregation")

CALLBACK_SELECTOR = "onDecryptionResult"
REQUEST_INDEX = f"{REQUEST_KEY_PREFIX}index"

REQUESTED = "requested"
COMPLETED = "completed"
ABORTED = "aborted"
EXPIRED = "expired"


def request_key(request_id: str) -> str:
    return f"{REQUEST_KEY_PREFIX}{request_id}"


def result_key(batch_id: int) -> str:
    return f"{RESULT_KEY_PREFIX}{batch_id}"


@dataclass
class AggregateSnapshot:
    batch_id: int
    inputs: List[List[str]]      # [record_id, power ciphertext] in batch-log order
    ciphertexts: List[str]       # [sum, count], the order cleartexts come back in
    state_hash: str


@dataclass
class DecryptionRequest:
    request_id: str
    batch_id: int
    state_hash: str
    requester: str
    requested_at: float
    processed: bool = False
    status: str = REQUESTED
    reason: Optional[str] = None

    def to_bytes(self) -> bytes:
        return json.dumps(asdict(self), sort_keys=True).encode("utf-8")

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "DecryptionRequest":
        return cls(**data)


@dataclass
class AggregateResult:
    batch_id: int
    request_id: str
    total: float
    count: int
    average: float
    state_hash: str
    published_at: float = field(default_factory=time.time)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


class AggregationProtocol:
    def __init__(
        self,
        storage: StorageProvider,
        records: RecordStore,
        batches: BatchManager,
        codec: CiphertextCodec,
        oracle: DecryptionOracle,
        oracle_public_key: bytes,
        context_id: str,
        clock: Callable[[], float] = time.time,
        transport: Optional[BaseTransport] = None,
        request_ttl: Optional[int] = DEFAULT_REQUEST_TTL,
        signing_key: Optional[bytes] = None,
    ):
        self.storage = storage
        self.records = records
        self.batches = batches
        self.codec = codec
        self.oracle = oracle
        self.oracle_public_key = oracle_public_key
        self.context_id = context_id
        self.clock = clock
        self.transport = transport
        self.request_ttl = request_ttl or None
        self.signing_key = signing_key
        self.cooldown = Cooldown(storage, "aggregate", clock)

    # ------------------------------------------------------------------
    # Deterministic snapshot
    # ------------------------------------------------------------------
    def snapshot(self, batch_id: int) -> AggregateSnapshot:
        """Pure function of durable state: same storage, same bytes."""
        inputs: List[List[str]] = []
        total = self.codec.encrypt(0)
        for record_id in self.batches.submissions(batch_id):
            record = self.records.get(record_id)
            power = record.fields.get(FIELD_POWER)
            if power is None:
                raise MalformedCiphertext(f"record {record_id} has no {FIELD_POWER} ciphertext")
            inputs.append([record_id, power])
            total = self.codec.homomorphic_add(total, power)

        ciphertexts = [total, self.codec.encrypt(len(inputs))]
        state_hash = sha256(canonical_json({
            "context": self.context_id,
            "batchId": batch_id,
            "inputs": inputs,
            "ciphertexts": ciphertexts,
        }))
        return AggregateSnapshot(batch_id, inputs, ciphertexts, state_hash)

    # ------------------------------------------------------------------
    # Request
    # ------------------------------------------------------------------
    def request_aggregate(self, batch_id: int, caller: str, access: AccessControlState) -> DecryptionRequest:
        access.require_not_paused()
        if not 1 <= batch_id <= self.batches.current_batch_id:
            raise InvalidBatch(f"batch {batch_id} does not exist")
        self.cooldown.check(caller, access.cooldown_seconds)

        snap = self.snapshot(batch_id)
        request_id = self.oracle.request_decryption(snap.ciphertexts, CALLBACK_SELECTOR)
        req = DecryptionRequest(
            request_id=request_id,
            batch_id=batch_id,
            state_hash=snap.state_hash,
            requester=normalize_address(caller),
            requested_at=self.clock(),
        )
        if not self.storage.compare_and_set(request_key(request_id), b"", req.to_bytes()):
            raise IntegrityError(f"oracle reused request id {request_id}")
        cas.update_json(
            self.storage, REQUEST_INDEX,
            lambda ids: None if request_id in ids else ids + [request_id],
            default=[],
        )
        self.cooldown.mark(caller)

        payload = {"requestId": request_id, "batchId": batch_id, "stateHash": snap.state_hash}
        self.storage.log_event(SUBJECT_REQUESTED, payload)
        self._publish(SUBJECT_REQUESTED, request_id, payload)
        log.info(f"[AGG REQUEST] {request_id} batch={batch_id} n={len(snap.inputs)} hash={snap.state_hash[:12]}")
        return req

    # ------------------------------------------------------------------
    # Callback
    # ------------------------------------------------------------------
    def on_decryption_result(
        self, request_id: str, cleartexts: bytes, proof: bytes, access: AccessControlState,
    ) -> AggregateResult:
        access.require_not_paused()
        req = self.get_request(request_id)

        if req.processed:
            raise ReplayRejected(f"request {request_id} already processed")
        if req.status == ABORTED:
            raise ReplayRejected(f"request {request_id} was aborted: {req.reason}")
        if req.status == EXPIRED or self._is_stale(req):
            self._transition(request_id, EXPIRED, "ttl elapsed")
            raise RequestExpired(f"request {request_id} expired")

        current = self.snapshot(req.batch_id)
        if current.state_hash != req.state_hash:
            self._transition(request_id, ABORTED, "state mismatch")
            self._rejected(req, "state_mismatch")
            raise StateMismatch(request_id, req.state_hash, current.state_hash)

        if not verify_decryption_proof(self.oracle_public_key, request_id, cleartexts, proof):
            self._rejected(req, "proof_invalid")
            raise ProofInvalid(f"proof for {request_id} does not verify against oracle "
                               f"{compute_pubkey_fingerprint(self.oracle_public_key)}")

        total, count = self._decode(request_id, cleartexts)
        result = AggregateResult(
            batch_id=req.batch_id,
            request_id=request_id,
            total=total,
            count=count,
            average=total / count if count else 0,
            state_hash=req.state_hash,
            published_at=self.clock(),
        )

        def _complete(data: Dict[str, Any]):
            if data.get("processed"):
                raise ReplayRejected(f"request {request_id} already processed")
            data["processed"] = True
            data["status"] = COMPLETED
            return data

        cas.update_json(self.storage, request_key(request_id), _complete, default={})
        self.storage.set_data(result_key(req.batch_id), canonical_json(result.to_dict()))

        payload = result.to_dict()
        self.storage.log_event(SUBJECT_COMPLETED, payload)
        self._publish(SUBJECT_COMPLETED, request_id, payload)
        log.info(f"[AGG COMPLETE] {request_id} batch={req.batch_id} total={total} count={count} avg={result.average}")
        return result

    # ------------------------------------------------------------------
    # Queries / housekeeping
    # ------------------------------------------------------------------
    def get_request(self, request_id: str) -> DecryptionRequest:
        raw = self.storage.get_data(request_key(request_id))
        if not raw:
            raise UnknownRequest(f"no decryption context for {request_id}")
        return DecryptionRequest.from_dict(json.loads(raw.decode("utf-8")))

    def get_result(self, batch_id: int) -> Optional[AggregateResult]:
        raw = self.storage.get_data(result_key(batch_id))
        if not raw:
            return None
        return AggregateResult(**json.loads(raw.decode("utf-8")))

    def pending_requests(self) -> Iterator[DecryptionRequest]:
        raw = self.storage.get_data(REQUEST_INDEX)
        for request_id in json.loads(raw.decode("utf-8")) if raw else []:
            req = self.get_request(request_id)
            if req.status == REQUESTED:
                yield req

    def expire_stale_requests(self) -> List[str]:
        """Move requests past their TTL to ``expired``; nothing is retried."""
        expired = []
        for req in list(self.pending_requests()):
            if self._is_stale(req):
                self._transition(req.request_id, EXPIRED, "ttl elapsed")
                expired.append(req.request_id)
        if expired:
            log.warning(f"[AGG EXPIRE] {len(expired)} request(s) expired")
        return expired

    # ------------------------------------------------------------------
    def _is_stale(self, req: DecryptionRequest) -> bool:
        return bool(self.request_ttl) and self.clock() > req.requested_at + self.request_ttl

    def _transition(self, request_id: str, status: str, reason: str) -> None:
        """One-way move out of ``requested``; later calls are no-ops."""
        moved = []

        def _apply(data: Dict[str, Any]):
            moved.clear()
            if data.get("status") != REQUESTED:
                return None
            moved.append(True)
            return dict(data, status=status, reason=reason)

        cas.update_json(self.storage, request_key(request_id), _apply, default={})
        if moved:
            self.storage.log_event(f"aggregate.{status}", {"requestId": request_id, "reason": reason})

    def _decode(self, request_id: str, cleartexts: bytes):
        try:
            values = json.loads(cleartexts.decode("utf-8"))
            total, count = values
        except (UnicodeDecodeError, ValueError, TypeError) as e:
            raise MalformedCiphertext(f"cleartexts for {request_id} do not decode") from e
        if isinstance(count, bool) or not isinstance(count, (int, float)) or not isinstance(total, (int, float)):
            raise MalformedCiphertext(f"cleartexts for {request_id} are not numeric")
        return total, int(count)

    def _rejected(self, req: DecryptionRequest, reason: str) -> None:
        payload = {"requestId": req.request_id, "batchId": req.batch_id, "reason": reason}
        log.warning(f"[AGG REJECT] {req.request_id} reason={reason}")
        self.storage.log_event(SUBJECT_REJECTED, payload)
        self._publish(SUBJECT_REJECTED, req.request_id, payload)

    def _publish(self, subject: str, request_id: str, payload: Dict[str, Any]) -> None:
        if self.transport is None:
            return
        env = Envelope(producer=self.context_id, subject=subject, corr_id=request_id, payload=payload)
        if self.signing_key:
            env = sign_envelope(env, self.signing_key, f"{self.context_id}-ed25519")
        self.transport.publish(subject, env.to_dict())
