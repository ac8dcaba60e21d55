"""
daofutures_core.market
----------------------
FuturesMarket wires the components into the operations the dashboard
drives: create a futures contract from a provider's power/price snapshot,
settle or expire it, rescale its encrypted price, and settle batches through
the decryption oracle.
"""

from __future__ import annotations
import time
from typing import Callable, Dict, List, Optional, Union

from .access import AccessControlState
from .aggregation import AggregationProtocol, AggregateResult, CALLBACK_SELECTOR, DecryptionRequest
from .batches import BatchManager
from .challenge import reveal
from .codec import CiphertextCodec, load_codec
from .config import MarketConfig
from .constants import FIELD_POWER, FIELD_PRICE, FIELD_VOLUME
from .errors import InvalidTransition, NotOwner
from .gate import SubmissionGate
from .logger import get_logger
from .oracle import DecryptionOracle, HTTPOracle, LocalOracle
from .records import RecordStore
from .storage import load_storage_provider
from .storage.models import Record, RecordStatus
from .storage.provider import StorageProvider
from .transport import transport_factory
from .transport.transport_base import BaseTransport
from .utils import new_record_id, normalize_address

log = get_logger("DAOF.Market")


class FuturesMarket:
    def __init__(
        self,
        owner: str,
        config: Optional[MarketConfig] = None,
        storage: Optional[StorageProvider] = None,
        codec: Optional[CiphertextCodec] = None,
        oracle: Optional[DecryptionOracle] = None,
        oracle_public_key: Optional[bytes] = None,
        transport: Optional[BaseTransport] = None,
        clock: Callable[[], float] = time.time,
    ):
        self.config = config or MarketConfig.from_env()
        self.clock = clock
        self.storage = storage or load_storage_provider(self.config.storage_config())
        self.codec = codec or load_codec(self.config.codec_config())
        self.access = AccessControlState(owner=owner, cooldown_seconds=self.config.cooldown_seconds)
        self.records = RecordStore(self.storage)
        self.batches = BatchManager(self.storage)
        self.gate = SubmissionGate(self.storage, clock)
        self.transport = transport or transport_factory(self.config.transport)

        if oracle is None:
            if self.config.oracle_url:
                oracle = HTTPOracle(self.config.oracle_url, token=self.config.oracle_token)
            else:
                oracle = LocalOracle(self.codec)
        if oracle_public_key is None:
            oracle_public_key = getattr(oracle, "public_key", None) or self.config.oracle_public_key
        if oracle_public_key is None:
            raise ValueError("oracle_public_key is required for a remote oracle")
        self.oracle = oracle

        self.aggregation = AggregationProtocol(
            storage=self.storage,
            records=self.records,
            batches=self.batches,
            codec=self.codec,
            oracle=oracle,
            oracle_public_key=oracle_public_key,
            context_id=self.config.context_id,
            clock=clock,
            transport=self.transport,
            request_ttl=self.config.request_ttl,
        )
        if isinstance(oracle, LocalOracle):
            oracle.register_callback(CALLBACK_SELECTOR, self.on_decryption_result)

    # ------------------------------------------------------------------
    # Contracts
    # ------------------------------------------------------------------
    def is_available(self) -> bool:
        return not self.access.paused

    def create_contract(self, submitter: str, dao_name: str, power: Union[int, float], price: Union[int, float]) -> Record:
        if not dao_name or not dao_name.strip():
            raise ValueError("dao_name is required")
        now = self.clock()
        record = Record(
            id=new_record_id(now),
            owner=normalize_address(submitter),
            dao_name=dao_name.strip(),
            created_at=int(now),
            status=RecordStatus.ACTIVE,
            fields={
                FIELD_POWER: self.codec.encrypt(power),
                FIELD_PRICE: self.codec.encrypt(price),
                FIELD_VOLUME: self.codec.encrypt(0),
            },
        )
        self.gate.submit(submitter, record, self.access, self.batches, self.records)
        log.info(f"[CONTRACT] created {record.id} dao={record.dao_name}")
        return record

    def get_contract(self, record_id: str) -> Record:
        return self.records.get(record_id)

    def list_contracts(self) -> List[Record]:
        return list(self.records.list_records())

    def stats(self) -> Dict[str, int]:
        return self.records.stats()

    def settle(self, record_id: str, caller: str) -> Record:
        """Owner of the contract moves it from active to settled."""
        self.access.require_not_paused()
        record = self.records.get(record_id)
        if normalize_address(caller) != normalize_address(record.owner):
            raise NotOwner(f"{caller} does not own contract {record_id}")
        return self._transition(record, RecordStatus.SETTLED)

    def expire(self, record_id: str, caller: str) -> Record:
        self.access.require_owner(caller)
        self.access.require_not_paused()
        return self._transition(self.records.get(record_id), RecordStatus.EXPIRED)

    def apply_price_change(self, record_id: str, percent: float, caller: str) -> Record:
        self.access.require_not_paused()
        record = self.records.get(record_id)
        if not (self.access.is_owner(caller) or normalize_address(caller) == normalize_address(record.owner)):
            raise NotOwner(f"{caller} may not reprice contract {record_id}")
        if record.status != RecordStatus.ACTIVE:
            raise InvalidTransition(f"contract {record_id} is {record.status.value}")
        record.fields[FIELD_PRICE] = self.codec.homomorphic_scale(record.fields[FIELD_PRICE], percent)
        self.records.put(record)
        log.info(f"[CONTRACT] repriced {record_id} by {percent}%")
        return record

    def reveal(self, record_id: str, field_name: str, challenge: str, signature: bytes, signer_public_key: bytes):
        record = self.records.get(record_id)
        return reveal(self.codec, record.fields[field_name], challenge, signature, signer_public_key)

    def _transition(self, record: Record, status: RecordStatus) -> Record:
        if record.status != RecordStatus.ACTIVE:
            raise InvalidTransition(f"contract {record.id} is {record.status.value}, not active")
        record.status = status
        self.records.put(record)
        log.info(f"[CONTRACT] {record.id} -> {status.value}")
        return record

    # ------------------------------------------------------------------
    # Administration
    # ------------------------------------------------------------------
    def transfer_ownership(self, caller: str, new_owner: str) -> None:
        self.access.transfer_ownership(caller, new_owner)

    def add_provider(self, caller: str, provider: str) -> None:
        self.access.add_provider(caller, provider)

    def remove_provider(self, caller: str, provider: str) -> None:
        self.access.remove_provider(caller, provider)

    def pause(self, caller: str) -> None:
        self.access.pause(caller)

    def unpause(self, caller: str) -> None:
        self.access.unpause(caller)

    def set_cooldown(self, caller: str, seconds: int) -> None:
        self.access.set_cooldown(caller, seconds)

    # ------------------------------------------------------------------
    # Batches and settlement
    # ------------------------------------------------------------------
    def open_new_batch(self, caller: str) -> int:
        return self.batches.open_new_batch(self.access, caller)

    def close_current_batch(self, caller: str) -> int:
        return self.batches.close_current_batch(self.access, caller)

    def request_aggregate(self, batch_id: int, caller: str) -> DecryptionRequest:
        return self.aggregation.request_aggregate(batch_id, caller, self.access)

    def on_decryption_result(self, request_id: str, cleartexts: bytes, proof: bytes) -> AggregateResult:
        return self.aggregation.on_decryption_result(request_id, cleartexts, proof, self.access)

    def aggregate_result(self, batch_id: int) -> Optional[AggregateResult]:
        return self.aggregation.get_result(batch_id)
