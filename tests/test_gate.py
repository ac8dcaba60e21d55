import pytest

from daofutures_core.access import AccessControlState
from daofutures_core.batches import BatchManager
from daofutures_core.errors import BatchClosed, CooldownActive, NotAuthorizedProvider, SystemPaused
from daofutures_core.gate import SubmissionGate
from daofutures_core.records import RecordStore
from daofutures_core.storage import InMemoryStorage
from daofutures_core.storage.models import Record

OWNER = "0xowner"
PROVIDER = "0xprovider"


@pytest.fixture
def setup(clock):
    storage = InMemoryStorage()
    access = AccessControlState(owner=OWNER, providers={PROVIDER}, cooldown_seconds=30)
    return SubmissionGate(storage, clock), access, BatchManager(storage), RecordStore(storage)


def rec(rid):
    return Record(id=rid, owner=PROVIDER, fields={"power": "FHE-MQ==-ZAMA"})


def test_submit_persists_and_appends(setup):
    gate, access, batches, records = setup
    out = gate.submit(PROVIDER, rec("r1"), access, batches, records)
    assert out.batch_id == 1
    assert records.get("r1").batch_id == 1
    assert batches.submissions(1) == ["r1"]
    assert list(records.list_ids()) == ["r1"]


def test_non_provider_rejected(setup):
    gate, access, batches, records = setup
    with pytest.raises(NotAuthorizedProvider):
        gate.submit("0xstranger", rec("r1"), access, batches, records)
    assert list(records.list_ids()) == []


def test_paused_rejected_before_anything_else(setup):
    gate, access, batches, records = setup
    access.pause(OWNER)
    with pytest.raises(SystemPaused):
        gate.submit("0xstranger", rec("r1"), access, batches, records)


def test_cooldown_spans_batches(setup, clock):
    gate, access, batches, records = setup
    gate.submit(PROVIDER, rec("r1"), access, batches, records)
    batches.open_new_batch(access, OWNER)

    clock.advance(29)
    with pytest.raises(CooldownActive) as exc:
        gate.submit(PROVIDER, rec("r2"), access, batches, records)
    assert exc.value.retry_at == clock.now + 1
    assert exc.value.recoverable

    clock.advance(1)
    assert gate.submit(PROVIDER, rec("r2"), access, batches, records).batch_id == 2


def test_closed_batch_does_not_consume_cooldown(setup):
    gate, access, batches, records = setup
    batches.close_current_batch(access, OWNER)
    with pytest.raises(BatchClosed):
        gate.submit(PROVIDER, rec("r1"), access, batches, records)
    batches.open_new_batch(access, OWNER)
    gate.submit(PROVIDER, rec("r1"), access, batches, records)


def test_authorize_records_last_submission(setup, clock):
    gate, access, _, _ = setup
    gate.authorize(PROVIDER, access)
    assert gate.cooldown.last(PROVIDER) == clock.now
    with pytest.raises(CooldownActive):
        gate.authorize(PROVIDER.upper(), access)
