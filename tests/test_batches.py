import pytest

from daofutures_core.access import AccessControlState
from daofutures_core.batches import BatchManager
from daofutures_core.errors import AlreadyClosed, BatchClosed, InvalidBatch, NotOwner, SystemPaused
from daofutures_core.storage import InMemoryStorage

OWNER = "0xowner"


@pytest.fixture
def access():
    return AccessControlState(owner=OWNER)


def test_first_batch_is_open():
    batches = BatchManager(InMemoryStorage())
    assert batches.current_batch_id == 1
    assert not batches.is_closed(1)


def test_reinitializing_does_not_reset_state(access):
    storage = InMemoryStorage()
    BatchManager(storage).open_new_batch(access, OWNER)
    assert BatchManager(storage).current_batch_id == 2


def test_close_then_submit_fails_and_new_batch_accepts(access):
    batches = BatchManager(InMemoryStorage())
    assert batches.submit("r1") == 1
    batches.close_current_batch(access, OWNER)
    with pytest.raises(BatchClosed):
        batches.submit("r2")

    assert batches.open_new_batch(access, OWNER) == 2
    assert batches.submit("r2") == 2
    assert batches.submissions(1) == ["r1"]
    assert batches.submissions(2) == ["r2"]


def test_close_twice(access):
    batches = BatchManager(InMemoryStorage())
    batches.close_current_batch(access, OWNER)
    with pytest.raises(AlreadyClosed):
        batches.close_current_batch(access, OWNER)


def test_open_new_batch_leaves_previous_open(access):
    batches = BatchManager(InMemoryStorage())
    batches.open_new_batch(access, OWNER)
    assert not batches.is_closed(1)
    assert not batches.is_closed(2)


def test_submission_log_is_ordered_and_unique():
    batches = BatchManager(InMemoryStorage())
    for rid in ["b", "a", "b", "c"]:
        batches.submit(rid)
    assert batches.submissions(1) == ["b", "a", "c"]


def test_admin_operations_require_owner(access):
    batches = BatchManager(InMemoryStorage())
    with pytest.raises(NotOwner):
        batches.open_new_batch(access, "0xsomeone")
    with pytest.raises(NotOwner):
        batches.close_current_batch(access, "0xsomeone")


def test_admin_operations_refused_while_paused(access):
    batches = BatchManager(InMemoryStorage())
    access.pause(OWNER)
    with pytest.raises(SystemPaused):
        batches.open_new_batch(access, OWNER)
    with pytest.raises(SystemPaused):
        batches.close_current_batch(access, OWNER)


def test_invalid_batch_ids():
    batches = BatchManager(InMemoryStorage())
    for bad in (0, -1, 2):
        with pytest.raises(InvalidBatch):
            batches.submissions(bad)
