import json
import pytest

from daofutures_core.errors import StorageConflict
from daofutures_core.storage import InMemoryStorage, SQLiteStorage, load_storage_provider
from daofutures_core.storage import cas


@pytest.fixture(params=["memory", "sqlite"])
def storage(request, tmp_path):
    if request.param == "memory":
        return InMemoryStorage()
    return SQLiteStorage(str(tmp_path / "state.db"))


def test_get_set_and_not_found(storage):
    assert storage.get_data("contract_missing") == b""
    storage.set_data("contract_x", b'{"a":1}')
    assert storage.get_data("contract_x") == b'{"a":1}'
    storage.set_data("contract_x", b'{"a":2}')
    assert storage.get_data("contract_x") == b'{"a":2}'


def test_compare_and_set(storage):
    assert storage.compare_and_set("k", b"", b"1")
    assert not storage.compare_and_set("k", b"", b"2")
    assert not storage.compare_and_set("k", b"9", b"2")
    assert storage.compare_and_set("k", b"1", b"2")
    assert storage.get_data("k") == b"2"


def test_audit_events(storage):
    storage.log_event("aggregate.requested", {"requestId": "r1"})
    storage.log_event("aggregate.completed", {"requestId": "r1"})
    assert storage.list_events("aggregate.completed") == [("aggregate.completed", {"requestId": "r1"})]
    assert len(storage.list_events()) == 2


def test_sqlite_persists_across_connections(tmp_path):
    path = str(tmp_path / "db" / "state.db")
    s = SQLiteStorage(path)
    s.set_data("contract_keys", b'["a"]')
    s.close()
    assert SQLiteStorage(path).get_data("contract_keys") == b'["a"]'


def test_load_storage_provider(tmp_path, monkeypatch):
    assert isinstance(load_storage_provider({"provider": "memory"}), InMemoryStorage)
    monkeypatch.setenv("DAOFUTURES_DB_PATH", str(tmp_path / "env.db"))
    assert isinstance(load_storage_provider({"provider": "sqlite"}), SQLiteStorage)
    with pytest.raises(ValueError):
        load_storage_provider({"provider": "redis"})


class InterleavedWriter(InMemoryStorage):
    """Lets another writer append to ``key`` right before our first swap."""

    def __init__(self, key, foreign_item):
        super().__init__()
        self.key = key
        self.foreign_item = foreign_item
        self.injected = False

    def compare_and_set(self, key, expected, new):
        if key == self.key and not self.injected:
            self.injected = True
            current = json.loads(self.get_data(key) or b"[]")
            self.set_data(key, json.dumps(current + [self.foreign_item]).encode("utf-8"))
        return super().compare_and_set(key, expected, new)


def test_update_json_retries_instead_of_losing_writes():
    s = InterleavedWriter("contract_keys", "theirs")
    cas.update_json(s, "contract_keys", lambda ids: ids + ["ours"], default=[])
    assert json.loads(s.get_data("contract_keys")) == ["theirs", "ours"]


def test_update_json_gives_up_after_max_retries():
    class AlwaysConflicts(InMemoryStorage):
        def compare_and_set(self, key, expected, new):
            return False

    with pytest.raises(StorageConflict):
        cas.update_json(AlwaysConflicts(), "k", lambda v: v + [1], default=[], max_retries=3)


def test_update_json_none_leaves_storage_untouched():
    s = InMemoryStorage()
    assert cas.update_json(s, "k", lambda v: None, default=[]) == []
    assert s.get_data("k") == b""
