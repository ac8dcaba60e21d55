from __future__ import annotations
from typing import Optional, Dict, Any, List, Tuple
import json, sqlite3, os, threading
from daofutures_core.storage.provider import StorageProvider
from daofutures_core.utils import now_ts


class SQLiteStorage(StorageProvider):
    def __init__(self, path="db/daofutures.db"):
        # If no directory, default to current working directory
        dir_path = os.path.dirname(path) or "."
        os.makedirs(dir_path, exist_ok=True)
        self.db = sqlite3.connect(path, check_same_thread=False)
        self._lock = threading.Lock()

        self._init()

    def _init(self) -> None:
        c = self.db.cursor()

        c.execute("""CREATE TABLE IF NOT EXISTS kv(
            key TEXT PRIMARY KEY,
            value BLOB NOT NULL
        )""")
        c.execute("""CREATE TABLE IF NOT EXISTS audit(
            ts TEXT,
            event_type TEXT,
            payload TEXT
        )""")

        self.db.commit()

    def get_data(self, key: str) -> bytes:
        with self._lock:
            cur = self.db.execute("SELECT value FROM kv WHERE key=?", (key,))
            row = cur.fetchone()
        if not row:
            return b""
        return bytes(row[0])

    def set_data(self, key: str, value: bytes) -> None:
        with self._lock:
            self.db.execute(
                "INSERT INTO kv(key,value) VALUES(?,?) "
                "ON CONFLICT(key) DO UPDATE SET value=excluded.value",
                (key, sqlite3.Binary(value)),
            )
            self.db.commit()

    def compare_and_set(self, key: str, expected: bytes, new: bytes) -> bool:
        with self._lock:
            if expected == b"":
                cur = self.db.execute(
                    "INSERT OR IGNORE INTO kv(key,value) VALUES(?,?)",
                    (key, sqlite3.Binary(new)),
                )
                if cur.rowcount != 1:
                    # A stored empty value also counts as absent
                    cur = self.db.execute(
                        "UPDATE kv SET value=? WHERE key=? AND value=?",
                        (sqlite3.Binary(new), key, sqlite3.Binary(b"")),
                    )
            else:
                cur = self.db.execute(
                    "UPDATE kv SET value=? WHERE key=? AND value=?",
                    (sqlite3.Binary(new), key, sqlite3.Binary(expected)),
                )
            swapped = cur.rowcount == 1
            self.db.commit()
        return swapped

    def log_event(self, event_type: str, payload: Dict[str, Any]) -> None:
        with self._lock:
            self.db.execute("INSERT INTO audit(ts,event_type,payload) VALUES(?,?,?)",
                            (now_ts(), event_type, json.dumps(payload, separators=(",", ":"), sort_keys=True)))
            self.db.commit()

    def list_events(self, event_type: Optional[str] = None) -> List[Tuple[str, Dict[str, Any]]]:
        with self._lock:
            if event_type is None:
                cur = self.db.execute("SELECT event_type, payload FROM audit ORDER BY rowid")
            else:
                cur = self.db.execute(
                    "SELECT event_type, payload FROM audit WHERE event_type=? ORDER BY rowid",
                    (event_type,),
                )
            rows = cur.fetchall()
        return [(t, json.loads(p)) for t, p in rows]

    def close(self):
        self.db.close()
