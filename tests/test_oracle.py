import pytest
import requests

from daofutures_core.codec import TaggedCodec
from daofutures_core.crypto import verify_decryption_proof
from daofutures_core.errors import OracleUnavailable, UnknownRequest
from daofutures_core.oracle import DecryptionResponse, HTTPOracle, LocalOracle


class FakeResponse:
    def __init__(self, status_code, body=None, text=""):
        self.status_code = status_code
        self.ok = 200 <= status_code < 300
        self._body = body or {}
        self.text = text

    def json(self):
        if isinstance(self._body, Exception):
            raise self._body
        return self._body


def test_local_oracle_decrypts_in_order_and_signs():
    codec = TaggedCodec()
    oracle = LocalOracle(codec)
    rid = oracle.request_decryption([codec.encrypt(300), codec.encrypt(2)], "onDecryptionResult")

    resp = oracle.respond(rid)
    assert resp.cleartexts == b"[300,2]"
    assert verify_decryption_proof(oracle.public_key, rid, resp.cleartexts, resp.proof)
    assert not verify_decryption_proof(oracle.public_key, "other", resp.cleartexts, resp.proof)
    with pytest.raises(UnknownRequest):
        oracle.respond(rid)


def test_local_oracle_delivers_to_registered_callback():
    codec = TaggedCodec()
    oracle = LocalOracle(codec)
    seen = []
    oracle.register_callback("cb", lambda rid, clear, proof: seen.append((rid, clear)) or "done")
    rid = oracle.request_decryption([codec.encrypt(1)], "cb")
    unrouted = oracle.request_decryption([codec.encrypt(2)], "nobody")

    results = oracle.fulfill_all()
    assert results[0] == "done"
    assert isinstance(results[1], DecryptionResponse)
    assert results[1].request_id == unrouted
    assert seen == [(rid, b"[1]")]
    assert oracle.pending == {}


def test_http_oracle_posts_ciphertexts(monkeypatch):
    calls = {}

    def fake_post(url, json=None, headers=None, timeout=None):
        calls.update(url=url, json=json, headers=headers)
        return FakeResponse(200, {"requestId": "req-7"})

    monkeypatch.setattr(requests, "post", fake_post)
    oracle = HTTPOracle("http://gateway.local/", token="t0k")
    assert oracle.request_decryption(["FHE-MQ==-ZAMA"], "onDecryptionResult") == "req-7"
    assert calls["url"] == "http://gateway.local/decrypt"
    assert calls["json"] == {"ciphertexts": ["FHE-MQ==-ZAMA"], "callback": "onDecryptionResult"}
    assert calls["headers"]["Authorization"] == "Bearer t0k"


@pytest.mark.parametrize("reply", [
    FakeResponse(503, text="down"),
    FakeResponse(200, {}),
    FakeResponse(200, requests.exceptions.JSONDecodeError("Expecting value", "<html>", 0)),
    FakeResponse(200, ["req-7"]),
])
def test_http_oracle_failures(monkeypatch, reply):
    monkeypatch.setattr(requests, "post", lambda *a, **kw: reply)
    with pytest.raises(OracleUnavailable):
        HTTPOracle("http://gateway.local").request_decryption(["x"], "cb")


def test_http_oracle_connection_error(monkeypatch):
    def boom(*a, **kw):
        raise requests.ConnectionError("refused")

    monkeypatch.setattr(requests, "post", boom)
    with pytest.raises(OracleUnavailable):
        HTTPOracle("http://gateway.local").request_decryption(["x"], "cb")
