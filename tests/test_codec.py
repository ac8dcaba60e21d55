import os
import pytest

from daofutures_core.codec import TaggedCodec, SealedCodec, load_codec
from daofutures_core.errors import MalformedCiphertext


def test_tagged_envelope_format():
    assert TaggedCodec().encrypt(500) == "FHE-NTAw-ZAMA"


@pytest.mark.parametrize("value", [0, 1, 500, -42, 10**12, 0.5, 3.14159, -2.75, 1e-9])
def test_tagged_roundtrip(value):
    codec = TaggedCodec()
    out = codec.decrypt(codec.encrypt(value))
    assert out == value
    assert type(out) is type(value)


@pytest.mark.parametrize("bad", [
    "500",
    "FHE-NTAw",
    "NTAw-ZAMA",
    "FHE--ZAMA",
    "FHE-@@@@-ZAMA",
    "FHE-aGVsbG8=-ZAMA",   # base64("hello")
])
def test_tagged_rejects_malformed(bad):
    with pytest.raises(MalformedCiphertext):
        TaggedCodec().decrypt(bad)


def test_encrypt_rejects_non_numbers():
    with pytest.raises(TypeError):
        TaggedCodec().encrypt("10")
    with pytest.raises(TypeError):
        TaggedCodec().encrypt(True)


def test_homomorphic_scale_and_add():
    codec = TaggedCodec()
    scaled = codec.homomorphic_scale(codec.encrypt(10), 10)
    assert codec.decrypt(scaled) == pytest.approx(11.0)
    down = codec.homomorphic_scale(codec.encrypt(200), -25)
    assert codec.decrypt(down) == pytest.approx(150.0)
    assert codec.decrypt(codec.homomorphic_add(codec.encrypt(100), codec.encrypt(200))) == 300


def test_sealed_codec_is_deterministic_and_authenticated():
    codec = SealedCodec(os.urandom(32))
    a = codec.encrypt(123)
    assert a.startswith("SIV-")
    assert a == codec.encrypt(123)
    assert codec.decrypt(a) == 123

    other = SealedCodec(os.urandom(32))
    with pytest.raises(MalformedCiphertext):
        other.decrypt(a)
    with pytest.raises(MalformedCiphertext):
        codec.decrypt(TaggedCodec().encrypt(123))


def test_load_codec():
    assert isinstance(load_codec(), TaggedCodec)
    assert isinstance(load_codec({"codec": "sealed", "codec_key": os.urandom(64)}), SealedCodec)
    with pytest.raises(ValueError):
        load_codec({"codec": "sealed"})
    with pytest.raises(ValueError):
        load_codec({"codec": "paillier"})
