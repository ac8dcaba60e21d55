"""
daofutures_core.codec
---------------------
Opaque ciphertext capability over a numeric domain.

Callers never look inside a ciphertext; they combine them only through the
codec interface below. Every codec must be deterministic: the same value
always encrypts to the same ciphertext, so the aggregation state hash can be
recomputed later and compared bit for bit.

- TaggedCodec: base64 body wrapped in the market's ``FHE-...-ZAMA`` tags
- SealedCodec: deterministic AEAD (AES-SIV) with a shared secret key
"""

from __future__ import annotations
import binascii
from typing import Any, Dict, Optional, Union

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESSIV

from .constants import TAGGED_PREFIX, TAGGED_SUFFIX, SEALED_PREFIX
from .errors import MalformedCiphertext
from .utils import b64e, b64d

Number = Union[int, float]


def _encode_number(value: Number) -> bytes:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise TypeError(f"expected a number, got {type(value).__name__}")
    return (str(value) if isinstance(value, int) else repr(float(value))).encode("ascii")


def _decode_number(raw: bytes) -> Number:
    try:
        text = raw.decode("ascii")
    except UnicodeDecodeError as e:
        raise MalformedCiphertext("ciphertext body is not ascii") from e
    try:
        return int(text)
    except ValueError:
        pass
    try:
        return float(text)
    except ValueError as e:
        raise MalformedCiphertext(f"ciphertext body is not numeric: {text!r}") from e


class CiphertextCodec:
    name: str = "base"

    def encrypt(self, value: Number) -> str:
        raise NotImplementedError

    def decrypt(self, ciphertext: str) -> Number:
        raise NotImplementedError

    def homomorphic_scale(self, ciphertext: str, percent: float) -> str:
        value = self.decrypt(ciphertext)
        return self.encrypt(value * (1 + percent / 100))

    def homomorphic_add(self, a: str, b: str) -> str:
        return self.encrypt(self.decrypt(a) + self.decrypt(b))


class TaggedCodec(CiphertextCodec):
    name = "tagged"

    def encrypt(self, value: Number) -> str:
        return f"{TAGGED_PREFIX}{b64e(_encode_number(value))}{TAGGED_SUFFIX}"

    def decrypt(self, ciphertext: str) -> Number:
        if (
            not isinstance(ciphertext, str)
            or not ciphertext.startswith(TAGGED_PREFIX)
            or not ciphertext.endswith(TAGGED_SUFFIX)
            or len(ciphertext) <= len(TAGGED_PREFIX) + len(TAGGED_SUFFIX)
        ):
            raise MalformedCiphertext("missing FHE envelope")
        body = ciphertext[len(TAGGED_PREFIX):-len(TAGGED_SUFFIX)]
        try:
            raw = b64d(body)
        except (binascii.Error, ValueError) as e:
            raise MalformedCiphertext("ciphertext body is not base64") from e
        return _decode_number(raw)


class SealedCodec(CiphertextCodec):
    """AES-SIV is nonce-free, so equal plaintexts seal to equal ciphertexts."""

    name = "sealed"

    def __init__(self, key: bytes, context: bytes = b"daofutures-v1"):
        self._aead = AESSIV(key)
        self._ad = [context]

    def encrypt(self, value: Number) -> str:
        return SEALED_PREFIX + b64e(self._aead.encrypt(_encode_number(value), self._ad))

    def decrypt(self, ciphertext: str) -> Number:
        if not isinstance(ciphertext, str) or not ciphertext.startswith(SEALED_PREFIX):
            raise MalformedCiphertext("missing SIV envelope")
        try:
            sealed = b64d(ciphertext[len(SEALED_PREFIX):])
            raw = self._aead.decrypt(sealed, self._ad)
        except (binascii.Error, ValueError, InvalidTag) as e:
            raise MalformedCiphertext("sealed ciphertext failed authentication") from e
        return _decode_number(raw)


def load_codec(config: Optional[Dict[str, Any]] = None) -> CiphertextCodec:
    """
    Factory resolver for the ciphertext codec.

        - tagged (default)
        - sealed (requires "codec_key" bytes)
    """
    config = config or {}
    name = config.get("codec") or "tagged"

    if name == "tagged":
        return TaggedCodec()

    if name == "sealed":
        key = config.get("codec_key")
        if not key:
            raise ValueError("sealed codec requires codec_key")
        return SealedCodec(key)

    raise ValueError(f"Unknown codec: {name}")
