"""
Keys and their canonical text form.

A ``Key`` is the chain's representation of a public key, private key or
signature payload: a key family tag plus raw bytes. How the bytes are laid
out depends on the family and on the role:

    - public key: 33-byte compressed point (``wa`` keys carry extra
      WebAuthn metadata after the point)
    - private key: 32-byte scalar
    - signature: 65 bytes, recovery header ‖ r ‖ s (``wa`` adds
      authenticator data and client JSON)

Text form:
    ``<PREFIX><base58(data ‖ checksum)>`` where checksum is the first four
    bytes of RIPEMD-160(data ‖ suffix), suffix being the family name in
    upper case ("K1", "R1", "WA"). Prefixes: ``PUB_``, ``PVT_``, ``SIG_``
    followed by the suffix and an underscore.

Legacy forms still accepted:
    - ``EOS…`` public keys: checksum is RIPEMD-160(data), no suffix.
    - WIF private keys: 0x80 ‖ data ‖ sha256d(0x80 ‖ data)[:4].
"""

from __future__ import annotations

import hashlib
from dataclasses import dataclass
from enum import StrEnum
from typing import Iterable

import base58
from Crypto.Hash import RIPEMD160
from cryptography.hazmat.primitives.asymmetric import ec
from cryptography.hazmat.primitives.serialization import Encoding, PublicFormat

from eosio_api.errors import KeyFormatError

PUBLIC_KEY_DATA_SIZE = 33
PRIVATE_KEY_DATA_SIZE = 32
SIGNATURE_DATA_SIZE = 65

_CHECKSUM_SIZE = 4
_LEGACY_PUBLIC_PREFIX = "EOS"
_WIF_VERSION = 0x80


class KeyType(StrEnum):
    """Key families supported by the chain, in wire-tag order."""

    k1 = "k1"
    r1 = "r1"
    wa = "wa"

    @property
    def suffix(self) -> str:
        return self.value.upper()

    @property
    def wire_index(self) -> int:
        return _WIRE_ORDER.index(self)

    @classmethod
    def from_wire_index(cls, index: int) -> KeyType:
        if not 0 <= index < len(_WIRE_ORDER):
            raise KeyFormatError(f"unknown key type index {index}")
        return _WIRE_ORDER[index]


_WIRE_ORDER = (KeyType.k1, KeyType.r1, KeyType.wa)


@dataclass(frozen=True)
class Key:
    """Family tag plus raw bytes."""

    type: KeyType
    data: bytes


def curve_for(key_type: KeyType) -> ec.EllipticCurve:
    """Curve that verifies keys and signatures of ``key_type``.

    ``wa`` signatures are plain P-256 signatures once the WebAuthn wrapping
    is stripped, so they share the ``r1`` curve.
    """
    if key_type == KeyType.k1:
        return ec.SECP256K1()
    return ec.SECP256R1()


# =========================================================================
# base58 + checksums
# =========================================================================


def _ripemd160(data: bytes) -> bytes:
    return RIPEMD160.new(data).digest()


def _digest_suffix_ripemd160(data: bytes, suffix: str) -> bytes:
    return _ripemd160(data + suffix.encode("ascii"))


def _base58_to_binary(size: int, s: str) -> bytes:
    """Decode base58; ``size == 0`` means variable length."""
    try:
        raw = base58.b58decode(s)
    except ValueError as exc:
        raise KeyFormatError(f"invalid base-58 value: {exc}") from exc
    if not size:
        return raw
    if len(raw) > size:
        raise KeyFormatError("base-58 value is out of range")
    return raw.rjust(size, b"\x00")


def _binary_to_base58(data: bytes) -> str:
    return base58.b58encode(data).decode("ascii")


def _string_to_key(s: str, key_type: KeyType, size: int, suffix: str) -> Key:
    whole = _base58_to_binary(size + _CHECKSUM_SIZE if size else 0, s)
    if len(whole) <= _CHECKSUM_SIZE:
        raise KeyFormatError("key data is too short")
    key = Key(type=key_type, data=whole[:-_CHECKSUM_SIZE])
    digest = _digest_suffix_ripemd160(key.data, suffix)
    if digest[:_CHECKSUM_SIZE] != whole[-_CHECKSUM_SIZE:]:
        raise KeyFormatError("checksum doesn't match")
    return key


def _key_to_string(key: Key, suffix: str, prefix: str) -> str:
    digest = _digest_suffix_ripemd160(key.data, suffix)
    return prefix + _binary_to_base58(key.data + digest[:_CHECKSUM_SIZE])


def _split_prefix(s: str, role: str) -> tuple[KeyType, str] | None:
    for key_type in KeyType:
        prefix = f"{role}_{key_type.suffix}_"
        if s.startswith(prefix):
            return key_type, s[len(prefix):]
    return None


def _fixed_size(key_type: KeyType, size: int) -> int:
    # wa payloads carry variable-length metadata
    return 0 if key_type == KeyType.wa else size


# =========================================================================
# Public keys
# =========================================================================


def string_to_public_key(s: str) -> Key:
    """Parse ``PUB_K1_…``, ``PUB_R1_…``, ``PUB_WA_…`` or legacy ``EOS…``."""
    if not isinstance(s, str):
        raise KeyFormatError("expected string containing public key")

    if s.startswith(_LEGACY_PUBLIC_PREFIX):
        whole = _base58_to_binary(
            PUBLIC_KEY_DATA_SIZE + _CHECKSUM_SIZE, s[len(_LEGACY_PUBLIC_PREFIX):]
        )
        key = Key(type=KeyType.k1, data=whole[:PUBLIC_KEY_DATA_SIZE])
        digest = _ripemd160(key.data)
        if digest[:_CHECKSUM_SIZE] != whole[PUBLIC_KEY_DATA_SIZE:]:
            raise KeyFormatError("checksum doesn't match")
        return key

    split = _split_prefix(s, "PUB")
    if split is None:
        raise KeyFormatError("unrecognized public key format")
    key_type, body = split
    return _string_to_key(
        body, key_type, _fixed_size(key_type, PUBLIC_KEY_DATA_SIZE), key_type.suffix
    )


def public_key_to_legacy_string(key: Key) -> str:
    """Render a k1 public key in the legacy ``EOS…`` form."""
    if key.type == KeyType.k1 and len(key.data) == PUBLIC_KEY_DATA_SIZE:
        return _key_to_string(key, "", _LEGACY_PUBLIC_PREFIX)
    raise KeyFormatError("Key format not supported in legacy conversion")


def public_key_to_string(key: Key) -> str:
    return _key_to_string(key, key.type.suffix, f"PUB_{key.type.suffix}_")


def convert_legacy_public_key(s: str) -> str:
    """Rewrite a legacy ``EOS…`` key as ``PUB_K1_…``; other forms pass through."""
    if s.startswith(_LEGACY_PUBLIC_PREFIX):
        return public_key_to_string(string_to_public_key(s))
    return s


def convert_legacy_public_keys(keys: Iterable[str]) -> list[str]:
    return [convert_legacy_public_key(k) for k in keys]


# =========================================================================
# Private keys
# =========================================================================


def string_to_private_key(s: str) -> Key:
    """Parse ``PVT_K1_…``, ``PVT_R1_…`` or a legacy WIF string."""
    if not isinstance(s, str):
        raise KeyFormatError("expected string containing private key")

    split = _split_prefix(s, "PVT")
    if split is not None:
        key_type, body = split
        if key_type == KeyType.wa:
            raise KeyFormatError("unrecognized private key format")
        return _string_to_key(body, key_type, PRIVATE_KEY_DATA_SIZE, key_type.suffix)

    whole = _base58_to_binary(0, s)
    if len(whole) != 1 + PRIVATE_KEY_DATA_SIZE + _CHECKSUM_SIZE:
        raise KeyFormatError("unrecognized private key format")
    body = whole[: 1 + PRIVATE_KEY_DATA_SIZE]
    digest = hashlib.sha256(hashlib.sha256(body).digest()).digest()
    if digest[:_CHECKSUM_SIZE] != whole[1 + PRIVATE_KEY_DATA_SIZE:]:
        raise KeyFormatError("checksum doesn't match")
    return Key(type=KeyType.k1, data=body[1:])


def private_key_to_legacy_string(key: Key) -> str:
    if key.type != KeyType.k1 or len(key.data) != PRIVATE_KEY_DATA_SIZE:
        raise KeyFormatError("Key format not supported in legacy conversion")
    body = bytes([_WIF_VERSION]) + key.data
    digest = hashlib.sha256(hashlib.sha256(body).digest()).digest()
    return _binary_to_base58(body + digest[:_CHECKSUM_SIZE])


def private_key_to_string(key: Key) -> str:
    if key.type == KeyType.wa:
        raise KeyFormatError("unrecognized private key format")
    return _key_to_string(key, key.type.suffix, f"PVT_{key.type.suffix}_")


# =========================================================================
# Signatures
# =========================================================================


def string_to_signature(s: str) -> Key:
    """Parse ``SIG_K1_…``, ``SIG_R1_…`` or ``SIG_WA_…``."""
    if not isinstance(s, str):
        raise KeyFormatError("expected string containing signature")
    split = _split_prefix(s, "SIG")
    if split is None:
        raise KeyFormatError("unrecognized signature format")
    key_type, body = split
    return _string_to_key(
        body, key_type, _fixed_size(key_type, SIGNATURE_DATA_SIZE), key_type.suffix
    )


def signature_to_string(key: Key) -> str:
    return _key_to_string(key, key.type.suffix, f"SIG_{key.type.suffix}_")


# =========================================================================
# PublicKey
# =========================================================================


class PublicKey:
    """A public key that can be handed to ``cryptography`` for verification."""

    def __init__(self, key: Key) -> None:
        self._key = key

    @classmethod
    def from_string(cls, s: str) -> PublicKey:
        return cls(string_to_public_key(s))

    @classmethod
    def from_ec_public_key(
        cls,
        public_key: ec.EllipticCurvePublicKey,
        key_type: KeyType | None = None,
    ) -> PublicKey:
        """Wrap a ``cryptography`` public key; family defaults from its curve."""
        if key_type is None:
            key_type = KeyType.k1 if isinstance(public_key.curve, ec.SECP256K1) else KeyType.r1
        data = public_key.public_bytes(Encoding.X962, PublicFormat.CompressedPoint)
        return cls(Key(type=key_type, data=data))

    def to_ec_public_key(self) -> ec.EllipticCurvePublicKey:
        point = self._key.data[:PUBLIC_KEY_DATA_SIZE]
        try:
            return ec.EllipticCurvePublicKey.from_encoded_point(
                curve_for(self._key.type), point
            )
        except ValueError as exc:
            raise KeyFormatError(f"invalid public key point: {exc}") from exc

    def to_string(self) -> str:
        return public_key_to_string(self._key)

    def to_legacy_string(self) -> str:
        return public_key_to_legacy_string(self._key)

    def to_binary(self) -> bytes:
        return self._key.data

    def get_type(self) -> KeyType:
        return self._key.type

    @property
    def key(self) -> Key:
        return self._key

    def __str__(self) -> str:
        return self.to_string()

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, PublicKey):
            return NotImplemented
        return self._key == other._key

    def __hash__(self) -> int:
        return hash(self._key)
