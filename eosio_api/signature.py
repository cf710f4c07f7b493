"""
Signature format bridge.

The chain stores a signature as 65 bytes::

    header (1) ‖ r (32, big-endian) ‖ s (32, big-endian)

where the header folds in the recovery parameter, the two-bit value that
picks which of up to four candidate public keys the signature recovers to.
Generic curve libraries instead speak ``(r, s, recovery_param)``.

How the header is built depends on the key family and is kept in a single
table, ``RECOVERY_CODECS``, one ``(encode, decode)`` pair per family:

    k1      header = rp + 27, plus 4 when rp <= 3 (compressed-key flag),
            so rp in 0..3 gives 31..34
    r1, wa  header = rp

Decoding always masks to the two low bits, so ``to_elliptic()`` returns a
recovery parameter in 0..3 whatever the header carried.

Verification goes through ``cryptography``: secp256k1 for k1, P-256 for r1
and wa. WebAuthn attestation metadata is not checked here.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable

from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.asymmetric import ec
from cryptography.hazmat.primitives.asymmetric.utils import (
    Prehashed,
    decode_dss_signature,
    encode_dss_signature,
)

from eosio_api.errors import KeyFormatError
from eosio_api.keys import (
    Key,
    KeyType,
    PublicKey,
    curve_for,
    signature_to_string,
    string_to_signature,
)

_COMPONENT_SIZE = 32
_DIGEST_SIZE = 32
_K1_HEADER_OFFSET = 27
_K1_COMPRESSED_FLAG = 4


# =========================================================================
# Recovery header table
# =========================================================================


@dataclass(frozen=True)
class RecoveryCodec:
    """Maps a recovery parameter to the header byte and back."""

    encode: Callable[[int], int]
    decode: Callable[[int], int]


def _encode_k1(recovery_param: int) -> int:
    header = recovery_param + _K1_HEADER_OFFSET
    if recovery_param <= 3:
        header += _K1_COMPRESSED_FLAG
    return header


def _decode_k1(header: int) -> int:
    bit_field = header - _K1_HEADER_OFFSET
    if bit_field > 3:
        bit_field -= _K1_COMPRESSED_FLAG
    return bit_field


def _identity(value: int) -> int:
    return value


RECOVERY_CODECS: dict[KeyType, RecoveryCodec] = {
    KeyType.k1: RecoveryCodec(encode=_encode_k1, decode=_decode_k1),
    KeyType.r1: RecoveryCodec(encode=_identity, decode=_identity),
    KeyType.wa: RecoveryCodec(encode=_identity, decode=_identity),
}


# =========================================================================
# Curve-library form
# =========================================================================


@dataclass(frozen=True)
class EllipticSignature:
    """Signature as curve libraries see it."""

    r: int
    s: int
    recovery_param: int

    def to_der(self) -> bytes:
        return encode_dss_signature(self.r, self.s)

    @classmethod
    def from_der(cls, der: bytes, recovery_param: int = 0) -> EllipticSignature:
        r, s = decode_dss_signature(der)
        return cls(r=r, s=s, recovery_param=recovery_param)


# =========================================================================
# Signature
# =========================================================================


class Signature:
    """A chain signature plus the curve needed to verify it."""

    def __init__(self, signature: Key, curve: ec.EllipticCurve | None = None) -> None:
        self._signature = signature
        self._curve = curve if curve is not None else curve_for(signature.type)

    @classmethod
    def from_string(cls, sig: str) -> Signature:
        """Parse ``SIG_K1_…`` / ``SIG_R1_…`` / ``SIG_WA_…`` text."""
        return cls(string_to_signature(sig))

    @classmethod
    def from_elliptic(cls, elliptic_sig: EllipticSignature, key_type: KeyType) -> Signature:
        """Build the 65-byte chain form from ``(r, s, recovery_param)``."""
        header = RECOVERY_CODECS[key_type].encode(elliptic_sig.recovery_param)
        if not 0 <= header <= 0xFF:
            raise KeyFormatError(
                f"recovery param {elliptic_sig.recovery_param} does not fit a header byte"
            )
        for component in (elliptic_sig.r, elliptic_sig.s):
            if not 0 <= component < 1 << (8 * _COMPONENT_SIZE):
                raise KeyFormatError(f"signature component {component:#x} does not fit 32 bytes")
        data = (
            bytes([header])
            + elliptic_sig.r.to_bytes(_COMPONENT_SIZE, "big")
            + elliptic_sig.s.to_bytes(_COMPONENT_SIZE, "big")
        )
        return cls(Key(type=key_type, data=data))

    def to_elliptic(self) -> EllipticSignature:
        """Split the chain form back into ``(r, s, recovery_param)``."""
        data = self._signature.data
        r = int.from_bytes(data[1 : _COMPONENT_SIZE + 1], "big")
        s = int.from_bytes(data[_COMPONENT_SIZE + 1 : 2 * _COMPONENT_SIZE + 1], "big")
        bit_field = RECOVERY_CODECS[self._signature.type].decode(data[0])
        return EllipticSignature(r=r, s=s, recovery_param=bit_field & 3)

    def to_string(self) -> str:
        return signature_to_string(self._signature)

    def to_binary(self) -> bytes:
        return self._signature.data

    def get_type(self) -> KeyType:
        return self._signature.type

    def verify(
        self,
        message: bytes | str,
        public_key: PublicKey,
        encoding: str | None = None,
    ) -> bool:
        """Check the signature over a 32-byte message digest.

        Args:
            message: SHA-256 digest that was signed. Text is decoded with
                ``encoding`` (``"hex"`` for hex strings).
            public_key: Expected signer.
            encoding: How to turn ``message`` into bytes when it is text.

        Returns:
            True if the signature is valid for ``public_key``. False when it
            is not, or when ``message`` is not a 32-byte digest.
        """
        if isinstance(message, str):
            if encoding == "hex":
                message = bytes.fromhex(message)
            else:
                message = message.encode(encoding or "utf-8")
        if len(message) != _DIGEST_SIZE:
            return False

        ec_public_key = public_key.to_ec_public_key()
        if not isinstance(ec_public_key.curve, type(self._curve)):
            return False

        try:
            ec_public_key.verify(
                self.to_elliptic().to_der(),
                message,
                ec.ECDSA(Prehashed(hashes.SHA256())),
            )
        except InvalidSignature:
            return False
        return True

    def __str__(self) -> str:
        return self.to_string()

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Signature):
            return NotImplemented
        return self._signature == other._signature

    def __hash__(self) -> int:
        return hash(self._signature)
