"""
Tests for the signature codec — header table, r/s layout, verification.

Real keys come from ``cryptography``; nothing is mocked.

Test plan:
- Header: k1 rp 0..3 → 31..34, r1/wa header == rp, out-of-range header
  rejected
- Layout: 65 bytes, r and s big-endian and zero padded
- to_elliptic: recovers r, s and rp & 3 for every family
- Text: SIG_K1_/SIG_R1_ round trip, bad checksum rejected
- Verify: valid k1/r1 signatures, wrong digest, wrong key, curve mismatch,
  hex-encoded message
"""

from __future__ import annotations

import hashlib

import pytest
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.asymmetric import ec
from cryptography.hazmat.primitives.asymmetric.utils import Prehashed

from eosio_api.errors import KeyFormatError
from eosio_api.keys import Key, KeyType, PublicKey
from eosio_api.signature import RECOVERY_CODECS, EllipticSignature, Signature

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

DIGEST = hashlib.sha256(b"transfer 1.0000 EOS from alice to bob").digest()


def _sign(
    curve: ec.EllipticCurve, key_type: KeyType, digest: bytes = DIGEST
) -> tuple[Signature, PublicKey]:
    private_key = ec.generate_private_key(curve)
    der = private_key.sign(digest, ec.ECDSA(Prehashed(hashes.SHA256())))
    signature = Signature.from_elliptic(EllipticSignature.from_der(der, 1), key_type)
    return signature, PublicKey.from_ec_public_key(private_key.public_key(), key_type)


# ---------------------------------------------------------------------------
# Header table
# ---------------------------------------------------------------------------


class TestRecoveryHeader:
    @pytest.mark.parametrize("rp,header", [(0, 31), (1, 32), (2, 33), (3, 34)])
    def test_k1_header(self, rp: int, header: int) -> None:
        sig = Signature.from_elliptic(EllipticSignature(r=1, s=2, recovery_param=rp), KeyType.k1)
        assert sig.to_binary()[0] == header

    @pytest.mark.parametrize("key_type", [KeyType.r1, KeyType.wa])
    @pytest.mark.parametrize("rp", [0, 1, 2, 3])
    def test_r1_and_wa_header_is_recovery_param(self, key_type: KeyType, rp: int) -> None:
        sig = Signature.from_elliptic(EllipticSignature(r=1, s=2, recovery_param=rp), key_type)
        assert sig.to_binary()[0] == rp

    def test_every_family_has_a_codec(self) -> None:
        assert set(RECOVERY_CODECS) == set(KeyType)

    def test_header_out_of_byte_range_rejected(self) -> None:
        with pytest.raises(KeyFormatError):
            Signature.from_elliptic(
                EllipticSignature(r=1, s=2, recovery_param=300), KeyType.r1
            )

    @pytest.mark.parametrize("r, s", [(1 << 256, 1), (1, 1 << 256), (-1, 1)])
    def test_component_out_of_range_rejected(self, r: int, s: int) -> None:
        with pytest.raises(KeyFormatError, match="does not fit 32 bytes"):
            Signature.from_elliptic(EllipticSignature(r=r, s=s, recovery_param=0), KeyType.k1)

    def test_k1_decode_masks_to_two_bits(self) -> None:
        # rp 7 skips the compressed flag (header 34) and decodes to 7 & 3
        sig = Signature.from_elliptic(EllipticSignature(r=1, s=2, recovery_param=7), KeyType.k1)
        assert sig.to_binary()[0] == 34
        assert sig.to_elliptic().recovery_param == 3


# ---------------------------------------------------------------------------
# Layout
# ---------------------------------------------------------------------------


class TestLayout:
    def test_sixty_five_bytes_zero_padded(self) -> None:
        sig = Signature.from_elliptic(EllipticSignature(r=1, s=0xFF, recovery_param=0), KeyType.k1)
        data = sig.to_binary()

        assert len(data) == 65
        assert data[1:33] == b"\x00" * 31 + b"\x01"
        assert data[33:65] == b"\x00" * 31 + b"\xff"

    @pytest.mark.parametrize("key_type", list(KeyType))
    @pytest.mark.parametrize("rp", [0, 1, 2, 3])
    def test_to_elliptic_recovers_components(self, key_type: KeyType, rp: int) -> None:
        r = int.from_bytes(hashlib.sha256(b"r").digest(), "big")
        s = int.from_bytes(hashlib.sha256(b"s").digest(), "big")

        elliptic = Signature.from_elliptic(
            EllipticSignature(r=r, s=s, recovery_param=rp), key_type
        ).to_elliptic()

        assert elliptic == EllipticSignature(r=r, s=s, recovery_param=rp)

    def test_get_type(self) -> None:
        sig = Signature(Key(type=KeyType.r1, data=b"\x00" * 65))
        assert sig.get_type() == KeyType.r1

    def test_der_round_trip(self) -> None:
        elliptic = EllipticSignature(r=12345, s=67890, recovery_param=2)
        assert EllipticSignature.from_der(elliptic.to_der(), 2) == elliptic


# ---------------------------------------------------------------------------
# Text form
# ---------------------------------------------------------------------------


class TestSignatureText:
    @pytest.mark.parametrize(
        "curve,key_type,prefix",
        [
            (ec.SECP256K1(), KeyType.k1, "SIG_K1_"),
            (ec.SECP256R1(), KeyType.r1, "SIG_R1_"),
        ],
    )
    def test_string_round_trip(
        self, curve: ec.EllipticCurve, key_type: KeyType, prefix: str
    ) -> None:
        sig, _ = _sign(curve, key_type)
        text = sig.to_string()

        assert text.startswith(prefix)
        assert Signature.from_string(text) == sig
        assert str(sig) == text

    def test_bad_checksum_rejected(self) -> None:
        sig, _ = _sign(ec.SECP256K1(), KeyType.k1)
        text = sig.to_string()
        tampered = text[:-1] + ("2" if text[-1] != "2" else "3")

        with pytest.raises(KeyFormatError):
            Signature.from_string(tampered)

    def test_unknown_prefix_rejected(self) -> None:
        with pytest.raises(KeyFormatError):
            Signature.from_string("SIG_XX_abc")


# ---------------------------------------------------------------------------
# Verification
# ---------------------------------------------------------------------------


class TestVerify:
    def test_k1_valid(self) -> None:
        sig, public_key = _sign(ec.SECP256K1(), KeyType.k1)
        assert sig.verify(DIGEST, public_key) is True

    def test_r1_valid(self) -> None:
        sig, public_key = _sign(ec.SECP256R1(), KeyType.r1)
        assert sig.verify(DIGEST, public_key) is True

    def test_hex_message(self) -> None:
        sig, public_key = _sign(ec.SECP256K1(), KeyType.k1)
        assert sig.verify(DIGEST.hex(), public_key, encoding="hex") is True

    def test_wrong_digest(self) -> None:
        sig, public_key = _sign(ec.SECP256K1(), KeyType.k1)
        other = hashlib.sha256(b"something else").digest()
        assert sig.verify(other, public_key) is False

    @pytest.mark.parametrize("message", [DIGEST[:31], DIGEST + b"\x00", b""])
    def test_message_not_a_digest(self, message: bytes) -> None:
        sig, public_key = _sign(ec.SECP256K1(), KeyType.k1)
        assert sig.verify(message, public_key) is False

    def test_wrong_key(self) -> None:
        sig, _ = _sign(ec.SECP256K1(), KeyType.k1)
        _, stranger = _sign(ec.SECP256K1(), KeyType.k1)
        assert sig.verify(DIGEST, stranger) is False

    def test_curve_mismatch(self) -> None:
        sig, _ = _sign(ec.SECP256K1(), KeyType.k1)
        _, r1_key = _sign(ec.SECP256R1(), KeyType.r1)
        assert sig.verify(DIGEST, r1_key) is False

    def test_survives_text_round_trip(self) -> None:
        sig, public_key = _sign(ec.SECP256K1(), KeyType.k1)
        parsed = Signature.from_string(sig.to_string())
        assert parsed.verify(DIGEST, PublicKey.from_string(public_key.to_string())) is True
