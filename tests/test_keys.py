"""
Tests for the key text codec.

Test plan:
- Known vector: the well-known development WIF key maps to its EOS… key
- Public keys: PUB_K1/PUB_R1 round trip, legacy EOS… conversion,
  checksum and prefix errors
- Private keys: PVT_K1 and WIF round trips, PVT_WA rejected
- KeyType: wire indexes and suffixes
"""

from __future__ import annotations

import pytest
from cryptography.hazmat.primitives.asymmetric import ec

from eosio_api.errors import KeyFormatError
from eosio_api.keys import (
    Key,
    KeyType,
    PublicKey,
    convert_legacy_public_key,
    convert_legacy_public_keys,
    private_key_to_legacy_string,
    private_key_to_string,
    public_key_to_legacy_string,
    public_key_to_string,
    string_to_private_key,
    string_to_public_key,
)

DEV_WIF = "5KQwrPbwdL6PhXujxW37FSSQZ1JiwsST4cqQzDeyXtP79zkvFD3"
DEV_LEGACY_PUBLIC = "EOS6MRyAjQq8ud7hVNYcfnVPJqcVpscN5So8BhtHuGYqET5GDW5CV"


def _public_key(curve: ec.EllipticCurve, key_type: KeyType) -> PublicKey:
    return PublicKey.from_ec_public_key(ec.generate_private_key(curve).public_key(), key_type)


class TestKnownVector:
    def test_dev_key_pair(self) -> None:
        private = string_to_private_key(DEV_WIF)
        ec_private = ec.derive_private_key(int.from_bytes(private.data, "big"), ec.SECP256K1())

        public = PublicKey.from_ec_public_key(ec_private.public_key())

        assert public.get_type() == KeyType.k1
        assert public.to_legacy_string() == DEV_LEGACY_PUBLIC

    def test_dev_key_legacy_and_modern_agree(self) -> None:
        modern = convert_legacy_public_key(DEV_LEGACY_PUBLIC)

        assert modern.startswith("PUB_K1_")
        assert string_to_public_key(modern) == string_to_public_key(DEV_LEGACY_PUBLIC)


class TestPublicKeys:
    @pytest.mark.parametrize(
        "curve,key_type,prefix",
        [
            (ec.SECP256K1(), KeyType.k1, "PUB_K1_"),
            (ec.SECP256R1(), KeyType.r1, "PUB_R1_"),
        ],
    )
    def test_round_trip(self, curve: ec.EllipticCurve, key_type: KeyType, prefix: str) -> None:
        public = _public_key(curve, key_type)
        text = public.to_string()

        assert text.startswith(prefix)
        assert PublicKey.from_string(text) == public
        assert len(public.to_binary()) == 33

    def test_ec_public_key_round_trip(self) -> None:
        ec_public = ec.generate_private_key(ec.SECP256R1()).public_key()
        public = PublicKey.from_ec_public_key(ec_public)

        assert public.get_type() == KeyType.r1
        assert public.to_ec_public_key().public_numbers() == ec_public.public_numbers()

    def test_legacy_round_trip(self) -> None:
        public = _public_key(ec.SECP256K1(), KeyType.k1)
        legacy = public.to_legacy_string()

        assert legacy.startswith("EOS")
        assert convert_legacy_public_key(legacy) == public.to_string()

    def test_modern_key_passes_through_conversion(self) -> None:
        text = _public_key(ec.SECP256R1(), KeyType.r1).to_string()
        assert convert_legacy_public_key(text) == text

    def test_convert_many(self) -> None:
        modern = _public_key(ec.SECP256K1(), KeyType.k1).to_string()
        assert convert_legacy_public_keys([DEV_LEGACY_PUBLIC, modern]) == [
            convert_legacy_public_key(DEV_LEGACY_PUBLIC),
            modern,
        ]

    def test_r1_has_no_legacy_form(self) -> None:
        key = _public_key(ec.SECP256R1(), KeyType.r1).key
        with pytest.raises(KeyFormatError):
            public_key_to_legacy_string(key)

    def test_unknown_prefix(self) -> None:
        with pytest.raises(KeyFormatError, match="unrecognized public key format"):
            string_to_public_key("PUB_XX_6MRyAjQq8ud7hVNYcfnVPJqcVpscN5So8BhtHuGYqET5GDW5CV")

    def test_bad_legacy_checksum(self) -> None:
        tampered = DEV_LEGACY_PUBLIC[:-1] + "W"
        with pytest.raises(KeyFormatError):
            string_to_public_key(tampered)

    def test_bad_modern_checksum(self) -> None:
        text = public_key_to_string(string_to_public_key(DEV_LEGACY_PUBLIC))
        tampered = text[:-1] + ("2" if text[-1] != "2" else "3")
        with pytest.raises(KeyFormatError):
            string_to_public_key(tampered)

    def test_invalid_base58(self) -> None:
        with pytest.raises(KeyFormatError):
            string_to_public_key("PUB_K1_0OIl")


class TestPrivateKeys:
    def test_modern_round_trip(self) -> None:
        key = Key(type=KeyType.r1, data=bytes(range(1, 33)))
        text = private_key_to_string(key)

        assert text.startswith("PVT_R1_")
        assert string_to_private_key(text) == key

    def test_wif_round_trip(self) -> None:
        key = string_to_private_key(DEV_WIF)

        assert key.type == KeyType.k1
        assert len(key.data) == 32
        assert private_key_to_legacy_string(key) == DEV_WIF

    def test_wif_and_modern_agree(self) -> None:
        key = string_to_private_key(DEV_WIF)
        assert string_to_private_key(private_key_to_string(key)) == key

    def test_wa_private_key_rejected(self) -> None:
        with pytest.raises(KeyFormatError):
            private_key_to_string(Key(type=KeyType.wa, data=b"\x01" * 32))

    def test_bad_wif_checksum(self) -> None:
        tampered = DEV_WIF[:-1] + "4"
        with pytest.raises(KeyFormatError):
            string_to_private_key(tampered)


class TestKeyType:
    def test_wire_indexes(self) -> None:
        assert [k.wire_index for k in KeyType] == [0, 1, 2]
        assert KeyType.from_wire_index(1) == KeyType.r1

    def test_unknown_wire_index(self) -> None:
        with pytest.raises(KeyFormatError):
            KeyType.from_wire_index(3)

    def test_suffix(self) -> None:
        assert KeyType.wa.suffix == "WA"
