"""
Growable binary cursor for the chain wire format.

All integers are little-endian. Variable-length integers use LEB128
(``varuint32``) and zig-zag LEB128 (``varint32``). Length-prefixed values
(``bytes``, ``string``, arrays) carry a ``varuint32`` length.

Besides raw push/get primitives, the buffer knows the chain's compact
encodings for names, symbols, assets, timestamps and keys, since those are
the building blocks of every built-in ABI type.
"""

from __future__ import annotations

import calendar
import math
import re
import struct
from datetime import datetime, timedelta, timezone

from eosio_api.errors import SerializationError
from eosio_api.keys import (
    PRIVATE_KEY_DATA_SIZE,
    PUBLIC_KEY_DATA_SIZE,
    SIGNATURE_DATA_SIZE,
    Key,
    KeyType,
    private_key_to_string,
    public_key_to_string,
    signature_to_string,
    string_to_private_key,
    string_to_public_key,
    string_to_signature,
)

_NAME_RE = re.compile(r"^[.1-5a-z]{0,12}[.1-5a-j]?$")
_NAME_CHARS = ".12345abcdefghijklmnopqrstuvwxyz"
_SYMBOL_CODE_SIZE = 8
_BLOCK_TIMESTAMP_EPOCH_MS = 946684800000
_BLOCK_TIMESTAMP_INTERVAL_MS = 500
_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


# =========================================================================
# Hex
# =========================================================================


def array_to_hex(data: bytes) -> str:
    """Upper-case hex, the form the chain's JSON uses for binary data."""
    return bytes(data).hex().upper()


def hex_to_bytes(hex_str: str) -> bytes:
    if not isinstance(hex_str, str):
        raise SerializationError("Expected string containing hex digits")
    if len(hex_str) % 2:
        raise SerializationError("Odd number of hex digits")
    try:
        return bytes.fromhex(hex_str)
    except ValueError as exc:
        raise SerializationError("Expected hex string") from exc


# =========================================================================
# Time
# =========================================================================


def _js_round(value: float) -> int:
    return math.floor(value + 0.5)


def _date_to_ms(date: str) -> float:
    """Milliseconds since the epoch for a UTC ISO-8601 string."""
    if not isinstance(date, str):
        raise SerializationError(f"Expected date string, got {date!r}")
    text = date[:-1] if date.endswith("Z") else date
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError as exc:
        raise SerializationError(f"Invalid time format: {date!r}") from exc
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc)
    return calendar.timegm(parsed.timetuple()) * 1000 + parsed.microsecond / 1000


def _ms_to_date(ms: int, with_millis: bool) -> str:
    when = _EPOCH + timedelta(milliseconds=ms)
    text = when.strftime("%Y-%m-%dT%H:%M:%S")
    if with_millis:
        text += f".{when.microsecond // 1000:03d}"
    return text


def date_to_time_point(date: str) -> int:
    """ISO date to microseconds since the epoch."""
    return _js_round(_date_to_ms(date) * 1000)


def time_point_to_date(us: int) -> str:
    return _ms_to_date(us // 1000, with_millis=True)


def date_to_time_point_sec(date: str) -> int:
    """ISO date to whole seconds since the epoch, rounding half up."""
    return _js_round(_date_to_ms(date) / 1000)


def time_point_sec_to_date(sec: int) -> str:
    return _ms_to_date(sec * 1000, with_millis=False)


def date_to_block_timestamp(date: str) -> int:
    """ISO date to half-second slots since 2000-01-01."""
    return _js_round((_date_to_ms(date) - _BLOCK_TIMESTAMP_EPOCH_MS) / _BLOCK_TIMESTAMP_INTERVAL_MS)


def block_timestamp_to_date(slot: int) -> str:
    return _ms_to_date(
        slot * _BLOCK_TIMESTAMP_INTERVAL_MS + _BLOCK_TIMESTAMP_EPOCH_MS, with_millis=True
    )


# =========================================================================
# Names
# =========================================================================


def name_to_uint64(name: str) -> int:
    """Pack an account/action name (up to 13 chars) into 64 bits."""
    if not isinstance(name, str):
        raise SerializationError(f"Expected string containing name, got {name!r}")
    if not _NAME_RE.match(name):
        raise SerializationError(
            "Name should be less than 13 characters, or less than 14 if last "
            "character is between 1-5 or a-j, and only contain the following "
            "symbols .12345abcdefghijklmnopqrstuvwxyz"
        )
    value = 0
    for i, char in enumerate(name):
        symbol = _NAME_CHARS.index(char)
        if i < 12:
            value |= (symbol & 0x1F) << (64 - 5 * (i + 1))
        else:
            value |= symbol & 0x0F
    return value


def uint64_to_name(value: int) -> str:
    chars = []
    for i in range(13):
        if i < 12:
            symbol = (value >> (64 - 5 * (i + 1))) & 0x1F
        else:
            symbol = value & 0x0F
        chars.append(_NAME_CHARS[symbol])
    return "".join(chars).rstrip(".")


def _decode_text(data: bytes, encoding: str, what: str) -> str:
    try:
        return data.decode(encoding)
    except UnicodeDecodeError as exc:
        raise SerializationError(f"Invalid {encoding} in {what}: {data.hex()}") from exc


# =========================================================================
# SerialBuffer
# =========================================================================


class SerialBuffer:
    """Append-only write buffer with an independent read cursor."""

    def __init__(self, array: bytes | bytearray | None = None) -> None:
        self._array = bytearray(array or b"")
        self.read_pos = 0

    @property
    def length(self) -> int:
        return len(self._array)

    def as_bytes(self) -> bytes:
        return bytes(self._array)

    def have_read_data(self) -> bool:
        return self.read_pos < len(self._array)

    def restart_read(self) -> None:
        self.read_pos = 0

    # -----------------------------------------------------------------
    # Raw bytes
    # -----------------------------------------------------------------

    def push(self, *values: int) -> None:
        self.push_array(bytes(values))

    def push_array(self, data: bytes | bytearray) -> None:
        self._array.extend(data)

    def get(self) -> int:
        if self.read_pos < len(self._array):
            value = self._array[self.read_pos]
            self.read_pos += 1
            return value
        raise SerializationError("Read past end of buffer")

    def get_uint8_array(self, length: int) -> bytes:
        if self.read_pos + length > len(self._array):
            raise SerializationError("Read past end of buffer")
        result = bytes(self._array[self.read_pos : self.read_pos + length])
        self.read_pos += length
        return result

    def skip(self, length: int) -> None:
        if self.read_pos + length > len(self._array):
            raise SerializationError("Read past end of buffer")
        self.read_pos += length

    # -----------------------------------------------------------------
    # Fixed-width numbers
    # -----------------------------------------------------------------

    def push_struct(self, fmt: str, value: int | float | str) -> None:
        if isinstance(value, str) and fmt not in ("<f", "<d"):
            try:
                value = int(value, 10)
            except ValueError as exc:
                raise SerializationError(f"Expected number, got {value!r}") from exc
        if isinstance(value, bool):
            value = int(value)
        try:
            self.push_array(struct.pack(fmt, value))
        except struct.error as exc:
            raise SerializationError(f"Number is out of range: {value!r}") from exc

    def get_struct(self, fmt: str) -> int | float:
        (value,) = struct.unpack(fmt, self.get_uint8_array(struct.calcsize(fmt)))
        return value

    def push_uint16(self, value: int) -> None:
        self.push_struct("<H", value)

    def get_uint16(self) -> int:
        return int(self.get_struct("<H"))

    def push_uint32(self, value: int) -> None:
        self.push_struct("<I", value)

    def get_uint32(self) -> int:
        return int(self.get_struct("<I"))

    def push_uint64(self, value: int | str) -> None:
        self.push_struct("<Q", value)

    def get_uint64(self) -> int:
        return int(self.get_struct("<Q"))

    def push_int64(self, value: int | str) -> None:
        self.push_struct("<q", value)

    def get_int64(self) -> int:
        return int(self.get_struct("<q"))

    def push_int128(self, value: int | str, signed: bool) -> None:
        try:
            number = int(value)
            self.push_array(number.to_bytes(16, "little", signed=signed))
        except (OverflowError, ValueError) as exc:
            raise SerializationError(f"Number is out of range: {value!r}") from exc

    def get_int128(self, signed: bool) -> int:
        return int.from_bytes(self.get_uint8_array(16), "little", signed=signed)

    def push_float32(self, value: float) -> None:
        self.push_struct("<f", float(value))

    def get_float32(self) -> float:
        return float(self.get_struct("<f"))

    def push_float64(self, value: float) -> None:
        self.push_struct("<d", float(value))

    def get_float64(self) -> float:
        return float(self.get_struct("<d"))

    # -----------------------------------------------------------------
    # Variable-length numbers
    # -----------------------------------------------------------------

    def push_varuint32(self, value: int) -> None:
        if not isinstance(value, int) or not 0 <= value <= 0xFFFFFFFF:
            raise SerializationError(f"varuint32 is out of range: {value!r}")
        while True:
            if value >> 7:
                self.push(0x80 | (value & 0x7F))
                value >>= 7
            else:
                self.push(value)
                break

    def get_varuint32(self) -> int:
        value = 0
        bit = 0
        while True:
            byte = self.get()
            value |= (byte & 0x7F) << bit
            bit += 7
            if not byte & 0x80:
                break
        return value & 0xFFFFFFFF

    def push_varint32(self, value: int) -> None:
        if not isinstance(value, int) or not -(2**31) <= value < 2**31:
            raise SerializationError(f"varint32 is out of range: {value!r}")
        self.push_varuint32(((value << 1) ^ (value >> 31)) & 0xFFFFFFFF)

    def get_varint32(self) -> int:
        value = self.get_varuint32()
        if value & 1:
            return ~(value >> 1)
        return value >> 1

    # -----------------------------------------------------------------
    # Length-prefixed
    # -----------------------------------------------------------------

    def push_bytes(self, data: bytes | bytearray) -> None:
        self.push_varuint32(len(data))
        self.push_array(data)

    def get_bytes(self) -> bytes:
        return self.get_uint8_array(self.get_varuint32())

    def push_string(self, value: str) -> None:
        if not isinstance(value, str):
            raise SerializationError(f"Expected string, got {value!r}")
        self.push_bytes(value.encode("utf-8"))

    def get_string(self) -> str:
        return _decode_text(self.get_bytes(), "utf-8", "string")

    # -----------------------------------------------------------------
    # Chain encodings
    # -----------------------------------------------------------------

    def push_name(self, name: str) -> None:
        self.push_uint64(name_to_uint64(name))

    def get_name(self) -> str:
        return uint64_to_name(self.get_uint64())

    def push_symbol_code(self, name: str) -> None:
        if not isinstance(name, str):
            raise SerializationError(f"Expected string containing symbol_code, got {name!r}")
        self.push_array(name.encode("utf-8")[:_SYMBOL_CODE_SIZE].ljust(_SYMBOL_CODE_SIZE, b"\x00"))

    def get_symbol_code(self) -> str:
        code = self.get_uint8_array(_SYMBOL_CODE_SIZE).split(b"\x00", 1)[0]
        return _decode_text(code, "utf-8", "symbol_code")

    def push_symbol(self, name: str, precision: int) -> None:
        if not re.match(r"^[A-Z]{1,7}$", name):
            raise SerializationError(
                "Expected symbol to be A-Z and between one and seven characters"
            )
        data = bytes([precision & 0xFF]) + name.encode("ascii")
        self.push_array(data.ljust(_SYMBOL_CODE_SIZE, b"\x00"))

    def get_symbol(self) -> tuple[str, int]:
        precision = self.get()
        name = self.get_uint8_array(_SYMBOL_CODE_SIZE - 1).split(b"\x00", 1)[0]
        return _decode_text(name, "ascii", "symbol"), precision

    def push_asset(self, value: str) -> None:
        """Encode ``"1.0000 EOS"`` as int64 amount ‖ symbol."""
        if not isinstance(value, str):
            raise SerializationError(f"Expected string containing asset, got {value!r}")
        text = value.strip()
        match = re.match(r"^(-?)(\d+)(?:\.(\d*))?(.*)$", text)
        if match is None:
            raise SerializationError("Asset must begin with a number")
        sign, whole, fraction, name = match.groups()
        fraction = fraction or ""
        self.push_int64(int(sign + whole + fraction))
        self.push_symbol(name.strip(), len(fraction))

    def get_asset(self) -> str:
        amount = self.get_int64()
        name, precision = self.get_symbol()
        digits = str(abs(amount)).rjust(precision + 1, "0")
        if precision:
            digits = digits[:-precision] + "." + digits[-precision:]
        return ("-" if amount < 0 else "") + digits + " " + name

    def push_public_key(self, value: str) -> None:
        key = string_to_public_key(value)
        self.push(key.type.wire_index)
        self.push_array(key.data)

    def get_public_key(self) -> str:
        key_type = KeyType.from_wire_index(self.get())
        if key_type == KeyType.wa:
            begin = self.read_pos
            self.skip(PUBLIC_KEY_DATA_SIZE + 1)
            self.skip(self.get_varuint32())
            data = bytes(self._array[begin : self.read_pos])
        else:
            data = self.get_uint8_array(PUBLIC_KEY_DATA_SIZE)
        return public_key_to_string(Key(type=key_type, data=data))

    def push_private_key(self, value: str) -> None:
        key = string_to_private_key(value)
        self.push(key.type.wire_index)
        self.push_array(key.data)

    def get_private_key(self) -> str:
        key_type = KeyType.from_wire_index(self.get())
        data = self.get_uint8_array(PRIVATE_KEY_DATA_SIZE)
        return private_key_to_string(Key(type=key_type, data=data))

    def push_signature(self, value: str) -> None:
        key = string_to_signature(value)
        self.push(key.type.wire_index)
        self.push_array(key.data)

    def get_signature(self) -> str:
        key_type = KeyType.from_wire_index(self.get())
        if key_type == KeyType.wa:
            begin = self.read_pos
            self.skip(SIGNATURE_DATA_SIZE)
            self.skip(self.get_varuint32())
            self.skip(self.get_varuint32())
            data = bytes(self._array[begin : self.read_pos])
        else:
            data = self.get_uint8_array(SIGNATURE_DATA_SIZE)
        return signature_to_string(Key(type=key_type, data=data))
