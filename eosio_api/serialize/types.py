"""
ABI type registry.

A registry is a plain ``dict[str, AbiType]``. It starts from the built-in
types (``create_initial_types``) and grows with the aliases, structs and
variants an ABI declares (``get_types_from_abi``). Modifiers are resolved
on lookup by ``get_type``:

    ``T[]``  array (varuint32 count, then items)
    ``T?``   optional (one presence byte)
    ``T$``   binary extension (may be missing at the end of a struct)

Every type exposes ``serialize(buffer, value)`` and
``deserialize(buffer) -> value``. Values are plain Python data: ``dict``
for structs, ``list`` for arrays, ``[type_name, value]`` pairs for variants,
``None`` for an absent optional.
"""

from __future__ import annotations

import json
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Callable

from eosio_api.errors import SerializationError
from eosio_api.serialize.buffer import (
    SerialBuffer,
    array_to_hex,
    block_timestamp_to_date,
    date_to_block_timestamp,
    date_to_time_point,
    date_to_time_point_sec,
    hex_to_bytes,
    time_point_sec_to_date,
    time_point_to_date,
)


@dataclass
class SerializerState:
    """Carries the binary-extension flag through one (de)serialization."""

    skipped_binary_extension: bool = False


class AbiType:
    """Base for every registry entry."""

    def __init__(self, name: str) -> None:
        self.name = name

    def serialize(
        self,
        buffer: SerialBuffer,
        value: Any,
        state: SerializerState | None = None,
        allow_extensions: bool = True,
    ) -> None:
        raise NotImplementedError

    def deserialize(
        self,
        buffer: SerialBuffer,
        state: SerializerState | None = None,
        allow_extensions: bool = True,
    ) -> Any:
        raise NotImplementedError

    @property
    def extension_of(self) -> AbiType | None:
        return None

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.name!r})"


class BuiltinType(AbiType):
    """Primitive type backed by a pair of buffer operations."""

    def __init__(
        self,
        name: str,
        push: Callable[[SerialBuffer, Any], None],
        get: Callable[[SerialBuffer], Any],
    ) -> None:
        super().__init__(name)
        self._push = push
        self._get = get

    def serialize(
        self,
        buffer: SerialBuffer,
        value: Any,
        state: SerializerState | None = None,
        allow_extensions: bool = True,
    ) -> None:
        self._push(buffer, value)

    def deserialize(
        self,
        buffer: SerialBuffer,
        state: SerializerState | None = None,
        allow_extensions: bool = True,
    ) -> Any:
        return self._get(buffer)


class AliasType(AbiType):
    """``typedef``; ``get_type`` follows it to the target."""

    def __init__(self, name: str, alias_of_name: str) -> None:
        super().__init__(name)
        self.alias_of_name = alias_of_name


@dataclass
class Field:
    name: str
    type_name: str
    type: AbiType | None = field(default=None, repr=False)


class StructType(AbiType):
    def __init__(self, name: str, base_name: str = "", fields: list[Field] | None = None) -> None:
        super().__init__(name)
        self.base_name = base_name
        self.base: AbiType | None = None
        self.fields = fields or []

    def serialize(
        self,
        buffer: SerialBuffer,
        value: Any,
        state: SerializerState | None = None,
        allow_extensions: bool = True,
    ) -> None:
        if state is None:
            state = SerializerState()
        if not isinstance(value, Mapping):
            raise SerializationError(
                f"expected object containing data: {json.dumps(value, default=str)}"
            )
        if self.base is not None:
            self.base.serialize(buffer, value, state, allow_extensions)
        last = self.fields[-1] if self.fields else None
        for f in self.fields:
            assert f.type is not None
            if f.name in value:
                if state.skipped_binary_extension:
                    raise SerializationError(f"unexpected {self.name}.{f.name}")
                f.type.serialize(buffer, value[f.name], state, allow_extensions and f is last)
            elif allow_extensions and f.type.extension_of is not None:
                state.skipped_binary_extension = True
            else:
                raise SerializationError(
                    f"missing {self.name}.{f.name} (type={f.type.name})"
                )

    def deserialize(
        self,
        buffer: SerialBuffer,
        state: SerializerState | None = None,
        allow_extensions: bool = True,
    ) -> Any:
        if state is None:
            state = SerializerState()
        if self.base is not None:
            result = self.base.deserialize(buffer, state, allow_extensions)
        else:
            result = {}
        for f in self.fields:
            assert f.type is not None
            if allow_extensions and f.type.extension_of is not None and not buffer.have_read_data():
                state.skipped_binary_extension = True
            else:
                result[f.name] = f.type.deserialize(buffer, state, allow_extensions)
        return result


class VariantType(AbiType):
    def __init__(self, name: str, type_names: list[str]) -> None:
        super().__init__(name)
        self.fields = [Field(name=t, type_name=t) for t in type_names]

    def serialize(
        self,
        buffer: SerialBuffer,
        value: Any,
        state: SerializerState | None = None,
        allow_extensions: bool = True,
    ) -> None:
        if (
            not isinstance(value, (list, tuple))
            or len(value) != 2
            or not isinstance(value[0], str)
        ):
            raise SerializationError('expected variant: ["type", value]')
        for index, f in enumerate(self.fields):
            if f.name == value[0]:
                assert f.type is not None
                buffer.push_varuint32(index)
                f.type.serialize(buffer, value[1], state, allow_extensions)
                return
        raise SerializationError(f'type "{value[0]}" is not valid for variant')

    def deserialize(
        self,
        buffer: SerialBuffer,
        state: SerializerState | None = None,
        allow_extensions: bool = True,
    ) -> Any:
        index = buffer.get_varuint32()
        if index >= len(self.fields):
            raise SerializationError(f"type index {index} is not valid for variant")
        f = self.fields[index]
        assert f.type is not None
        return [f.name, f.type.deserialize(buffer, state, allow_extensions)]


class ArrayType(AbiType):
    def __init__(self, name: str, array_of: AbiType) -> None:
        super().__init__(name)
        self.array_of = array_of

    def serialize(
        self,
        buffer: SerialBuffer,
        value: Any,
        state: SerializerState | None = None,
        allow_extensions: bool = True,
    ) -> None:
        if not isinstance(value, (list, tuple)):
            raise SerializationError(f"{self.name}: expected array")
        buffer.push_varuint32(len(value))
        for item in value:
            self.array_of.serialize(buffer, item, state, False)

    def deserialize(
        self,
        buffer: SerialBuffer,
        state: SerializerState | None = None,
        allow_extensions: bool = True,
    ) -> Any:
        count = buffer.get_varuint32()
        return [self.array_of.deserialize(buffer, state, False) for _ in range(count)]


class OptionalType(AbiType):
    def __init__(self, name: str, optional_of: AbiType) -> None:
        super().__init__(name)
        self.optional_of = optional_of

    def serialize(
        self,
        buffer: SerialBuffer,
        value: Any,
        state: SerializerState | None = None,
        allow_extensions: bool = True,
    ) -> None:
        if value is None:
            buffer.push(0)
        else:
            buffer.push(1)
            self.optional_of.serialize(buffer, value, state, allow_extensions)

    def deserialize(
        self,
        buffer: SerialBuffer,
        state: SerializerState | None = None,
        allow_extensions: bool = True,
    ) -> Any:
        if buffer.get():
            return self.optional_of.deserialize(buffer, state, allow_extensions)
        return None


class ExtensionType(AbiType):
    def __init__(self, name: str, extension_of: AbiType) -> None:
        super().__init__(name)
        self._extension_of = extension_of

    @property
    def extension_of(self) -> AbiType:
        return self._extension_of

    def serialize(
        self,
        buffer: SerialBuffer,
        value: Any,
        state: SerializerState | None = None,
        allow_extensions: bool = True,
    ) -> None:
        self._extension_of.serialize(buffer, value, state, allow_extensions)

    def deserialize(
        self,
        buffer: SerialBuffer,
        state: SerializerState | None = None,
        allow_extensions: bool = True,
    ) -> Any:
        return self._extension_of.deserialize(buffer, state, allow_extensions)


@dataclass
class Contract:
    """Everything needed to (de)serialize one account's actions."""

    types: dict[str, AbiType]
    actions: dict[str, AbiType]


# =========================================================================
# Built-ins
# =========================================================================


def _push_bytes(buffer: SerialBuffer, value: Any) -> None:
    if isinstance(value, (bytes, bytearray)):
        buffer.push_bytes(value)
    else:
        buffer.push_bytes(hex_to_bytes(value))


def _checksum(name: str, size: int) -> BuiltinType:
    def push(buffer: SerialBuffer, value: Any) -> None:
        data = value if isinstance(value, (bytes, bytearray)) else hex_to_bytes(value)
        if len(data) != size:
            raise SerializationError(f"{name}: binary data has incorrect size")
        buffer.push_array(data)

    return BuiltinType(name, push, lambda b: array_to_hex(b.get_uint8_array(size)))


def _push_symbol(buffer: SerialBuffer, value: Any) -> None:
    if isinstance(value, Mapping):
        buffer.push_symbol(value["name"], int(value["precision"]))
        return
    if not isinstance(value, str) or "," not in value:
        raise SerializationError(f"Invalid symbol: {value!r}")
    precision, name = value.split(",", 1)
    buffer.push_symbol(name, int(precision))


def _get_symbol(buffer: SerialBuffer) -> str:
    name, precision = buffer.get_symbol()
    return f"{precision},{name}"


def create_initial_types() -> dict[str, AbiType]:
    """Fresh registry holding only the built-in types."""
    builtins: list[AbiType] = [
        BuiltinType("bool", lambda b, v: b.push(1 if v else 0), lambda b: bool(b.get())),
        BuiltinType("uint8", lambda b, v: b.push_struct("<B", v), lambda b: int(b.get_struct("<B"))),
        BuiltinType("int8", lambda b, v: b.push_struct("<b", v), lambda b: int(b.get_struct("<b"))),
        BuiltinType("uint16", lambda b, v: b.push_uint16(v), lambda b: b.get_uint16()),
        BuiltinType("int16", lambda b, v: b.push_struct("<h", v), lambda b: int(b.get_struct("<h"))),
        BuiltinType("uint32", lambda b, v: b.push_uint32(v), lambda b: b.get_uint32()),
        BuiltinType("int32", lambda b, v: b.push_struct("<i", v), lambda b: int(b.get_struct("<i"))),
        BuiltinType("uint64", lambda b, v: b.push_uint64(v), lambda b: b.get_uint64()),
        BuiltinType("int64", lambda b, v: b.push_int64(v), lambda b: b.get_int64()),
        BuiltinType("uint128", lambda b, v: b.push_int128(v, False), lambda b: b.get_int128(False)),
        BuiltinType("int128", lambda b, v: b.push_int128(v, True), lambda b: b.get_int128(True)),
        BuiltinType("varuint32", lambda b, v: b.push_varuint32(v), lambda b: b.get_varuint32()),
        BuiltinType("varint32", lambda b, v: b.push_varint32(v), lambda b: b.get_varint32()),
        BuiltinType("float32", lambda b, v: b.push_float32(v), lambda b: b.get_float32()),
        BuiltinType("float64", lambda b, v: b.push_float64(v), lambda b: b.get_float64()),
        _checksum("float128", 16),
        BuiltinType("bytes", _push_bytes, lambda b: array_to_hex(b.get_bytes())),
        BuiltinType("string", lambda b, v: b.push_string(v), lambda b: b.get_string()),
        BuiltinType("name", lambda b, v: b.push_name(v), lambda b: b.get_name()),
        BuiltinType(
            "time_point",
            lambda b, v: b.push_uint64(date_to_time_point(v)),
            lambda b: time_point_to_date(b.get_uint64()),
        ),
        BuiltinType(
            "time_point_sec",
            lambda b, v: b.push_uint32(date_to_time_point_sec(v)),
            lambda b: time_point_sec_to_date(b.get_uint32()),
        ),
        BuiltinType(
            "block_timestamp_type",
            lambda b, v: b.push_uint32(date_to_block_timestamp(v)),
            lambda b: block_timestamp_to_date(b.get_uint32()),
        ),
        BuiltinType("symbol_code", lambda b, v: b.push_symbol_code(v), lambda b: b.get_symbol_code()),
        BuiltinType("symbol", _push_symbol, _get_symbol),
        BuiltinType("asset", lambda b, v: b.push_asset(v), lambda b: b.get_asset()),
        _checksum("checksum160", 20),
        _checksum("checksum256", 32),
        _checksum("checksum512", 64),
        BuiltinType("public_key", lambda b, v: b.push_public_key(v), lambda b: b.get_public_key()),
        BuiltinType("private_key", lambda b, v: b.push_private_key(v), lambda b: b.get_private_key()),
        BuiltinType("signature", lambda b, v: b.push_signature(v), lambda b: b.get_signature()),
    ]
    types: dict[str, AbiType] = {t.name: t for t in builtins}

    extended_asset = StructType(
        "extended_asset",
        fields=[
            Field(name="quantity", type_name="asset"),
            Field(name="contract", type_name="name"),
        ],
    )
    types[extended_asset.name] = extended_asset
    for f in extended_asset.fields:
        f.type = types[f.type_name]
    return types


# =========================================================================
# Lookup and ABI loading
# =========================================================================


def get_type(types: Mapping[str, AbiType], name: str) -> AbiType:
    """Resolve ``name`` in ``types``, following aliases and modifiers."""
    found = types.get(name)
    if isinstance(found, AliasType):
        return get_type(types, found.alias_of_name)
    if found is not None:
        return found
    if name.endswith("[]"):
        return ArrayType(name, get_type(types, name[:-2]))
    if name.endswith("?"):
        return OptionalType(name, get_type(types, name[:-1]))
    if name.endswith("$"):
        return ExtensionType(name, get_type(types, name[:-1]))
    raise SerializationError(f"Unknown type: {name}")


def get_types_from_abi(
    initial_types: Mapping[str, AbiType],
    abi: Mapping[str, Any] | None,
) -> dict[str, AbiType]:
    """Extend ``initial_types`` with everything ``abi`` declares.

    Returns a new registry; ``initial_types`` is not modified.
    """
    types: dict[str, AbiType] = dict(initial_types)
    if abi:
        for type_def in abi.get("types") or []:
            types[type_def["new_type_name"]] = AliasType(
                type_def["new_type_name"], type_def["type"]
            )
        for struct_def in abi.get("structs") or []:
            types[struct_def["name"]] = StructType(
                struct_def["name"],
                base_name=struct_def.get("base", ""),
                fields=[Field(name=f["name"], type_name=f["type"]) for f in struct_def["fields"]],
            )
        for variant_def in abi.get("variants") or []:
            types[variant_def["name"]] = VariantType(variant_def["name"], list(variant_def["types"]))

    for abi_type in types.values():
        if isinstance(abi_type, StructType):
            if abi_type.base_name:
                abi_type.base = get_type(types, abi_type.base_name)
            for f in abi_type.fields:
                f.type = get_type(types, f.type_name)
        elif isinstance(abi_type, VariantType):
            for f in abi_type.fields:
                f.type = get_type(types, f.type_name)
    return types
