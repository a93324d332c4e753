"""Codec entre valores dinâmicos nativos e ``google.protobuf.Value``.

O lado dinâmico é um conjunto fechado de tipos JSON nativos:

- ``None``
- ``bool``
- ``float`` (``int`` aceito na entrada, transportado como float64)
- ``str``
- ``list`` de valores dinâmicos
- ``dict`` com chaves ``str`` e valores dinâmicos

Qualquer outro tipo (ou float não finito) levanta ``UnsupportedValueType``.
As funções de mapa são atômicas: ou retornam o mapa inteiro convertido,
ou levantam no primeiro erro sem expor conversão parcial.

Uso:
    from fulfillment.codec import decode_map, encode_map

    wire = encode_map({"color": "red", "count": 2})
    params = decode_map(wire)
"""

from __future__ import annotations

import math
from collections.abc import Mapping
from typing import TYPE_CHECKING, TypeAlias, Union

from google.protobuf import struct_pb2

from utils.errors import UnsupportedValueType

if TYPE_CHECKING:
    from collections.abc import Iterable

DynamicValue: TypeAlias = Union[  # noqa: UP007
    None,
    bool,
    float,
    str,
    list["DynamicValue"],
    dict[str, "DynamicValue"],
]

WireValue: TypeAlias = struct_pb2.Value


def encode(value: object) -> WireValue:
    """Converte um valor nativo para ``struct_pb2.Value``.

    Valores que já estão no formato do wire são copiados.

    Raises:
        UnsupportedValueType: Tipo sem representação no protocolo.
    """
    wire = struct_pb2.Value()
    if value is None:
        wire.null_value = struct_pb2.NULL_VALUE
    elif isinstance(value, struct_pb2.Value):
        wire.CopyFrom(value)
    # bool antes de int: bool é subclasse de int
    elif isinstance(value, bool):
        wire.bool_value = value
    elif isinstance(value, int | float):
        wire.number_value = _to_number(value)
    elif isinstance(value, str):
        wire.string_value = value
    elif isinstance(value, Mapping):
        wire.struct_value.CopyFrom(encode_struct(value))
    elif isinstance(value, list | tuple):
        wire.list_value.CopyFrom(_encode_list(value))
    else:
        raise UnsupportedValueType(type(value).__name__)
    return wire


def decode(wire: WireValue) -> DynamicValue:
    """Converte ``struct_pb2.Value`` de volta para valor nativo."""
    kind = wire.WhichOneof("kind")
    if kind is None or kind == "null_value":
        return None
    if kind == "bool_value":
        return wire.bool_value
    if kind == "number_value":
        return wire.number_value
    if kind == "string_value":
        return wire.string_value
    if kind == "struct_value":
        return decode_map(wire.struct_value.fields)
    return [decode(item) for item in wire.list_value.values]


def encode_map(values: Mapping[str, object]) -> dict[str, WireValue]:
    """Codifica um mapa elemento a elemento.

    Atômico: o primeiro erro interrompe a conversão e nenhum mapa
    parcial é retornado. O mapa de entrada nunca é alterado.

    Raises:
        UnsupportedValueType: Com ``key`` apontando o valor rejeitado.
    """
    encoded: dict[str, WireValue] = {}
    for key, value in values.items():
        if not isinstance(key, str):
            raise UnsupportedValueType(f"key:{type(key).__name__}", repr(key))
        try:
            encoded[key] = encode(value)
        except UnsupportedValueType as exc:
            raise exc.with_key(key) from exc
    return encoded


def decode_map(values: Mapping[str, WireValue]) -> dict[str, DynamicValue]:
    """Decodifica um mapa elemento a elemento (sempre um dict novo)."""
    return {key: decode(value) for key, value in values.items()}


def encode_struct(values: Mapping[str, object]) -> struct_pb2.Struct:
    """Codifica um mapa como ``struct_pb2.Struct``."""
    struct = struct_pb2.Struct()
    for key, value in encode_map(values).items():
        struct.fields[key].CopyFrom(value)
    return struct


def _encode_list(items: Iterable[object]) -> struct_pb2.ListValue:
    list_value = struct_pb2.ListValue()
    for index, item in enumerate(items):
        try:
            encoded = encode(item)
        except UnsupportedValueType as exc:
            raise exc.with_key(str(index)) from exc
        list_value.values.add().CopyFrom(encoded)
    return list_value


def _to_number(value: int | float) -> float:
    try:
        number = float(value)
    except OverflowError as exc:
        raise UnsupportedValueType(type(value).__name__) from exc
    # NaN/Inf não têm representação JSON
    if not math.isfinite(number):
        raise UnsupportedValueType(f"{type(value).__name__}({value!r})")
    return number
