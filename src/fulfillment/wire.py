"""Modelos pydantic do JSON de webhook da plataforma (subconjunto fixo).

Os nomes no wire são camelCase (``sessionInfo``, ``fulfillmentInfo``...).
Campos desconhecidos em qualquer nível são descartados para que novas
versões do protocolo não quebrem o parse; campos modelados com tipo
errado falham na validação.

Valores de parâmetros e payload são mantidos como ``struct_pb2.Value``
e serializados de volta para JSON puro.
"""

from __future__ import annotations

import math
from enum import Enum
from typing import Annotated, Any

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field, PlainSerializer
from pydantic.alias_generators import to_camel

from fulfillment.codec import WireValue, decode, encode
from utils.errors import UnsupportedValueType


def _to_wire_value(value: object) -> WireValue:
    try:
        return encode(value)
    except UnsupportedValueType as exc:
        # pydantic só converte ValueError em ValidationError
        raise ValueError(str(exc)) from exc


def _require_finite(value: object) -> None:
    if isinstance(value, float) and not math.isfinite(value):
        raise ValueError(f"non-finite number {value!r} has no JSON representation")
    if isinstance(value, dict):
        for item in value.values():
            _require_finite(item)
    elif isinstance(value, list):
        for item in value:
            _require_finite(item)


def _dump_wire_value(value: WireValue) -> Any:
    plain = decode(value)
    _require_finite(plain)
    return plain


WireValueField = Annotated[
    WireValue,
    BeforeValidator(_to_wire_value),
    PlainSerializer(_dump_wire_value),
]
WireStruct = dict[str, WireValueField]


class WireModel(BaseModel):
    """Base dos modelos de wire (camelCase, extras ignorados)."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
        arbitrary_types_allowed=True,
    )


class FillState(str, Enum):
    """Estado de preenchimento de um parâmetro de formulário."""

    PARAMETER_STATE_UNSPECIFIED = "PARAMETER_STATE_UNSPECIFIED"
    EMPTY = "EMPTY"
    INVALID = "INVALID"
    FILLED = "FILLED"


class FulfillmentInfo(WireModel):
    tag: str = ""


class SessionInfo(WireModel):
    session: str = ""
    parameters: WireStruct | None = None


class ParameterInfo(WireModel):
    display_name: str = ""
    required: bool = False
    state: FillState = FillState.PARAMETER_STATE_UNSPECIFIED
    value: WireValueField | None = None
    just_collected: bool = False


class FormInfo(WireModel):
    parameter_info: list[ParameterInfo] | None = None


class PageInfo(WireModel):
    current_page: str = ""
    display_name: str = ""
    form_info: FormInfo | None = None


class WebhookRequestBody(WireModel):
    """Corpo do request de fulfillment enviado pela plataforma."""

    detect_intent_response_id: str = ""
    language_code: str = ""
    text: str = ""
    fulfillment_info: FulfillmentInfo | None = None
    session_info: SessionInfo | None = None
    page_info: PageInfo | None = None
    payload: WireStruct | None = None


class TextBody(WireModel):
    text: list[str] = Field(default_factory=list)


class OutputAudioText(WireModel):
    ssml: str = ""


class TelephonyTransferCall(WireModel):
    phone_number: str = ""


class ResponseMessage(WireModel):
    """Uma mensagem de fulfillment; exatamente um campo preenchido."""

    text: TextBody | None = None
    output_audio_text: OutputAudioText | None = None
    telephony_transfer_call: TelephonyTransferCall | None = None


class FulfillmentResponse(WireModel):
    messages: list[ResponseMessage] = Field(default_factory=list)
    merge_behavior: str | None = None


class WebhookResponseBody(WireModel):
    """Corpo da resposta devolvida à plataforma."""

    fulfillment_response: FulfillmentResponse | None = None
    session_info: SessionInfo | None = None
    page_info: PageInfo | None = None
    payload: WireStruct | None = None
