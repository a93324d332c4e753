"""Adaptador do request de fulfillment.

Converte o JSON recebido em ``WebhookRequest`` e expõe sessão,
formulário e payload como mapas dinâmicos (ver ``fulfillment.codec``).

Regras:
- Campos desconhecidos são ignorados; campo modelado inválido -> ParseError
- Seções ausentes viram mapas vazios na leitura, nunca erro
- Cada leitura devolve um dict novo; alterá-lo não muda o request
- O contexto é anexado uma única vez, antes do handler rodar
"""

from __future__ import annotations

import json
import logging
import uuid
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from pydantic import ValidationError

from fulfillment.codec import DynamicValue, WireValue, decode, decode_map, encode_map
from fulfillment.context import RequestContext
from fulfillment.wire import (
    FillState,
    FormInfo,
    FulfillmentInfo,
    PageInfo,
    ParameterInfo,
    SessionInfo,
    WebhookRequestBody,
)
from utils.errors import ContextAlreadyBoundError, ContextNotBoundError, ParseError

if TYPE_CHECKING:
    from collections.abc import Mapping

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class FormParameter:
    """Parâmetro de formulário da página atual."""

    display_name: str
    value: DynamicValue
    fill_state: FillState


class WebhookRequest:
    """Request de fulfillment já parseado (imutável após o parse)."""

    def __init__(self, body: WebhookRequestBody) -> None:
        self._body = body
        self._context: RequestContext | None = None

    @classmethod
    def parse(cls, data: bytes | str) -> WebhookRequest:
        """Parseia o corpo bruto do webhook.

        Raises:
            ParseError: JSON inválido, raiz não-objeto, aninhamento profundo
                demais ou campo modelado inválido.
        """
        try:
            payload = json.loads(data)
        except (json.JSONDecodeError, UnicodeDecodeError) as exc:
            raise ParseError("invalid_json") from exc
        except RecursionError as exc:
            raise ParseError("payload_too_deep") from exc

        if not isinstance(payload, dict):
            raise ParseError("payload_not_object")

        return cls.from_dict(payload)

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> WebhookRequest:
        """Constrói o request a partir de um dict já decodificado."""
        try:
            body = WebhookRequestBody.model_validate(payload)
        except ValidationError as exc:
            fields = sorted({".".join(str(p) for p in err["loc"]) for err in exc.errors()})
            raise ParseError(f"invalid_fields: {', '.join(fields)}") from exc
        except RecursionError as exc:
            raise ParseError("payload_too_deep") from exc
        return cls(body)

    @classmethod
    def for_testing(
        cls,
        session: Mapping[str, object] | None = None,
        payload: Mapping[str, object] | None = None,
        form: Mapping[str, object] | None = None,
        *,
        session_id: str | None = None,
        fulfillment_tag: str = "",
    ) -> WebhookRequest:
        """Monta um request sintético para testes de handlers.

        A sessão recebe um id aleatório, os parâmetros de formulário
        ficam como FILLED e um contexto sem transporte já vem anexado.

        Raises:
            UnsupportedValueType: Algum valor não tem representação no wire.
        """
        page_info = None
        if form is not None:
            page_info = PageInfo(
                form_info=FormInfo(
                    parameter_info=[
                        ParameterInfo(display_name=name, value=value, state=FillState.FILLED)
                        for name, value in encode_map(form).items()
                    ]
                )
            )

        body = WebhookRequestBody(
            fulfillment_info=FulfillmentInfo(tag=fulfillment_tag) if fulfillment_tag else None,
            session_info=SessionInfo(
                session=session_id or str(uuid.uuid4()),
                parameters=encode_map(session) if session is not None else None,
            ),
            page_info=page_info,
            payload=encode_map(payload) if payload is not None else None,
        )
        request = cls(body)
        request.bind_context(RequestContext.background())
        return request

    # Contexto

    def bind_context(self, context: RequestContext) -> None:
        """Anexa o contexto do request (uma única vez).

        Raises:
            ContextAlreadyBoundError: Se já houver contexto anexado.
        """
        if self._context is not None:
            raise ContextAlreadyBoundError("request context already bound")
        self._context = context

    @property
    def context(self) -> RequestContext:
        """Contexto anexado pelo servidor.

        Raises:
            ContextNotBoundError: Se lido antes do servidor anexar o contexto.
        """
        if self._context is None:
            raise ContextNotBoundError("request context read before being bound")
        return self._context

    @property
    def has_context(self) -> bool:
        return self._context is not None

    @property
    def logger(self) -> logging.Logger:
        """Logger do contexto; módulo como fallback quando não há contexto."""
        if self._context is None:
            return logger
        return self._context.logger

    # Campos escalares

    @property
    def session_id(self) -> str:
        if self._body.session_info is None:
            return ""
        return self._body.session_info.session

    @property
    def fulfillment_tag(self) -> str:
        if self._body.fulfillment_info is None:
            return ""
        return self._body.fulfillment_info.tag

    @property
    def language_code(self) -> str:
        return self._body.language_code

    @property
    def text(self) -> str:
        return self._body.text

    # Mapas dinâmicos

    def session_parameters(self) -> dict[str, DynamicValue]:
        """Parâmetros de sessão (vazio se a seção estiver ausente)."""
        session_info = self._body.session_info
        if session_info is None or session_info.parameters is None:
            return {}
        return decode_map(session_info.parameters)

    def session_parameter(self, key: str) -> tuple[DynamicValue, bool]:
        """Retorna ``(valor, encontrado)`` para um parâmetro de sessão."""
        session_info = self._body.session_info
        if session_info is None or session_info.parameters is None:
            return None, False
        if key not in session_info.parameters:
            return None, False
        return decode(session_info.parameters[key]), True

    def form_parameter_infos(self) -> list[FormParameter]:
        """Parâmetros de formulário na ordem recebida."""
        return [
            FormParameter(
                display_name=info.display_name,
                value=decode(info.value) if info.value is not None else None,
                fill_state=info.state,
            )
            for info in self._parameter_infos()
        ]

    def form_parameters(self) -> dict[str, DynamicValue]:
        """Parâmetros de formulário por display name (último vence)."""
        return {param.display_name: param.value for param in self.form_parameter_infos()}

    def payload(self) -> dict[str, DynamicValue]:
        """Payload livre (vazio se ausente)."""
        if self._body.payload is None:
            return {}
        return decode_map(self._body.payload)

    def payload_parameter(self, key: str) -> tuple[DynamicValue, bool]:
        """Retorna ``(valor, encontrado)`` para uma chave do payload."""
        if self._body.payload is None or key not in self._body.payload:
            return None, False
        return decode(self._body.payload[key]), True

    # Cópias para a resposta

    def copy_page_info(self) -> PageInfo | None:
        """Cópia profunda de pageInfo (None se ausente)."""
        if self._body.page_info is None:
            return None
        return self._body.page_info.model_copy(deep=True)

    def copy_payload(self) -> dict[str, WireValue] | None:
        """Cópia do payload no formato do wire (None se ausente)."""
        if self._body.payload is None:
            return None
        return encode_map(self._body.payload)

    def to_json(self) -> bytes:
        """Serializa o request de volta para JSON do wire."""
        return self._body.model_dump_json(by_alias=True, exclude_none=True).encode("utf-8")

    def _parameter_infos(self) -> list[ParameterInfo]:
        page_info = self._body.page_info
        if page_info is None or page_info.form_info is None:
            return []
        return page_info.form_info.parameter_info or []

    def __repr__(self) -> str:
        return (
            f"WebhookRequest(session_id={self.session_id!r}, "
            f"fulfillment_tag={self.fulfillment_tag!r})"
        )
