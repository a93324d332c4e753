"""Builder da resposta de fulfillment.

A resposta nasce do request (id de sessão, formulário e payload
copiados), é alterada pelo handler e serializada uma única vez.

Semântica dos pares set/add:
- ``set_*``: substitui o mapa inteiro
- ``add_*``: mescla chave a chave (a última escrita vence)

Ambos são atômicos: se algum valor não puder ser codificado, nada muda.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, BinaryIO, Union

from pydantic_core import PydanticSerializationError

from fulfillment.codec import DynamicValue, decode, decode_map, encode_map
from fulfillment.wire import (
    FulfillmentResponse,
    OutputAudioText,
    ResponseMessage,
    SessionInfo,
    TelephonyTransferCall,
    TextBody,
    WebhookResponseBody,
)
from utils.errors import SerializeError

if TYPE_CHECKING:
    from collections.abc import Mapping

    from fulfillment.request import WebhookRequest


@dataclass(frozen=True, slots=True)
class TextMessage:
    """Texto com renderizações alternativas de uma mesma mensagem."""

    texts: tuple[str, ...]


@dataclass(frozen=True, slots=True)
class AudioMessage:
    """Áudio falado descrito em SSML."""

    ssml: str


@dataclass(frozen=True, slots=True)
class TelephonyTransfer:
    """Transferência da chamada para um número de telefone."""

    phone_number: str


FulfillmentMessage = Union[TextMessage, AudioMessage, TelephonyTransfer]  # noqa: UP007


class WebhookResponse:
    """Resposta de fulfillment em construção."""

    def __init__(self, session_id: str = "") -> None:
        self._body = WebhookResponseBody(session_info=SessionInfo(session=session_id))

    @classmethod
    def from_request(
        cls,
        request: WebhookRequest,
        *,
        carry_form: bool = True,
        carry_payload: bool = True,
    ) -> WebhookResponse:
        """Cria a resposta padrão "sem mudanças" a partir do request."""
        response = cls(session_id=request.session_id)
        if carry_form:
            response._body.page_info = request.copy_page_info()
        if carry_payload:
            response._body.payload = request.copy_payload()
        return response

    @property
    def session_id(self) -> str:
        return self._session_info().session

    # Sessão

    def set_session_parameters(self, values: Mapping[str, object]) -> None:
        """Substitui todos os parâmetros de sessão.

        Raises:
            UnsupportedValueType: Algum valor não tem representação no wire.
        """
        self._session_info().parameters = encode_map(values)

    def add_session_parameters(self, values: Mapping[str, object]) -> None:
        """Mescla parâmetros de sessão, sobrescrevendo chaves repetidas.

        Raises:
            UnsupportedValueType: Algum valor não tem representação no wire.
        """
        encoded = encode_map(values)
        session_info = self._session_info()
        merged = dict(session_info.parameters or {})
        merged.update(encoded)
        session_info.parameters = merged

    def session_parameters(self) -> dict[str, DynamicValue]:
        parameters = self._session_info().parameters
        return decode_map(parameters) if parameters is not None else {}

    # Payload

    def set_payload(self, values: Mapping[str, object]) -> None:
        """Substitui o payload inteiro."""
        self._body.payload = encode_map(values)

    def add_payload(self, values: Mapping[str, object]) -> None:
        """Mescla chaves no payload existente."""
        encoded = encode_map(values)
        merged = dict(self._body.payload or {})
        merged.update(encoded)
        self._body.payload = merged

    def payload(self) -> dict[str, DynamicValue]:
        return decode_map(self._body.payload) if self._body.payload is not None else {}

    def form_parameters(self) -> dict[str, DynamicValue]:
        """Parâmetros de formulário repassados do request."""
        page_info = self._body.page_info
        if page_info is None or page_info.form_info is None:
            return {}
        return {
            info.display_name: decode(info.value) if info.value is not None else None
            for info in page_info.form_info.parameter_info or []
        }

    # Mensagens

    def add_text_message(self, *texts: str) -> None:
        """Anexa UMA mensagem de texto com as alternativas informadas."""
        self._append(ResponseMessage(text=TextBody(text=list(texts))))

    def add_audio_message(self, ssml: str) -> None:
        self._append(ResponseMessage(output_audio_text=OutputAudioText(ssml=ssml)))

    def add_telephony_transfer(self, phone_number: str) -> None:
        self._append(
            ResponseMessage(
                telephony_transfer_call=TelephonyTransferCall(phone_number=phone_number)
            )
        )

    @property
    def messages(self) -> tuple[FulfillmentMessage, ...]:
        """Mensagens na ordem em que foram adicionadas."""
        fulfillment = self._body.fulfillment_response
        if fulfillment is None:
            return ()
        return tuple(_to_message(message) for message in fulfillment.messages)

    # Serialização

    def serialize(self) -> bytes:
        """Codifica a resposta para JSON do wire.

        Raises:
            SerializeError: Algum valor contido não pôde ser codificado.
        """
        try:
            return self._body.model_dump_json(by_alias=True, exclude_none=True).encode("utf-8")
        except (PydanticSerializationError, ValueError, TypeError, RecursionError) as exc:
            raise SerializeError(f"response_not_serializable: {exc}") from exc

    def write_to(self, stream: BinaryIO) -> int:
        """Escreve a resposta serializada em um stream binário."""
        return stream.write(self.serialize())

    def _session_info(self) -> SessionInfo:
        if self._body.session_info is None:
            self._body.session_info = SessionInfo()
        return self._body.session_info

    def _append(self, message: ResponseMessage) -> None:
        if self._body.fulfillment_response is None:
            self._body.fulfillment_response = FulfillmentResponse()
        self._body.fulfillment_response.messages.append(message)

    def __repr__(self) -> str:
        return f"WebhookResponse(session_id={self.session_id!r}, messages={len(self.messages)})"


def _to_message(message: ResponseMessage) -> FulfillmentMessage:
    if message.text is not None:
        return TextMessage(texts=tuple(message.text.text))
    if message.output_audio_text is not None:
        return AudioMessage(ssml=message.output_audio_text.ssml)
    if message.telephony_transfer_call is not None:
        return TelephonyTransfer(phone_number=message.telephony_transfer_call.phone_number)
    raise ValueError("response message without content")
