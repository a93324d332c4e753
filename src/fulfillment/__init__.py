"""Núcleo do adaptador de fulfillment: codec, request, resposta e handler.

Uso:
    from fulfillment import WebhookRequest, WebhookResponse

    async def hello(res: WebhookResponse, req: WebhookRequest) -> None:
        res.add_text_message("Hello!")
"""

from fulfillment.codec import (
    DynamicValue,
    WireValue,
    decode,
    decode_map,
    encode,
    encode_map,
)
from fulfillment.context import RequestContext
from fulfillment.handler import WebhookHandler, invoke_handler, run_handler
from fulfillment.request import FormParameter, WebhookRequest
from fulfillment.response import (
    AudioMessage,
    FulfillmentMessage,
    TelephonyTransfer,
    TextMessage,
    WebhookResponse,
)
from fulfillment.wire import FillState

__all__ = [
    "AudioMessage",
    "DynamicValue",
    "FillState",
    "FormParameter",
    "FulfillmentMessage",
    "RequestContext",
    "TelephonyTransfer",
    "TextMessage",
    "WebhookHandler",
    "WebhookRequest",
    "WebhookResponse",
    "WireValue",
    "decode",
    "decode_map",
    "encode",
    "encode_map",
    "invoke_handler",
    "run_handler",
]
