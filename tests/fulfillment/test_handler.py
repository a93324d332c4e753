"""Testes do contrato de handler."""

from __future__ import annotations

import functools
import io
import json
import threading

import pytest

from fulfillment.handler import invoke_handler, is_async_handler, run_handler
from fulfillment.request import WebhookRequest
from fulfillment.response import WebhookResponse
from utils.errors import HandlerError, SerializeError


def confirm_color(res: WebhookResponse, req: WebhookRequest) -> None:
    params = req.session_parameters()
    color = params.pop("color")
    params["processed"] = True
    res.add_text_message(f"You picked {color}.")
    res.set_session_parameters(params)


async def async_greeting(res: WebhookResponse, req: WebhookRequest) -> None:
    res.add_text_message("Hello!")


class CallableHandler:
    async def __call__(self, res: WebhookResponse, req: WebhookRequest) -> None:
        res.add_payload({"from": "callable"})


class TestIsAsyncHandler:
    """Testes para is_async_handler."""

    def test_detection(self) -> None:
        assert is_async_handler(async_greeting) is True
        assert is_async_handler(confirm_color) is False
        assert is_async_handler(CallableHandler()) is True
        assert is_async_handler(functools.partial(async_greeting)) is True


class TestInvokeHandler:
    """Testes para invoke_handler."""

    @pytest.mark.asyncio
    async def test_sync_handler_runs_off_loop_thread(self) -> None:
        seen: list[int] = []

        def handler(res: WebhookResponse, req: WebhookRequest) -> None:
            seen.append(threading.get_ident())

        request = WebhookRequest.for_testing()
        await invoke_handler(handler, WebhookResponse.from_request(request), request)
        assert seen and seen[0] != threading.get_ident()

    @pytest.mark.asyncio
    async def test_async_handler(self) -> None:
        request = WebhookRequest.for_testing()
        response = WebhookResponse.from_request(request)
        await invoke_handler(async_greeting, response, request)
        assert len(response.messages) == 1

    @pytest.mark.asyncio
    async def test_failure_wrapped(self) -> None:
        request = WebhookRequest.for_testing()
        with pytest.raises(HandlerError) as exc_info:
            await invoke_handler(confirm_color, WebhookResponse.from_request(request), request)
        assert isinstance(exc_info.value.__cause__, KeyError)

    @pytest.mark.asyncio
    async def test_async_failure_wrapped(self) -> None:
        async def broken(res: WebhookResponse, req: WebhookRequest) -> None:
            raise RuntimeError("boom")

        request = WebhookRequest.for_testing()
        with pytest.raises(HandlerError, match="boom"):
            await invoke_handler(broken, WebhookResponse.from_request(request), request)


class TestRunHandler:
    """Testes para run_handler."""

    @pytest.mark.asyncio
    async def test_color_processed_scenario(self) -> None:
        request = WebhookRequest.parse(
            b'{"sessionInfo":{"session":"s1","parameters":{"color":"red"}}}'
        )
        response = await run_handler(confirm_color, request)
        body = json.loads(response.serialize())
        assert body["sessionInfo"] == {"session": "s1", "parameters": {"processed": True}}
        assert request.session_parameters() == {"color": "red"}
        assert body["fulfillmentResponse"]["messages"][0]["text"]["text"] == ["You picked red."]

    @pytest.mark.asyncio
    async def test_writes_serialized_response_to_out(self) -> None:
        out = io.BytesIO()
        request = WebhookRequest.for_testing(session_id="s-7")
        response = await run_handler(async_greeting, request, out)

        assert out.getvalue() == response.serialize()
        body = json.loads(out.getvalue())
        assert body["sessionInfo"]["session"] == "s-7"
        assert body["fulfillmentResponse"]["messages"] == [{"text": {"text": ["Hello!"]}}]

    @pytest.mark.asyncio
    async def test_binds_background_context(self) -> None:
        request = WebhookRequest.parse(b"{}")
        await run_handler(async_greeting, request)
        assert request.has_context

    @pytest.mark.asyncio
    async def test_callable_object(self) -> None:
        response = await run_handler(CallableHandler(), WebhookRequest.for_testing())
        assert response.payload() == {"from": "callable"}

    @pytest.mark.asyncio
    async def test_serialize_failure(self) -> None:
        from google.protobuf import struct_pb2

        def poison(res: WebhookResponse, req: WebhookRequest) -> None:
            res.add_payload({"x": struct_pb2.Value(number_value=float("inf"))})

        with pytest.raises(SerializeError):
            await run_handler(poison, WebhookRequest.for_testing())
