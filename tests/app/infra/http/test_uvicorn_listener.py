"""Testes do listener uvicorn."""

from __future__ import annotations

import asyncio
import socket

import httpx
import pytest

from app.infra.http import UvicornListener, bind_socket, parse_address
from app.protocols.listener import ListenerConfig
from app.server import ServerState, WebhookServer
from fulfillment.request import WebhookRequest
from fulfillment.response import WebhookResponse


def _free_port() -> int:
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
        sock.bind(("127.0.0.1", 0))
        return sock.getsockname()[1]


class TestParseAddress:
    """Testes para parse_address."""

    @pytest.mark.parametrize(
        ("address", "expected"),
        [
            (":8080", ("", 8080)),
            ("127.0.0.1:9000", ("127.0.0.1", 9000)),
            ("[::1]:8443", ("::1", 8443)),
        ],
    )
    def test_valid(self, address: str, expected: tuple[str, int]) -> None:
        assert parse_address(address) == expected

    @pytest.mark.parametrize("address", ["8080", "host:", "host:http", ":70000"])
    def test_invalid(self, address: str) -> None:
        with pytest.raises(ValueError):
            parse_address(address)


class TestBindSocket:
    """Testes para bind_socket."""

    def test_occupied_port_raises(self) -> None:
        first = bind_socket("127.0.0.1", 0)
        try:
            port = first.getsockname()[1]
            with pytest.raises(OSError):
                bind_socket("127.0.0.1", port)
        finally:
            first.close()


class TestUvicornListener:
    """Testes do listener real."""

    @pytest.mark.asyncio
    async def test_bind_failure_raises_from_serve(self) -> None:
        occupied = bind_socket("127.0.0.1", 0)
        try:
            port = occupied.getsockname()[1]
            listener = UvicornListener(lambda *_: None, ListenerConfig("127.0.0.1", port))
            with pytest.raises(OSError):
                await asyncio.wait_for(listener.serve(), timeout=2)
        finally:
            occupied.close()

    @pytest.mark.asyncio
    async def test_server_serves_and_shuts_down(self) -> None:
        port = _free_port()

        async def greet(res: WebhookResponse, req: WebhookRequest) -> None:
            res.add_text_message("Hello!")

        server = WebhookServer(f"127.0.0.1:{port}", signals=(), shutdown_timeout=2)
        server.handle("/greet", greet)
        task = asyncio.create_task(server.listen_and_serve())

        async with httpx.AsyncClient(base_url=f"http://127.0.0.1:{port}") as client:
            response = None
            for _ in range(100):
                try:
                    response = await client.post("/greet", content=b"{}")
                    break
                except httpx.TransportError:
                    await asyncio.sleep(0.05)

        assert response is not None
        assert response.status_code == 200
        assert response.json()["fulfillmentResponse"]["messages"] == [{"text": {"text": ["Hello!"]}}]

        await server.shutdown()
        await asyncio.wait_for(task, timeout=5)
        assert server.state is ServerState.STOPPED
