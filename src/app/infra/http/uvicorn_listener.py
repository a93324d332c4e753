"""Listener HTTP sobre uvicorn.

O socket é criado aqui, antes de ``uvicorn.Server.serve``: assim uma
falha de bind vira ``OSError`` na task do listener (uvicorn chamaria
``sys.exit``). A captura de sinais do uvicorn é desligada porque o
``WebhookServer`` é o único dono dos sinais do processo.
"""

from __future__ import annotations

import contextlib
import socket
from typing import TYPE_CHECKING

import uvicorn

if TYPE_CHECKING:
    from collections.abc import Generator

    from starlette.types import ASGIApp

    from app.protocols.listener import ListenerConfig


def parse_address(address: str) -> tuple[str, int]:
    """Converte ``host:port`` em tupla; ``:port`` escuta em todas as interfaces.

    Raises:
        ValueError: Endereço sem porta ou com porta inválida.
    """
    host, sep, port_text = address.rpartition(":")
    if not sep:
        raise ValueError(f"address without port: {address!r}")
    try:
        port = int(port_text)
    except ValueError as exc:
        raise ValueError(f"invalid port in address: {address!r}") from exc
    if not 0 <= port < 65536:
        raise ValueError(f"port out of range in address: {address!r}")
    return host.strip("[]"), port


def bind_socket(host: str, port: int) -> socket.socket:
    """Cria o socket de escuta; IPv6 quando o host for literal IPv6."""
    family = socket.AF_INET6 if ":" in host else socket.AF_INET
    sock = socket.create_server((host, port), family=family)
    sock.set_inheritable(True)
    return sock


class _SignalFreeServer(uvicorn.Server):
    """uvicorn.Server sem handlers de sinal próprios."""

    def install_signal_handlers(self) -> None:  # uvicorn < 0.29
        return

    @contextlib.contextmanager
    def capture_signals(self) -> Generator[None, None, None]:  # uvicorn >= 0.29
        yield


class UvicornListener:
    """Implementação de ``ListenerProtocol`` com uvicorn."""

    def __init__(self, app: ASGIApp, config: ListenerConfig) -> None:
        self._config = config
        self._server = _SignalFreeServer(
            uvicorn.Config(
                app,
                host=config.host or "0.0.0.0",
                port=config.port,
                ssl_certfile=config.certfile,
                ssl_keyfile=config.keyfile,
                lifespan="off",
                log_config=None,
                access_log=False,
            )
        )

    async def serve(self) -> None:
        """Faz bind e roda o loop de accept até ``request_exit``.

        Raises:
            OSError: Falha de bind (porta em uso, permissão...).
        """
        sock = bind_socket(self._config.host, self._config.port)
        try:
            await self._server.serve(sockets=[sock])
        finally:
            sock.close()

    def request_exit(self) -> None:
        self._server.should_exit = True

    def force_exit(self) -> None:
        self._server.should_exit = True
        self._server.force_exit = True
