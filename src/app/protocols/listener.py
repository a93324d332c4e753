"""Contrato do listener HTTP controlado pelo servidor de webhook."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from starlette.types import ASGIApp


@dataclass(frozen=True, slots=True)
class ListenerConfig:
    """Parâmetros de escuta.

    Atributos:
        host: Interface ("" = todas)
        port: Porta TCP
        certfile: Certificado TLS (None = HTTP puro)
        keyfile: Chave privada TLS
    """

    host: str
    port: int
    certfile: str | None = None
    keyfile: str | None = None

    @property
    def tls(self) -> bool:
        return self.certfile is not None


class ListenerProtocol(Protocol):
    """Loop de accept bloqueante.

    ``serve`` só retorna depois de ``request_exit``/``force_exit``;
    qualquer falha de bind/accept é levantada por ``serve``.
    """

    async def serve(self) -> None: ...

    def request_exit(self) -> None:
        """Para de aceitar conexões e drena as em andamento."""
        ...

    def force_exit(self) -> None:
        """Abandona as conexões em andamento."""
        ...


ListenerFactory = Callable[["ASGIApp", ListenerConfig], ListenerProtocol]
