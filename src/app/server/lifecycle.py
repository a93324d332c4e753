"""Servidor de webhook e sua máquina de estados.

Estados: INITIALIZED -> LISTENING -> SHUTTING_DOWN -> STOPPED.

Enquanto LISTENING, o loop de governo espera pelo primeiro de:
- contexto pai encerrado (``parent`` setado ou task cancelada)
- erro do listener na fila de erros
- sinal do sistema na fila de sinais
- fim do loop de accept (shutdown chamado de fora)

Somente o sinal de reconfiguração volta a esperar; todo outro evento
é terminal. Sinal de término dispara o shutdown gracioso limitado por
``shutdown_timeout``; o servidor chega a STOPPED mesmo se o prazo estourar.
Qualquer saída de LISTENING passa por SHUTTING_DOWN durante o teardown.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
import signal
from enum import Enum
from types import MappingProxyType
from typing import TYPE_CHECKING

from api.routes import create_api_app, register_webhook_route
from app.infra.http import UvicornListener, parse_address
from app.protocols.listener import ListenerConfig
from config.settings import DEFAULT_SHUTDOWN_TIMEOUT_SECONDS
from utils.errors import (
    DuplicateRouteError,
    ListenerFatalError,
    ServerStateError,
    ShutdownTimeoutError,
)

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping

    from fastapi import FastAPI

    from app.protocols.listener import ListenerFactory, ListenerProtocol
    from fulfillment.handler import WebhookHandler

DEFAULT_ADDRESS = ":8080"

DEFAULT_SIGNALS: tuple[signal.Signals, ...] = tuple(
    getattr(signal, name) for name in ("SIGINT", "SIGTERM", "SIGHUP") if hasattr(signal, name)
)

RECONFIGURE_SIGNAL: signal.Signals | None = getattr(signal, "SIGHUP", None)


class ServerState(str, Enum):
    """Estados do ciclo de vida do servidor."""

    INITIALIZED = "initialized"
    LISTENING = "listening"
    SHUTTING_DOWN = "shutting_down"
    STOPPED = "stopped"


class WebhookServer:
    """Servidor HTTP de fulfillment com ciclo de vida controlado.

    Args:
        address: ``host:port`` (``:port`` = todas as interfaces).
        logger: Logger injetado; também repassado aos handlers via contexto.
        signals: Sinais observados (padrão SIGINT, SIGTERM, SIGHUP).
        reconfigure_signal: Sinal tratado como reconfiguração (padrão SIGHUP).
        shutdown_timeout: Prazo do shutdown gracioso em segundos.
        listener_factory: Fábrica do listener (padrão uvicorn).

    Exemplo:
        server = WebhookServer(":8080", logger=get_logger("ezcx"))
        server.handle("/confirm", confirm_order)
        await server.listen_and_serve()
    """

    def __init__(
        self,
        address: str = DEFAULT_ADDRESS,
        *,
        logger: logging.Logger | None = None,
        signals: Iterable[int] | None = None,
        reconfigure_signal: int | None = RECONFIGURE_SIGNAL,
        shutdown_timeout: float = DEFAULT_SHUTDOWN_TIMEOUT_SECONDS,
        listener_factory: ListenerFactory | None = None,
        title: str = "ezcx",
    ) -> None:
        self._host, self._port = parse_address(address)
        self._address = address
        self._logger = logger or logging.getLogger(__name__)
        self._signals = (
            tuple(signal.Signals(sig) for sig in signals) if signals is not None else DEFAULT_SIGNALS
        )
        self._reconfigure_signal = (
            signal.Signals(reconfigure_signal) if reconfigure_signal is not None else None
        )
        self._shutdown_timeout = shutdown_timeout
        self._listener_factory: ListenerFactory = listener_factory or UvicornListener

        self._app = create_api_app(title)
        self._routes: dict[str, WebhookHandler] = {}
        self._state = ServerState.INITIALIZED

        self._listener: ListenerProtocol | None = None
        self._accept_task: asyncio.Task[None] | None = None
        self._errors: asyncio.Queue[BaseException] = asyncio.Queue()
        self._signal_queue: asyncio.Queue[signal.Signals] = asyncio.Queue()
        self._installed_signals: list[signal.Signals] = []
        self._exit_requested = False

    @property
    def state(self) -> ServerState:
        return self._state

    @property
    def address(self) -> str:
        return self._address

    @property
    def app(self) -> FastAPI:
        """Aplicação ASGI com as rotas registradas."""
        return self._app

    @property
    def routes(self) -> Mapping[str, WebhookHandler]:
        return MappingProxyType(self._routes)

    @property
    def shutdown_timeout(self) -> float:
        return self._shutdown_timeout

    # Rotas

    def handle(self, pattern: str, handler: WebhookHandler) -> None:
        """Registra um handler para o padrão de URL.

        A tabela de rotas só muda antes do start; depois é somente leitura.

        Raises:
            DuplicateRouteError: Padrão já registrado.
            ServerStateError: Servidor já iniciado.
        """
        if self._state is not ServerState.INITIALIZED:
            raise ServerStateError(f"cannot register {pattern!r}: server is {self._state.value}")
        if pattern in self._routes:
            raise DuplicateRouteError(f"handler already registered for {pattern!r}")
        self._routes[pattern] = handler
        register_webhook_route(self._app, pattern, handler, logger=self._logger)

    # Ciclo de vida

    async def listen_and_serve(self, parent: asyncio.Event | None = None) -> None:
        """Escuta em HTTP puro até um evento terminal; retorna em STOPPED."""
        await self._run(parent, ListenerConfig(host=self._host, port=self._port))

    async def listen_and_serve_tls(
        self,
        certfile: str,
        keyfile: str,
        parent: asyncio.Event | None = None,
    ) -> None:
        """Igual a ``listen_and_serve``, servindo HTTPS com o par informado."""
        config = ListenerConfig(host=self._host, port=self._port, certfile=certfile, keyfile=keyfile)
        await self._run(parent, config)

    async def shutdown(self) -> None:
        """Shutdown gracioso limitado por ``shutdown_timeout``.

        Para de aceitar conexões e espera as em andamento; estourado o
        prazo, abandona as conexões e cancela o loop de accept.

        Raises:
            ServerStateError: Servidor nunca iniciado.
            ShutdownTimeoutError: O prazo estourou (servidor parado mesmo assim).
        """
        if self._state is ServerState.INITIALIZED:
            raise ServerStateError("cannot shutdown: server was never started")
        accept_task = self._accept_task
        if accept_task is None or self._listener is None or accept_task.done():
            return

        self._state = ServerState.SHUTTING_DOWN
        self._exit_requested = True
        self._listener.request_exit()

        _, pending = await asyncio.wait({accept_task}, timeout=self._shutdown_timeout)
        if not pending:
            return

        self._listener.force_exit()
        accept_task.cancel()
        await asyncio.gather(accept_task, return_exceptions=True)
        raise ShutdownTimeoutError(
            f"graceful shutdown exceeded {self._shutdown_timeout}s"
        )

    async def reconfigure(self) -> None:
        """Hook de reconfiguração; reservado, não altera o estado."""
        return None

    async def _run(self, parent: asyncio.Event | None, config: ListenerConfig) -> None:
        if self._state is not ServerState.INITIALIZED:
            raise ServerStateError(f"cannot start: server is {self._state.value}")

        loop = asyncio.get_running_loop()
        self._listener = self._listener_factory(self._app, config)
        self._install_signal_handlers(loop)
        self._state = ServerState.LISTENING
        self._logger.info(
            "server_listening",
            extra={
                "address": self._address,
                "tls": config.tls,
                "routes": sorted(self._routes),
            },
        )
        self._accept_task = asyncio.create_task(
            self._accept_loop(self._listener),
            name="ezcx-accept-loop",
        )

        try:
            await self._govern(parent)
        except asyncio.CancelledError:
            self._logger.info("server_context_cancelled", extra={"address": self._address})
            raise
        finally:
            await self._teardown(loop)

    async def _govern(self, parent: asyncio.Event | None) -> None:
        accept_task = self._accept_task
        assert accept_task is not None

        parent_wait = asyncio.ensure_future(parent.wait()) if parent is not None else None
        error_wait: asyncio.Future[BaseException] | None = None
        signal_wait: asyncio.Future[signal.Signals] | None = None
        try:
            while True:
                if error_wait is None:
                    error_wait = asyncio.ensure_future(self._errors.get())
                if signal_wait is None:
                    signal_wait = asyncio.ensure_future(self._signal_queue.get())
                waiters: set[asyncio.Future] = {error_wait, signal_wait, accept_task}
                if parent_wait is not None:
                    waiters.add(parent_wait)

                await asyncio.wait(waiters, return_when=asyncio.FIRST_COMPLETED)

                if parent_wait is not None and parent_wait.done():
                    self._logger.info("server_context_done", extra={"address": self._address})
                    return

                if error_wait.done():
                    self._log_listener_failure(error_wait.result())
                    return

                if accept_task.done():
                    with contextlib.suppress(asyncio.QueueEmpty):
                        self._log_listener_failure(self._errors.get_nowait())
                        return
                    self._logger.info("server_listener_closed", extra={"address": self._address})
                    return

                sig = signal_wait.result()
                signal_wait = None
                self._logger.info(
                    "server_signal_received",
                    extra={"address": self._address, "signal": sig.name},
                )
                if sig == self._reconfigure_signal:
                    await self._handle_reconfigure()
                    continue

                await self._graceful_shutdown()
                return
        finally:
            for waiter in (parent_wait, error_wait, signal_wait):
                if waiter is not None:
                    waiter.cancel()

    async def _accept_loop(self, listener: ListenerProtocol) -> None:
        try:
            await listener.serve()
        except Exception as exc:
            error = ListenerFatalError(f"listener failed: {type(exc).__name__}: {exc}")
            error.__cause__ = exc
            self._errors.put_nowait(error)
            return
        if not self._exit_requested:
            self._errors.put_nowait(ListenerFatalError("listener stopped without shutdown"))

    async def _handle_reconfigure(self) -> None:
        try:
            await self.reconfigure()
        except Exception as exc:
            self._logger.error(
                "server_reconfigure_failed",
                extra={"address": self._address, "error_type": type(exc).__name__},
            )
            self._errors.put_nowait(exc)

    async def _graceful_shutdown(self) -> None:
        self._logger.info(
            "server_graceful_shutdown_started",
            extra={"address": self._address, "timeout_seconds": self._shutdown_timeout},
        )
        try:
            await self.shutdown()
        except ShutdownTimeoutError as exc:
            self._logger.error(
                "server_shutdown_timeout",
                extra={
                    "address": self._address,
                    "timeout_seconds": self._shutdown_timeout,
                    "error": str(exc),
                },
            )
        else:
            self._logger.info("server_shutdown_completed", extra={"address": self._address})

    async def _teardown(self, loop: asyncio.AbstractEventLoop) -> None:
        if self._state is ServerState.LISTENING:
            self._state = ServerState.SHUTTING_DOWN
            self._logger.info("server_shutting_down", extra={"address": self._address})
        # Sinais só são removidos depois que o loop de accept parou
        accept_task = self._accept_task
        if accept_task is not None and not accept_task.done():
            self._exit_requested = True
            if self._listener is not None:
                self._listener.force_exit()
            _, pending = await asyncio.wait({accept_task}, timeout=self._shutdown_timeout)
            if pending:
                accept_task.cancel()
        if accept_task is not None:
            await asyncio.gather(accept_task, return_exceptions=True)

        self._remove_signal_handlers(loop)
        self._drain_queues()
        self._state = ServerState.STOPPED
        self._logger.info("server_stopped", extra={"address": self._address})

    def _log_listener_failure(self, error: BaseException) -> None:
        cause = error.__cause__ or error
        self._logger.critical(
            "server_listener_failed",
            extra={
                "address": self._address,
                "error": str(error),
                "error_type": type(cause).__name__,
            },
        )

    def _install_signal_handlers(self, loop: asyncio.AbstractEventLoop) -> None:
        for sig in self._signals:
            try:
                loop.add_signal_handler(sig, self._signal_queue.put_nowait, sig)
            except (NotImplementedError, RuntimeError, ValueError) as exc:
                self._logger.warning(
                    "server_signal_unavailable",
                    extra={"signal": sig.name, "error_type": type(exc).__name__},
                )
                continue
            self._installed_signals.append(sig)

    def _remove_signal_handlers(self, loop: asyncio.AbstractEventLoop) -> None:
        for sig in self._installed_signals:
            loop.remove_signal_handler(sig)
        self._installed_signals.clear()

    def _drain_queues(self) -> None:
        for queue in (self._errors, self._signal_queue):
            while not queue.empty():
                queue.get_nowait()
