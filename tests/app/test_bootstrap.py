"""Testes para app.bootstrap."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Iterator

import pytest

from app.bootstrap import create_server, initialize_app, run_server, validate_runtime_settings
from app.protocols.listener import ListenerConfig
from app.server import ServerState
from config.settings import BaseSettings, ServerSettings


@pytest.fixture(autouse=True)
def _restore_root_logger() -> Iterator[None]:
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    root.handlers = handlers
    root.setLevel(level)


class FailingListener:
    """Listener que falha no bind e registra a config recebida."""

    configs: list[ListenerConfig] = []

    def __init__(self, app: object, config: ListenerConfig) -> None:
        FailingListener.configs.append(config)

    async def serve(self) -> None:
        raise OSError("address in use")

    def request_exit(self) -> None:
        return

    def force_exit(self) -> None:
        return


class TestInitializeApp:
    """Testes para initialize_app."""

    def test_configures_root_logger(self) -> None:
        initialize_app(BaseSettings(log_level="WARNING"))
        assert logging.getLogger().level == logging.WARNING


class TestValidateRuntimeSettings:
    """Testes para validate_runtime_settings."""

    def test_development_only_warns(self) -> None:
        validate_runtime_settings(BaseSettings(), ServerSettings(port=0))

    def test_production_fails_fast(self) -> None:
        with pytest.raises(RuntimeError, match="production"):
            validate_runtime_settings(
                BaseSettings(environment="production"),
                ServerSettings(tls_cert_file="cert.pem"),
            )


class TestCreateServer:
    """Testes para create_server / run_server."""

    def test_server_from_settings(self) -> None:
        server = create_server(ServerSettings(host="127.0.0.1", port=9000, shutdown_timeout_seconds=1))
        assert server.address == "127.0.0.1:9000"
        assert server.shutdown_timeout == 1
        assert server.state is ServerState.INITIALIZED

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        ("settings", "tls"),
        [
            (ServerSettings(port=9001), False),
            (ServerSettings(port=9001, tls_cert_file="c.pem", tls_key_file="k.pem"), True),
        ],
    )
    async def test_run_server_picks_transport(self, settings: ServerSettings, tls: bool) -> None:
        from app.server import WebhookServer

        FailingListener.configs.clear()
        server = WebhookServer(
            settings.address,
            signals=(),
            listener_factory=FailingListener,
        )
        await asyncio.wait_for(run_server(server, settings), timeout=2)

        assert server.state is ServerState.STOPPED
        assert FailingListener.configs[0].tls is tls
