"""Settings do servidor HTTP de webhook.

Variáveis de ambiente:
- HOST: interface de escuta (vazio = todas)
- PORT: porta TCP (Cloud Run injeta PORT)
- SHUTDOWN_TIMEOUT_SECONDS: janela do shutdown gracioso
- TLS_CERT_FILE / TLS_KEY_FILE: par de certificado para HTTPS
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache

DEFAULT_PORT = 8080
DEFAULT_SHUTDOWN_TIMEOUT_SECONDS = 5.0


@dataclass(frozen=True)
class ServerSettings:
    """Configurações do listener HTTP.

    Attributes:
        host: Interface de escuta ("" = todas)
        port: Porta TCP
        shutdown_timeout_seconds: Prazo do shutdown gracioso
        tls_cert_file: Caminho do certificado (vazio = HTTP puro)
        tls_key_file: Caminho da chave privada
    """

    host: str = ""
    port: int = DEFAULT_PORT
    shutdown_timeout_seconds: float = DEFAULT_SHUTDOWN_TIMEOUT_SECONDS
    tls_cert_file: str = ""
    tls_key_file: str = ""

    @property
    def address(self) -> str:
        """Endereço no formato ``host:port``."""
        return f"{self.host}:{self.port}"

    @property
    def tls_enabled(self) -> bool:
        return bool(self.tls_cert_file and self.tls_key_file)

    def validate(self) -> list[str]:
        """Valida configurações do servidor.

        Returns:
            Lista de erros (vazia = OK).
        """
        errors: list[str] = []

        if not 0 < self.port < 65536:
            errors.append(f"PORT fora do intervalo: {self.port}")

        if self.shutdown_timeout_seconds <= 0:
            errors.append("SHUTDOWN_TIMEOUT_SECONDS deve ser positivo")

        if bool(self.tls_cert_file) != bool(self.tls_key_file):
            errors.append("TLS_CERT_FILE e TLS_KEY_FILE devem ser informados juntos")

        return errors


def _parse_int(value: str, default: int) -> int:
    try:
        return int(value)
    except ValueError:
        return default


def _parse_float(value: str, default: float) -> float:
    try:
        return float(value)
    except ValueError:
        return default


def _load_server_from_env() -> ServerSettings:
    """Carrega ServerSettings de variáveis de ambiente."""
    return ServerSettings(
        host=os.getenv("HOST", ""),
        port=_parse_int(os.getenv("PORT", ""), DEFAULT_PORT),
        shutdown_timeout_seconds=_parse_float(
            os.getenv("SHUTDOWN_TIMEOUT_SECONDS", ""),
            DEFAULT_SHUTDOWN_TIMEOUT_SECONDS,
        ),
        tls_cert_file=os.getenv("TLS_CERT_FILE", ""),
        tls_key_file=os.getenv("TLS_KEY_FILE", ""),
    )


@lru_cache(maxsize=1)
def get_server_settings() -> ServerSettings:
    """Retorna instância cacheada de ServerSettings."""
    return _load_server_from_env()
