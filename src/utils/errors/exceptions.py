"""Exceções do adaptador de webhook.

Hierarquia única para que camadas externas (rotas, servidor) possam
classificar falhas sem depender de detalhes de pydantic/protobuf.
"""

from __future__ import annotations


class EzcxError(Exception):
    """Base para todas as falhas do adaptador."""


class ParseError(EzcxError, ValueError):
    """Corpo do webhook malformado ou com campo modelado inválido."""


class UnsupportedValueType(EzcxError, TypeError):
    """Valor nativo sem representação no protocolo.

    Attributes:
        key: Chave (ou caminho aninhado) do valor rejeitado, quando conhecida.
        value_type: Nome do tipo Python rejeitado.
    """

    def __init__(self, value_type: str, key: str | None = None) -> None:
        self.key = key
        self.value_type = value_type
        where = f" at key {key!r}" if key is not None else ""
        super().__init__(f"unsupported value type {value_type}{where}")

    def with_key(self, key: str) -> UnsupportedValueType:
        """Retorna cópia prefixando a chave ao caminho já conhecido."""
        path = key if self.key is None else f"{key}.{self.key}"
        return UnsupportedValueType(self.value_type, path)


class SerializeError(EzcxError):
    """Resposta montada não pôde ser codificada para o wire."""


class HandlerError(EzcxError):
    """Falha da lógica de negócio do handler (causa em __cause__)."""


class ListenerFatalError(EzcxError):
    """Listener HTTP não pode continuar (bind, accept, crash)."""


class ShutdownTimeoutError(EzcxError, TimeoutError):
    """Shutdown gracioso excedeu o prazo."""


class ContextNotBoundError(EzcxError, RuntimeError):
    """Contexto lido antes de ser anexado ao request."""


class ContextAlreadyBoundError(EzcxError, RuntimeError):
    """Contexto anexado mais de uma vez ao mesmo request."""


class DuplicateRouteError(EzcxError, ValueError):
    """Padrão de URL registrado duas vezes."""


class ServerStateError(EzcxError, RuntimeError):
    """Operação inválida para o estado atual do servidor."""
