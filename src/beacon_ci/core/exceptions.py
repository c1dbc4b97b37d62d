"""
Beacon CI — Canonical Exceptions (v1)

Este módulo define exceções tipadas internas do Beacon CI.

Objetivo:
- Permitir que JobRunner/PublishPipeline levantem falhas semânticas tipadas
- Facilitar o mapeamento determinístico para BeaconErrorPayload
- Evitar RuntimeError genérico nos pontos de decisão do orquestrador

Regras:
- Exceções carregam apenas dados estruturados (serializáveis).
- Nenhuma exceção carrega segredos (senha, token, webhook).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from .errors import (
    AUTHENTICATION_FAILED,
    BUILD_FAILED,
    CHECKOUT_FAILED,
    JOB_FAILED,
    JOB_TIMEOUT,
    NOTIFICATION_DELIVERY_FAILED,
    PUSH_FAILED,
    TAG_FAILED,
    VERSION_PARSE_ERROR,
    BeaconErrorPayload,
)


@dataclass(eq=False)
class BeaconException(Exception):
    """Base class para exceções internas do Beacon CI.

    Importante:
    - Sempre carregar dados estruturados em `details`
    - Mensagem deve ser curta e humana
    """

    message: str
    details: Dict[str, Any] = field(default_factory=dict)
    hint: Optional[str] = None

    error_type = "ENGINE_EXECUTION_ERROR"

    def __post_init__(self) -> None:
        super().__init__(self.message)

    def __str__(self) -> str:
        return self.message

    def to_payload(self) -> BeaconErrorPayload:
        return BeaconErrorPayload(
            type=self.error_type,
            message=self.message,
            details=dict(self.details),
            hint=self.hint,
        )


# ---------------------------------------------------------------------------
# Verificação
# ---------------------------------------------------------------------------

@dataclass(eq=False)
class JobFailure(BeaconException):
    """
    Comando de um job de verificação terminou com exit status não-zero.

    `command` guarda o `CommandResult` da fase que falhou (saída capturada
    para o JobResult); não entra no payload.
    """

    command: Any = field(default=None, repr=False)

    error_type = JOB_FAILED


@dataclass(eq=False)
class JobTimeout(JobFailure):
    """Job excedeu o tempo limite do ambiente."""

    error_type = JOB_TIMEOUT


@dataclass(eq=False)
class CheckoutFailure(BeaconException):
    """Checkout isolado do job não pôde ser preparado."""

    error_type = CHECKOUT_FAILED


# ---------------------------------------------------------------------------
# Publicação
# ---------------------------------------------------------------------------

@dataclass(eq=False)
class ParseError(BeaconException):
    """Manifesto não contém uma declaração de versão utilizável."""

    error_type = VERSION_PARSE_ERROR


@dataclass(eq=False)
class BuildFailure(BeaconException):
    error_type = BUILD_FAILED


@dataclass(eq=False)
class TagFailure(BeaconException):
    error_type = TAG_FAILED


@dataclass(eq=False)
class AuthenticationFailure(BeaconException):
    error_type = AUTHENTICATION_FAILED


@dataclass(eq=False)
class PushFailure(BeaconException):
    error_type = PUSH_FAILED


# ---------------------------------------------------------------------------
# Notificação
# ---------------------------------------------------------------------------

@dataclass(eq=False)
class NotificationDeliveryFailure(BeaconException):
    """Entrega do alerta falhou. Registrada e descartada, nunca propagada."""

    error_type = NOTIFICATION_DELIVERY_FAILED
