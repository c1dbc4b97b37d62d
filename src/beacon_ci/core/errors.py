"""
Beacon CI — Canonical Error Structures (v1)

Este módulo define o padrão canônico de erros do Beacon CI.
Falhas de jobs, de publicação e de notificação são artefatos da execução e
fazem parte do contrato operacional do orquestrador, devendo ser:

- explícitas
- serializáveis
- rastreáveis
- acionáveis

Nenhum segredo pode aparecer em `details`.
"""

from __future__ import annotations

from dataclasses import dataclass, asdict
from typing import Any, Dict, Optional


# ---------------------------------------------------------------------------
# Payload canônico
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class BeaconErrorPayload:
    """
    Payload canônico de erro do Beacon CI.

    Campos:
    - type: código estável do erro (não é texto livre)
    - message: mensagem curta, humana e objetiva
    - details: dados estruturados relevantes para diagnóstico
    - hint: ação sugerida ao operador (onde corrigir)
    """

    type: str
    message: str
    details: Dict[str, Any]
    hint: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """Retorna representação serializável do erro."""
        return asdict(self)


# ---------------------------------------------------------------------------
# Catálogo canônico de tipos de erro (v1)
# ---------------------------------------------------------------------------

# Verificação
JOB_FAILED = "JOB_FAILED"
JOB_TIMEOUT = "JOB_TIMEOUT"
CHECKOUT_FAILED = "CHECKOUT_FAILED"

# Publicação
VERSION_PARSE_ERROR = "VERSION_PARSE_ERROR"
BUILD_FAILED = "BUILD_FAILED"
TAG_FAILED = "TAG_FAILED"
AUTHENTICATION_FAILED = "AUTHENTICATION_FAILED"
PUSH_FAILED = "PUSH_FAILED"

# Notificação
NOTIFICATION_DELIVERY_FAILED = "NOTIFICATION_DELIVERY_FAILED"

# Engine / Execução
ENGINE_EXECUTION_ERROR = "ENGINE_EXECUTION_ERROR"


# ---------------------------------------------------------------------------
# Helpers de fábrica
# ---------------------------------------------------------------------------

def engine_execution_error(
    *,
    step: Optional[str] = None,
    exc_type: Optional[str] = None,
    exc_message: Optional[str] = None,
    hint: str = "Verifique o Event Log da run. Nenhum retry é aplicado automaticamente.",
) -> BeaconErrorPayload:
    return BeaconErrorPayload(
        type=ENGINE_EXECUTION_ERROR,
        message="Falha inesperada durante a execução do pipeline",
        details={
            "step": step,
            "exc_type": exc_type,
            "exc_message": exc_message,
        },
        hint=hint,
    )
