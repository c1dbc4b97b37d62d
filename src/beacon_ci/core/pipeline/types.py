# src/beacon_ci/core/pipeline/types.py
"""
Tipos canônicos do pipeline do Beacon CI.

Este módulo define as estruturas e enums fundamentais que padronizam a
comunicação entre JobRunner, JobGraph, PublishPipeline e o despacho de
notificações:

    - JobStatus      → estados finais de um job (SUCCESS, FAILED, SKIPPED)
    - PipelineKind   → verificação ou publicação
    - PipelineStatus → status agregado de uma run
    - JobResult      → resultado imutável de um job ou etapa de publicação

Invariantes:
    - Enums possuem valores textuais canônicos (persistidos no Manifest)
    - JobResult é imutável
    - O status agregado é função pura dos resultados e de `continue_on_error`
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterable, List


class JobStatus(str, Enum):
    """
    Estados finais possíveis de um job.

    Estados definidos:
        - SUCCESS: comando terminou com exit status zero
        - FAILED: checkout, setup ou comando falhou (inclui timeout)
        - SKIPPED: etapa não executada por decisão explícita
          (tag sem release, etapa após falha terminal, job desabilitado)

    Estados intermediários (ex.: running) não pertencem a este enum.
    """
    SUCCESS = "success"
    FAILED = "failed"
    SKIPPED = "skipped"


class PipelineKind(str, Enum):
    VERIFICATION = "verification"
    PUBLISH = "publish"


class PipelineStatus(str, Enum):
    SUCCESS = "success"
    FAILURE = "failure"


@dataclass(frozen=True)
class JobResult:
    """
    Resultado imutável da execução de um job.

    Campos:
        - job_id: identificador único do job (ou da etapa de publicação)
        - status: estado final
        - summary: resumo textual
        - continue_on_error: política do job, copiada no momento da execução
        - name: título legível do job
        - metrics: exit_code, duration_ms, ...
        - warnings: avisos não fatais
        - payload: dados adicionais (ex.: `error`, `output_tail`)
    """
    job_id: str
    status: JobStatus
    summary: str
    continue_on_error: bool = False
    name: str = ""
    metrics: Dict[str, Any] = field(default_factory=dict)
    warnings: List[str] = field(default_factory=list)
    payload: Dict[str, Any] = field(default_factory=dict)

    @property
    def failed(self) -> bool:
        return self.status == JobStatus.FAILED

    @property
    def is_blocking_failure(self) -> bool:
        return self.failed and not self.continue_on_error

    def to_dict(self) -> Dict[str, Any]:
        return {
            "job_id": self.job_id,
            "name": self.name,
            "status": self.status.value,
            "summary": self.summary,
            "continue_on_error": self.continue_on_error,
            "metrics": dict(self.metrics),
            "warnings": list(self.warnings),
            "payload": dict(self.payload),
        }


def aggregate_status(results: Iterable[JobResult]) -> PipelineStatus:
    """
    Agrega o status de uma run a partir dos resultados dos jobs.

    FAILURE se e somente se ao menos um job com `continue_on_error=False`
    falhou. Jobs tolerantes a erro têm a falha registrada individualmente,
    mas nunca alteram o status agregado.
    """
    for result in results:
        if result.is_blocking_failure:
            return PipelineStatus.FAILURE
    return PipelineStatus.SUCCESS
