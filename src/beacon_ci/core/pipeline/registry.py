# src/beacon_ci/core/pipeline/registry.py
"""
Registro estrutural de jobs do pipeline de verificação.

O `JobRegistry` valida a integridade estrutural da lista de jobs antes de
qualquer execução:
    - cada job possui um identificador válido
    - não existem identificadores duplicados
    - a ordem de declaração é preservada (é a ordem dos resultados)

Limites explícitos:
    - Não executa jobs
    - Não resolve dependências (jobs de verificação são independentes)
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Iterable, List

from .job import Job


class DuplicateJobIdError(ValueError):
    """
    Exceção levantada ao registrar dois jobs com o mesmo `job.id`.

    Resultados, mensagens de alerta e o Manifest são indexados por `job.id`;
    a duplicidade é tratada como erro fatal de configuração.
    """


@dataclass
class JobRegistry:
    """Registro canônico de jobs para validação estrutural pré-execução."""

    _jobs: Dict[str, Job] = field(default_factory=dict, init=False, repr=False)
    _order: List[str] = field(default_factory=list, init=False, repr=False)

    @classmethod
    def of(cls, jobs: Iterable[Job]) -> "JobRegistry":
        registry = cls()
        for job in jobs:
            registry.add(job)
        return registry

    def add(self, job: Job) -> None:
        job_id = getattr(job, "id", None)
        if not isinstance(job_id, str) or not job_id.strip():
            raise ValueError("job.id must be a non-empty string")

        if job_id in self._jobs:
            raise DuplicateJobIdError(f"Duplicate job id: {job_id}")

        self._jobs[job_id] = job
        self._order.append(job_id)

    def get(self, job_id: str) -> Job:
        return self._jobs[job_id]

    def list(self) -> List[Job]:
        return [self._jobs[jid] for jid in self._order]

    def __len__(self) -> int:
        return len(self._order)
