# src/beacon_ci/core/pipeline/__init__.py
"""
# Pipeline Core — Beacon CI

Este pacote define os **tipos canônicos** e as **estruturas fundamentais**
compartilhadas pelos pipelines de verificação e publicação.

## Componentes

- **types**
  - `JobStatus`, `PipelineKind`, `PipelineStatus`
  - `JobResult`: resultado imutável de um job ou etapa
  - `aggregate_status`: regra de agregação com `continue_on_error`

- **job**
  - `Job`: definição estática de um job de verificação

- **context**
  - `RunContext`: log estruturado e warnings da invocação

- **registry**
  - `JobRegistry`: unicidade de `job.id` e ordem de declaração

- **run**
  - `PipelineRun`: resultado agregado sobre o qual a notificação é decidida

## Invariantes

- Cada job possui um `job.id` único
- O status agregado depende apenas dos resultados e de `continue_on_error`
"""

from .types import JobResult, JobStatus, PipelineKind, PipelineStatus, aggregate_status
from .job import Job, jobs_from_config
from .context import RunContext
from .registry import DuplicateJobIdError, JobRegistry
from .run import PipelineRun

__all__ = [
    "JobResult",
    "JobStatus",
    "PipelineKind",
    "PipelineStatus",
    "aggregate_status",
    "Job",
    "jobs_from_config",
    "RunContext",
    "DuplicateJobIdError",
    "JobRegistry",
    "PipelineRun",
]
