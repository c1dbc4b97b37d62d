# src/beacon_ci/core/engine/graph.py
"""
JobGraph — pipeline de verificação.

O grafo de verificação não possui arestas: format, lint, audit e test são
mutuamente independentes. Todos os jobs são submetidos a um pool de threads
limitado e executados até o fim, independentemente de falhas anteriores
(sem short-circuit).

Agregação:
    - status da run = FAILURE sse algum job com `continue_on_error=False` falhou
    - a regra vive em `aggregate_status` e depende apenas da política de cada
      job; nenhum job recebe tratamento especial aqui

Invariantes:
    - Cada job é executado exatamente uma vez por run
    - Os resultados são registrados na ordem de declaração, não de término
"""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from typing import Dict, List, Optional, Sequence

from beacon_ci.core.errors import engine_execution_error
from beacon_ci.core.pipeline.context import RunContext
from beacon_ci.core.pipeline.job import Job
from beacon_ci.core.pipeline.registry import JobRegistry
from beacon_ci.core.pipeline.run import PipelineRun
from beacon_ci.core.pipeline.types import JobResult, JobStatus, PipelineKind, PipelineStatus
from beacon_ci.core.trigger.event import TriggerEvent

from .runner import JobRunner


PIPELINE_STEP_ID = "verification"


class JobGraph:
    """Coordena a execução paralela dos jobs de verificação."""

    def __init__(self, *, jobs: Sequence[Job], runner: JobRunner, max_workers: int = 4):
        if max_workers < 1:
            raise ValueError("max_workers must be >= 1")
        self.registry = JobRegistry.of(jobs)
        if len(self.registry) == 0:
            raise ValueError("JobGraph requires at least one job")
        self.runner = runner
        self.max_workers = max_workers

    @property
    def jobs(self) -> List[Job]:
        return self.registry.list()

    def _run_one(self, job: Job, ctx: RunContext) -> JobResult:
        try:
            return self.runner.run(job, ctx)
        except Exception as exc:
            error = engine_execution_error(
                step=job.id,
                exc_type=exc.__class__.__name__,
                exc_message=str(exc),
            )
            ctx.log(step_id=job.id, level="error", message=error.message, error_type=error.type)
            return JobResult(
                job_id=job.id,
                name=job.name,
                status=JobStatus.FAILED,
                summary=error.message,
                continue_on_error=job.continue_on_error,
                payload={"error": error.to_dict()},
            )

    def run(self, *, ctx: RunContext, trigger: TriggerEvent, run_id: Optional[str] = None) -> PipelineRun:
        jobs = self.jobs
        ctx.log(
            step_id=PIPELINE_STEP_ID,
            level="info",
            message="verification started",
            jobs=[j.id for j in jobs],
        )

        outcomes: Dict[str, JobResult] = {}
        workers = min(self.max_workers, len(jobs))
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="beacon-job") as pool:
            futures = {job.id: pool.submit(self._run_one, job, ctx) for job in jobs}
            for job in jobs:
                outcomes[job.id] = futures[job.id].result()

        run = PipelineRun(
            run_id=run_id or ctx.run_id,
            kind=PipelineKind.VERIFICATION,
            trigger=trigger,
            outcomes=outcomes,
        )

        status = run.overall_status
        ctx.log(
            step_id=PIPELINE_STEP_ID,
            level="info" if status == PipelineStatus.SUCCESS else "error",
            message="verification finished",
            overall_status=status.value,
            failed_jobs=[r.job_id for r in run.failed_jobs()],
        )
        return run
