# src/beacon_ci/core/engine/runner.py
"""
JobRunner — execução isolada de um único job de verificação.

Cada job roda sobre um checkout novo do repositório (com sub-repositórios
quando o job pede) e em um ambiente isolado. Setup auxiliar declarado pelo
job é executado antes do comando, como pré-condição local: uma falha de
setup é indistinguível de uma falha do job.

Sequência por job:
    1. preparar workspace (checkout em diretório temporário)
    2. executar setup + comando (no host, ou em um único container descartável)
    3. converter o resultado em `JobResult` (timeout conta como falha); em
       container, um timeout remove o container nomeado antes do workspace
    4. remover o workspace

Invariantes:
    - Nenhum estado mutável é compartilhado entre jobs
    - `run` nunca propaga exceção: toda falha vira `JobResult` FAILED
    - Nenhum retry
    - Segredos do job chegam ao processo só pelo ambiente, nunca pelo argv
"""

from __future__ import annotations

import re
import shlex
import tempfile
import time
import uuid
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import ContextManager, Dict, Iterator, List, Mapping, Optional, Protocol, Sequence

from beacon_ci.core.errors import BeaconErrorPayload, engine_execution_error
from beacon_ci.core.exceptions import BeaconException, CheckoutFailure, JobFailure, JobTimeout
from beacon_ci.core.pipeline.context import RunContext
from beacon_ci.core.pipeline.job import Argv, Job
from beacon_ci.core.pipeline.types import JobResult, JobStatus

from .executor import CommandExecutor, CommandResult, render_argv


CONTAINER_WORKDIR = "/workspace"
CONTAINER_CLEANUP_TIMEOUT_SECONDS = 60.0

_CONTAINER_NAME_UNSAFE = re.compile(r"[^a-zA-Z0-9_.-]+")


class WorkspaceProvider(Protocol):
    """Fornece um diretório de trabalho exclusivo para a duração de um job."""

    def prepare(self, job: Job, ctx: RunContext) -> ContextManager[Path]:
        ...


class CheckoutWorkspace:
    """
    Workspace obtido por checkout em diretório temporário.

    O checkout em si é um comando externo (`runner.checkout_command`); quando o
    job declara `recursive_checkout`, `recursive_flags` são acrescentados ao fim
    do comando.
    """

    def __init__(
        self,
        *,
        executor: CommandExecutor,
        source: str,
        checkout_command: Sequence[str],
        recursive_flags: Sequence[str] = ("--recurse-submodules",),
        timeout: Optional[float] = None,
    ):
        self.executor = executor
        self.source = source
        self.checkout_command = tuple(checkout_command)
        self.recursive_flags = tuple(recursive_flags)
        self.timeout = timeout

    @contextmanager
    def prepare(self, job: Job, ctx: RunContext) -> Iterator[Path]:
        with tempfile.TemporaryDirectory(prefix=f"beacon-{job.id}-") as tmp:
            workdir = Path(tmp) / "checkout"
            argv = list(render_argv(self.checkout_command, source=self.source, workdir=str(workdir)))
            if job.recursive_checkout:
                argv.extend(self.recursive_flags)

            result = self.executor.run(argv, timeout=self.timeout)
            if not result.ok:
                raise CheckoutFailure(
                    message="Falha ao preparar o checkout isolado do job",
                    details={
                        "job_id": job.id,
                        "source": self.source,
                        "exit_code": result.exit_code,
                        "timed_out": result.timed_out,
                    },
                    hint="Verifique o caminho/URL do repositório e o acesso aos sub-repositórios.",
                )
            ctx.log(step_id=job.id, level="debug", message="checkout ready", recursive=job.recursive_checkout)
            yield workdir


class StaticWorkspace:
    """Workspace fixo (ex.: checkout já preparado pela plataforma de CI)."""

    def __init__(self, path: Path):
        self.path = Path(path)

    @contextmanager
    def prepare(self, job: Job, ctx: RunContext) -> Iterator[Path]:
        yield self.path


def _utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def container_name(job_id: str) -> str:
    """Nome único do container do job (`beacon-<job>-<hex>`), usado na limpeza."""
    safe = _CONTAINER_NAME_UNSAFE.sub("-", job_id).strip("-") or "job"
    return f"beacon-{safe}-{uuid.uuid4().hex[:8]}"


def _timeout_error(job: Job, phase: str, timeout: Optional[float], result: CommandResult) -> JobTimeout:
    return JobTimeout(
        message="Job excedeu o tempo limite do ambiente",
        details={"job_id": job.id, "timeout_seconds": timeout or 0, "phase": phase},
        hint="Aumente `timeout_seconds` do job ou investigue o comando bloqueado.",
        command=result,
    )


class JobRunner:
    """Executa um `Job` e reporta resultado + política `continue_on_error`."""

    def __init__(
        self,
        *,
        executor: CommandExecutor,
        workspace: WorkspaceProvider,
        container_runtime: Optional[str] = None,
        default_timeout: Optional[float] = None,
        output_tail_chars: int = 4000,
        secrets: Optional[Mapping[str, str]] = None,
    ):
        self.executor = executor
        self.workspace = workspace
        self.container_runtime = container_runtime
        self.default_timeout = default_timeout
        self.output_tail_chars = output_tail_chars
        self.secrets = dict(secrets or {})

    # ------------------------------------------------------------------
    # Montagem dos comandos
    # ------------------------------------------------------------------
    def _containerized(self, job: Job) -> bool:
        return bool(self.container_runtime and job.environment)

    def _secret_env(self, job: Job, ctx: RunContext) -> Dict[str, str]:
        env = {}
        for name in job.secrets:
            if name in self.secrets:
                env[name] = self.secrets[name]
            else:
                ctx.log(step_id=job.id, level="warning", message="secret unavailable", secret=name)
        return env

    def _container_argv(self, job: Job, workdir: Path, name: str, secret_names: Sequence[str]) -> Argv:
        """Um único `run --rm` com setup + comando em `sh -c`; segredos só por nome."""
        script = " && ".join(shlex.join(argv) for argv in (*job.setup, job.command))
        argv: List[str] = [
            self.container_runtime, "run", "--rm",
            "--name", name,
            "-v", f"{workdir}:{CONTAINER_WORKDIR}",
            "-w", CONTAINER_WORKDIR,
        ]
        for key, value in sorted(job.env.items()):
            argv.extend(["-e", f"{key}={value}"])
        for key in sorted(secret_names):
            argv.extend(["-e", key])
        argv.extend([job.environment, "sh", "-c", script])
        return tuple(argv)

    # ------------------------------------------------------------------
    # Execução
    # ------------------------------------------------------------------
    def _run_phase(
        self,
        job: Job,
        phase: str,
        argv: Argv,
        *,
        deadline: Optional[float],
        timeout: Optional[float],
        cwd: Optional[Path],
        env: Optional[Mapping[str, str]],
    ) -> CommandResult:
        remaining = None
        if deadline is not None:
            remaining = deadline - time.monotonic()
            if remaining <= 0:
                result = CommandResult(argv=tuple(argv), exit_code=None, timed_out=True)
                raise _timeout_error(job, phase, timeout, result)

        result = self.executor.run(argv, cwd=cwd, env=env, timeout=remaining)
        if result.timed_out:
            raise _timeout_error(job, phase, timeout, result)
        if not result.ok:
            raise JobFailure(
                message="Job de verificação terminou com erro",
                details={"job_id": job.id, "exit_code": result.exit_code, "phase": phase},
                hint="Consulte a saída capturada do job e reproduza o comando localmente.",
                command=result,
            )
        return result

    def _remove_container(self, job: Job, name: str, ctx: RunContext) -> None:
        # o timeout mata apenas o cliente; o container segue vivo sobre o workspace
        result = self.executor.run(
            [self.container_runtime, "rm", "-f", name], timeout=CONTAINER_CLEANUP_TIMEOUT_SECONDS
        )
        ctx.log(
            step_id=job.id,
            level="info" if result.ok else "warning",
            message="container removed" if result.ok else "container cleanup failed",
            container=name,
            exit_code=result.exit_code,
        )

    def _execute(self, job: Job, workdir: Path, ctx: RunContext) -> CommandResult:
        """
        Executa setup + comando e retorna o resultado do comando.

        Raises:
            JobFailure: exit status não-zero em qualquer fase.
            JobTimeout: o limite do job foi excedido.
        """
        timeout = job.timeout_seconds or self.default_timeout
        deadline = time.monotonic() + timeout if timeout else None
        secret_env = self._secret_env(job, ctx)

        if self._containerized(job):
            name = container_name(job.id)
            argv = self._container_argv(job, workdir, name, list(secret_env))
            try:
                return self._run_phase(
                    job, "command", argv, deadline=deadline, timeout=timeout, cwd=None, env=secret_env or None
                )
            except JobTimeout:
                self._remove_container(job, name, ctx)
                raise

        env = {**job.env, **secret_env}
        for argv in job.setup:
            self._run_phase(job, "setup", argv, deadline=deadline, timeout=timeout, cwd=workdir, env=env)
        return self._run_phase(job, "command", job.command, deadline=deadline, timeout=timeout, cwd=workdir, env=env)

    # ------------------------------------------------------------------
    # Resultado
    # ------------------------------------------------------------------
    def _result(
        self,
        job: Job,
        ctx: RunContext,
        *,
        status: JobStatus,
        summary: str,
        started_at: str,
        started: float,
        command: Optional[CommandResult] = None,
        error: Optional[BeaconErrorPayload] = None,
    ) -> JobResult:
        metrics = {
            "exit_code": command.exit_code if command is not None else None,
            "duration_ms": int(round((time.monotonic() - started) * 1000)),
            "started_at": started_at,
            "finished_at": _utc_now_iso(),
        }
        payload = {}
        if command is not None:
            payload["output_tail"] = command.output_tail(self.output_tail_chars)
        if error is not None:
            payload["error"] = error.to_dict()
        return JobResult(
            job_id=job.id,
            name=job.name,
            status=status,
            summary=summary,
            continue_on_error=job.continue_on_error,
            metrics=metrics,
            warnings=ctx.warnings_for(job.id),
            payload=payload,
        )

    def run(self, job: Job, ctx: RunContext) -> JobResult:
        started = time.monotonic()
        started_at = _utc_now_iso()
        ctx.log(step_id=job.id, level="info", message="job started", environment=job.environment)

        try:
            with self.workspace.prepare(job, ctx) as workdir:
                command = self._execute(job, workdir, ctx)
        except JobFailure as exc:
            command = exc.command
            level = "warning" if job.continue_on_error else "error"
            ctx.log(
                step_id=job.id,
                level=level,
                message="job failed",
                phase=exc.details.get("phase"),
                exit_code=command.exit_code if command is not None else None,
                timed_out=isinstance(exc, JobTimeout),
                continue_on_error=job.continue_on_error,
            )
            if job.continue_on_error:
                ctx.add_warning(step_id=job.id, message=f"{job.name} failed (continue_on_error)")
            return self._result(
                job,
                ctx,
                status=JobStatus.FAILED,
                summary=f"{job.name} failed",
                started_at=started_at,
                started=started,
                command=command,
                error=exc.to_payload(),
            )
        except BeaconException as exc:
            ctx.log(step_id=job.id, level="error", message=exc.message, error_type=exc.error_type)
            return self._result(
                job,
                ctx,
                status=JobStatus.FAILED,
                summary=exc.message,
                started_at=started_at,
                started=started,
                error=exc.to_payload(),
            )
        except Exception as exc:
            error = engine_execution_error(
                step=job.id,
                exc_type=exc.__class__.__name__,
                exc_message=str(exc),
            )
            ctx.log(step_id=job.id, level="error", message=error.message, error_type=error.type)
            return self._result(
                job,
                ctx,
                status=JobStatus.FAILED,
                summary=error.message,
                started_at=started_at,
                started=started,
                error=error,
            )

        ctx.log(step_id=job.id, level="info", message="job succeeded", duration_ms=command.duration_ms)
        return self._result(
            job,
            ctx,
            status=JobStatus.SUCCESS,
            summary=f"{job.name} succeeded",
            started_at=started_at,
            started=started,
            command=command,
        )
