# src/beacon_ci/core/publish/pipeline.py
"""
PublishPipeline — máquina de estados sequencial de publicação da imagem.

Etapas (estritamente sequenciais, sem retry):
    1. build        → `build-image` com o arquivo de build fixo; gera o
                      ImageArtifact com a tag padrão
    2. tag          → somente em release publicada: resolve a versão pelo
                      manifesto e aplica a tag; caso contrário SKIPPED
    3. authenticate → aquisição com escopo das credenciais + `registry-login`
                      (senha via stdin)
    4. push         → `registry-push` de cada tag associada ao artefato

A primeira falha terminal encerra o pipeline; as etapas restantes são
registradas como SKIPPED. O resultado é uma PipelineRun de tipo PUBLISH,
elegível ao mesmo despacho de notificação da verificação.

Invariantes:
    - Nenhuma etapa roda após falha terminal
    - A senha nunca é logada, persistida ou passada em argv
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Sequence

from beacon_ci.core.errors import engine_execution_error
from beacon_ci.core.exceptions import (
    AuthenticationFailure,
    BeaconException,
    BuildFailure,
    PushFailure,
    TagFailure,
)
from beacon_ci.core.engine.executor import CommandExecutor, CommandResult, render_argv
from beacon_ci.core.pipeline.context import RunContext
from beacon_ci.core.pipeline.run import PipelineRun
from beacon_ci.core.pipeline.types import JobResult, JobStatus, PipelineKind, PipelineStatus
from beacon_ci.core.trigger.event import TriggerEvent

from .artifact import DEFAULT_TAG, ImageArtifact
from .credentials import CredentialsProvider, acquire
from .version import resolve_version_file


STEP_BUILD = "build"
STEP_TAG = "tag"
STEP_AUTHENTICATE = "authenticate"
STEP_PUSH = "push"

PUBLISH_STEPS = (STEP_BUILD, STEP_TAG, STEP_AUTHENTICATE, STEP_PUSH)

STEP_NAMES = {
    STEP_BUILD: "Build image",
    STEP_TAG: "Tag image",
    STEP_AUTHENTICATE: "Log into registry",
    STEP_PUSH: "Push image",
}

DEFAULT_COMMANDS: Dict[str, Sequence[str]] = {
    STEP_BUILD: ("docker", "build", ".", "--file", "{build_file}", "--tag", "{image_id}"),
    STEP_TAG: ("docker", "tag", "{image_id}", "{image_id}:{tag}"),
    STEP_AUTHENTICATE: ("docker", "login", "{registry_url}", "--username", "{username}", "--password-stdin"),
    STEP_PUSH: ("docker", "image", "push", "{image_ref}"),
}

PIPELINE_STEP_ID = "publish"


@dataclass(frozen=True)
class PublishSettings:
    """Parâmetros estáticos do pipeline de publicação."""
    image_id: str
    registry_url: str
    build_file: str = "Dockerfile"
    manifest_path: str = "Cargo.toml"
    default_tag: str = DEFAULT_TAG
    timeout_seconds: Optional[float] = None
    commands: Mapping[str, Sequence[str]] = field(default_factory=lambda: dict(DEFAULT_COMMANDS), hash=False)

    def command(self, step: str) -> Sequence[str]:
        return self.commands.get(step) or DEFAULT_COMMANDS[step]


def _utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


class _StepFailed(Exception):
    """Sinal interno de falha terminal de etapa (carrega a exceção tipada)."""

    def __init__(self, error: BeaconException, command: Optional[CommandResult] = None):
        super().__init__(error.message)
        self.error = error
        self.command = command


class PublishPipeline:
    """Build → Tag (condicional) → Authenticate → Push."""

    def __init__(
        self,
        *,
        settings: PublishSettings,
        executor: CommandExecutor,
        credentials: CredentialsProvider,
        workdir: Path,
        output_tail_chars: int = 4000,
    ):
        self.settings = settings
        self.executor = executor
        self.credentials = credentials
        self.workdir = Path(workdir)
        self.output_tail_chars = output_tail_chars

    # ------------------------------------------------------------------
    # Execução de comandos
    # ------------------------------------------------------------------
    def _exec(self, argv: Sequence[str], *, stdin: Optional[str] = None) -> CommandResult:
        return self.executor.run(
            argv,
            cwd=self.workdir,
            stdin=stdin,
            timeout=self.settings.timeout_seconds,
        )

    # ------------------------------------------------------------------
    # Etapas
    # ------------------------------------------------------------------
    def _build(self, ctx: RunContext) -> ImageArtifact:
        argv = render_argv(
            self.settings.command(STEP_BUILD),
            build_file=self.settings.build_file,
            image_id=self.settings.image_id,
        )
        result = self._exec(argv)
        if not result.ok:
            raise _StepFailed(
                BuildFailure(
                    message="Build da imagem falhou",
                    details={"exit_code": result.exit_code, "timed_out": result.timed_out,
                             "build_file": self.settings.build_file},
                    hint="Reproduza o build localmente com o mesmo arquivo de build.",
                ),
                result,
            )
        ctx.log(step_id=STEP_BUILD, level="info", message="image built", image=self.settings.image_id)
        return ImageArtifact(base_id=self.settings.image_id, default_tag=self.settings.default_tag)

    def _tag(self, ctx: RunContext, artifact: ImageArtifact) -> ImageArtifact:
        manifest = self.workdir / self.settings.manifest_path
        try:
            version = resolve_version_file(manifest)
        except BeaconException as e:
            raise _StepFailed(e) from e

        argv = render_argv(self.settings.command(STEP_TAG), image_id=artifact.base_id, tag=version)
        result = self._exec(argv)
        if not result.ok:
            raise _StepFailed(
                TagFailure(
                    message="Tag de versão da imagem falhou",
                    details={"exit_code": result.exit_code, "tag": version},
                ),
                result,
            )
        ctx.log(step_id=STEP_TAG, level="info", message="image tagged", tag=version)
        return artifact.with_tag(version)

    def _authenticate(self, ctx: RunContext) -> None:
        try:
            with acquire(self.credentials) as creds:
                argv = render_argv(
                    self.settings.command(STEP_AUTHENTICATE),
                    registry_url=creds.registry_url,
                    username=creds.username,
                )
                result = self._exec(argv, stdin=creds.reveal())
                registry_url = creds.registry_url
        except BeaconException as e:
            raise _StepFailed(e) from e

        if not result.ok:
            raise _StepFailed(
                AuthenticationFailure(
                    message="Autenticação no registry falhou",
                    details={"exit_code": result.exit_code, "registry_url": registry_url},
                    hint="Verifique os segredos DOCKER_USERNAME/DOCKER_PASSWORD.",
                ),
                result,
            )
        ctx.log(step_id=STEP_AUTHENTICATE, level="info", message="registry login succeeded", registry_url=registry_url)

    def _push(self, ctx: RunContext, artifact: ImageArtifact) -> None:
        for ref in artifact.references():
            argv = render_argv(self.settings.command(STEP_PUSH), image_id=artifact.base_id, image_ref=ref)
            result = self._exec(argv)
            if not result.ok:
                raise _StepFailed(
                    PushFailure(
                        message="Push da imagem para o registry falhou",
                        details={"exit_code": result.exit_code, "image": ref},
                    ),
                    result,
                )
            ctx.log(step_id=STEP_PUSH, level="info", message="image pushed", image=ref)

    # ------------------------------------------------------------------
    # Máquina de estados
    # ------------------------------------------------------------------
    def _result(
        self,
        step: str,
        *,
        status: JobStatus,
        summary: str,
        started: Optional[float] = None,
        started_at: Optional[str] = None,
        command: Optional[CommandResult] = None,
        error: Optional[Dict[str, Any]] = None,
    ) -> JobResult:
        metrics: Dict[str, Any] = {}
        if started is not None:
            metrics = {
                "exit_code": command.exit_code if command is not None else None,
                "duration_ms": int(round((time.monotonic() - started) * 1000)),
                "started_at": started_at,
                "finished_at": _utc_now_iso(),
            }
        payload: Dict[str, Any] = {}
        if command is not None:
            payload["output_tail"] = command.output_tail(self.output_tail_chars)
        if error is not None:
            payload["error"] = error
        return JobResult(
            job_id=step,
            name=STEP_NAMES[step],
            status=status,
            summary=summary,
            metrics=metrics,
            payload=payload,
        )

    def run(
        self,
        *,
        ctx: RunContext,
        trigger: TriggerEvent,
        version_tagging: bool,
        run_id: Optional[str] = None,
    ) -> PipelineRun:
        ctx.log(
            step_id=PIPELINE_STEP_ID,
            level="info",
            message="publish started",
            image=self.settings.image_id,
            version_tagging=version_tagging,
        )

        outcomes: Dict[str, JobResult] = {}
        artifact: Optional[ImageArtifact] = None
        aborted = False

        for step in PUBLISH_STEPS:
            if aborted:
                outcomes[step] = self._result(step, status=JobStatus.SKIPPED, summary="skipped after terminal failure")
                continue
            if step == STEP_TAG and not version_tagging:
                outcomes[step] = self._result(step, status=JobStatus.SKIPPED, summary="not a published release")
                continue

            started = time.monotonic()
            started_at = _utc_now_iso()
            try:
                if step == STEP_BUILD:
                    artifact = self._build(ctx)
                elif step == STEP_TAG:
                    artifact = self._tag(ctx, artifact)
                elif step == STEP_AUTHENTICATE:
                    self._authenticate(ctx)
                else:
                    self._push(ctx, artifact)
            except _StepFailed as failure:
                aborted = True
                ctx.log(step_id=step, level="error", message=failure.error.message,
                        error_type=failure.error.error_type)
                outcomes[step] = self._result(
                    step,
                    status=JobStatus.FAILED,
                    summary=failure.error.message,
                    started=started,
                    started_at=started_at,
                    command=failure.command,
                    error=failure.error.to_payload().to_dict(),
                )
                continue
            except Exception as exc:
                aborted = True
                error = engine_execution_error(step=step, exc_type=exc.__class__.__name__, exc_message=str(exc))
                ctx.log(step_id=step, level="error", message=error.message, error_type=error.type)
                outcomes[step] = self._result(
                    step,
                    status=JobStatus.FAILED,
                    summary=error.message,
                    started=started,
                    started_at=started_at,
                    error=error.to_dict(),
                )
                continue

            outcomes[step] = self._result(
                step,
                status=JobStatus.SUCCESS,
                summary=f"{STEP_NAMES[step]} succeeded",
                started=started,
                started_at=started_at,
            )

        run = PipelineRun(
            run_id=run_id or ctx.run_id,
            kind=PipelineKind.PUBLISH,
            trigger=trigger,
            outcomes=outcomes,
            artifact=artifact,
        )
        status = run.overall_status
        ctx.log(
            step_id=PIPELINE_STEP_ID,
            level="info" if status == PipelineStatus.SUCCESS else "error",
            message="publish finished",
            overall_status=status.value,
            tags=artifact.sorted_tags() if artifact is not None else [],
        )
        return run
