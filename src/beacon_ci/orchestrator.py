# src/beacon_ci/orchestrator.py
"""
Orchestrator — ponto de entrada do Beacon CI para um evento.

Fluxo:
    evento → TriggerEvaluator → {JobGraph | PublishPipeline} → NotificationDispatcher

Decisões arquiteturais:
    - Verificação e publicação rodam em sequência e de forma independente:
      a publicação de um push no branch protegido não depende do resultado da
      verificação
    - Cada PipelineRun passa pelo despacho de notificação uma única vez
    - Colaboradores externos (executor de comandos, transporte do webhook,
      provider de credenciais, workspace) são injetáveis

Limites explícitos:
    - Não lê arquivos de configuração nem ambiente (recebe `OrchestratorConfig`)
    - Não persiste o Manifest (ver CLI)
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple, Union

from beacon_ci import __version__
from beacon_ci.core.config.model import OrchestratorConfig
from beacon_ci.core.engine.executor import CommandExecutor, SubprocessExecutor
from beacon_ci.core.engine.graph import JobGraph
from beacon_ci.core.engine.runner import CheckoutWorkspace, JobRunner, WorkspaceProvider
from beacon_ci.core.notification.dispatcher import (
    STEP_ID as NOTIFICATION_STEP_ID,
    Notification,
    NotificationDispatcher,
    NotificationRule,
)
from beacon_ci.core.notification.transport import HttpxWebhookTransport, WebhookTransport
from beacon_ci.core.pipeline.context import RunContext
from beacon_ci.core.pipeline.run import PipelineRun
from beacon_ci.core.pipeline.types import PipelineStatus
from beacon_ci.core.publish.credentials import CredentialsProvider, credentials_from_settings
from beacon_ci.core.publish.pipeline import PublishPipeline
from beacon_ci.core.traceability.manifest import (
    RunManifest,
    create_manifest,
    notification_failed,
    notification_sent,
    record_job_result,
    run_finished,
    run_started,
)
from beacon_ci.core.trigger.evaluator import TriggerEvaluator, TriggerPlan
from beacon_ci.core.trigger.event import TriggerEvent


STEP_ID = "orchestrator"


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class OrchestrationResult:
    plan: TriggerPlan
    runs: Tuple[PipelineRun, ...]
    notifications: Tuple[Notification, ...]
    manifest: RunManifest
    ctx: RunContext = field(repr=False, compare=False)

    @property
    def succeeded(self) -> bool:
        """Verdadeiro quando todo pipeline agendado terminou com sucesso (plano vazio incluso)."""
        return all(r.overall_status == PipelineStatus.SUCCESS for r in self.runs)

    @property
    def status(self) -> PipelineStatus:
        return PipelineStatus.SUCCESS if self.succeeded else PipelineStatus.FAILURE

    def to_dict(self) -> Dict[str, Any]:
        return {
            "run_id": self.ctx.run_id,
            "status": self.status.value,
            "plan": self.plan.to_dict(),
            "runs": [r.to_dict() for r in self.runs],
            "notifications": [n.to_payload() for n in self.notifications],
            "warnings": {k: list(v) for k, v in self.ctx.warnings.items()},
        }


class Orchestrator:
    """Executa os pipelines decididos para um evento."""

    def __init__(
        self,
        config: OrchestratorConfig,
        *,
        source: Union[str, Path] = ".",
        executor: Optional[CommandExecutor] = None,
        workspace: Optional[WorkspaceProvider] = None,
        transport: Optional[WebhookTransport] = None,
        credentials: Optional[CredentialsProvider] = None,
    ):
        self.config = config
        self.source = Path(source)
        self.executor = executor or SubprocessExecutor()
        self.workspace = workspace or CheckoutWorkspace(
            executor=self.executor,
            source=str(self.source),
            checkout_command=config.runner.checkout_command,
            recursive_flags=config.runner.recursive_checkout_flags,
            timeout=config.runner.default_timeout_seconds,
        )
        self.transport = transport or HttpxWebhookTransport(timeout=config.notification.timeout_seconds)
        self.credentials = credentials or credentials_from_settings(
            config.settings, registry_url=config.publish.registry_url
        )
        self.evaluator = TriggerEvaluator(protected_branch=config.protected_branch)

    # ------------------------------------------------------------------
    # Montagem dos colaboradores
    # ------------------------------------------------------------------
    def plan(self, event: TriggerEvent) -> TriggerPlan:
        return self.evaluator.evaluate(event)

    def _graph(self) -> JobGraph:
        runner = JobRunner(
            executor=self.executor,
            workspace=self.workspace,
            container_runtime=self.config.runner.container_runtime,
            default_timeout=self.config.runner.default_timeout_seconds,
            output_tail_chars=self.config.runner.output_tail_chars,
            secrets=self.config.settings.job_secrets,
        )
        return JobGraph(
            jobs=self.config.jobs,
            runner=runner,
            max_workers=self.config.runner.max_parallel_jobs,
        )

    def _publish_pipeline(self) -> PublishPipeline:
        return PublishPipeline(
            settings=self.config.publish,
            executor=self.executor,
            credentials=self.credentials,
            workdir=self.source,
            output_tail_chars=self.config.runner.output_tail_chars,
        )

    def _dispatcher(self) -> NotificationDispatcher:
        n = self.config.notification
        return NotificationDispatcher(
            rule=NotificationRule(protected_branch=self.config.protected_branch),
            transport=self.transport,
            webhook_url=self.config.webhook_url,
            project=self.config.project,
            server_url=n.server_url,
            repository=self.config.metadata.repository,
            color=n.color,
            pretexts=n.pretexts,
            messages=n.messages,
        )

    # ------------------------------------------------------------------
    # Execução
    # ------------------------------------------------------------------
    def _notify(
        self,
        run: PipelineRun,
        *,
        ctx: RunContext,
        manifest: RunManifest,
        dispatcher: NotificationDispatcher,
    ) -> Optional[Notification]:
        required = dispatcher.rule.holds(run)
        notification = dispatcher.dispatch(run, ctx)
        if not required:
            return None

        pipeline = run.kind.value
        if notification is not None:
            notification_sent(
                manifest,
                pipeline=pipeline,
                ts=_utc_now(),
                failed_jobs=[r.job_id for r in run.failed_jobs()],
            )
        else:
            events = ctx.events_for(NOTIFICATION_STEP_ID)
            error = events[-1].get("error", {}) if events else {}
            notification_failed(manifest, pipeline=pipeline, ts=_utc_now(), error=error)
        return notification

    def handle(self, event: TriggerEvent, *, run_id: Optional[str] = None) -> OrchestrationResult:
        run_id = run_id or self.config.metadata.run_id or f"local-{uuid.uuid4().hex[:12]}"
        started = _utc_now()
        ctx = RunContext(
            run_id=run_id,
            created_at=started,
            config=self.config.raw,
            meta={
                "source": str(self.source),
                "repository": self.config.metadata.repository,
                "project": self.config.project,
            },
        )

        plan = self.plan(event)
        ctx.log(step_id=STEP_ID, level="info", message="trigger evaluated", plan=plan.to_dict())

        manifest = create_manifest(
            run_id=run_id,
            started_at=started,
            beacon_version=__version__,
            config_hash=self.config.config_hash,
            trigger=event.to_dict(),
        )
        run_started(manifest, ts=started, pipelines=sorted(p.value for p in plan.pipelines))

        dispatcher = self._dispatcher()
        runs: List[PipelineRun] = []
        notifications: List[Notification] = []

        if plan.is_empty:
            ctx.log(step_id=STEP_ID, level="info", message="no pipeline scheduled", event=event.to_dict())

        def complete(run: PipelineRun) -> None:
            runs.append(run)
            for outcome in run.outcomes.values():
                record_job_result(manifest, pipeline=run.kind.value, result=outcome, ts=_utc_now())
            notification = self._notify(run, ctx=ctx, manifest=manifest, dispatcher=dispatcher)
            if notification is not None:
                notifications.append(notification)

        if plan.runs_verification:
            complete(self._graph().run(ctx=ctx, trigger=event, run_id=run_id))

        if plan.runs_publish:
            complete(
                self._publish_pipeline().run(
                    ctx=ctx,
                    trigger=event,
                    version_tagging=plan.version_tagging,
                    run_id=run_id,
                )
            )

        result = OrchestrationResult(
            plan=plan,
            runs=tuple(runs),
            notifications=tuple(notifications),
            manifest=manifest,
            ctx=ctx,
        )
        run_finished(manifest, ts=_utc_now(), status=result.status.value)
        ctx.log(step_id=STEP_ID, level="info", message="run finished", status=result.status.value)
        return result
