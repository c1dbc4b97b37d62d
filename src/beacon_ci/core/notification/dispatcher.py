# src/beacon_ci/core/notification/dispatcher.py
"""
NotificationDispatcher — alerta de falha com gate de branch.

Regra (NotificationRule):
    notificar  ⇔  overall_status == FAILURE  ∧  branch do evento é o protegido

Eventos `pull_request` nunca notificam, qualquer que seja o resultado.

Construção do alerta:
    - pretext fixo por tipo de pipeline (`CI` ou `Publish`)
    - texto: uma linha ` :warning: <mensagem>` por job com falha, com a
      mensagem vinda de `NOTIFICATION_MESSAGES` (job_id → mensagem); para o
      pipeline de publicação, a mensagem da chave `publish`
    - cor fixa de severidade
    - URL da run: `<server_url>/<repository>/actions/runs/<run_id>`

Entrega:
    - exatamente um POST por run com falha
    - fire-and-forget: falha de entrega é registrada no RunContext e descartada

Invariantes:
    - No máximo uma Notification por PipelineRun
    - A URL do webhook nunca é logada
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional

from beacon_ci.core.exceptions import NotificationDeliveryFailure
from beacon_ci.core.pipeline.context import RunContext
from beacon_ci.core.pipeline.run import PipelineRun
from beacon_ci.core.pipeline.types import PipelineKind, PipelineStatus
from beacon_ci.core.trigger.event import EventKind

from .transport import WebhookTransport


STEP_ID = "notification"

SEVERITY_COLOR = "#D00000"
ACTION_URL_TITLE = "Action URL"
WARNING_PREFIX = " :warning: "

NOTIFICATION_MESSAGES: Dict[str, str] = {
    "format": "Formatting check failed!",
    "lint": "Analyzing code with Clippy-equivalent static analysis failed!",
    "audit": "Audits failed!",
    "test": "Tests failed!",
    "publish": "Publish failed!",
}

PRETEXTS: Dict[PipelineKind, str] = {
    PipelineKind.VERIFICATION: "`{project} CI` requires your attention!",
    PipelineKind.PUBLISH: "`{project} Publish` requires your attention!",
}


@dataclass(frozen=True)
class Notification:
    pretext: str
    message: str
    color: str
    action_url: str

    def to_payload(self) -> Dict[str, Any]:
        """Corpo JSON no formato exato esperado pelo canal de alertas."""
        return {
            "attachments": [
                {
                    "pretext": self.pretext,
                    "text": self.message,
                    "color": self.color,
                    "fields": [{"title": ACTION_URL_TITLE, "value": self.action_url}],
                }
            ]
        }


@dataclass(frozen=True)
class NotificationRule:
    protected_branch: str

    def holds(self, run: PipelineRun) -> bool:
        if run.overall_status != PipelineStatus.FAILURE:
            return False
        if run.trigger.event_kind == EventKind.PULL_REQUEST:
            return False
        return bool(run.trigger.branch) and run.trigger.branch == self.protected_branch


def action_url(server_url: str, repository: str, run_id: str) -> str:
    return f"{server_url.rstrip('/')}/{repository}/actions/runs/{run_id}"


@dataclass
class NotificationDispatcher:
    """
    Decide e envia o alerta de uma PipelineRun.

    `webhook_url` ausente não é erro de configuração: a entrega falha de
    forma registrada, como qualquer outra falha de entrega.
    """

    rule: NotificationRule
    transport: WebhookTransport
    webhook_url: Optional[str]
    project: str
    server_url: str
    repository: str
    color: str = SEVERITY_COLOR
    pretexts: Mapping[PipelineKind, str] = field(default_factory=lambda: dict(PRETEXTS))
    messages: Mapping[str, str] = field(default_factory=lambda: dict(NOTIFICATION_MESSAGES))

    def _lines(self, run: PipelineRun) -> List[str]:
        if run.kind == PipelineKind.PUBLISH:
            return [self.messages.get("publish", NOTIFICATION_MESSAGES["publish"])]
        lines = []
        for result in run.failed_jobs():
            lines.append(self.messages.get(result.job_id, f"{result.name or result.job_id} failed!"))
        return lines

    def build(self, run: PipelineRun) -> Notification:
        template = self.pretexts.get(run.kind, PRETEXTS[run.kind])
        return Notification(
            pretext=template.format(project=self.project),
            message="\n".join(f"{WARNING_PREFIX}{line}" for line in self._lines(run)),
            color=self.color,
            action_url=action_url(self.server_url, self.repository, run.run_id),
        )

    def _deliver(self, notification: Notification) -> None:
        if not self.webhook_url:
            raise NotificationDeliveryFailure(
                message="Webhook de notificação não configurado",
                details={"reason": "missing_webhook_url", "status_code": None},
            )
        self.transport.post(self.webhook_url, notification.to_payload())

    def dispatch(self, run: PipelineRun, ctx: RunContext) -> Optional[Notification]:
        """
        Aplica a regra e, se ela valer, envia exatamente um alerta.

        Returns:
            A Notification enviada, ou None quando a regra não vale ou a
            entrega falhou (a falha fica registrada no RunContext).
        """
        if not self.rule.holds(run):
            ctx.log(
                step_id=STEP_ID,
                level="debug",
                message="notification not required",
                pipeline=run.kind.value,
                overall_status=run.overall_status.value,
                branch=run.trigger.branch,
            )
            return None

        notification = self.build(run)
        try:
            self._deliver(notification)
        except NotificationDeliveryFailure as exc:
            ctx.log(
                step_id=STEP_ID,
                level="warning",
                message=exc.message,
                pipeline=run.kind.value,
                error=exc.to_payload().to_dict(),
            )
            ctx.add_warning(step_id=STEP_ID, message=f"{run.kind.value}: {exc.message}")
            return None

        ctx.log(
            step_id=STEP_ID,
            level="info",
            message="notification sent",
            pipeline=run.kind.value,
            failed_jobs=[r.job_id for r in run.failed_jobs()],
        )
        return notification
