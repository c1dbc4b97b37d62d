# src/beacon_ci/core/trigger/evaluator.py
"""
Avaliação de eventos: evento → pipelines a executar.

A decisão é uma tabela explícita (`TRIGGER_RULES`) indexada por
(tipo do evento, branch é o protegido?, ação). A primeira regra que casa
decide; nenhuma regra casando produz um plano vazio (fail-closed).

| evento        | branch     | ação        | pipelines                | tag de versão |
|---------------|------------|-------------|--------------------------|---------------|
| push          | protegido  | qualquer    | verificação + publicação | não           |
| pull_request  | qualquer   | qualquer    | verificação              | não           |
| release       | qualquer   | published   | publicação               | sim           |

Limites explícitos:
    - Não executa pipelines
    - Não decide notificação (ver `notification`)
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, FrozenSet, Optional, Tuple

from beacon_ci.core.pipeline.types import PipelineKind

from .event import EventKind, TriggerEvent


RELEASE_PUBLISHED = "published"


@dataclass(frozen=True)
class TriggerRule:
    """
    Linha da tabela de decisão.

    `protected_only=True` exige que o branch do evento seja o protegido;
    `action=None` aceita qualquer ação.
    """
    kind: EventKind
    protected_only: bool
    action: Optional[str]
    pipelines: FrozenSet[PipelineKind]
    version_tagging: bool = False

    def matches(self, event: TriggerEvent, *, is_protected: bool) -> bool:
        if event.event_kind != self.kind:
            return False
        if self.protected_only and not is_protected:
            return False
        if self.action is not None and event.action != self.action:
            return False
        return True


TRIGGER_RULES: Tuple[TriggerRule, ...] = (
    TriggerRule(
        kind=EventKind.PUSH,
        protected_only=True,
        action=None,
        pipelines=frozenset({PipelineKind.VERIFICATION, PipelineKind.PUBLISH}),
    ),
    TriggerRule(
        kind=EventKind.PULL_REQUEST,
        protected_only=False,
        action=None,
        pipelines=frozenset({PipelineKind.VERIFICATION}),
    ),
    TriggerRule(
        kind=EventKind.RELEASE,
        protected_only=False,
        action=RELEASE_PUBLISHED,
        pipelines=frozenset({PipelineKind.PUBLISH}),
        version_tagging=True,
    ),
)


@dataclass(frozen=True)
class TriggerPlan:
    """Pipelines agendados para um evento e os parâmetros com que rodam."""
    event: TriggerEvent
    pipelines: FrozenSet[PipelineKind]
    version_tagging: bool = False

    @property
    def runs_verification(self) -> bool:
        return PipelineKind.VERIFICATION in self.pipelines

    @property
    def runs_publish(self) -> bool:
        return PipelineKind.PUBLISH in self.pipelines

    @property
    def is_empty(self) -> bool:
        return not self.pipelines

    def to_dict(self) -> Dict[str, Any]:
        return {
            "event": self.event.to_dict(),
            "pipelines": sorted(p.value for p in self.pipelines),
            "version_tagging": self.version_tagging,
        }


class TriggerEvaluator:
    """Aplica `TRIGGER_RULES` a um evento, dado o branch protegido."""

    def __init__(self, *, protected_branch: str, rules: Tuple[TriggerRule, ...] = TRIGGER_RULES):
        if not protected_branch or not protected_branch.strip():
            raise ValueError("protected_branch must be a non-empty string")
        self.protected_branch = protected_branch.strip()
        self.rules = rules

    def is_protected(self, branch: str) -> bool:
        return bool(branch) and branch == self.protected_branch

    def evaluate(self, event: TriggerEvent) -> TriggerPlan:
        is_protected = self.is_protected(event.branch)
        for rule in self.rules:
            if rule.matches(event, is_protected=is_protected):
                return TriggerPlan(
                    event=event,
                    pipelines=rule.pipelines,
                    version_tagging=rule.version_tagging,
                )
        return TriggerPlan(event=event, pipelines=frozenset())
