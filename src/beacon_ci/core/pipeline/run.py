# src/beacon_ci/core/pipeline/run.py
"""
PipelineRun — resultado agregado de uma execução de pipeline.

Tanto o pipeline de verificação (JobGraph) quanto o de publicação
(PipelineRun com as etapas build/tag/login/push como resultados) produzem
uma PipelineRun; é sobre ela que a regra de notificação é avaliada.

Invariantes:
    - `overall_status` é função pura de `outcomes` e de `continue_on_error`
    - `jobs` preserva a ordem de declaração
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from beacon_ci.core.publish.artifact import ImageArtifact
from beacon_ci.core.trigger.event import TriggerEvent

from .types import JobResult, PipelineKind, PipelineStatus, aggregate_status


@dataclass(frozen=True)
class PipelineRun:
    run_id: str
    kind: PipelineKind
    trigger: TriggerEvent
    outcomes: Dict[str, JobResult] = field(default_factory=dict)
    artifact: Optional[ImageArtifact] = None

    @property
    def jobs(self) -> Tuple[str, ...]:
        return tuple(self.outcomes)

    @property
    def overall_status(self) -> PipelineStatus:
        return aggregate_status(self.outcomes.values())

    @property
    def failed(self) -> bool:
        return self.overall_status == PipelineStatus.FAILURE

    def failed_jobs(self) -> List[JobResult]:
        """Jobs com status FAILED, bloqueantes ou não, na ordem de declaração."""
        return [r for r in self.outcomes.values() if r.failed]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "run_id": self.run_id,
            "kind": self.kind.value,
            "trigger": self.trigger.to_dict(),
            "overall_status": self.overall_status.value,
            "outcomes": {jid: r.to_dict() for jid, r in self.outcomes.items()},
            "artifact": self.artifact.to_dict() if self.artifact is not None else None,
        }
