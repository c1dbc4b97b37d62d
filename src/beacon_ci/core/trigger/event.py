# src/beacon_ci/core/trigger/event.py
"""
Evento de disparo (TriggerEvent).

Um TriggerEvent é construído uma única vez por invocação, a partir dos
dados fornecidos pela plataforma de CI, e nunca é alterado.

Normalização de branch:
    `refs/heads/<nome>` é reduzido a `<nome>`, de modo que a comparação com
    o branch protegido é sempre feita entre nomes de branch, nunca entre
    strings de ref parcialmente formadas.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional


BRANCH_REF_PREFIX = "refs/heads/"


class EventKind(str, Enum):
    PUSH = "push"
    PULL_REQUEST = "pull_request"
    RELEASE = "release"


def normalize_branch(ref: Optional[str]) -> str:
    """Reduz `refs/heads/<nome>` a `<nome>`; outros valores passam sem alteração."""
    value = (ref or "").strip()
    if value.startswith(BRANCH_REF_PREFIX):
        return value[len(BRANCH_REF_PREFIX):]
    return value


@dataclass(frozen=True)
class TriggerEvent:
    """
    Evento recebido da plataforma de CI.

    Campos:
        - kind: tipo do evento como recebido (`push`, `pull_request`, `release`
          ou qualquer outro valor, que será tratado como não reconhecido)
        - branch: nome do branch já normalizado
        - action: ação do evento (ex.: `published`), quando houver
    """
    kind: str
    branch: str
    action: Optional[str] = None

    @classmethod
    def create(cls, kind: str, branch: Optional[str], action: Optional[str] = None) -> "TriggerEvent":
        return cls(
            kind=(kind or "").strip().lower(),
            branch=normalize_branch(branch),
            action=(action or "").strip().lower() or None,
        )

    @property
    def event_kind(self) -> Optional[EventKind]:
        """Tipo reconhecido do evento, ou None para tipos desconhecidos."""
        try:
            return EventKind(self.kind)
        except ValueError:
            return None

    def to_dict(self) -> Dict[str, Any]:
        return {"kind": self.kind, "branch": self.branch, "action": self.action}
