# src/beacon_ci/core/trigger/platform.py
"""
Construção do TriggerEvent a partir do ambiente da plataforma de CI.

Fontes:
    - GITHUB_EVENT_NAME → tipo do evento
    - GITHUB_REF        → branch (`refs/heads/<nome>`)
    - GITHUB_EVENT_PATH → payload JSON do evento (ação e, em releases, o
                          branch alvo em `release.target_commitish`)

Payload ausente ou ilegível equivale a `{}`: sem ação, um `release` não
dispara nada (fail-closed no TriggerEvaluator).

Em eventos `release`, GITHUB_REF aponta para a tag; o branch usado pela
regra de notificação é o alvo da release.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, Optional

from beacon_ci.core.config.settings import RuntimeSettings

from .event import EventKind, TriggerEvent


def _read_event_payload(path: Optional[str]) -> Dict[str, Any]:
    if not path:
        return {}
    p = Path(path)
    if not p.exists():
        return {}
    try:
        data = json.loads(p.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError):
        return {}
    return data if isinstance(data, dict) else {}


def event_from_environment(
    settings: RuntimeSettings,
    *,
    kind: Optional[str] = None,
    branch: Optional[str] = None,
    action: Optional[str] = None,
) -> TriggerEvent:
    """
    Resolve o evento combinando valores explícitos (CLI) e o ambiente.

    Valores explícitos sempre têm prioridade.
    """
    payload = _read_event_payload(settings.GITHUB_EVENT_PATH)
    event_kind = kind or settings.GITHUB_EVENT_NAME or ""
    event_action = action or payload.get("action")

    event_branch = branch
    if event_branch is None:
        release = payload.get("release") or {}
        if event_kind == EventKind.RELEASE.value and release.get("target_commitish"):
            event_branch = release["target_commitish"]
        else:
            event_branch = settings.GITHUB_REF

    return TriggerEvent.create(event_kind, event_branch, event_action)
