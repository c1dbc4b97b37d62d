# src/beacon_ci/core/trigger/__init__.py
"""
Avaliação de disparo do Beacon CI.

    - event     → TriggerEvent imutável e normalização de branch
    - evaluator → tabela de decisão e TriggerPlan
    - platform  → TriggerEvent a partir do ambiente da plataforma de CI

Eventos não reconhecidos não executam nada (fail-closed).
"""

from .event import EventKind, TriggerEvent, normalize_branch
from .evaluator import TRIGGER_RULES, TriggerEvaluator, TriggerPlan, TriggerRule
from .platform import event_from_environment

__all__ = [
    "EventKind",
    "TriggerEvent",
    "normalize_branch",
    "TRIGGER_RULES",
    "TriggerEvaluator",
    "TriggerPlan",
    "TriggerRule",
    "event_from_environment",
]
