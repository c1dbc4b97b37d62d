# src/beacon_ci/core/pipeline/context.py
"""
Contexto de execução compartilhado de uma invocação do orquestrador.

O `RunContext` é o canal único de logging estruturado do Beacon CI: jobs,
etapas de publicação e o despacho de notificações registram eventos aqui,
sempre com `run_id`, `step_id` e timestamp UTC.

Princípios fundamentais:
    - Isolamento por execução (cada invocação possui seu próprio contexto)
    - Ausência de logger global
    - Segredos nunca são passados a `log`

Invariantes:
    - Logs sempre incluem `run_id` e `step_id`
    - Warnings são agrupados por `step_id`
    - Escritas são serializadas por lock (jobs logam em paralelo)
"""

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List


@dataclass
class RunContext:
    """
    Contexto de execução de uma invocação do orquestrador.

    Campos:
        - run_id: identificador da run (ex.: GITHUB_RUN_ID)
        - created_at: timestamp UTC de criação
        - config: configuração efetiva (já resolvida)
        - meta: metadados livres (ex.: source, repository)
    """
    run_id: str
    created_at: datetime
    config: Dict[str, Any]
    meta: Dict[str, Any] = field(default_factory=dict)

    events: List[Dict[str, Any]] = field(default_factory=list, init=False)
    warnings: Dict[str, List[str]] = field(default_factory=dict, init=False)
    _lock: threading.Lock = field(default_factory=threading.Lock, init=False, repr=False)

    # -----------------------------
    # Logging & warnings
    # -----------------------------
    def log(self, *, step_id: str, level: str, message: str, **extra: Any) -> None:
        event = {
            "run_id": self.run_id,
            "step_id": step_id,
            "level": level,
            "message": message,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }
        event.update(extra)
        with self._lock:
            self.events.append(event)

    def add_warning(self, *, step_id: str, message: str) -> None:
        with self._lock:
            self.warnings.setdefault(step_id, []).append(message)

    def warnings_for(self, step_id: str) -> List[str]:
        with self._lock:
            return list(self.warnings.get(step_id, []))

    def events_for(self, step_id: str) -> List[Dict[str, Any]]:
        with self._lock:
            return [e for e in self.events if e.get("step_id") == step_id]
