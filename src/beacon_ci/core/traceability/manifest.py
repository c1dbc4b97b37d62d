# src/beacon_ci/core/traceability/manifest.py
"""
Run Manifest v1 — registro forense de uma invocação do Beacon CI.

O Manifest consolida, de forma determinística e auditável:
    - metadados da run (run_id, started_at, beacon_version)
    - entradas (hash da configuração efetiva, evento de disparo)
    - estado de cada job/etapa, agrupado por pipeline
    - Event Log ordenado de eventos explícitos

Eventos canônicos:
    run_started, job_started, job_finished, job_failed,
    notification_sent, notification_failed, run_finished

Princípios fundamentais:
    - Nenhum evento é emitido implicitamente
    - A ordem do Event Log reflete a ordem de chamada
    - O Manifest é serializável e reconstruível (round-trip)

Limites explícitos:
    - Não executa pipelines
    - Não decide notificação
    - Nunca armazena segredos (senha, token, webhook)
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from beacon_ci.core.pipeline.types import JobResult


def _ensure_tzaware_utc(dt: datetime) -> datetime:
    """Timestamps sem timezone são assumidos como UTC."""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def _iso(dt: datetime) -> str:
    return _ensure_tzaware_utc(dt).isoformat()


def _ms_between(start: datetime, end: datetime) -> int:
    s = _ensure_tzaware_utc(start)
    e = _ensure_tzaware_utc(end)
    return max(0, int((e - s).total_seconds() * 1000))


@dataclass
class RunManifest:
    """
    Manifest v1 de uma invocação.

    Campos:
        - run: metadados da execução
        - inputs: `config_hash` e `trigger`
        - pipelines: `{pipeline: {job_id: estado}}`
        - events: Event Log ordenado
    """

    run: Dict[str, Any]
    inputs: Dict[str, Any]
    pipelines: Dict[str, Dict[str, Dict[str, Any]]] = field(default_factory=dict)
    events: List[Dict[str, Any]] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "run": dict(self.run),
            "inputs": dict(self.inputs),
            "pipelines": {
                p: {jid: dict(state) for jid, state in jobs.items()}
                for p, jobs in self.pipelines.items()
            },
            "events": [dict(e) for e in self.events],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "RunManifest":
        return cls(
            run=dict(data.get("run", {})),
            inputs=dict(data.get("inputs", {})),
            pipelines={
                p: {jid: dict(state) for jid, state in (jobs or {}).items()}
                for p, jobs in (data.get("pipelines") or {}).items()
            },
            events=[dict(e) for e in data.get("events", [])],
        )

    def job_state(self, pipeline: str, job_id: str) -> Optional[Dict[str, Any]]:
        return self.pipelines.get(pipeline, {}).get(job_id)

    def event_types(self) -> List[str]:
        return [e["event_type"] for e in self.events]


def create_manifest(
    *,
    run_id: str,
    started_at: datetime,
    beacon_version: str,
    config_hash: str,
    trigger: Dict[str, Any],
) -> RunManifest:
    """Cria o Manifest inicial (pipelines e eventos vazios)."""
    return RunManifest(
        run={
            "run_id": run_id,
            "started_at": _iso(started_at),
            "beacon_version": beacon_version,
        },
        inputs={
            "config_hash": config_hash,
            "trigger": dict(trigger),
        },
    )


def add_event(
    manifest: RunManifest,
    *,
    event_type: str,
    ts: datetime,
    pipeline: Optional[str] = None,
    job_id: Optional[str] = None,
    payload: Optional[Dict[str, Any]] = None,
) -> None:
    """Acrescenta um evento ao Event Log, na ordem de chamada."""
    ev: Dict[str, Any] = {"event_type": event_type, "timestamp": _iso(ts)}
    if pipeline is not None:
        ev["pipeline"] = pipeline
    if job_id is not None:
        ev["job_id"] = job_id
    if payload is not None:
        ev["payload"] = payload
    manifest.events.append(ev)


def run_started(manifest: RunManifest, *, ts: datetime, pipelines: List[str]) -> None:
    add_event(manifest, event_type="run_started", ts=ts, payload={"pipelines": list(pipelines)})


def job_started(manifest: RunManifest, *, pipeline: str, job_id: str, ts: datetime) -> None:
    state = manifest.pipelines.setdefault(pipeline, {}).setdefault(job_id, {"job_id": job_id})
    state.update({"status": "running", "started_at": _iso(ts)})
    add_event(manifest, event_type="job_started", ts=ts, pipeline=pipeline, job_id=job_id)


def job_finished(
    manifest: RunManifest,
    *,
    pipeline: str,
    job_id: str,
    ts: datetime,
    result: Dict[str, Any],
) -> None:
    """
    Registra a conclusão de um job (sucesso ou skip).

    A duração é calculada a partir de `started_at`, quando presente; caso
    contrário é zero.
    """
    state = manifest.pipelines.setdefault(pipeline, {}).setdefault(job_id, {"job_id": job_id})
    started_iso = state.get("started_at")
    started_dt = datetime.fromisoformat(started_iso) if started_iso else ts
    status = result.get("status", "success")
    state.update(
        {
            "status": status,
            "finished_at": _iso(ts),
            "duration_ms": _ms_between(started_dt, ts),
            "summary": result.get("summary"),
            "metrics": result.get("metrics", {}) or {},
            "warnings": result.get("warnings", []) or [],
        }
    )
    add_event(
        manifest,
        event_type="job_finished",
        ts=ts,
        pipeline=pipeline,
        job_id=job_id,
        payload={"status": status, "duration_ms": state["duration_ms"]},
    )


def job_failed(
    manifest: RunManifest,
    *,
    pipeline: str,
    job_id: str,
    ts: datetime,
    error: Dict[str, Any],
    continue_on_error: bool = False,
) -> None:
    state = manifest.pipelines.setdefault(pipeline, {}).setdefault(job_id, {"job_id": job_id})
    state.update(
        {
            "status": "failed",
            "finished_at": _iso(ts),
            "continue_on_error": continue_on_error,
            "error": dict(error),
        }
    )
    add_event(
        manifest,
        event_type="job_failed",
        ts=ts,
        pipeline=pipeline,
        job_id=job_id,
        payload={"error_type": error.get("type"), "continue_on_error": continue_on_error},
    )


def _parse_ts(value: Optional[str], fallback: datetime) -> datetime:
    if not value:
        return fallback
    try:
        return datetime.fromisoformat(value)
    except ValueError:
        return fallback


def record_job_result(manifest: RunManifest, *, pipeline: str, result: JobResult, ts: datetime) -> None:
    """
    Traduz um `JobResult` já concluído em eventos do Manifest.

    Jobs executados geram `job_started` + `job_finished`/`job_failed` com os
    timestamps medidos pelo runner; etapas SKIPPED geram apenas `job_finished`.
    """
    started_at = result.metrics.get("started_at")
    finished = _parse_ts(result.metrics.get("finished_at"), ts)
    if started_at:
        job_started(manifest, pipeline=pipeline, job_id=result.job_id, ts=_parse_ts(started_at, ts))

    if result.failed:
        job_failed(
            manifest,
            pipeline=pipeline,
            job_id=result.job_id,
            ts=finished,
            error=result.payload.get("error") or {"type": None, "message": result.summary},
            continue_on_error=result.continue_on_error,
        )
        return

    job_finished(
        manifest,
        pipeline=pipeline,
        job_id=result.job_id,
        ts=finished,
        result=result.to_dict(),
    )


def notification_sent(manifest: RunManifest, *, pipeline: str, ts: datetime, failed_jobs: List[str]) -> None:
    add_event(
        manifest,
        event_type="notification_sent",
        ts=ts,
        pipeline=pipeline,
        payload={"failed_jobs": list(failed_jobs)},
    )


def notification_failed(manifest: RunManifest, *, pipeline: str, ts: datetime, error: Dict[str, Any]) -> None:
    add_event(manifest, event_type="notification_failed", ts=ts, pipeline=pipeline, payload={"error": dict(error)})


def run_finished(manifest: RunManifest, *, ts: datetime, status: str) -> None:
    manifest.run["finished_at"] = _iso(ts)
    manifest.run["status"] = status
    add_event(manifest, event_type="run_finished", ts=ts, payload={"status": status})


def save_manifest(manifest: Union[RunManifest, Dict[str, Any]], path: Path) -> None:
    """Persiste o Manifest em JSON determinístico (chaves ordenadas)."""
    data = manifest.to_dict() if isinstance(manifest, RunManifest) else manifest
    p = Path(path)
    p.parent.mkdir(parents=True, exist_ok=True)
    p.write_text(json.dumps(data, ensure_ascii=False, indent=2, sort_keys=True), encoding="utf-8")


def load_manifest(path: Path) -> RunManifest:
    data = json.loads(Path(path).read_text(encoding="utf-8"))
    return RunManifest.from_dict(data)
