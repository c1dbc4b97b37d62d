# src/beacon_ci/core/traceability/__init__.py
"""
Rastreabilidade do Beacon CI — Run Manifest v1.

API pública:
    - RunManifest, create_manifest, add_event
    - run_started, job_started, job_finished, job_failed, record_job_result
    - notification_sent, notification_failed, run_finished
    - save_manifest, load_manifest

Nenhum evento é emitido implicitamente; o orquestrador chama a API
explicitamente após cada pipeline.
"""

from .manifest import (
    RunManifest,
    add_event,
    create_manifest,
    job_failed,
    job_finished,
    job_started,
    load_manifest,
    notification_failed,
    notification_sent,
    record_job_result,
    run_finished,
    run_started,
    save_manifest,
)

__all__ = [
    "RunManifest",
    "add_event",
    "create_manifest",
    "job_failed",
    "job_finished",
    "job_started",
    "load_manifest",
    "notification_failed",
    "notification_sent",
    "record_job_result",
    "run_finished",
    "run_started",
    "save_manifest",
]
