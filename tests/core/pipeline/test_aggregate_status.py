# tests/core/pipeline/test_aggregate_status.py
"""
Testes da regra de agregação do status de uma PipelineRun.

A run falha se e somente se algum job com `continue_on_error=False` falhou.
Nenhum job recebe tratamento especial pelo seu identificador.
"""

from beacon_ci.core.pipeline.run import PipelineRun
from beacon_ci.core.pipeline.types import (
    JobResult,
    JobStatus,
    PipelineKind,
    PipelineStatus,
    aggregate_status,
)
from beacon_ci.core.trigger.event import TriggerEvent


def _r(job_id, status, continue_on_error=False):
    return JobResult(job_id=job_id, status=status, summary=status.value, continue_on_error=continue_on_error)


def test_all_success_is_success():
    assert aggregate_status([_r("format", JobStatus.SUCCESS), _r("test", JobStatus.SUCCESS)]) == PipelineStatus.SUCCESS


def test_only_tolerated_failures_is_success():
    results = [_r("format", JobStatus.SUCCESS), _r("audit", JobStatus.FAILED, continue_on_error=True)]
    assert aggregate_status(results) == PipelineStatus.SUCCESS


def test_any_blocking_failure_is_failure():
    results = [_r("audit", JobStatus.FAILED, continue_on_error=True), _r("lint", JobStatus.FAILED)]
    assert aggregate_status(results) == PipelineStatus.FAILURE


def test_skipped_never_fails_the_run():
    assert aggregate_status([_r("tag", JobStatus.SKIPPED)]) == PipelineStatus.SUCCESS


def test_tolerance_follows_the_flag_not_the_job_name():
    """Um audit sem `continue_on_error` falha a run como qualquer outro job."""
    assert aggregate_status([_r("audit", JobStatus.FAILED)]) == PipelineStatus.FAILURE


def test_pipeline_run_exposes_failed_jobs_in_order():
    run = PipelineRun(
        run_id="1",
        kind=PipelineKind.VERIFICATION,
        trigger=TriggerEvent.create("push", "master"),
        outcomes={
            "format": _r("format", JobStatus.FAILED),
            "lint": _r("lint", JobStatus.SUCCESS),
            "audit": _r("audit", JobStatus.FAILED, continue_on_error=True),
        },
    )
    assert run.jobs == ("format", "lint", "audit")
    assert [r.job_id for r in run.failed_jobs()] == ["format", "audit"]
    assert run.failed is True
    assert run.to_dict()["overall_status"] == "failure"
