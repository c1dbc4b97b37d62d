# tests/core/trigger/test_trigger_evaluator.py
"""
Testes da tabela de decisão evento → pipelines.

| evento        | branch     | ação        | pipelines                | tag de versão |
|---------------|------------|-------------|--------------------------|---------------|
| push          | protegido  | qualquer    | verificação + publicação | não           |
| pull_request  | qualquer   | qualquer    | verificação              | não           |
| release       | qualquer   | published   | publicação               | sim           |

Qualquer outra combinação produz um plano vazio.
"""

import pytest

try:
    from beacon_ci.core.pipeline.types import PipelineKind
    from beacon_ci.core.trigger.evaluator import TriggerEvaluator
    from beacon_ci.core.trigger.event import TriggerEvent, normalize_branch
except Exception as e:  # noqa: BLE001
    TriggerEvaluator = None
    _IMPORT_ERR = e
else:
    _IMPORT_ERR = None


def _require_imports():
    if _IMPORT_ERR is not None:
        pytest.fail(
            "Missing trigger API. Implement:\n"
            "- src/beacon_ci/core/trigger/event.py (TriggerEvent, normalize_branch)\n"
            "- src/beacon_ci/core/trigger/evaluator.py (TriggerEvaluator)\n"
            f"Import error: {_IMPORT_ERR}"
        )


@pytest.fixture
def evaluator():
    _require_imports()
    return TriggerEvaluator(protected_branch="master")


def test_push_to_protected_branch_runs_verification_and_publish(evaluator):
    plan = evaluator.evaluate(TriggerEvent.create("push", "refs/heads/master"))
    assert plan.pipelines == {PipelineKind.VERIFICATION, PipelineKind.PUBLISH}
    assert plan.version_tagging is False


def test_push_to_other_branch_schedules_nothing(evaluator):
    """Um branch chamado "release-branch" não é o branch protegido."""
    plan = evaluator.evaluate(TriggerEvent.create("push", "release-branch"))
    assert plan.is_empty
    assert not plan.runs_verification
    assert not plan.runs_publish


@pytest.mark.parametrize("branch", ["master", "feature/x", "refs/heads/fix"])
def test_pull_request_runs_verification_only(evaluator, branch):
    plan = evaluator.evaluate(TriggerEvent.create("pull_request", branch, "opened"))
    assert plan.pipelines == {PipelineKind.VERIFICATION}
    assert not plan.runs_publish


def test_published_release_runs_publish_with_version_tagging(evaluator):
    plan = evaluator.evaluate(TriggerEvent.create("release", "master", "published"))
    assert plan.pipelines == {PipelineKind.PUBLISH}
    assert plan.version_tagging is True
    assert not plan.runs_verification


@pytest.mark.parametrize("action", [None, "created", "prereleased", "deleted"])
def test_other_release_actions_schedule_nothing(evaluator, action):
    assert evaluator.evaluate(TriggerEvent.create("release", "master", action)).is_empty


def test_unknown_event_kind_schedules_nothing(evaluator):
    event = TriggerEvent.create("workflow_dispatch", "master")
    assert event.event_kind is None
    assert evaluator.evaluate(event).is_empty


def test_malformed_ref_is_not_the_protected_branch(evaluator):
    """`ref/head/master` não é normalizado e, portanto, não casa com o branch protegido."""
    assert evaluator.evaluate(TriggerEvent.create("push", "ref/head/master")).is_empty


def test_event_inputs_are_normalized():
    _require_imports()
    event = TriggerEvent.create(" Release ", "refs/heads/master", " PUBLISHED ")
    assert event.kind == "release"
    assert event.branch == "master"
    assert event.action == "published"
    assert normalize_branch("refs/heads/feature/a") == "feature/a"
    assert normalize_branch(None) == ""


def test_plan_to_dict_is_sorted(evaluator):
    plan = evaluator.evaluate(TriggerEvent.create("push", "master"))
    assert plan.to_dict() == {
        "event": {"kind": "push", "branch": "master", "action": None},
        "pipelines": ["publish", "verification"],
        "version_tagging": False,
    }


def test_blank_protected_branch_is_rejected():
    _require_imports()
    with pytest.raises(ValueError):
        TriggerEvaluator(protected_branch=" ")
