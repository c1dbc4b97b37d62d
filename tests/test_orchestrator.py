# tests/test_orchestrator.py
"""
Testes ponta a ponta do Orchestrator.

Todos os colaboradores externos são falsos: executor de comandos, workspace
fixo, transporte do webhook. Os testes asseguram que:
- o evento decide quais pipelines rodam
- verificação e publicação rodam de forma independente
- cada run com falha no branch protegido gera exatamente um alerta
- o Manifest registra o Event Log completo da invocação
"""

import pytest

from beacon_ci import Orchestrator
from beacon_ci.core.engine.runner import StaticWorkspace
from beacon_ci.core.exceptions import NotificationDeliveryFailure
from beacon_ci.core.pipeline.types import JobStatus, PipelineKind, PipelineStatus
from beacon_ci.core.trigger.event import TriggerEvent


VERIFICATION_COMMANDS = ["make format", "make lint", "cargo audit", "make test"]


@pytest.fixture
def make_orchestrator(orchestrator_config, cargo_source, RecordingTransport):
    def _make(executor, transport=None):
        return Orchestrator(
            orchestrator_config,
            source=cargo_source,
            executor=executor,
            workspace=StaticWorkspace(cargo_source),
            transport=transport or RecordingTransport(),
        )

    return _make


def test_push_to_protected_branch_runs_both_pipelines(make_orchestrator, FakeExecutor):
    executor = FakeExecutor()
    orchestrator = make_orchestrator(executor)

    result = orchestrator.handle(TriggerEvent.create("push", "refs/heads/master"))

    assert result.succeeded
    assert [r.kind for r in result.runs] == [PipelineKind.VERIFICATION, PipelineKind.PUBLISH]
    assert all(executor.ran(c) for c in VERIFICATION_COMMANDS)
    assert executor.ran("docker image push navitia/transit_model:latest")
    assert not executor.ran("docker tag")
    assert result.notifications == ()
    assert orchestrator.transport.posts == []

    events = result.manifest.event_types()
    assert events[0] == "run_started"
    assert events[-1] == "run_finished"
    assert result.manifest.run["run_id"] == "4242"
    assert result.manifest.run["status"] == "success"


def test_verification_failure_notifies_once_and_publish_still_runs(make_orchestrator, FakeExecutor):
    executor = FakeExecutor(exit_codes={"make test": 2})
    orchestrator = make_orchestrator(executor)

    result = orchestrator.handle(TriggerEvent.create("push", "master"))

    assert result.status == PipelineStatus.FAILURE
    verification, publish = result.runs
    assert verification.outcomes["test"].status == JobStatus.FAILED
    assert publish.overall_status == PipelineStatus.SUCCESS

    assert len(orchestrator.transport.posts) == 1
    attachment = orchestrator.transport.posts[0]["payload"]["attachments"][0]
    assert attachment["text"] == " :warning: Tests failed!"
    assert attachment["fields"][0]["value"] == "https://github.com/hove-io/transit_model/actions/runs/4242"
    assert result.manifest.event_types().count("notification_sent") == 1


def test_both_pipelines_failing_send_one_alert_each(make_orchestrator, FakeExecutor):
    executor = FakeExecutor(exit_codes={"make lint": 1, "docker build": 1})
    orchestrator = make_orchestrator(executor)

    result = orchestrator.handle(TriggerEvent.create("push", "master"))

    pretexts = [p["payload"]["attachments"][0]["pretext"] for p in orchestrator.transport.posts]
    assert pretexts == [
        "`transit_model CI` requires your attention!",
        "`transit_model Publish` requires your attention!",
    ]
    assert len(result.notifications) == 2


def test_push_step_failure_sends_exactly_one_publish_alert(make_orchestrator, FakeExecutor):
    """Falha na última etapa (push) ainda gera um único alerta de Publish."""
    executor = FakeExecutor(exit_codes={"docker image push": 1})
    orchestrator = make_orchestrator(executor)

    result = orchestrator.handle(TriggerEvent.create("push", "refs/heads/master"))

    verification, publish = result.runs
    assert verification.overall_status == PipelineStatus.SUCCESS
    assert publish.overall_status == PipelineStatus.FAILURE
    assert publish.outcomes["push"].status == JobStatus.FAILED

    assert len(orchestrator.transport.posts) == 1
    attachment = orchestrator.transport.posts[0]["payload"]["attachments"][0]
    assert attachment["pretext"] == "`transit_model Publish` requires your attention!"
    assert attachment["text"] == " :warning: Publish failed!"
    assert result.manifest.event_types().count("notification_sent") == 1


def test_tolerated_audit_failure_keeps_run_green(make_orchestrator, FakeExecutor):
    executor = FakeExecutor(exit_codes={"cargo audit": 1})
    orchestrator = make_orchestrator(executor)

    result = orchestrator.handle(TriggerEvent.create("push", "master"))

    assert result.succeeded
    assert result.runs[0].outcomes["audit"].status == JobStatus.FAILED
    assert orchestrator.transport.posts == []


def test_pull_request_runs_verification_only_and_never_notifies(make_orchestrator, FakeExecutor):
    executor = FakeExecutor(exit_codes={"make format": 1})
    orchestrator = make_orchestrator(executor)

    result = orchestrator.handle(TriggerEvent.create("pull_request", "master"))

    assert [r.kind for r in result.runs] == [PipelineKind.VERIFICATION]
    assert not result.succeeded
    assert not executor.ran("docker")
    assert orchestrator.transport.posts == []
    assert "notification_sent" not in result.manifest.event_types()


def test_published_release_pushes_version_tag(make_orchestrator, FakeExecutor):
    executor = FakeExecutor()
    orchestrator = make_orchestrator(executor)

    result = orchestrator.handle(TriggerEvent.create("release", "master", "published"))

    assert [r.kind for r in result.runs] == [PipelineKind.PUBLISH]
    assert result.runs[0].artifact.tags == {"latest", "v2.10.3"}
    assert executor.ran("docker image push navitia/transit_model:v2.10.3")
    assert not any(executor.ran(c) for c in VERIFICATION_COMMANDS)


@pytest.mark.parametrize(
    "event",
    [
        TriggerEvent.create("push", "feature/faster-parsing"),
        TriggerEvent.create("release", "master", "created"),
        TriggerEvent.create("workflow_dispatch", "master"),
    ],
)
def test_unscheduled_events_do_nothing(make_orchestrator, FakeExecutor, event):
    executor = FakeExecutor()
    orchestrator = make_orchestrator(executor)

    result = orchestrator.handle(event)

    assert result.plan.is_empty
    assert result.runs == ()
    assert result.succeeded
    assert executor.calls == []
    assert result.manifest.event_types() == ["run_started", "run_finished"]
    assert result.ctx.events_for("orchestrator")[1]["message"] == "no pipeline scheduled"


def test_delivery_failure_is_recorded_not_raised(make_orchestrator, FakeExecutor, RecordingTransport):
    transport = RecordingTransport(
        fail_with=NotificationDeliveryFailure(message="boom", details={"reason": "ConnectError", "status_code": None})
    )
    orchestrator = make_orchestrator(FakeExecutor(exit_codes={"docker build": 1}), transport=transport)

    result = orchestrator.handle(TriggerEvent.create("release", "master", "published"))

    assert result.notifications == ()
    assert len(transport.posts) == 1
    failed = [e for e in result.manifest.events if e["event_type"] == "notification_failed"]
    assert failed[0]["payload"]["error"]["type"] == "NOTIFICATION_DELIVERY_FAILED"
    assert result.to_dict()["warnings"]["notification"]


def test_explicit_run_id_wins(make_orchestrator, FakeExecutor):
    result = make_orchestrator(FakeExecutor()).handle(
        TriggerEvent.create("push", "feature/x"), run_id="manual-1"
    )
    assert result.manifest.run["run_id"] == "manual-1"
    assert result.to_dict()["run_id"] == "manual-1"


def test_result_to_dict_hides_secrets(make_orchestrator, FakeExecutor):
    import json

    result = make_orchestrator(FakeExecutor()).handle(TriggerEvent.create("push", "master"))

    text = json.dumps(result.to_dict(), default=str) + json.dumps(result.manifest.to_dict(), default=str)
    assert "s3cr3t-password" not in text
    assert "hooks.example.test" not in text


def test_platform_token_reaches_only_jobs_that_declare_it(
    base_config, cargo_source, clean_env, FakeExecutor, RecordingTransport
):
    import copy
    import json

    from beacon_ci.core.config.model import build_orchestrator_config
    from beacon_ci.core.config.settings import RuntimeSettings

    raw = copy.deepcopy(base_config)
    raw["jobs"]["audit"]["secrets"] = ["GITHUB_TOKEN"]
    settings = RuntimeSettings(_env_file=None, GITHUB_TOKEN="ghs_platform_token", GITHUB_RUN_ID="4242")
    executor = FakeExecutor()
    orchestrator = Orchestrator(
        build_orchestrator_config(raw, settings),
        source=cargo_source,
        executor=executor,
        workspace=StaticWorkspace(cargo_source),
        transport=RecordingTransport(),
    )

    result = orchestrator.handle(TriggerEvent.create("pull_request", "master"))

    envs = {" ".join(c["argv"]): c["env"] for c in executor.calls}
    assert envs["cargo audit"] == {"GITHUB_TOKEN": "ghs_platform_token"}
    assert envs["make lint"] == {}
    assert "ghs_platform_token" not in json.dumps(result.manifest.to_dict(), default=str)
