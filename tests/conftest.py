# tests/conftest.py
"""
Fixtures compartilhados para testes do Beacon CI.

Este módulo define fixtures reutilizáveis que fornecem:
- configurações mínimas e determinísticas (YAML e dict já resolvido)
- contexto de execução controlado (RunContext)
- um executor de comandos falso (nenhum teste invoca git, docker ou make)
- transportes de webhook falsos (nenhum teste acessa a rede)
- settings de runtime isolados do ambiente real

Decisões arquiteturais:
    - Fixtures são mantidas simples e explícitas
    - Imports do core são realizados de forma lazy para melhorar a clareza
      de erros durante falhas
    - O executor falso decide o exit code por trecho do comando, o que mantém
      cada teste legível ("make test" falha com 2)

Invariantes:
    - Nenhuma fixture executa comandos reais
    - Nenhuma fixture lê variáveis de ambiente da máquina que roda os testes

Limites explícitos:
    - Não substituir testes de integração com Docker/git reais
"""

import threading
from datetime import datetime, timezone

import pytest


RUNTIME_ENV_VARS = (
    "IMAGE_ID",
    "DOCKER_REGISTRY_URL",
    "DOCKER_USERNAME",
    "DOCKER_PASSWORD",
    "NOTIFICATION_WEBHOOK_URL",
    "GITHUB_TOKEN",
    "GITHUB_REPOSITORY",
    "GITHUB_RUN_ID",
    "GITHUB_SERVER_URL",
    "GITHUB_EVENT_NAME",
    "GITHUB_REF",
    "GITHUB_EVENT_PATH",
)

WEBHOOK_URL = "https://hooks.example.test/services/T000/B000/XXXX"


# =====================================================
# Config fixtures
# =====================================================

@pytest.fixture
def project_like_config_defaults_yaml() -> str:
    """
    YAML de defaults semelhante ao `config.defaults.yaml` empacotado.

    Fornecido como string para que cada teste decida onde gravá-lo.
    """
    return """\
project:
  name: transit_model
branches:
  protected: master
runner:
  max_parallel_jobs: 4
  container_runtime: docker
jobs:
  format:
    name: Formatting check
    command: ["make", "format"]
  audit:
    name: Audits
    command: ["cargo", "audit"]
    continue_on_error: true
"""


@pytest.fixture
def project_like_config_local_yaml() -> str:
    """Overrides locais: roda fora de container e desabilita o audit."""
    return """\
runner:
  container_runtime: null
  max_parallel_jobs: 2
jobs:
  audit:
    enabled: false
"""


@pytest.fixture
def base_config() -> dict:
    """
    Configuração mínima, já resolvida, equivalente aos defaults do projeto.

    Os jobs rodam no host (`container_runtime: null`) para que os argv
    registrados pelo executor falso sejam exatamente os comandos declarados.

    Returns:
        dict: Configuração pronta para `build_orchestrator_config`.
    """
    return {
        "project": {"name": "transit_model"},
        "branches": {"protected": "master"},
        "runner": {
            "max_parallel_jobs": 4,
            "container_runtime": None,
            "checkout_command": ["git", "clone", "--quiet", "{source}", "{workdir}"],
            "recursive_checkout_flags": ["--recurse-submodules"],
            "default_timeout_seconds": 60,
            "output_tail_chars": 200,
        },
        "jobs": {
            "format": {"name": "Formatting check", "command": ["make", "format"]},
            "lint": {"name": "Analyzing code with Clippy", "command": ["make", "lint"]},
            "audit": {"name": "Audits", "command": ["cargo", "audit"], "continue_on_error": True},
            "test": {
                "name": "Tests",
                "recursive_checkout": True,
                "setup": [["apt", "update"], ["apt", "install", "--yes", "libxml2-utils"]],
                "command": ["make", "test"],
            },
        },
        "publish": {
            "image_id": "navitia/transit_model",
            "registry_url": "docker.io",
            "build_file": "Dockerfile",
            "manifest_path": "Cargo.toml",
            "default_tag": "latest",
        },
        "notification": {
            "color": "#D00000",
            "server_url": "https://github.com",
            "timeout_seconds": 5,
        },
    }


@pytest.fixture
def clean_env(monkeypatch):
    """Remove do ambiente todas as variáveis lidas por `RuntimeSettings`."""
    for name in RUNTIME_ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


@pytest.fixture
def runtime_settings(clean_env):
    """
    `RuntimeSettings` com segredos e metadados de run fixos.

    `_env_file=None` evita que um `.env` local interfira nos testes.
    """
    from beacon_ci.core.config.settings import RuntimeSettings

    return RuntimeSettings(
        _env_file=None,
        DOCKER_USERNAME="ci-bot",
        DOCKER_PASSWORD="s3cr3t-password",
        NOTIFICATION_WEBHOOK_URL=WEBHOOK_URL,
        GITHUB_REPOSITORY="hove-io/transit_model",
        GITHUB_RUN_ID="4242",
    )


@pytest.fixture
def orchestrator_config(base_config, runtime_settings):
    from beacon_ci.core.config.model import build_orchestrator_config

    return build_orchestrator_config(base_config, runtime_settings)


# =====================================================
# Pipeline fixtures
# =====================================================

@pytest.fixture
def dummy_ctx(base_config):
    """RunContext determinístico (run_id e created_at fixos, UTC)."""
    from beacon_ci.core.pipeline.context import RunContext

    return RunContext(
        run_id="run-test-001",
        created_at=datetime(2026, 1, 16, 0, 0, 0, tzinfo=timezone.utc),
        config=base_config,
        meta={"source": "pytest"},
    )


@pytest.fixture
def FakeExecutor():
    """
    Fixture factory que fornece um executor de comandos falso.

    O exit code de cada chamada é decidido por `exit_codes`: a primeira chave
    contida no comando (argv unido por espaços) define o código; sem chave
    correspondente, o comando termina com 0. Comandos que contêm alguma
    entrada de `timeouts` terminam com `timed_out=True`.

    Todas as chamadas são registradas em `calls` (thread-safe, pois os jobs
    de verificação rodam em paralelo).

    Returns:
        type: Classe `_FakeExecutor`.
    """
    from beacon_ci.core.engine.executor import CommandResult

    class _FakeExecutor:
        def __init__(self, exit_codes=None, timeouts=(), stdout="ok"):
            self.exit_codes = dict(exit_codes or {})
            self.timeouts = tuple(timeouts)
            self.stdout = stdout
            self.calls = []
            self._lock = threading.Lock()

        def run(self, argv, *, cwd=None, env=None, stdin=None, timeout=None):
            line = " ".join(argv)
            with self._lock:
                self.calls.append(
                    {"argv": tuple(argv), "cwd": cwd, "env": env, "stdin": stdin, "timeout": timeout}
                )
            if any(t in line for t in self.timeouts):
                return CommandResult(argv=tuple(argv), exit_code=None, timed_out=True)
            code = 0
            for fragment, value in self.exit_codes.items():
                if fragment in line:
                    code = value
                    break
            return CommandResult(
                argv=tuple(argv),
                exit_code=code,
                stdout=self.stdout,
                stderr="" if code == 0 else f"{line}: exit {code}",
            )

        def lines(self):
            with self._lock:
                return [" ".join(c["argv"]) for c in self.calls]

        def ran(self, fragment):
            return any(fragment in line for line in self.lines())

    return _FakeExecutor


# =====================================================
# Notification fixtures
# =====================================================

@pytest.fixture
def RecordingTransport():
    """
    Fixture factory de transporte de webhook que apenas registra os envios.

    `fail_with` permite simular uma falha de entrega: a exceção informada é
    levantada em cada `post`, depois de registrar a tentativa.
    """

    class _RecordingTransport:
        def __init__(self, fail_with=None):
            self.fail_with = fail_with
            self.posts = []

        def post(self, url, payload):
            self.posts.append({"url": url, "payload": payload})
            if self.fail_with is not None:
                raise self.fail_with

    return _RecordingTransport


@pytest.fixture
def cargo_source(tmp_path):
    """Diretório de projeto com um `Cargo.toml` declarando a versão 2.10.3."""
    src = tmp_path / "source"
    src.mkdir()
    (src / "Cargo.toml").write_text(
        '[package]\nname = "transit_model"\nversion = "2.10.3"\nedition = "2018"\n',
        encoding="utf-8",
    )
    return src
