# src/beacon_ci/core/config/model.py
"""
OrchestratorConfig — configuração efetiva e tipada de uma invocação.

Combina, uma única vez na inicialização:
    - o dicionário resolvido pelo loader (defaults + overrides locais)
    - `RuntimeSettings` (ambiente e segredos da plataforma de CI)

Precedência:
    - `IMAGE_ID` e `DOCKER_REGISTRY_URL` do ambiente sobrescrevem
      `publish.image_id` e `publish.registry_url`
    - `GITHUB_SERVER_URL` sobrescreve `notification.server_url`

Invariantes:
    - A estrutura é imutável após a construção
    - Erros estruturais levantam `ConfigError` (fatal, nada é executado)
    - O hash registrado no Manifest é o do dicionário YAML, sem segredos
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Mapping, Optional, Tuple

from beacon_ci.core.notification.dispatcher import NOTIFICATION_MESSAGES, PRETEXTS, SEVERITY_COLOR
from beacon_ci.core.pipeline.job import Job, jobs_from_config
from beacon_ci.core.pipeline.types import PipelineKind
from beacon_ci.core.publish.pipeline import DEFAULT_COMMANDS, PublishSettings, STEP_AUTHENTICATE, STEP_BUILD, STEP_PUSH, STEP_TAG

from .errors import ConfigTypeConflictError, InvalidJobDefinitionError, MissingSettingError
from .hashing import compute_config_hash
from .settings import RuntimeSettings


DEFAULT_SERVER_URL = "https://github.com"

# Chaves de `publish.commands` → etapa do PublishPipeline.
_COMMAND_KEYS = {
    "build": STEP_BUILD,
    "tag": STEP_TAG,
    "login": STEP_AUTHENTICATE,
    "push": STEP_PUSH,
}


@dataclass(frozen=True)
class RunnerSettings:
    max_parallel_jobs: int = 4
    container_runtime: Optional[str] = None
    checkout_command: Tuple[str, ...] = ("git", "clone", "--quiet", "{source}", "{workdir}")
    recursive_checkout_flags: Tuple[str, ...] = ("--recurse-submodules",)
    default_timeout_seconds: Optional[float] = None
    output_tail_chars: int = 4000


@dataclass(frozen=True)
class NotificationSettings:
    color: str = SEVERITY_COLOR
    server_url: str = DEFAULT_SERVER_URL
    timeout_seconds: float = 10.0
    pretexts: Mapping[PipelineKind, str] = field(default_factory=lambda: dict(PRETEXTS), hash=False)
    messages: Mapping[str, str] = field(default_factory=lambda: dict(NOTIFICATION_MESSAGES), hash=False)


@dataclass(frozen=True)
class RunMetadata:
    """Identificação da run na plataforma de CI (compõe a URL do alerta)."""
    repository: str = ""
    run_id: str = ""


@dataclass(frozen=True)
class OrchestratorConfig:
    project: str
    protected_branch: str
    runner: RunnerSettings
    jobs: Tuple[Job, ...]
    publish: PublishSettings
    notification: NotificationSettings
    metadata: RunMetadata
    config_hash: str
    settings: RuntimeSettings = field(repr=False, compare=False, hash=False)
    raw: Dict[str, Any] = field(default_factory=dict, repr=False, compare=False, hash=False)

    @property
    def webhook_url(self) -> Optional[str]:
        return self.settings.webhook_url


def _section(config: Mapping[str, Any], key: str) -> Mapping[str, Any]:
    value = config.get(key) or {}
    if not isinstance(value, Mapping):
        raise ConfigTypeConflictError(f"`{key}` deve ser um mapa, recebido: {type(value).__name__}")
    return value


def _argv(value: Any, *, key: str) -> Tuple[str, ...]:
    if not isinstance(value, (list, tuple)) or not all(isinstance(p, str) for p in value):
        raise ConfigTypeConflictError(f"`{key}` deve ser uma lista de argumentos")
    return tuple(value)


def _number(value: Any, *, key: str, cast: Callable[[Any], Any] = float) -> Any:
    if isinstance(value, bool):
        raise ConfigTypeConflictError(f"`{key}` deve ser numérico, recebido: bool")
    try:
        return cast(value)
    except (TypeError, ValueError) as e:
        raise ConfigTypeConflictError(f"`{key}` deve ser numérico, recebido: {value!r}") from e


def _runner(config: Mapping[str, Any]) -> RunnerSettings:
    raw = _section(config, "runner")
    defaults = RunnerSettings()
    max_parallel = _number(
        raw.get("max_parallel_jobs", defaults.max_parallel_jobs), key="runner.max_parallel_jobs", cast=int
    )
    if max_parallel < 1:
        raise ConfigTypeConflictError("`runner.max_parallel_jobs` deve ser >= 1")
    timeout = raw.get("default_timeout_seconds")
    return RunnerSettings(
        max_parallel_jobs=max_parallel,
        container_runtime=raw.get("container_runtime") or None,
        checkout_command=_argv(
            raw.get("checkout_command", defaults.checkout_command), key="runner.checkout_command"
        ),
        recursive_checkout_flags=_argv(
            raw.get("recursive_checkout_flags", defaults.recursive_checkout_flags),
            key="runner.recursive_checkout_flags",
        ),
        default_timeout_seconds=_number(timeout, key="runner.default_timeout_seconds") if timeout else None,
        output_tail_chars=_number(
            raw.get("output_tail_chars", defaults.output_tail_chars), key="runner.output_tail_chars", cast=int
        ),
    )


def _publish(config: Mapping[str, Any], settings: RuntimeSettings) -> PublishSettings:
    raw = _section(config, "publish")
    image_id = settings.IMAGE_ID or raw.get("image_id")
    registry_url = settings.DOCKER_REGISTRY_URL or raw.get("registry_url")
    if not image_id:
        raise MissingSettingError("`publish.image_id` ausente (config ou IMAGE_ID)")
    if not registry_url:
        raise MissingSettingError("`publish.registry_url` ausente (config ou DOCKER_REGISTRY_URL)")

    commands = dict(DEFAULT_COMMANDS)
    for key, value in _section(raw, "commands").items():
        if key not in _COMMAND_KEYS:
            raise ConfigTypeConflictError(f"`publish.commands.{key}` não é uma etapa conhecida")
        commands[_COMMAND_KEYS[key]] = _argv(value, key=f"publish.commands.{key}")

    timeout = raw.get("timeout_seconds")
    return PublishSettings(
        image_id=str(image_id),
        registry_url=str(registry_url),
        build_file=str(raw.get("build_file") or "Dockerfile"),
        manifest_path=str(raw.get("manifest_path") or "Cargo.toml"),
        default_tag=str(raw.get("default_tag") or "latest"),
        timeout_seconds=_number(timeout, key="publish.timeout_seconds") if timeout else None,
        commands=commands,
    )


def _notification(config: Mapping[str, Any], settings: RuntimeSettings) -> NotificationSettings:
    raw = _section(config, "notification")
    pretexts = dict(PRETEXTS)
    for key, value in _section(raw, "pretext").items():
        try:
            pretexts[PipelineKind(key)] = str(value)
        except ValueError as e:
            raise ConfigTypeConflictError(f"`notification.pretext.{key}` não é um pipeline conhecido") from e

    messages = dict(NOTIFICATION_MESSAGES)
    messages.update({str(k): str(v) for k, v in _section(raw, "messages").items()})

    return NotificationSettings(
        color=str(raw.get("color") or SEVERITY_COLOR),
        server_url=settings.GITHUB_SERVER_URL or str(raw.get("server_url") or DEFAULT_SERVER_URL),
        timeout_seconds=_number(raw.get("timeout_seconds") or 10.0, key="notification.timeout_seconds"),
        pretexts=pretexts,
        messages=messages,
    )


def build_orchestrator_config(
    config: Dict[str, Any],
    settings: Optional[RuntimeSettings] = None,
) -> OrchestratorConfig:
    """
    Constrói a configuração tipada a partir do dicionário resolvido.

    Raises:
        ConfigError: Em qualquer violação estrutural (jobs inválidos, seções
            com tipo errado, imagem/registry ausentes).
    """
    settings = settings if settings is not None else RuntimeSettings()

    project = str(_section(config, "project").get("name") or "").strip()
    if not project:
        raise MissingSettingError("`project.name` ausente")

    protected = str(_section(config, "branches").get("protected") or "").strip()
    if not protected:
        raise MissingSettingError("`branches.protected` ausente")

    jobs = tuple(jobs_from_config(config))
    if not jobs:
        raise InvalidJobDefinitionError("Nenhum job de verificação habilitado em `jobs`")

    return OrchestratorConfig(
        project=project,
        protected_branch=protected,
        runner=_runner(config),
        jobs=jobs,
        publish=_publish(config, settings),
        notification=_notification(config, settings),
        metadata=RunMetadata(repository=settings.GITHUB_REPOSITORY, run_id=settings.GITHUB_RUN_ID),
        config_hash=compute_config_hash(config),
        settings=settings,
        raw=config,
    )
