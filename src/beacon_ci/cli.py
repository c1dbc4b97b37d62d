# src/beacon_ci/cli.py
"""
CLI do Beacon CI.

Comandos:
    - run     → avalia o evento, executa os pipelines e imprime o resumo JSON
    - plan    → apenas imprime o TriggerPlan do evento
    - version → resolve a tag de versão a partir do manifesto do projeto

Os dados do evento vêm das opções ou, na ausência delas, do ambiente da
plataforma de CI (GITHUB_EVENT_NAME, GITHUB_REF, GITHUB_EVENT_PATH).

Códigos de saída de `run`: 0 quando todo pipeline agendado terminou com
sucesso, 1 caso contrário. Erros de configuração terminam com código 2.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, Optional

import click

from beacon_ci import __version__
from beacon_ci.core.config.errors import ConfigError
from beacon_ci.core.config.loader import load_default_config
from beacon_ci.core.config.model import OrchestratorConfig, build_orchestrator_config
from beacon_ci.core.config.settings import RuntimeSettings
from beacon_ci.core.engine.runner import StaticWorkspace
from beacon_ci.core.exceptions import ParseError
from beacon_ci.core.pipeline.job import describe_jobs
from beacon_ci.core.publish.version import resolve_version_file
from beacon_ci.core.traceability.manifest import save_manifest
from beacon_ci.core.trigger.platform import event_from_environment
from beacon_ci.orchestrator import Orchestrator


EXIT_CONFIG_ERROR = 2


def _echo_json(data: Dict[str, Any]) -> None:
    click.echo(json.dumps(data, ensure_ascii=False, indent=2, sort_keys=True))


def _load(config_path: Optional[str]) -> OrchestratorConfig:
    try:
        return build_orchestrator_config(load_default_config(config_path), RuntimeSettings())
    except ConfigError as e:
        click.echo(f"Configuração inválida: {e}", err=True)
        raise SystemExit(EXIT_CONFIG_ERROR)


event_options = [
    click.option("--event", "event_kind", default=None, help="Tipo do evento (push, pull_request, release)."),
    click.option("--branch", default=None, help="Branch ou ref do evento (refs/heads/<nome> aceito)."),
    click.option("--action", default=None, help="Ação do evento (ex.: published)."),
    click.option("--config", "config_path", default=None, type=click.Path(dir_okay=False),
                 help="Arquivo YAML/JSON de overrides locais."),
]


def with_event_options(func):
    for option in reversed(event_options):
        func = option(func)
    return func


@click.group()
@click.version_option(__version__, prog_name="beacon-ci")
def main() -> None:
    """Orquestrador de pipelines de verificação e publicação."""


@main.command()
@with_event_options
@click.option("--source", default=".", type=click.Path(file_okay=False), help="Diretório do repositório.")
@click.option("--in-place", is_flag=True, help="Roda os jobs no próprio diretório, sem checkout isolado.")
@click.option("--manifest", "manifest_path", default=None, type=click.Path(dir_okay=False),
              help="Grava o Run Manifest (JSON) neste caminho.")
def run(
    event_kind: Optional[str],
    branch: Optional[str],
    action: Optional[str],
    config_path: Optional[str],
    source: str,
    in_place: bool,
    manifest_path: Optional[str],
) -> None:
    """Executa os pipelines agendados para o evento."""
    config = _load(config_path)
    event = event_from_environment(config.settings, kind=event_kind, branch=branch, action=action)

    orchestrator = Orchestrator(
        config,
        source=source,
        workspace=StaticWorkspace(Path(source)) if in_place else None,
    )
    result = orchestrator.handle(event)

    if manifest_path:
        save_manifest(result.manifest, Path(manifest_path))
        click.echo(f"Manifest salvo em: {manifest_path}", err=True)

    _echo_json(result.to_dict())
    raise SystemExit(0 if result.succeeded else 1)


@main.command()
@with_event_options
def plan(
    event_kind: Optional[str],
    branch: Optional[str],
    action: Optional[str],
    config_path: Optional[str],
) -> None:
    """Mostra quais pipelines o evento dispararia, sem executá-los."""
    config = _load(config_path)
    event = event_from_environment(config.settings, kind=event_kind, branch=branch, action=action)
    trigger_plan = Orchestrator(config).plan(event)

    data = trigger_plan.to_dict()
    data["protected_branch"] = config.protected_branch
    if trigger_plan.runs_verification:
        data["jobs"] = describe_jobs(list(config.jobs))
    _echo_json(data)


@main.command()
@click.option("--manifest-file", default="Cargo.toml", type=click.Path(dir_okay=False),
              help="Manifesto do projeto com a linha `version = ...`.")
def version(manifest_file: str) -> None:
    """Imprime a tag de versão (`vX.Y.Z`) declarada no manifesto."""
    try:
        click.echo(resolve_version_file(manifest_file))
    except ParseError as e:
        raise click.ClickException(e.message)


if __name__ == "__main__":
    main()
