# src/beacon_ci/core/pipeline/job.py
"""
Definição estática de jobs de verificação.

Um Job é a menor unidade executável do pipeline de verificação: um comando
externo opaco, executado em um checkout isolado e em um ambiente isolado
(imagem de container), cujo exit status define o resultado.

Princípios fundamentais:
    - Jobs não conhecem o JobGraph nem outros jobs (o grafo não tem arestas)
    - `continue_on_error` é uma política do job, não um caso especial do grafo
    - Setup auxiliar (ex.: instalar ferramentas) é local ao próprio job

Limites explícitos:
    - Não executa comandos (ver `engine.runner`)
    - Não implementa checkout nem as ferramentas invocadas
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Tuple

from beacon_ci.core.config.errors import InvalidJobDefinitionError
from beacon_ci.core.config.settings import JOB_SECRET_NAMES


Argv = Tuple[str, ...]


def _as_argv(value: Any, *, job_id: str, key: str) -> Argv:
    if isinstance(value, str):
        raise InvalidJobDefinitionError(
            f"jobs.{job_id}.{key} deve ser uma lista de argumentos, não string"
        )
    if not isinstance(value, (list, tuple)) or not value:
        raise InvalidJobDefinitionError(f"jobs.{job_id}.{key} deve ser uma lista não vazia")
    if not all(isinstance(part, str) and part for part in value):
        raise InvalidJobDefinitionError(f"jobs.{job_id}.{key} contém argumento inválido")
    return tuple(value)


@dataclass(frozen=True)
class Job:
    """
    Job de verificação declarado na configuração.

    Atributos:
        - id: identificador estável (chave de `jobs.<id>` e das mensagens de alerta)
        - name: título legível (ex.: "Formatting check")
        - command: argv do comando principal
        - environment: imagem de container do ambiente isolado (opcional)
        - setup: argv executados antes do comando (pré-condição local)
        - continue_on_error: falha registrada, mas não falha a run
        - recursive_checkout: inclui sub-repositórios no checkout
        - timeout_seconds: limite do ambiente; excedido conta como falha
        - env: variáveis de ambiente adicionais do job
        - secrets: nomes de segredos da plataforma (ex.: `GITHUB_TOKEN`) expostos
          ao job como variáveis de ambiente; o valor nunca entra no argv
    """
    id: str
    name: str
    command: Argv
    environment: Optional[str] = None
    setup: Tuple[Argv, ...] = ()
    continue_on_error: bool = False
    recursive_checkout: bool = False
    timeout_seconds: Optional[float] = None
    env: Mapping[str, str] = field(default_factory=dict, hash=False)
    secrets: Tuple[str, ...] = ()

    @classmethod
    def from_config(cls, job_id: str, raw: Mapping[str, Any]) -> "Job":
        if not isinstance(raw, Mapping):
            raise InvalidJobDefinitionError(f"jobs.{job_id} deve ser um mapa")

        setup_raw = raw.get("setup") or []
        if not isinstance(setup_raw, (list, tuple)):
            raise InvalidJobDefinitionError(f"jobs.{job_id}.setup deve ser uma lista de comandos")

        timeout = raw.get("timeout_seconds")
        if timeout is not None and (not isinstance(timeout, (int, float)) or timeout <= 0):
            raise InvalidJobDefinitionError(f"jobs.{job_id}.timeout_seconds deve ser positivo")

        env = raw.get("env") or {}
        if not isinstance(env, Mapping):
            raise InvalidJobDefinitionError(f"jobs.{job_id}.env deve ser um mapa")

        secrets = raw.get("secrets") or []
        if not isinstance(secrets, (list, tuple)) or any(s not in JOB_SECRET_NAMES for s in secrets):
            raise InvalidJobDefinitionError(
                f"jobs.{job_id}.secrets aceita apenas: {', '.join(JOB_SECRET_NAMES)}"
            )

        return cls(
            id=job_id,
            name=str(raw.get("name") or job_id),
            command=_as_argv(raw.get("command"), job_id=job_id, key="command"),
            environment=raw.get("environment") or None,
            setup=tuple(_as_argv(s, job_id=job_id, key="setup") for s in setup_raw),
            continue_on_error=bool(raw.get("continue_on_error", False)),
            recursive_checkout=bool(raw.get("recursive_checkout", False)),
            timeout_seconds=float(timeout) if timeout is not None else None,
            env={str(k): str(v) for k, v in env.items()},
            secrets=tuple(secrets),
        )


def jobs_from_config(config: Mapping[str, Any]) -> List[Job]:
    """
    Constrói a lista ordenada de jobs a partir de `config["jobs"]`.

    A ordem de declaração é preservada; jobs com `enabled: false` são omitidos.
    """
    jobs_cfg = config.get("jobs") or {}
    if not isinstance(jobs_cfg, Mapping):
        raise InvalidJobDefinitionError("`jobs` deve ser um mapa job_id -> definição")

    jobs: List[Job] = []
    for job_id, raw in jobs_cfg.items():
        if isinstance(raw, Mapping) and raw.get("enabled", True) is False:
            continue
        jobs.append(Job.from_config(str(job_id), raw))
    return jobs


def describe_jobs(jobs: List[Job]) -> List[Dict[str, Any]]:
    """Representação serializável (sem env) usada em `plan` e no Manifest."""
    return [
        {
            "id": j.id,
            "name": j.name,
            "command": list(j.command),
            "environment": j.environment,
            "continue_on_error": j.continue_on_error,
        }
        for j in jobs
    ]
