# src/beacon_ci/core/engine/executor.py
"""
Execução de comandos externos.

Todas as ferramentas invocadas pelo Beacon CI (checkout, format, lint, audit,
test, build, tag, login, push) são comandos opacos: o core só interpreta o
exit status. Este módulo isola essa fronteira atrás do protocolo
`CommandExecutor`, permitindo testar o orquestrador sem Docker, git ou rede.

Invariantes:
    - `run` nunca levanta exceção por falha do comando: timeout e executável
      ausente viram `CommandResult` com `ok == False`
    - A entrada padrão (`stdin`) nunca é registrada em `CommandResult`
"""

from __future__ import annotations

import os
import subprocess
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Mapping, Optional, Protocol, Sequence, Tuple, runtime_checkable


# Convenção de shell para "comando não encontrado".
EXIT_COMMAND_NOT_FOUND = 127


@dataclass(frozen=True)
class CommandResult:
    argv: Tuple[str, ...]
    exit_code: Optional[int]
    stdout: str = ""
    stderr: str = ""
    timed_out: bool = False
    duration_ms: int = 0

    @property
    def ok(self) -> bool:
        return self.exit_code == 0 and not self.timed_out

    def output_tail(self, limit: int) -> str:
        combined = "\n".join(part for part in (self.stdout, self.stderr) if part)
        if limit <= 0:
            return ""
        return combined[-limit:]


@runtime_checkable
class CommandExecutor(Protocol):
    """Contrato mínimo para executar um comando externo."""

    def run(
        self,
        argv: Sequence[str],
        *,
        cwd: Optional[Path] = None,
        env: Optional[Mapping[str, str]] = None,
        stdin: Optional[str] = None,
        timeout: Optional[float] = None,
    ) -> CommandResult:
        ...


def _decode(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bytes):
        return value.decode("utf-8", errors="replace")
    return str(value)


class SubprocessExecutor:
    """Executor real baseado em `subprocess.run` (sem shell)."""

    def run(
        self,
        argv: Sequence[str],
        *,
        cwd: Optional[Path] = None,
        env: Optional[Mapping[str, str]] = None,
        stdin: Optional[str] = None,
        timeout: Optional[float] = None,
    ) -> CommandResult:
        args = tuple(argv)
        full_env = dict(os.environ)
        full_env.update(env or {})

        started = time.monotonic()
        try:
            completed = subprocess.run(
                list(args),
                cwd=str(cwd) if cwd is not None else None,
                env=full_env,
                input=stdin,
                capture_output=True,
                text=True,
                timeout=timeout,
                check=False,
            )
        except subprocess.TimeoutExpired as e:
            return CommandResult(
                argv=args,
                exit_code=None,
                stdout=_decode(e.stdout),
                stderr=_decode(e.stderr),
                timed_out=True,
                duration_ms=_elapsed_ms(started),
            )
        except OSError as e:
            return CommandResult(
                argv=args,
                exit_code=EXIT_COMMAND_NOT_FOUND,
                stderr=f"{e.__class__.__name__}: {e}",
                duration_ms=_elapsed_ms(started),
            )

        return CommandResult(
            argv=args,
            exit_code=completed.returncode,
            stdout=completed.stdout or "",
            stderr=completed.stderr or "",
            duration_ms=_elapsed_ms(started),
        )


def _elapsed_ms(started: float) -> int:
    return int(round((time.monotonic() - started) * 1000))


def render_argv(template: Sequence[str], **values: Any) -> Tuple[str, ...]:
    """
    Substitui placeholders `{nome}` em cada argumento do template.

    Raises:
        ValueError: Se o template referenciar um placeholder não fornecido.
    """
    rendered = []
    for part in template:
        try:
            rendered.append(str(part).format_map(values))
        except KeyError as e:
            raise ValueError(
                f"Placeholder desconhecido {e} no comando {list(template)!r}"
            ) from e
    return tuple(rendered)
