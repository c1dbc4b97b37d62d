# src/beacon_ci/core/engine/__init__.py
"""
Engine do Beacon CI.

Este pacote contém a execução dos jobs de verificação:
    - executor → fronteira com comandos externos (`CommandExecutor`)
    - runner   → execução isolada de um job (checkout, setup, comando)
    - graph    → execução paralela e agregação do pipeline de verificação

Princípios fundamentais:
    - Execução e agregação são responsabilidades separadas
    - Falhas viram resultados explícitos, nunca exceções soltas
    - Nenhum retry automático

Limites explícitos:
    - Não decide quais pipelines rodam (ver `trigger`)
    - Não envia notificações (ver `notification`)
"""

from .executor import CommandExecutor, CommandResult, SubprocessExecutor, render_argv
from .runner import CheckoutWorkspace, JobRunner, StaticWorkspace, WorkspaceProvider
from .graph import JobGraph

__all__ = [
    "CommandExecutor",
    "CommandResult",
    "SubprocessExecutor",
    "render_argv",
    "CheckoutWorkspace",
    "JobRunner",
    "StaticWorkspace",
    "WorkspaceProvider",
    "JobGraph",
]
