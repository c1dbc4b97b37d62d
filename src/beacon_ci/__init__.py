# src/beacon_ci/__init__.py
"""
Beacon CI — orquestrador determinístico de pipelines de CI/CD.

Dado um evento de mudança (push, pull request, release), o Beacon CI decide
quais pipelines executar, roda os jobs de verificação em paralelo, executa o
pipeline de publicação da imagem de container e, em caso de falha no branch
protegido, emite um único alerta estruturado para o canal de notificação.

Arquitetura em alto nível:
    - core.config       → defaults + overrides, hashing e settings de runtime
    - core.trigger      → tabela de decisão evento → pipelines
    - core.pipeline     → tipos canônicos, Job, RunContext e registry
    - core.engine       → executor de comandos, JobRunner e JobGraph
    - core.publish      → VersionResolver, ImageArtifact e PublishPipeline
    - core.notification → regra de notificação e despacho fire-and-forget
    - core.traceability → Manifest da execução e Event Log

Limites explícitos:
    - Não implementa analisadores, testes, build de imagens ou checkout
    - Ferramentas externas são sempre comandos opacos (exit status)
"""

__version__ = "0.1.0"

from .orchestrator import Orchestrator, OrchestrationResult

__all__ = ["Orchestrator", "OrchestrationResult", "__version__"]
