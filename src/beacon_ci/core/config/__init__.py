# src/beacon_ci/core/config/__init__.py
"""
Camada de configuração do Beacon CI.

Responsabilidades do pacote:
    - Carregamento de arquivos de configuração (defaults + overrides locais)
    - Resolução de configuração final via deep-merge determinístico
    - Hash canônico para rastreabilidade
    - Leitura de ambiente e segredos (`settings`, via pydantic-settings)
    - Construção da `OrchestratorConfig` tipada (`model`)

`model` depende do restante do core e não é importado aqui; use
`beacon_ci.core.config.model` diretamente.

Invariantes:
    - A configuração final é um dicionário puro (dict)
    - Conflitos estruturais são tratados como erro
"""

from .errors import ConfigError
from .hashing import compute_config_hash
from .loader import DEFAULTS_PATH, load_config, load_default_config
from .merge import deep_merge

__all__ = [
    "ConfigError",
    "compute_config_hash",
    "DEFAULTS_PATH",
    "load_config",
    "load_default_config",
    "deep_merge",
]
