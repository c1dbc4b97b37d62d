# src/beacon_ci/core/config/errors.py
"""
Exceções canônicas da camada de configuração do Beacon CI.

As exceções aqui definidas representam **violações estruturais** de
configuração detectadas na inicialização do orquestrador, e não falhas de
jobs ou de publicação.

Invariantes:
    - Todas as exceções de configuração herdam de `ConfigError`
    - Erros de configuração são fatais: nenhum pipeline é executado
"""


class ConfigError(Exception):
    """
    Exceção base para erros relacionados à configuração do Beacon CI.

    Permite captura genérica de erros de configuração e distinção clara entre
    falhas de inicialização e falhas de execução de pipeline.
    """


class DefaultsNotFoundError(ConfigError):
    """
    Exceção levantada quando o arquivo de configuração base (defaults)
    não é encontrado no caminho especificado.

    Decisões arquiteturais:
        - O arquivo de defaults é obrigatório
        - Não há criação implícita de defaults
    """


class UnsupportedConfigFormatError(ConfigError):
    """
    Exceção levantada quando o formato do arquivo de configuração
    não é suportado pelo loader.

    Formatos suportados (v1):
        - YAML (.yaml, .yml)
        - JSON (.json)
    """


class InvalidConfigRootTypeError(ConfigError):
    """Conteúdo raiz da configuração não é um dicionário (`dict`)."""


class ConfigTypeConflictError(ConfigError):
    """
    Exceção levantada quando ocorre conflito de tipos durante o deep-merge.

    Exemplo de conflito:
        - base:     {"runner": {"max_parallel_jobs": 4}}
        - override: {"runner": "local"}
    """


class InvalidJobDefinitionError(ConfigError):
    """
    Exceção levantada quando a definição de um job é estruturalmente inválida
    (comando ausente, tipo incorreto, timeout não positivo).
    """


class MissingSettingError(ConfigError):
    """Valor obrigatório ausente tanto na configuração quanto no ambiente."""


class ConfigSyntaxError(ConfigError):
    """Arquivo de configuração com YAML/JSON malformado."""
