# src/beacon_ci/core/config/loader.py
"""
Resolução da configuração a partir de arquivos.

Fontes, em ordem de prioridade crescente:
    1. arquivo de defaults (obrigatório; por padrão o
       `resources/config.defaults.yaml` empacotado)
    2. arquivo local de overrides (opcional; ignorado se não existir)

Formatos aceitos: YAML (`.yaml`, `.yml`) e JSON (`.json`). Arquivo vazio
equivale a `{}`.

Limites explícitos:
    - Não lê segredos nem variáveis de ambiente (ver `settings`)
    - Não interpreta jobs ou comandos (ver `model`)
"""

import json
from pathlib import Path
from typing import Any, Callable, Dict, Optional

import yaml

from .errors import (
    ConfigSyntaxError,
    DefaultsNotFoundError,
    InvalidConfigRootTypeError,
    UnsupportedConfigFormatError,
)
from .merge import deep_merge


DEFAULTS_PATH = Path(__file__).resolve().parents[2] / "resources" / "config.defaults.yaml"

_PARSERS: Dict[str, Callable[[str], Any]] = {
    ".yaml": yaml.safe_load,
    ".yml": yaml.safe_load,
    ".json": lambda text: json.loads(text) if text.strip() else None,
}


def read_config_file(path: Path) -> Dict[str, Any]:
    """
    Lê um arquivo de configuração e devolve seu mapa raiz.

    Raises:
        DefaultsNotFoundError: arquivo inexistente.
        UnsupportedConfigFormatError: extensão fora de YAML/JSON.
        ConfigSyntaxError: conteúdo que não é YAML/JSON válido.
        InvalidConfigRootTypeError: raiz diferente de um mapa.
    """
    if not path.exists():
        raise DefaultsNotFoundError(f"Arquivo de configuração não encontrado: {path}")

    parser = _PARSERS.get(path.suffix.lower())
    if parser is None:
        raise UnsupportedConfigFormatError(f"Formato não suportado: {path.suffix or path.name}")

    try:
        data = parser(path.read_text(encoding="utf-8"))
    except (yaml.YAMLError, json.JSONDecodeError) as e:
        raise ConfigSyntaxError(f"Conteúdo inválido em {path}: {e}") from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise InvalidConfigRootTypeError(
            f"Raiz da configuração em {path} deve ser um mapa, recebido: {type(data).__name__}"
        )
    return data


def load_config(*, defaults_path: str, local_path: Optional[str] = None) -> Dict[str, Any]:
    """
    Resolve a configuração efetiva: defaults com o arquivo local por cima.

    Raises:
        ConfigError: qualquer erro de leitura dos arquivos ou conflito de tipo
            no merge (ver `read_config_file` e `deep_merge`).
    """
    effective = read_config_file(Path(defaults_path))
    if local_path is None or not Path(local_path).exists():
        return effective
    return deep_merge(effective, read_config_file(Path(local_path)))


def load_default_config(local_path: Optional[str] = None) -> Dict[str, Any]:
    """Defaults empacotados + overrides locais opcionais."""
    return load_config(defaults_path=str(DEFAULTS_PATH), local_path=local_path)
