# src/beacon_ci/core/config/hashing.py
"""
Identidade da configuração efetiva.

O Manifest de cada run grava `config_hash`: o SHA-256 do JSON canônico do
dicionário resolvido (defaults + overrides). Dois arquivos que descrevem os
mesmos jobs, comandos e parâmetros produzem o mesmo hash, independentemente
da ordem das chaves. Segredos vêm do ambiente e nunca entram no hash.
"""

import hashlib
import json
from typing import Any, Dict


def canonical_json(config: Dict[str, Any]) -> str:
    """JSON com chaves ordenadas, separadores compactos e texto não escapado."""
    return json.dumps(config, sort_keys=True, separators=(",", ":"), ensure_ascii=False)


def compute_config_hash(config: Dict[str, Any]) -> str:
    """
    Hash hexadecimal (64 caracteres) da configuração.

    Raises:
        TypeError: se `config` não for um dict.
    """
    if not isinstance(config, dict):
        raise TypeError(f"Config para hashing deve ser dict, recebido: {type(config).__name__}")
    return hashlib.sha256(canonical_json(config).encode("utf-8")).hexdigest()
