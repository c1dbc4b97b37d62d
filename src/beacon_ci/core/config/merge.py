# src/beacon_ci/core/config/merge.py
"""
Deep-merge de configuração (defaults ← overrides locais).

Regras:
    - mapa sobre mapa      → merge por chave, recursivo
    - lista                → substitui a lista inteira (argv de comandos)
    - `None` em qualquer lado → o override vence
    - int e float          → compatíveis entre si (bool não é número)
    - demais tipos         → precisam coincidir; o override vence

Um conflito de tipo aponta o caminho completo da chave
(ex.: `runner.max_parallel_jobs`), para que o erro seja corrigível sem
depuração.
"""

from copy import deepcopy
from typing import Any, Dict, Tuple

from .errors import ConfigTypeConflictError


def _path(keys: Tuple[str, ...]) -> str:
    return ".".join(keys) or "<root>"


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _merge_value(keys: Tuple[str, ...], current: Any, incoming: Any) -> Any:
    if isinstance(current, dict) and isinstance(incoming, dict):
        merged = dict(current)
        for key, value in incoming.items():
            merged[key] = _merge_value(keys + (str(key),), merged[key], value) if key in merged else deepcopy(value)
        return merged

    if incoming is None or current is None or isinstance(incoming, list):
        return deepcopy(incoming)

    if _is_number(current) and _is_number(incoming):
        return incoming

    if type(current) is not type(incoming):
        raise ConfigTypeConflictError(
            f"Conflito de tipo em '{_path(keys)}': "
            f"{type(current).__name__} vs {type(incoming).__name__}"
        )
    return deepcopy(incoming)


def deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    """
    Retorna um novo dict com `override` aplicado sobre `base`.

    Nenhuma das entradas é mutada.

    Raises:
        ConfigTypeConflictError: se alguma das raízes não for dict ou se uma
            chave mudar de tipo entre base e override.
    """
    if not isinstance(base, dict) or not isinstance(override, dict):
        raise ConfigTypeConflictError(
            f"Deep-merge requer dicts na raiz, recebido: "
            f"{type(base).__name__} vs {type(override).__name__}"
        )
    return _merge_value((), deepcopy(base), override)
