# src/beacon_ci/core/publish/version.py
"""
VersionResolver — extração da tag de versão a partir do manifesto do projeto.

Algoritmo:
    1. localizar a primeira linha que começa com a declaração `version =`
    2. tomar o valor após o `=`
    3. manter apenas dígitos e `.`
    4. prefixar com `v`

A função é pura: o mesmo texto de manifesto sempre produz a mesma tag.
"""

from __future__ import annotations

import re
from pathlib import Path
from typing import Optional, Union

from beacon_ci.core.exceptions import ParseError


VERSION_KEYWORD = "version"
VERSION_PREFIX = "v"

_DECLARATION = re.compile(rf"^{VERSION_KEYWORD}\s*=(?P<value>.*)$")
_NOT_VERSION_CHAR = re.compile(r"[^0-9.]")


def resolve_version(manifest_text: str, *, source: Optional[str] = None) -> str:
    """
    Retorna a tag de versão (`v<digits-and-dots>`) declarada no manifesto.

    Args:
        manifest_text: conteúdo textual do manifesto.
        source: caminho do manifesto, usado apenas em detalhes de erro.

    Raises:
        ParseError: se não houver linha de versão ou se o valor ficar vazio
            após remover os caracteres que não são dígitos ou `.`.
    """
    for line in manifest_text.splitlines():
        match = _DECLARATION.match(line)
        if match is None:
            continue

        digits = _NOT_VERSION_CHAR.sub("", match.group("value"))
        if not digits:
            raise ParseError(
                message="Declaração de versão vazia no manifesto",
                details={"manifest_path": source, "line": line.strip()},
                hint="Declare uma linha `version = \"X.Y.Z\"` no manifesto do projeto.",
            )
        return f"{VERSION_PREFIX}{digits}"

    raise ParseError(
        message="Manifesto não contém declaração de versão",
        details={"manifest_path": source, "keyword": VERSION_KEYWORD},
        hint="Declare uma linha `version = \"X.Y.Z\"` no manifesto do projeto.",
    )


def resolve_version_file(path: Union[str, Path]) -> str:
    """Lê o manifesto do disco e resolve a versão; arquivo ausente é ParseError."""
    p = Path(path)
    try:
        text = p.read_text(encoding="utf-8")
    except OSError as e:
        raise ParseError(
            message="Manifesto do projeto não pôde ser lido",
            details={"manifest_path": str(p), "reason": e.__class__.__name__},
            hint="Verifique `publish.manifest_path` na configuração.",
        ) from e
    return resolve_version(text, source=str(p))
