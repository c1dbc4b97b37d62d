# src/beacon_ci/core/publish/artifact.py
"""
ImageArtifact — imagem de container produzida pelo build.

A imagem sempre carrega a tag padrão; a tag de versão semântica só é
adicionada quando o evento é uma release publicada. Instâncias são imutáveis:
`with_tag` devolve um novo artefato.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, FrozenSet, List


DEFAULT_TAG = "latest"


@dataclass(frozen=True)
class ImageArtifact:
    base_id: str
    default_tag: str = DEFAULT_TAG
    tags: FrozenSet[str] = field(default_factory=frozenset)

    def __post_init__(self) -> None:
        if not self.base_id or not self.base_id.strip():
            raise ValueError("ImageArtifact.base_id must be a non-empty string")
        if self.default_tag not in self.tags:
            object.__setattr__(self, "tags", frozenset(self.tags) | {self.default_tag})

    def with_tag(self, tag: str) -> "ImageArtifact":
        if not tag or not tag.strip():
            raise ValueError("tag must be a non-empty string")
        return ImageArtifact(
            base_id=self.base_id,
            default_tag=self.default_tag,
            tags=self.tags | {tag},
        )

    def sorted_tags(self) -> List[str]:
        """Tag padrão primeiro, demais em ordem lexicográfica."""
        others = sorted(t for t in self.tags if t != self.default_tag)
        return [self.default_tag, *others]

    def reference(self, tag: str) -> str:
        return f"{self.base_id}:{tag}"

    def references(self) -> List[str]:
        return [self.reference(t) for t in self.sorted_tags()]

    def to_dict(self) -> Dict[str, Any]:
        return {"base_id": self.base_id, "tags": self.sorted_tags()}
