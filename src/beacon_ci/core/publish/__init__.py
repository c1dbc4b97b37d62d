# src/beacon_ci/core/publish/__init__.py
"""
Publicação da imagem de container.

    - artifact    → ImageArtifact imutável (tag padrão + tag de versão)
    - version     → VersionResolver (manifesto → `vX.Y.Z`)
    - credentials → Credentials e aquisição com escopo
    - pipeline    → PublishPipeline (build → tag → authenticate → push)

`PublishPipeline` é importado de `beacon_ci.core.publish.pipeline`; este
pacote exporta apenas as folhas, que não dependem do restante do core.
"""

from .artifact import DEFAULT_TAG, ImageArtifact
from .version import resolve_version, resolve_version_file

__all__ = [
    "DEFAULT_TAG",
    "ImageArtifact",
    "resolve_version",
    "resolve_version_file",
]
