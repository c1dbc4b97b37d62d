# src/beacon_ci/core/publish/credentials.py
"""
Credenciais do registry e sua aquisição com escopo.

As credenciais são obtidas apenas dentro da etapa de autenticação, por meio
de um provider injetado, e descartadas ao fim do bloco `acquire`. O segredo
nunca aparece em `repr`, em logs ou no Manifest.
"""

from __future__ import annotations

from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Callable, Iterator, Optional

from pydantic import SecretStr

from beacon_ci.core.config.settings import RuntimeSettings
from beacon_ci.core.exceptions import AuthenticationFailure


@dataclass(frozen=True)
class Credentials:
    registry_url: str
    username: str
    secret: SecretStr = field(repr=False)

    def reveal(self) -> str:
        return self.secret.get_secret_value()


CredentialsProvider = Callable[[], Credentials]


def credentials_from_settings(
    settings: RuntimeSettings,
    *,
    registry_url: Optional[str] = None,
) -> CredentialsProvider:
    """
    Provider que lê usuário/senha de `RuntimeSettings` no momento da chamada.

    A validação é adiada para a aquisição: um pipeline que nunca chega à etapa
    de autenticação não exige credenciais.
    """

    def _provide() -> Credentials:
        url = settings.DOCKER_REGISTRY_URL or registry_url
        if not url or not settings.DOCKER_USERNAME or settings.DOCKER_PASSWORD is None:
            raise AuthenticationFailure(
                message="Credenciais do registry ausentes",
                details={
                    "registry_url": url,
                    "has_username": bool(settings.DOCKER_USERNAME),
                    "has_password": settings.DOCKER_PASSWORD is not None,
                },
                hint="Injete DOCKER_USERNAME e DOCKER_PASSWORD como segredos da plataforma.",
            )
        return Credentials(
            registry_url=url,
            username=settings.DOCKER_USERNAME,
            secret=settings.DOCKER_PASSWORD,
        )

    return _provide


@contextmanager
def acquire(provider: CredentialsProvider) -> Iterator[Credentials]:
    """Escopo de uso das credenciais; a referência local é descartada na saída."""
    credentials = provider()
    try:
        yield credentials
    finally:
        del credentials
