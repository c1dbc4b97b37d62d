# src/beacon_ci/core/config/settings.py
"""
Settings de runtime do Beacon CI (ambiente + segredos).

Variáveis de ambiente e segredos injetados pela plataforma de CI são lidos
uma única vez, aqui, e validados por pydantic-settings. O restante do core
nunca consulta `os.environ`: recebe os valores já resolvidos dentro de
`OrchestratorConfig`.

Segredos (`SecretStr`) nunca aparecem em `repr`, logs ou Manifest.
"""

from typing import Dict, Optional

from pydantic import SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


# Segredos que um job pode receber no ambiente via `jobs.<id>.secrets`.
JOB_SECRET_NAMES = ("GITHUB_TOKEN",)


class RuntimeSettings(BaseSettings):
    """Ambiente e segredos injetados em tempo de execução."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ==========================================================================
    # Artefato / registry
    # ==========================================================================
    IMAGE_ID: Optional[str] = None
    DOCKER_REGISTRY_URL: Optional[str] = None
    DOCKER_USERNAME: Optional[str] = None
    DOCKER_PASSWORD: Optional[SecretStr] = None

    # ==========================================================================
    # Notificação / plataforma
    # ==========================================================================
    NOTIFICATION_WEBHOOK_URL: Optional[SecretStr] = None
    GITHUB_TOKEN: Optional[SecretStr] = None

    # ==========================================================================
    # Metadados da run (plataforma de CI)
    # ==========================================================================
    GITHUB_REPOSITORY: str = ""
    GITHUB_RUN_ID: str = ""
    GITHUB_SERVER_URL: Optional[str] = None
    GITHUB_EVENT_NAME: Optional[str] = None
    GITHUB_REF: Optional[str] = None
    GITHUB_EVENT_PATH: Optional[str] = None

    @property
    def webhook_url(self) -> Optional[str]:
        if self.NOTIFICATION_WEBHOOK_URL is None:
            return None
        return self.NOTIFICATION_WEBHOOK_URL.get_secret_value() or None

    @property
    def job_secrets(self) -> Dict[str, str]:
        """Valores disponíveis de `JOB_SECRET_NAMES` (vazios são omitidos)."""
        values = {}
        for name in JOB_SECRET_NAMES:
            secret = getattr(self, name)
            if secret is not None and secret.get_secret_value():
                values[name] = secret.get_secret_value()
        return values
