# tests/core/publish/test_credentials.py
"""
Testes das credenciais do registry.

A leitura é adiada até a aquisição e o segredo nunca aparece em `repr`.
"""

import pytest

from beacon_ci.core.config.settings import RuntimeSettings
from beacon_ci.core.exceptions import AuthenticationFailure
from beacon_ci.core.publish.credentials import acquire, credentials_from_settings


def test_provider_reads_settings(runtime_settings):
    provider = credentials_from_settings(runtime_settings, registry_url="docker.io")
    with acquire(provider) as creds:
        assert creds.registry_url == "docker.io"
        assert creds.username == "ci-bot"
        assert creds.reveal() == "s3cr3t-password"
        assert "s3cr3t-password" not in repr(creds)


def test_environment_registry_wins(clean_env):
    settings = RuntimeSettings(
        _env_file=None,
        DOCKER_REGISTRY_URL="registry.example.test",
        DOCKER_USERNAME="u",
        DOCKER_PASSWORD="p",
    )
    with acquire(credentials_from_settings(settings, registry_url="docker.io")) as creds:
        assert creds.registry_url == "registry.example.test"


def test_missing_secrets_fail_only_on_acquisition(clean_env):
    """Criar o provider não exige credenciais; adquiri-las sim."""
    provider = credentials_from_settings(RuntimeSettings(_env_file=None), registry_url="docker.io")
    with pytest.raises(AuthenticationFailure) as exc:
        with acquire(provider):
            pass
    assert exc.value.details["has_username"] is False
    assert exc.value.details["has_password"] is False
