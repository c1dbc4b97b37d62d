# tests/test_smoke.py
"""
Testes de sanidade estrutural (smoke tests) do Beacon CI.

Garantem apenas que o pacote importa, expõe sua versão e empacota o
arquivo de defaults. Não testam comportamento de domínio.
"""

import beacon_ci


def test_package_imports():
    assert beacon_ci.Orchestrator is not None
    assert beacon_ci.OrchestrationResult is not None


def test_version_is_declared():
    assert isinstance(beacon_ci.__version__, str)
    assert beacon_ci.__version__.count(".") == 2


def test_packaged_defaults_exist():
    from beacon_ci.core.config.loader import DEFAULTS_PATH

    assert DEFAULTS_PATH.is_file()
