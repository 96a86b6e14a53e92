"""
Tests for environment-based configuration.
"""

import pytest

from learnhub.config import DevelopmentConfig, ProductionConfig, get_config


def test_unset_environment_selects_production(monkeypatch):
    monkeypatch.delenv("ENVIRONMENT", raising=False)

    selected = get_config()

    assert selected is ProductionConfig
    assert selected.DEBUG is False


@pytest.mark.parametrize("environment", ["development", "DEVELOPMENT"])
def test_development_must_be_explicit(environment):
    selected = get_config(environment)

    assert selected is DevelopmentConfig
    assert selected.DEBUG is True


@pytest.mark.parametrize("environment", ["production", "staging", ""])
def test_other_environments_select_production(environment):
    assert get_config(environment) is ProductionConfig
