"""
Testes de configuração e logging.
"""

import logging

import pytest
from pydantic import ValidationError

from viewkit import config
from viewkit.config import Settings, configure, get_settings, reset_settings
from viewkit.log import ROOT_LOGGER, configure_logging


@pytest.fixture(autouse=True)
def isolated_settings(monkeypatch):
    """Restaura o singleton ao final de cada teste."""
    monkeypatch.setattr(config, "_settings", config._settings)
    monkeypatch.setattr(config, "_settings_class", config._settings_class)


class TenantSettings(Settings):
    tenant: str = "default"


def test_configure_overrides():
    settings = configure(page_size=5, max_page_size=50)

    assert settings.page_size == 5
    assert get_settings() is settings


def test_configure_custom_class():
    settings = configure(settings_class=TenantSettings, tenant="acme")

    assert isinstance(get_settings(), TenantSettings)
    assert settings.tenant == "acme"


def test_page_size_cannot_exceed_max():
    with pytest.raises(ValidationError):
        configure(page_size=200, max_page_size=100)


def test_unknown_keys_are_logged(caplog):
    with caplog.at_level(logging.WARNING, logger="viewkit.config"):
        settings = configure(colour="red")

    assert not hasattr(settings, "colour")
    assert "colour" in caplog.text


def test_reset_settings_reloads_defaults():
    configure(settings_class=TenantSettings, page_size=7)

    reset_settings()

    settings = get_settings()
    assert type(settings) is Settings
    assert settings.page_size == 20


def test_reset_ignored_in_production():
    current = configure(environment="production")

    reset_settings()

    assert get_settings() is current


def test_configure_logging_targets_framework_logger():
    try:
        logger = configure_logging(Settings(log_level="WARNING"), force=True)

        assert logger.name == ROOT_LOGGER
        assert logger.level == logging.WARNING
        assert len(logger.handlers) == 1
    finally:
        configure_logging(get_settings(), force=True)


def test_configure_logging_runs_once():
    logger = logging.getLogger(ROOT_LOGGER)
    level = logger.level

    configure_logging(Settings(log_level="CRITICAL"))

    assert logger.level == level
