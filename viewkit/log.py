"""
Configuração de logging do framework.

Todos os módulos usam loggers nomeados sob "viewkit" (viewkit.app,
viewkit.views, viewkit.requests, ...). configure_logging() é chamado
uma única vez por create_app().
"""

from __future__ import annotations

import logging

from viewkit.config import Settings

ROOT_LOGGER = "viewkit"

_configured = False


def configure_logging(settings: Settings, *, force: bool = False) -> logging.Logger:
    """
    Configura o logger raiz do framework a partir das settings.

    Não mexe no root logger do processo: apenas o logger "viewkit"
    recebe handler e nível. Chamadas repetidas são ignoradas,
    a menos que force=True.
    """
    global _configured

    logger = logging.getLogger(ROOT_LOGGER)
    if _configured and not force:
        return logger

    for handler in list(logger.handlers):
        logger.removeHandler(handler)

    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(settings.log_format))
    logger.addHandler(handler)
    logger.setLevel(settings.log_level)
    logger.propagate = True

    _configured = True
    logger.debug("Logging configured (level=%s)", settings.log_level)
    return logger
