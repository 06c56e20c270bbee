#!/usr/bin/env python3
"""
DataCleanse - Configuration structlog

Configuration centralisee de structlog pour logging JSON structure.

Usage:
    from config.logging import configure_logging_from_settings
    from datacleanse.src.datacleanse.dedup.settings import get_settings

    # Au demarrage de l'application (DATACLEANSE_LOG_LEVEL / DATACLEANSE_LOG_FORMAT)
    configure_logging_from_settings(get_settings())

    # Dans les modules
    import structlog
    logger = structlog.get_logger(__name__)
    logger.info("message", key=value)
"""

import logging
import os
import sys

import structlog
from structlog.types import EventDict, WrappedLogger


def add_app_context(logger: WrappedLogger, method_name: str, event_dict: EventDict) -> EventDict:
    """
    Ajoute contexte applicatif a chaque log.

    Ajoute :
    - app: "datacleanse"
    - environment: valeur de DATACLEANSE_ENV (development par defaut)
    """
    event_dict["app"] = "datacleanse"
    event_dict["environment"] = os.getenv("DATACLEANSE_ENV", "development")
    return event_dict


def configure_logging(
    level: str = "INFO",
    json_format: bool = True,
    enable_colors: bool = False,
) -> None:
    """
    Configure structlog pour DataCleanse.

    Args:
        level: Niveau de log (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        json_format: Si True, logs en JSON. Si False, logs lisibles (dev)
        enable_colors: Si True, colorise les logs console (dev uniquement)

    Example:
        >>> configure_logging(level="DEBUG", json_format=False, enable_colors=True)
    """
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, level.upper()),
    )

    processors = [
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        add_app_context,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]

    if json_format:
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=enable_colors))

    structlog.configure(
        processors=processors,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )


def configure_logging_from_settings(settings) -> None:
    """
    Configure structlog depuis les settings du moteur.

    Niveau et format viennent de DATACLEANSE_LOG_LEVEL / DATACLEANSE_LOG_FORMAT
    (via DedupSettings). Aucune configuration n'est appliquee a l'import.

    Args:
        settings: Objet exposant ``log_level`` et ``log_format`` ("json" ou "console")
    """
    configure_logging(
        level=settings.log_level,
        json_format=settings.log_format == "json",
        enable_colors=settings.log_format == "console" and sys.stdout.isatty(),
    )
