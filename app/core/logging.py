import logging
import sys

from app.core.config import settings

_LEVELS = {
    "CRITICAL": logging.CRITICAL,
    "ERROR": logging.ERROR,
    "WARN": logging.WARNING,
    "WARNING": logging.WARNING,
    "INFO": logging.INFO,
    "DEBUG": logging.DEBUG,
}


def _coerce_level(value) -> int:
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        return _LEVELS.get(value.upper().strip(), logging.INFO)
    return logging.INFO


def get_logger(name: str) -> logging.Logger:
    """Return a stdout logger configured from LOG_LEVEL.

    Handlers are attached once per logger name, so calling this at import
    time from several modules is safe.
    """
    logger = logging.getLogger(name)
    if getattr(logger, "_ecoboleta_configured", False):
        return logger

    level = _coerce_level(settings.LOG_LEVEL)
    logger.setLevel(level)

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(
        fmt="%(asctime)s [%(name)s] %(levelname)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    ))
    logger.addHandler(handler)

    logger.propagate = False
    setattr(logger, "_ecoboleta_configured", True)
    return logger
