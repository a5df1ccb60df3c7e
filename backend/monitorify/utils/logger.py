"""Logging configuration for the API and its background workers."""
import logging
import sys
from monitorify.config import settings

# Per-request INFO lines from these would drown out the pollers
NOISY_LOGGERS = ("httpx", "httpcore", "arq.jobs")


def resolve_level(environment: str, override: str = "") -> int:
    """LOG_LEVEL wins when it names a level; otherwise DEBUG in development, INFO elsewhere."""
    if override:
        level = getattr(logging, override.strip().upper(), None)
        if isinstance(level, int):
            return level
    return logging.DEBUG if environment == "development" else logging.INFO


level = resolve_level(settings.environment, settings.log_level)

logger = logging.getLogger("monitorify")
logger.setLevel(level)

# Pollers tag their lines with "[<loop name>]"
handler = logging.StreamHandler(sys.stdout)
handler.setLevel(level)
handler.setFormatter(logging.Formatter(
    "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
))

if not logger.handlers:
    logger.addHandler(handler)

logger.propagate = False

for name in NOISY_LOGGERS:
    logging.getLogger(name).setLevel(max(level, logging.WARNING))

__all__ = ["logger", "resolve_level"]
