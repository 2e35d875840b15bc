import logging

from .config import LOG_LEVEL

_CONFIGURED = False


def configure_logging() -> None:
    """Configure process-wide logging once, level taken from LOG_LEVEL."""
    global _CONFIGURED
    if _CONFIGURED:
        return

    level = getattr(logging, LOG_LEVEL.upper(), logging.INFO)
    logging.basicConfig(
        level=level,
        format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
    )
    _CONFIGURED = True
