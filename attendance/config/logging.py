import logging
import sys
from logging import StreamHandler
from typing import Protocol

from attendance.config.settings import settings

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

# Every webhook post would otherwise log a line at INFO
QUIET_LOGGERS = ("httpx", "httpcore")


class LoggingConfig(Protocol):
    debug: bool
    log_level: str


def resolve_log_level(config: LoggingConfig) -> int:
    """Explicit ``log_level`` wins; otherwise DEBUG in debug mode and INFO elsewhere."""
    if not config.log_level:
        return logging.DEBUG if config.debug else logging.INFO
    level = logging.getLevelName(config.log_level.upper())
    if not isinstance(level, int):
        raise ValueError(f"Unknown log level: {config.log_level}")
    return level


def setup_logging(config: LoggingConfig = settings) -> None:
    level = resolve_log_level(config)
    logging.basicConfig(level=level, format=LOG_FORMAT, handlers=[StreamHandler(sys.stdout)])
    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))
