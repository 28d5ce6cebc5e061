"""Logging setup for the discovery engine and its CLI."""
import logging
import logging.handlers
from pathlib import Path

PACKAGE_LOGGER = "opportunity_radar"
LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
NOISY_LOGGERS = ("urllib3", "aiohttp", "apscheduler")


def _parse_level(level: str | int) -> int:
    if isinstance(level, int):
        return level
    value = logging.getLevelName(level.strip().upper())
    if not isinstance(value, int):
        raise ValueError(f"Unknown log level: {level!r}")
    return value


def setup_logging(
    level: str | int = "INFO",
    log_file: str | None = None,
    *,
    propagate: bool = False,
) -> logging.Logger:
    """Attach console and optional rotating-file handlers to the package logger.

    Only the ``opportunity_radar`` logger is touched, so an embedding
    service keeps control of the root logger. Calling again replaces the
    handlers installed by the previous call instead of stacking them.

    Args:
        level: Level name or number for the package logger
        log_file: Optional path for a rotating log file (10 MB x 5)
        propagate: Also pass records up to the root logger

    Returns:
        The configured package logger

    Raises:
        ValueError: if ``level`` is not a known level name
    """
    logger = logging.getLogger(PACKAGE_LOGGER)
    logger.setLevel(_parse_level(level))
    logger.propagate = propagate

    for handler in [h for h in logger.handlers if getattr(h, "_radar_handler", False)]:
        logger.removeHandler(handler)
        handler.close()

    fmt = logging.Formatter(LOG_FORMAT, datefmt="%Y-%m-%d %H:%M:%S")
    handlers: list[logging.Handler] = [logging.StreamHandler()]
    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(
            logging.handlers.RotatingFileHandler(log_path, maxBytes=10 * 1024 * 1024, backupCount=5)
        )

    for handler in handlers:
        handler.setFormatter(fmt)
        handler._radar_handler = True
        logger.addHandler(handler)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    return logger
