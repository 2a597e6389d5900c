import sys
from pathlib import Path

from loguru import logger

log_dir = Path("logs")
log_file = log_dir / "copyedit_{time}.log"

# Run verbosity -> minimum console level.
CONSOLE_LEVELS = {
    "none": "WARNING",
    "light": "INFO",
    "verbose": "DEBUG",
}

logger.remove()
logger.add(
    log_file,
    rotation="256 MB",
    retention="10 days",
    compression="zip",
    encoding="utf-8",
    level="DEBUG",
)

_console_handler_id: int | None = None


def configure_console(log_level: str = "none") -> None:
    global _console_handler_id
    if log_level not in CONSOLE_LEVELS:
        raise ValueError(f"Unsupported log level: {log_level}")
    if _console_handler_id is not None:
        logger.remove(_console_handler_id)
    _console_handler_id = logger.add(
        sys.stderr,
        level=CONSOLE_LEVELS[log_level],
        format="<level>{level: <8}</level> | {message}",
    )


if __name__ == "__main__":
    configure_console("verbose")
    logger.info("info message")
    logger.debug("debug message")
    logger.warning("warning message")
