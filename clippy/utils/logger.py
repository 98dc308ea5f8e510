"""Logging setup shared by the desktop app and scripts."""

import logging
from pathlib import Path
from typing import Optional

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'

# Libraries that log every request at INFO
NOISY_LOGGERS = ("httpx", "httpcore", "PIL", "asyncio")


def setup_logging(level: str = "INFO", log_file: Optional[str] = "logs/clippy.log") -> None:
    """
    Configure the root logger once: console plus an appending log file.

    Args:
        level: Root level name ("DEBUG", "INFO", ...)
        log_file: Path of the log file, None for console only
    """
    handlers: list[logging.Handler] = [logging.StreamHandler()]
    if log_file:
        path = Path(log_file)
        path.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(path, mode="a", encoding="utf-8"))

    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format=LOG_FORMAT,
        handlers=handlers,
        force=True,
    )

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
