"""Logging setup for Metaquery (console plus rotating file under log_dir)."""

import logging
import logging.handlers
import sys
from pathlib import Path
from typing import Optional

from .config import settings

LOG_FORMAT = "%(asctime)s %(levelname)-5s %(name)s:%(lineno)d - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

_configured = False


def setup_logging(level: Optional[str] = None, log_dir: Optional[str] = None) -> None:
    """
    Configure the root logger once per process.

    Console output goes to stderr so stdout stays free for the stdio MCP
    transport. A rotating log file is written when log_dir can be created.

    Args:
        level: Log level name (defaults to settings.log_level)
        log_dir: Directory for metaquery.log (defaults to settings.log_dir)
    """
    global _configured
    if _configured:
        return

    level_name = (level or settings.log_level).upper()
    formatter = logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT)

    root_logger = logging.getLogger()
    root_logger.setLevel(level_name)

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    directory = log_dir if log_dir is not None else settings.log_dir
    if directory:
        try:
            path = Path(directory)
            path.mkdir(parents=True, exist_ok=True)
            file_handler = logging.handlers.RotatingFileHandler(
                path / "metaquery.log", maxBytes=10 * 1024 * 1024, backupCount=5, encoding="utf-8"
            )
            file_handler.setFormatter(formatter)
            root_logger.addHandler(file_handler)
        except OSError as e:
            root_logger.warning(f"File logging disabled, cannot use {directory}: {e}")

    # Reduce third-party verbosity
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)

    _configured = True
