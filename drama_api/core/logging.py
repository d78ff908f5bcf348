# drama_api/core/logging.py
import logging
import sys
from pathlib import Path
from typing import List, Optional

from drama_api.core.config import settings
from drama_api.observability.logging import ContextFilter

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - [%(request_id)s %(user_id)s] %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Libraries that log every statement or request at INFO
NOISY_LOGGERS = ("sqlalchemy.engine", "uvicorn.access", "aiosqlite", "asyncpg")


def _handlers(log_file: Optional[str]) -> List[logging.Handler]:
    handlers: List[logging.Handler] = [logging.StreamHandler(sys.stdout)]
    if log_file:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_file, encoding="utf-8"))

    context_filter = ContextFilter()
    for handler in handlers:
        handler.addFilter(context_filter)
    return handlers


def setup_logging(log_level: Optional[str] = None, log_file: Optional[str] = None) -> None:
    """
    Configure the root logger: stdout plus optional LOG_FILE, every line
    tagged with the request and user id of the task that wrote it.
    """
    level = (log_level or settings.LOG_LEVEL).upper()

    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format=LOG_FORMAT,
        datefmt=DATE_FORMAT,
        handlers=_handlers(log_file or settings.LOG_FILE),
        force=True
    )

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    logging.getLogger(__name__).info(f"Logging configured with level: {level}")
