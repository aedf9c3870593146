import logging
import sys
from logging.handlers import TimedRotatingFileHandler
from pathlib import Path

from pythonjsonlogger.json import JsonFormatter

from app.config import settings

_configured = False


def setup_logging(log_name: str = "api") -> None:
    """JSON logs to stdout, plus ``<log_dir>/<log_name>.log`` when the directory exists.

    The API and the CLI script both call this; only the first call installs handlers.
    """
    global _configured
    if _configured:
        return
    _configured = True

    formatter = JsonFormatter(
        fmt="%(asctime)s %(levelname)s %(name)s %(message)s",
        rename_fields={"asctime": "timestamp", "levelname": "level"},
    )

    root = logging.getLogger()
    root.setLevel(settings.log_level)

    console = logging.StreamHandler(sys.stdout)
    console.setFormatter(formatter)
    root.addHandler(console)

    log_dir = Path(settings.log_dir)
    if log_dir.exists():
        file_handler = TimedRotatingFileHandler(
            log_dir / f"{log_name}.log",
            when="midnight",
            backupCount=30,
        )
        file_handler.setFormatter(formatter)
        root.addHandler(file_handler)

    # Quiet noisy loggers
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("asyncpg").setLevel(logging.WARNING)
