"""Structured logging configuration."""

import logging
import sys
from datetime import datetime, timezone
from pathlib import Path

from pythonjsonlogger import jsonlogger

from sourcing_assistant.config import settings

CONSOLE_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
JSON_FORMAT = "%(timestamp)s %(level)s %(name)s %(message)s"


class CustomJsonFormatter(jsonlogger.JsonFormatter):
    """JSON lines for the log files; adds UTC timestamp and call site."""

    def add_fields(self, log_record, record, message_dict):
        super().add_fields(log_record, record, message_dict)

        log_record['timestamp'] = datetime.fromtimestamp(record.created, timezone.utc).isoformat()
        log_record['level'] = record.levelname
        log_record['logger'] = record.name
        log_record['source'] = f"{record.module}.{record.funcName}:{record.lineno}"


def _file_handler(path: Path, level: int, formatter: logging.Formatter) -> logging.Handler:
    handler = logging.FileHandler(path, encoding="utf-8")
    handler.setLevel(level)
    handler.setFormatter(formatter)
    return handler


def setup_logging(base_dir: str | Path | None = None) -> logging.Logger:
    """Configure logging for the application.

    Console output is plain text; ``app.log`` and ``error.log`` hold JSON
    lines. Loggers named in ``settings.quiet_loggers`` are held at WARNING
    so request traces from the HTTP clients stay out of the files.

    Args:
        base_dir: Directory that holds ``settings.log_dir``.
                  If omitted, uses the current working directory.
    """
    logs_dir = (Path(base_dir) if base_dir else Path.cwd()) / settings.log_dir
    logs_dir.mkdir(parents=True, exist_ok=True)

    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, settings.log_level.upper()))
    root_logger.handlers.clear()

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(logging.Formatter(CONSOLE_FORMAT))
    root_logger.addHandler(console_handler)

    json_formatter = CustomJsonFormatter(JSON_FORMAT)
    root_logger.addHandler(_file_handler(logs_dir / "app.log", logging.DEBUG, json_formatter))
    root_logger.addHandler(_file_handler(logs_dir / "error.log", logging.ERROR, json_formatter))

    for name in filter(None, (part.strip() for part in settings.quiet_loggers.split(","))):
        logging.getLogger(name).setLevel(logging.WARNING)

    return root_logger
