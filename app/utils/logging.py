import json
import logging
import os
import sys
from datetime import date
from pathlib import Path
from typing import Any, Dict

from loguru import logger

from app.utils.context import get_request_id

DEFAULT_CONFIG_PATH = Path(__file__).resolve().parents[2] / "logging_config.json"
DEFAULT_REQUEST_ID = "app"

# stdlib loggers that install their own handlers and must be redirected explicitly
INTERCEPTED_LOGGERS = (
    "uvicorn",
    "uvicorn.error",
    "uvicorn.access",
    "fastapi",
    "celery",
    "celery.beat",
)


class InterceptHandler(logging.Handler):
    """Forwards stdlib logging records (uvicorn, celery, sqlalchemy) into loguru."""

    def emit(self, record: logging.LogRecord) -> None:
        try:
            level = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno

        frame, depth = logging.currentframe(), 2
        while frame and frame.f_code.co_filename == logging.__file__:
            frame = frame.f_back
            depth += 1

        logger.opt(depth=depth, exception=record.exc_info).log(level, record.getMessage())


def _inject_request_id(record) -> None:
    # Resolved per record so loggers created at import time follow the current request
    request_id = get_request_id()
    if request_id:
        record["extra"]["request_id"] = request_id


def load_logging_config(config_path: Path, section: str) -> Dict[str, Any]:
    with open(config_path) as config_file:
        config = json.load(config_file)
    return config.get(section, config["logger"])


def configure_logging(config_path: Path = DEFAULT_CONFIG_PATH, section: str = "logger"):
    """
    Install loguru sinks described by one section of logging_config.json.

    The console sink is always added. The file sink is added when
    ``use_file_logs`` is set, as JSON lines when ``use_json_logs`` is set and
    ``file_format`` is ``"json"``. ``LOG_LEVEL`` in the environment overrides
    the configured level.
    """
    options = load_logging_config(config_path, section)
    level = os.getenv("LOG_LEVEL", options.get("level", "INFO")).upper()

    logger.remove()
    logger.configure(extra={"request_id": DEFAULT_REQUEST_ID}, patcher=_inject_request_id)

    logger.add(
        sys.stdout,
        level=level,
        format=options["console_format"],
        colorize=True,
        enqueue=True,
        backtrace=True,
    )

    if options.get("use_file_logs", True):
        log_file = Path(options["log_dir"]) / f"{date.today():%Y-%m-%d}-{options['filename']}"
        file_sink = {
            "level": level,
            "rotation": options.get("rotation"),
            "retention": options.get("retention"),
            "colorize": False,
            "enqueue": True,
            "backtrace": True,
        }
        if options.get("use_json_logs") and options.get("file_format") == "json":
            logger.add(str(log_file), serialize=True, **file_sink)
        else:
            logger.add(str(log_file), format=options["file_format"], **file_sink)

    logging.basicConfig(handlers=[InterceptHandler()], level=0, force=True)
    for name in INTERCEPTED_LOGGERS:
        logging.getLogger(name).handlers = [InterceptHandler()]

    return logger


custom_logger = configure_logging(
    Path(os.getenv("LOGGING_CONFIG_PATH", DEFAULT_CONFIG_PATH)),
    "production" if os.getenv("ENVIRONMENT", "development") == "production" else "logger",
)


def get_logger():
    """Get the custom logger; records carry the request id current when they are emitted."""
    return custom_logger
