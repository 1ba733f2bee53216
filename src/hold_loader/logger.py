import logging
from logging.handlers import TimedRotatingFileHandler
from pathlib import Path

ROOT_LOGGER_NAME = "hold_loader"
ENGINE_LOGGER_NAME = "hold_loader.engine"

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

# Handlers attached by the last configure_logging call
_installed_handlers: list[logging.Handler] = []


def configure_logging(
    level: int | str = "INFO",
    log_file: Path | str | None = None,
) -> logging.Logger:
    """Attach a console handler (and optionally a daily rotating file) to the package logger.

    Calling it again replaces the handlers installed by the previous call;
    handlers added by anyone else are left alone.
    """
    root = logging.getLogger(ROOT_LOGGER_NAME)
    root.setLevel(level)

    while _installed_handlers:
        handler = _installed_handlers.pop()
        root.removeHandler(handler)
        handler.close()

    formatter = logging.Formatter(LOG_FORMAT)

    stream_handler = logging.StreamHandler()
    stream_handler.setFormatter(formatter)
    _installed_handlers.append(stream_handler)

    if log_file is not None:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = TimedRotatingFileHandler(
            filename=str(log_path),
            when="midnight",
            interval=1,
            backupCount=7,
            encoding="utf-8",
        )
        file_handler.setFormatter(formatter)
        _installed_handlers.append(file_handler)

    for handler in _installed_handlers:
        root.addHandler(handler)

    return root


def get_engine_logger() -> logging.Logger:
    """Logger handed to ``HoldLoader`` when the decision trace is wanted."""
    return logging.getLogger(ENGINE_LOGGER_NAME)
