from datetime import datetime
from pytz import timezone
import logging.config
import logging
import os
from logging import Logger


debug_mode = os.getenv("LOG_LEVEL", "info").lower() == "debug"
loglevel = logging.INFO if not debug_mode else logging.DEBUG

LOGGER_NAME = "annotation_crossref"

_ANSI_RESET = "\033[0m"
_COLOR_MAP: dict[str, str] = {
    "cyan":    "\033[36m",
    "green":   "\033[32m",
    "yellow":  "\033[33m",
    "red":     "\033[31m",
    "magenta": "\033[35m",
    "blue":    "\033[34m",
    "white":   "\033[37m",
}

# prefix per minimum level, checked from the highest down
_LEVEL_PREFIX: list[tuple[int, str]] = [
    (logging.ERROR, "⛔ "),
    (logging.WARNING, "⚠️ "),
]


class CustomFormatter(logging.Formatter):
    """Formats timestamps in the configured timezone and marks warnings and errors."""

    def __init__(self, tz_name, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.tz = timezone(tz_name)

    def formatTime(self, record, datefmt=None):
        dt = datetime.fromtimestamp(record.created, self.tz)
        return dt.strftime(datefmt) if datefmt else dt.isoformat()

    def format(self, record):
        try:
            message = record.getMessage()
        except (TypeError, ValueError):
            # args that do not fit the format string
            message = str(record.msg)

        # every handler formats the same record, so only a copy is prefixed
        prefix = next((p for level, p in _LEVEL_PREFIX if record.levelno >= level), "")
        copy = logging.makeLogRecord(record.__dict__)
        copy.msg = prefix + message
        copy.args = ()
        return super().format(copy)


class ColoredFormatter(CustomFormatter):
    """Console formatter that colors a line if the record carries a ``color`` name."""

    def format(self, record) -> str:
        line = super().format(record)
        ansi = _COLOR_MAP.get(getattr(record, "color", None) or "", "")
        return f"{ansi}{line}{_ANSI_RESET}" if ansi and line else line


class ColorLogger:
    """Logger wrapper whose log methods accept ``color=<name>``.

    Usage::

        logger.info("Cross-reference complete", color="green")

    Only the console shows colors; the log file stays plain.
    """

    def __init__(self, logger: Logger):
        self._logger = logger

    def _with_color(self, kwargs: dict, color: str | None) -> dict:
        if color is None:
            return kwargs
        return {**kwargs, "extra": {**(kwargs.get("extra") or {}), "color": color}}

    def debug(self, msg, *args, color: str | None = None, **kwargs):
        self._logger.debug(msg, *args, **self._with_color(kwargs, color))

    def info(self, msg, *args, color: str | None = None, **kwargs):
        self._logger.info(msg, *args, **self._with_color(kwargs, color))

    def warning(self, msg, *args, color: str | None = None, **kwargs):
        self._logger.warning(msg, *args, **self._with_color(kwargs, color))

    def error(self, msg, *args, color: str | None = None, **kwargs):
        self._logger.error(msg, *args, **self._with_color(kwargs, color))

    def exception(self, msg, *args, color: str | None = None, **kwargs):
        self._logger.exception(msg, *args, **self._with_color(kwargs, color))

    def __getattr__(self, name):
        """Everything else (setLevel, handlers, ...) goes to the wrapped logger."""
        return getattr(self._logger, name)


def _formatter(formatter_class: type, tz_name: str) -> dict:
    return {
        "()": formatter_class,
        "format": "%(asctime)s - %(levelname)s - %(message)s",
        "datefmt": "%Y-%m-%d %H:%M:%S",
        "tz_name": tz_name,
    }


def setup_logging() -> ColorLogger:
    """Configure console and file logging and return the application logger.

    The console handler writes to stderr, since stdout carries the report of the CLI.
    The log file is ``$ROOT_DIR/logs/$LOG_FILE`` (defaults: working directory, "app.log").
    """
    log_dir = os.path.join(os.environ.get("ROOT_DIR", os.getcwd()), "logs")
    log_file = os.getenv("LOG_FILE", "app.log")
    tz_name = os.getenv("TIMEZONE", "Europe/Berlin")
    os.makedirs(log_dir, exist_ok=True)

    logging.config.dictConfig({
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "standard": _formatter(CustomFormatter, tz_name),
            "colored": _formatter(ColoredFormatter, tz_name),
        },
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "formatter": "colored",
                "level": loglevel,
                "stream": "ext://sys.stderr",
            },
            "file": {
                "class": "logging.FileHandler",
                "formatter": "standard",
                "level": loglevel,
                "filename": os.path.join(log_dir, log_file),
                "encoding": "utf-8",
            },
        },
        "root": {
            "handlers": ["console", "file"],
            "level": loglevel,
        },
    })

    # httpx logs every request at info level
    logging.getLogger("httpx").setLevel(logging.DEBUG if debug_mode else logging.WARNING)

    return ColorLogger(logging.getLogger(LOGGER_NAME))
