from datetime import datetime
from pytz import timezone
import logging.config
import logging
import os
from logging import Logger

LINE_FORMAT = "%(asctime)s - %(levelname)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

ANSI_RESET = "\033[0m"
ANSI_COLORS: dict[str, str] = {
    "red": "\033[31m",
    "green": "\033[32m",
    "yellow": "\033[33m",
    "blue": "\033[34m",
    "magenta": "\033[35m",
    "cyan": "\033[36m",
    "white": "\033[37m",
}

LEVEL_MARKERS = ((logging.ERROR, "⛔ "), (logging.WARNING, "⚠️ "))


def _is_debug() -> bool:
    return os.getenv("LOG_LEVEL", "info").lower() == "debug"


class PdfWarningFilter(logging.Filter):
    """Drop pypdf's per-object repair warnings below ERROR; broken PDFs surface as ExtractionError."""

    def filter(self, record):
        return not (record.name.startswith("pypdf") and record.levelno < logging.ERROR)


class TimezoneFormatter(logging.Formatter):
    """Formats timestamps in the configured TIMEZONE and marks warnings and errors."""

    def __init__(self, tz_name, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.tz = timezone(tz_name)

    def formatTime(self, record, datefmt=None):
        stamp = datetime.fromtimestamp(record.created, self.tz)
        return stamp.strftime(datefmt) if datefmt else stamp.isoformat()

    def format(self, record):
        marker = next((m for level, m in LEVEL_MARKERS if record.levelno >= level), "")
        # handlers share the record
        marked = logging.makeLogRecord(record.__dict__)
        marked.msg = marker + record.getMessage()
        marked.args = ()
        return super().format(marked)


class ConsoleFormatter(TimezoneFormatter):
    """Wraps the line in the ANSI color named by the record's ``color`` attribute, if any."""

    def format(self, record) -> str:
        line = super().format(record)
        ansi = ANSI_COLORS.get(getattr(record, "color", None) or "")
        return f"{ansi}{line}{ANSI_RESET}" if ansi else line


class ColorLogger:
    """Logger wrapper whose log methods accept ``color=<name>``.

    The color only reaches the console handler; the log file stays plain.
    Any other attribute is looked up on the wrapped logger.
    """

    def __init__(self, logger: Logger):
        self._logger = logger

    def _log(self, method: str, msg, args, color: str | None, kwargs: dict):
        if color is not None:
            kwargs["extra"] = {**(kwargs.get("extra") or {}), "color": color}
        getattr(self._logger, method)(msg, *args, **kwargs)

    def debug(self, msg, *args, color: str | None = None, **kwargs):
        self._log("debug", msg, args, color, kwargs)

    def info(self, msg, *args, color: str | None = None, **kwargs):
        self._log("info", msg, args, color, kwargs)

    def warning(self, msg, *args, color: str | None = None, **kwargs):
        self._log("warning", msg, args, color, kwargs)

    def error(self, msg, *args, color: str | None = None, **kwargs):
        self._log("error", msg, args, color, kwargs)

    def exception(self, msg, *args, color: str | None = None, **kwargs):
        self._log("exception", msg, args, color, kwargs)

    def __getattr__(self, name):
        return getattr(self._logger, name)


def _handlers(level: int) -> dict:
    handlers = {
        "console": {
            "class": "logging.StreamHandler",
            "formatter": "console",
            "filters": ["pdf_warnings"],
            "level": level,
            "stream": "ext://sys.stdout",
        },
    }
    if os.getenv("LOG_TO_FILE", "true").lower() in ("1", "true", "yes", "on"):
        log_dir = os.path.join(os.getenv("ROOT_DIR", os.getcwd()), "logs")
        os.makedirs(log_dir, exist_ok=True)
        handlers["file"] = {
            "class": "logging.FileHandler",
            "formatter": "plain",
            "filters": ["pdf_warnings"],
            "level": level,
            "filename": os.path.join(log_dir, "app.log"),
            "encoding": "utf-8",
        }
    return handlers


def setup_logging(name: str = "pdfchat") -> ColorLogger:
    """Configure the root logger and return the application logger.

    Env:
        LOG_LEVEL: "debug" enables debug output, including httpx request lines.
        TIMEZONE: tz database name for timestamps (default Europe/Berlin).
        LOG_TO_FILE: also write <ROOT_DIR>/logs/app.log (default true).
    """
    level = logging.DEBUG if _is_debug() else logging.INFO
    tz_name = os.getenv("TIMEZONE", "Europe/Berlin")
    handlers = _handlers(level)

    formatter_args = {"format": LINE_FORMAT, "datefmt": DATE_FORMAT, "tz_name": tz_name}
    logging.config.dictConfig({
        "version": 1,
        "disable_existing_loggers": False,
        "filters": {"pdf_warnings": {"()": PdfWarningFilter}},
        "formatters": {
            "plain": {"()": TimezoneFormatter, **formatter_args},
            "console": {"()": ConsoleFormatter, **formatter_args},
        },
        "handlers": handlers,
        "root": {"handlers": list(handlers), "level": level},
    })

    for noisy in ("httpx", "httpcore"):
        logging.getLogger(noisy).setLevel(level if level == logging.DEBUG else logging.WARNING)

    return ColorLogger(logging.getLogger(name))
