import logging
import logging.config
import re
from pathlib import Path
from typing import Optional

# ANSI escape codes (colours, bold, ...)
ANSI_ESCAPE_RE = re.compile(r"\x1b\[[0-9;]*m")

DEFAULT_CONFIG_PATH = Path(__file__).resolve().parent.parent.parent / "logging.ini"


class StripAnsiFilter(logging.Filter):
    """Remove ANSI colour codes from a record before it reaches a log file."""

    def filter(self, record: logging.LogRecord) -> bool:  # type: ignore[override]
        if isinstance(record.msg, str):
            record.msg = ANSI_ESCAPE_RE.sub("", record.msg)
        return True


def attach_strip_ansi_to_file_handlers() -> None:
    """
    Attach StripAnsiFilter to every FileHandler on the root logger.

    Call after logging.config.fileConfig(...) so the handlers from
    logging.ini already exist.
    """
    root_logger = logging.getLogger()
    for handler in root_logger.handlers:
        if isinstance(handler, logging.FileHandler):
            handler.addFilter(StripAnsiFilter())


def configure_logging(config_path: Optional[Path] = None, level: Optional[str] = None) -> None:
    """Configure logging from logging.ini, falling back to basicConfig."""
    path = config_path or DEFAULT_CONFIG_PATH
    if path.exists():
        logging.config.fileConfig(path, disable_existing_loggers=False)
        attach_strip_ansi_to_file_handlers()
        if level:
            logging.getLogger().setLevel(level.upper())
        logging.getLogger(__name__).info("Logging configured from %s", path)
        return

    logging.basicConfig(
        level=(level or "INFO").upper(),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    logging.getLogger(__name__).info("Logging config file not found at %s, using basic configuration", path)
