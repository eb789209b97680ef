import logging
import sys
from typing import Optional, Union

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def _resolve_level(level: Union[str, int, None]) -> int:
    if isinstance(level, int):
        return level
    if isinstance(level, str):
        name = level.strip().upper()
        if name.isdigit():
            return int(name)
        if name == "WARN":
            name = "WARNING"
        resolved = logging.getLevelName(name)
        if isinstance(resolved, int):
            return resolved
    return logging.INFO


def setup_logging(log_level: Union[str, int, None] = "INFO", log_file: Optional[str] = None) -> None:
    """Initialize the root logger once with a stdout handler and an optional file handler.

    Calling it again only adjusts the level, so both the entrypoint and the app
    module can call it safely.
    """
    root = logging.getLogger()
    if not root.handlers:
        formatter = logging.Formatter(LOG_FORMAT)
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(formatter)
        root.addHandler(handler)
        if log_file:
            file_handler = logging.FileHandler(log_file)
            file_handler.setFormatter(formatter)
            root.addHandler(file_handler)
        logging.captureWarnings(True)
    root.setLevel(_resolve_level(log_level))


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)
