"""
Logging configuration module.

Colored console output plus an optional plain-text log file.
"""

import logging
import sys
from pathlib import Path

RESET = "\033[0m"
DIM = "\033[2m"


class ColoredFormatter(logging.Formatter):
    """
    Formatter that colors the level name.

    Colors:
        DEBUG    - Dim
        INFO     - Cyan
        WARNING  - Yellow
        ERROR    - Red
        CRITICAL - Bold on red
    """

    LEVEL_COLORS = {
        logging.DEBUG: DIM,
        logging.INFO: "\033[36m",
        logging.WARNING: "\033[33m",
        logging.ERROR: "\033[91m",
        logging.CRITICAL: "\033[1m\033[37m\033[41m",
    }

    def __init__(self, fmt: str, datefmt: str = None, use_colors: bool = True):
        super().__init__(fmt, datefmt)
        self.use_colors = use_colors

    def format(self, record: logging.LogRecord) -> str:
        if not self.use_colors:
            return super().format(record)

        original_levelname = record.levelname
        original_name = record.name

        color = self.LEVEL_COLORS.get(record.levelno, "")
        record.levelname = f"{color}{record.levelname:8}{RESET}"
        record.name = f"{DIM}{record.name}{RESET}"

        result = super().format(record)

        # Other handlers (file) see the uncolored record
        record.levelname = original_levelname
        record.name = original_name
        return result


def setup_logging(level: int = logging.INFO, log_file: str | None = None, use_colors: bool | None = None):
    """
    Configure application-wide logging.

    Args:
        level: Console logging level
        log_file: Optional path to a log file, always written at DEBUG
        use_colors: Force colors on or off; defaults to whether stderr is a TTY
    """
    if use_colors is None:
        use_colors = sys.stderr.isatty()

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setFormatter(ColoredFormatter(
        fmt='[%(asctime)s] %(levelname)s [%(name)s] %(message)s',
        datefmt='%H:%M:%S',
        use_colors=use_colors
    ))
    console_handler.setLevel(level)

    handlers = [console_handler]

    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_path, encoding='utf-8')
        file_handler.setFormatter(logging.Formatter(
            fmt='[%(asctime)s] %(levelname)-8s [%(name)s] %(message)s',
            datefmt='%Y-%m-%d %H:%M:%S'
        ))
        file_handler.setLevel(logging.DEBUG)
        handlers.append(file_handler)

    logging.basicConfig(level=logging.DEBUG, handlers=handlers, force=True)

    # pywinrm and its HTTP stack log every request at DEBUG
    for noisy in ('winrm', 'urllib3', 'requests_ntlm', 'spnego'):
        logging.getLogger(noisy).setLevel(logging.WARNING)

    logger = logging.getLogger(__name__)
    logger.debug("Log level: %s", logging.getLevelName(level))
    if log_file:
        logger.debug("Log file: %s", log_file)
