from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional, Tuple

DEFAULT_LOG_PATH = "/var/log/zfsinstall.log"

# Operator-facing notices that are not warnings (e.g. "no redundancy").
NOTICE = 25
logging.addLevelName(NOTICE, "NOTICE")

_FILE_FORMAT = logging.Formatter(
    fmt="%(asctime)s %(levelname)s %(name)s: %(message)s",
    datefmt="%Y-%m-%dT%H:%M:%S%z",
)
_CONSOLE_FORMAT = logging.Formatter(fmt="%(levelname)s: %(message)s")

# Path of the log file in use once configure_logging() has run.
_active_path: Optional[str] = None


def _open_log_file(log_path: str) -> Tuple[logging.FileHandler, str]:
    """Open log_path, or ./zfsinstall.log when the live media is read-only."""

    try:
        Path(log_path).parent.mkdir(parents=True, exist_ok=True)
        return logging.FileHandler(log_path), log_path
    except OSError:
        fallback = str(Path.cwd() / "zfsinstall.log")
        return logging.FileHandler(fallback), fallback


def configure_logging(
    log_path: str = DEFAULT_LOG_PATH,
    level: int = logging.INFO,
    also_console: bool = True,
) -> str:
    """Send every command and decision to the install log.

    The file gets full records with timestamps; the console only gets level
    and message. Calling this again keeps the first configuration and
    returns the file actually in use.
    """

    global _active_path

    root = logging.getLogger()
    root.setLevel(level)
    if _active_path is not None:
        return _active_path

    file_handler, _active_path = _open_log_file(log_path)
    file_handler.setFormatter(_FILE_FORMAT)
    root.addHandler(file_handler)

    if also_console:
        console = logging.StreamHandler()
        console.setFormatter(_CONSOLE_FORMAT)
        root.addHandler(console)

    if _active_path != log_path:
        logging.getLogger(__name__).warning("Cannot write %s, logging to %s", log_path, _active_path)
    return _active_path
