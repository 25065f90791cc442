"""Logging configuration: stderr for humans, a per-run log file for the record.

Environment:
  LOG_DIR             base directory for log files (default: ~/logs, or ./logs with LOG_IN_CURRENT_DIR)
  LOG_FILE            full path of the log file (default: <LOG_DIR>/kube-versions/kube-versions_<ts>.log)
  LOG_IN_CURRENT_DIR  "true" to default LOG_DIR to ./logs
  DEBUG               "true" to show debug records on stderr (the file always gets them)
"""

from __future__ import annotations

import logging
import os
import sys
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Optional

TOOL_NAME = "kube-versions"
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

# Report output (tables, timing footer) mirrored verbatim into the log file.
TRANSCRIPT_LOGGER = "kubeversions.transcript"

_TRUTHY = ("1", "true", "yes", "on")


@dataclass(frozen=True)
class LogConfig:
    log_file: Path
    debug: bool


def load_log_config(now: Optional[datetime] = None) -> LogConfig:
    in_cwd = (os.getenv("LOG_IN_CURRENT_DIR", "") or "").strip().lower() in _TRUTHY
    default_base = Path.cwd() / "logs" if in_cwd else Path.home() / "logs"
    base_dir = Path((os.getenv("LOG_DIR", "") or "").strip() or default_base).expanduser()

    stamp = (now or datetime.now()).strftime("%Y%m%d_%H%M%S")
    log_file_env = (os.getenv("LOG_FILE", "") or "").strip()
    log_file = Path(log_file_env).expanduser() if log_file_env else base_dir / TOOL_NAME / f"{TOOL_NAME}_{stamp}.log"

    return LogConfig(
        log_file=log_file,
        debug=(os.getenv("DEBUG", "") or "").strip().lower() in _TRUTHY,
    )


def configure_logging(config: LogConfig) -> Optional[Path]:
    """
    Install handlers on the root logger. Returns the log file path, or None when the file
    could not be opened (logging then goes to stderr only).
    """
    root = logging.getLogger()
    for h in list(root.handlers):
        root.removeHandler(h)
        h.close()
    root.setLevel(logging.DEBUG)

    console = logging.StreamHandler(sys.stderr)
    console.setLevel(logging.DEBUG if config.debug else logging.WARNING)
    console.setFormatter(logging.Formatter(LOG_FORMAT))
    root.addHandler(console)

    transcript = logging.getLogger(TRANSCRIPT_LOGGER)
    transcript.propagate = False
    for h in list(transcript.handlers):
        transcript.removeHandler(h)
        h.close()
    transcript.setLevel(logging.INFO)

    try:
        config.log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(config.log_file, encoding="utf-8")
        transcript_handler = logging.FileHandler(config.log_file, encoding="utf-8")
    except OSError as e:
        logging.getLogger(__name__).warning("Cannot open log file %s: %s", config.log_file, e)
        return None

    file_handler.setLevel(logging.DEBUG)
    file_handler.setFormatter(logging.Formatter(LOG_FORMAT))
    root.addHandler(file_handler)

    transcript_handler.setFormatter(logging.Formatter("%(message)s"))
    transcript.addHandler(transcript_handler)
    return config.log_file


def transcript(line: str) -> None:
    """Mirror a line of report output into the log file (no-op when no file is configured)."""
    logging.getLogger(TRANSCRIPT_LOGGER).info(line)
