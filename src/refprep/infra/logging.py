"""Central logging infrastructure for refprep.

Console output goes to stdout: progress lines only when verbose, warnings
always. Fatal errors are printed to stderr by the CLI, not through logging.

Environment variables:
    REFPREP_LOG_LEVEL   Level of the optional log file handler (default: DEBUG).

Public API:
    setup_logging(verbose, log_path=None)
    log_run_header(step_name)
    reset_logging()
"""
from __future__ import annotations

import logging
import os
import subprocess
import sys
from pathlib import Path

try:
    from refprep import __version__ as _refprep_version
except Exception:  # pragma: no cover
    _refprep_version = "unknown"


class ConsoleFormatter(logging.Formatter):
    """Plain messages; warnings and errors get a ``LEVEL: `` prefix."""

    def format(self, record: logging.LogRecord) -> str:
        msg = super().format(record)
        if record.levelno >= logging.WARNING:
            return f"{record.levelname}: {msg}"
        return msg


def setup_logging(verbose: bool = False, log_path=None) -> None:
    """Configure the root logger for one refprep run.

    Parameters
    ----------
    verbose : bool, default False
        Console threshold INFO when True, WARNING otherwise.
    log_path : str | Path | None
        Optional log file receiving everything down to ``REFPREP_LOG_LEVEL``.

    Behaviour
    ---------
    * Exactly one console handler (stdout) is kept; a second call replaces it.
    * Previous file handlers are closed and removed.
    """
    root = logging.getLogger()
    console_level = logging.INFO if verbose else logging.WARNING
    file_level = getattr(logging, os.getenv("REFPREP_LOG_LEVEL", "DEBUG").upper(), logging.DEBUG)
    for h in root.handlers[:]:
        root.removeHandler(h)
        h.close()
    ch = logging.StreamHandler(sys.stdout)
    ch.setLevel(console_level)
    ch.setFormatter(ConsoleFormatter("%(message)s"))
    root.addHandler(ch)
    level = console_level
    if log_path:
        path = Path(log_path).resolve()
        path.parent.mkdir(parents=True, exist_ok=True)
        fh = logging.FileHandler(path, mode="a", encoding="utf-8")
        fh.setLevel(file_level)
        fh.setFormatter(logging.Formatter("%(asctime)s - %(levelname)s - %(message)s"))
        root.addHandler(fh)
        level = min(level, file_level)
    root.setLevel(level)
    if log_path:
        root.debug(f"Logging initialized. Log file: {path} (level={logging.getLevelName(file_level)})")


def _git_commit_short() -> str:
    try:
        out = subprocess.check_output(["git", "rev-parse", "--short", "HEAD"], stderr=subprocess.DEVNULL, timeout=1)
        return out.decode().strip()
    except Exception:  # pragma: no cover
        return ""


def log_run_header(step_name: str) -> str:
    """Emit the standardized header line for a run.

    Format: ``refprep <version> | step=<step_name> | git=<short-hash>``
    (the git part is omitted when no repository metadata is available).
    """
    commit = _git_commit_short()
    parts = [f"refprep {_refprep_version}", f"step={step_name}"]
    if commit:
        parts.append(f"git={commit}")
    header = " | ".join(parts)
    logging.getLogger().info(header)
    return header


def reset_logging():
    """Remove and close all handlers of the root logger and its children."""
    root_logger = logging.getLogger()
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)
        handler.close()
    for logger_name in list(logging.Logger.manager.loggerDict):
        logger = logging.getLogger(logger_name)
        if hasattr(logger, "handlers"):
            for handler in logger.handlers[:]:
                logger.removeHandler(handler)
                handler.close()
            logger.filters = []
