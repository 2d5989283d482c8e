# ngram_load/pipeline/logger.py
"""Per-batch log files."""
from __future__ import annotations

import logging
from datetime import datetime
from pathlib import Path
from typing import Optional

__all__ = ["LOG_FORMAT", "LOG_DATEFMT", "batch_log_path", "attach_batch_log", "detach_batch_log"]

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"
LOG_DATEFMT = "%Y-%m-%d %H:%M:%S"


def batch_log_path(log_dir: str | Path, scheme: str, started: datetime) -> Path:
    """``{log_dir}/ngram_load_{scheme}_{YYYYmmdd_HHMMSS}.log``"""
    return Path(log_dir).expanduser() / f"ngram_load_{scheme}_{started:%Y%m%d_%H%M%S}.log"


def attach_batch_log(
    log_dir: str | Path,
    scheme: str,
    *,
    level: int = logging.INFO,
    started: Optional[datetime] = None,
    logger_name: str = "ngram_load",
) -> logging.FileHandler:
    """
    Copy the records of one batch run into their own file.

    The handler is attached to the package logger, not the root logger, so
    the file holds partition outcomes and job ids without client-library
    chatter. Records still propagate to whatever the caller set up for the
    console. Records below the logger's effective level never get here, so
    the caller sets that level. Pass the returned handler to
    ``detach_batch_log`` when the batch ends.
    """
    path = batch_log_path(log_dir, scheme, started or datetime.now())
    path.parent.mkdir(parents=True, exist_ok=True)

    handler = logging.FileHandler(path, mode="w", encoding="utf-8")
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=LOG_DATEFMT))

    pkg_logger = logging.getLogger(logger_name)
    pkg_logger.addHandler(handler)

    pkg_logger.info("Batch log: %s", path)
    return handler


def detach_batch_log(handler: logging.Handler, *, logger_name: str = "ngram_load") -> None:
    logging.getLogger(logger_name).removeHandler(handler)
    handler.close()
