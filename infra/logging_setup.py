# -*- coding: utf-8 -*-
"""
Optional logging bootstrap for applications embedding the engine.

The library itself never configures handlers; it only logs through module
loggers. Call ``init_logging`` once from the host application.
"""
from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Optional, Union

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"

PathLike = Union[str, Path]


def init_logging(level: int = logging.INFO, filename: Optional[PathLike] = None) -> Optional[Path]:
    """Attach a stream handler (and a file handler when ``filename`` is given).

    Safe to call twice: handlers already attached are not duplicated.
    """
    root = logging.getLogger()
    root.setLevel(level)
    formatter = logging.Formatter(LOG_FORMAT)

    if not any(type(h) is logging.StreamHandler for h in root.handlers):
        sh = logging.StreamHandler()
        sh.setFormatter(formatter)
        root.addHandler(sh)

    if filename is None:
        return None

    log_path = Path(filename)
    if not any(isinstance(h, logging.FileHandler) and getattr(h, "baseFilename", "") == os.path.abspath(log_path) for h in root.handlers):
        log_path.parent.mkdir(parents=True, exist_ok=True)
        fh = logging.FileHandler(log_path, encoding="utf-8")
        fh.setFormatter(formatter)
        root.addHandler(fh)
    return log_path


def init_perf_logging(level: int = logging.INFO) -> logging.Logger:
    """Route ``infra.perf`` timings to the root handlers at ``level``."""
    logger = logging.getLogger("siwe_lint.perf")
    logger.setLevel(level)
    return logger
