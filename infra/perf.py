# -*- coding: utf-8 -*-
"""Lightweight performance instrumentation.

Used to keep the interactive paths (``quick_validate`` runs per keystroke in
editors) cheap without shipping a full profiler.

Enable programmatically:
    from infra import perf
    perf.set_enabled(True)

When enabled, timings are written to logger ``siwe_lint.perf``.

Design constraints
------------------
- Best-effort: must never change validation results.
- No third-party dependencies.
"""

from __future__ import annotations

import logging
import time
from contextlib import contextmanager

ENABLED = False

log = logging.getLogger("siwe_lint.perf")


def is_enabled() -> bool:
    return ENABLED


def set_enabled(enabled: bool) -> None:
    global ENABLED
    ENABLED = bool(enabled)


@contextmanager
def span(label: str, *, threshold_ms: float = 5.0):
    """Measure a block duration and log if above threshold.

    When disabled this context manager is basically a no-op.
    """
    if not ENABLED:
        yield
        return
    t0 = time.perf_counter()
    try:
        yield
    finally:
        dt_ms = (time.perf_counter() - t0) * 1000.0
        if dt_ms >= float(threshold_ms or 0.0):
            log.info("PERF %s %.1fms", label, dt_ms)
