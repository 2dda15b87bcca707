# SPDX-License-Identifier: LGPL-3.0-or-later
# -*- coding: utf-8 -*-
"""
Shared logging helpers for vc2vc.
"""
from __future__ import annotations

import logging
import time
from contextlib import contextmanager
from typing import Generator


@contextmanager
def log_step(logger: logging.Logger, description: str) -> Generator[None, None, None]:
    """
    Log the start of a phase, run the block, then log completion with elapsed time.
    Logs the error and re-raises on exception.

    Example:
        with log_step(logger, "Connecting to vCenter endpoints"):
            session.open(endpoints)
    """
    t0 = time.monotonic()
    logger.info("⏳ %s ...", description)
    try:
        yield
    except Exception as e:
        logger.error("💥 %s failed (%.2fs): %s", description, time.monotonic() - t0, e)
        raise
    logger.info("✅ %s done (%.2fs)", description, time.monotonic() - t0)
