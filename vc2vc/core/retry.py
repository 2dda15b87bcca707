# SPDX-License-Identifier: LGPL-3.0-or-later
# -*- coding: utf-8 -*-
"""
Retry with exponential backoff.

Used for vCenter session setup only: once a run has started, per-item
failures are recorded on the WorkItem and never retried.
"""

from __future__ import annotations

import logging
import random
import time
from typing import Callable, Optional, Tuple, Type, TypeVar, Union

T = TypeVar("T")


def backoff_delay(attempt: int, base_backoff_s: float, max_backoff_s: float, jitter_s: float) -> float:
    delay = min(base_backoff_s * (2 ** (attempt - 1)), max_backoff_s)
    if jitter_s > 0:
        delay += random.uniform(0, jitter_s)
    return delay


def retry_operation(
    operation: Callable[[], T],
    *,
    max_attempts: int = 3,
    base_backoff_s: float = 2.0,
    max_backoff_s: float = 60.0,
    jitter_s: float = 1.0,
    exceptions: Union[Type[Exception], Tuple[Type[Exception], ...]] = Exception,
    operation_name: str = "operation",
    logger: Optional[logging.Logger] = None,
    log_level: int = logging.WARNING,
    sleep: Callable[[float], None] = time.sleep,
) -> T:
    """
    Call `operation` until it succeeds or `max_attempts` is reached.

    Args:
        operation: Callable that returns T
        max_attempts: Maximum number of attempts (default: 3)
        base_backoff_s: Base backoff time in seconds, doubled per attempt
        max_backoff_s: Upper bound for one backoff
        jitter_s: Random jitter added to each backoff
        exceptions: Exception type(s) that trigger a retry; others propagate at once
        operation_name: Name for logging
        logger: Logger for retry messages (None = silent)
        sleep: Sleep function (tests pass a no-op)

    Returns:
        Result of the operation; the last exception is re-raised when all attempts fail.

    Example:
        si = retry_operation(
            lambda: SmartConnect(host=host, user=user, pwd=pwd),
            max_attempts=3,
            operation_name=f"connect {host}",
            logger=logger,
        )
    """
    attempts = max(1, int(max_attempts))
    for attempt in range(1, attempts + 1):
        try:
            return operation()
        except exceptions as e:
            if attempt >= attempts:
                if logger:
                    logger.log(logging.ERROR, "%s failed after %d attempts: %s", operation_name, attempts, e)
                raise

            delay = backoff_delay(attempt, base_backoff_s, max_backoff_s, jitter_s)
            if logger:
                logger.log(
                    log_level,
                    "%s failed (attempt %d/%d): %s. Retrying in %.2fs...",
                    operation_name,
                    attempt,
                    attempts,
                    e,
                    delay,
                )
            sleep(delay)

    raise RuntimeError(f"{operation_name} failed with no exception recorded")
