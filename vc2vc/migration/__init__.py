# SPDX-License-Identifier: LGPL-3.0-or-later
# -*- coding: utf-8 -*-
# vc2vc/migration/__init__.py
"""
Migration core: work items, placement, validation and the task scheduler.
"""

from .models import RunSettings, SwitchType, TaskState, TaskStatus, WorkItem, WorkItemStatus
from .placement import PlacementResolver
from .scheduler import MigrationScheduler, RunSummary
from .validation import ValidationPipeline, ValidationResult

__all__ = [
    "MigrationScheduler",
    "PlacementResolver",
    "RunSettings",
    "RunSummary",
    "SwitchType",
    "TaskState",
    "TaskStatus",
    "ValidationPipeline",
    "ValidationResult",
    "WorkItem",
    "WorkItemStatus",
]
