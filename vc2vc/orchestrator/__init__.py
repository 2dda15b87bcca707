# SPDX-License-Identifier: LGPL-3.0-or-later
# vc2vc/orchestrator/__init__.py
"""
Run driver: input loading, session setup, scheduling and reporting.
"""

from .input_loader import load_work_items
from .orchestrator import Orchestrator

__all__ = ["Orchestrator", "load_work_items"]
