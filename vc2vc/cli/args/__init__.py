# SPDX-License-Identifier: LGPL-3.0-or-later
# -*- coding: utf-8 -*-
# vc2vc/cli/args/__init__.py
"""
Argument parsing for the vc2vc CLI.

Re-exports the public symbols of the split modules.
"""
from __future__ import annotations

from .builder import HelpFormatter, _build_epilog
from .groups import (
    _add_global_config_logging,
    _add_input_report,
    _add_notification_knobs,
    _add_scheduling_knobs,
    _add_vcenter_knobs,
)
from .helpers import _merged_get, _merged_secret, _require
from .parser import _build_preparser, _load_merged_config, build_parser, parse_args_with_config
from .validators import validate_args

__all__ = [
    # Builder
    "HelpFormatter",
    "_build_epilog",
    # Groups
    "_add_global_config_logging",
    "_add_input_report",
    "_add_notification_knobs",
    "_add_scheduling_knobs",
    "_add_vcenter_knobs",
    # Helpers
    "_merged_get",
    "_merged_secret",
    "_require",
    # Parser
    "_build_preparser",
    "_load_merged_config",
    "build_parser",
    "parse_args_with_config",
    # Validators
    "validate_args",
]
