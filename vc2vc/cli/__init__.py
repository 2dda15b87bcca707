# SPDX-License-Identifier: LGPL-3.0-or-later
# vc2vc/cli/__init__.py
"""
Command-line interface.

- args: two-phase argparse + YAML config parsing and validation
- help_texts: epilog/help documentation
"""

__all__ = []
