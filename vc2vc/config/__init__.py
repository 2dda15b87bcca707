# SPDX-License-Identifier: LGPL-3.0-or-later
# vc2vc/config/__init__.py
"""
Configuration loading.

- config_loader: YAML/JSON config files merged and applied as argparse defaults
"""

__all__ = []
