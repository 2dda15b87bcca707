# SPDX-License-Identifier: LGPL-3.0-or-later
# -*- coding: utf-8 -*-
# vc2vc/vmware/__init__.py
"""vCenter integration: provider protocol and the pyVmomi implementation."""

__all__ = []
