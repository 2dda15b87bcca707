# SPDX-License-Identifier: LGPL-3.0-or-later
# vc2vc/vmware/vsphere/__init__.py
"""
vSphere-specific helpers.

- errors: exception classification and process exit codes
"""

__all__ = []
