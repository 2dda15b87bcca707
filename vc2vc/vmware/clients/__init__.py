# SPDX-License-Identifier: LGPL-3.0-or-later
# vc2vc/vmware/clients/__init__.py
"""
vCenter API client modules.

- client: VMwareClient, one pyVmomi session per endpoint
- session: ProviderSession, the set of clients used by one run
"""

__all__ = []
