# SPDX-License-Identifier: LGPL-3.0-or-later
# -*- coding: utf-8 -*-
# vc2vc/__init__.py
"""
vc2vc - bulk cross-vCenter VM migration

Reads a list of VMs with their target placement, validates every row against
the source and target vCenters, and relocates the VMs with a bounded number
of migrations in flight.

Usage as a library:

    from vc2vc import MigrationScheduler, RunSettings, WorkItem

    items = [WorkItem(vm_name="app01", source_vc="vc-a", target_vc="vc-b",
                      target_cluster="CL01", target_datastore="DS01",
                      target_switch="DVS01", target_port_group="PG-APP")]
    MigrationScheduler(logger, provider, RunSettings(max_concurrent=4)).run(items)

`provider` is anything implementing vc2vc.vmware.provider.InfrastructureProvider;
vc2vc.vmware.vsphere_provider.VsphereProvider is the pyVmomi implementation.
"""

__version__ = "0.1.0"

from .migration import (
    MigrationScheduler,
    PlacementResolver,
    RunSettings,
    RunSummary,
    ValidationPipeline,
    WorkItem,
    WorkItemStatus,
)

__all__ = [
    "__version__",
    "MigrationScheduler",
    "PlacementResolver",
    "RunSettings",
    "RunSummary",
    "ValidationPipeline",
    "WorkItem",
    "WorkItemStatus",
]
