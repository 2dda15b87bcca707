# SPDX-License-Identifier: LGPL-3.0-or-later
# -*- coding: utf-8 -*-
# vc2vc/vmware/provider.py
"""
Abstract inventory + task capability the migration core depends on.

The core (validation, placement, scheduler) only ever talks to an object
satisfying InfrastructureProvider. VsphereProvider (pyVmomi) is the real
implementation; tests use an in-memory fake.

Lookups return None when the object does not exist. Any other problem
(permissions, API faults, lost connections) is raised as VMwareError or a
subclass.
"""

from __future__ import annotations

from typing import List, Optional, Protocol, Sequence

from ..migration.models import (
    ClusterRef,
    DatastoreRef,
    HostRef,
    NetworkRef,
    SwitchType,
    TaskStatus,
    VMRef,
)


class InfrastructureProvider(Protocol):
    def find_vm(self, name: str, endpoint: str) -> Optional[VMRef]: ...

    def find_datastore(self, name: str, endpoint: str) -> Optional[DatastoreRef]: ...

    def find_datastore_cluster(self, name: str, endpoint: str) -> Optional[List[DatastoreRef]]: ...

    def find_cluster(self, name: str, endpoint: str) -> Optional[ClusterRef]: ...

    def find_hosts(self, cluster: ClusterRef) -> List[HostRef]: ...

    def find_network(
        self,
        switch_name: str,
        port_groups: Sequence[str],
        switch_type: SwitchType,
        host: HostRef,
        endpoint: str,
    ) -> Optional[NetworkRef]: ...

    def submit_relocation(
        self,
        vm: VMRef,
        dest_endpoint: str,
        datastore: DatastoreRef,
        host: HostRef,
        cluster: ClusterRef,
        network: NetworkRef,
        folder: Optional[str] = None,
    ) -> str: ...

    def poll_task(self, task_id: str) -> TaskStatus: ...

    def power_on(self, vm_name: str, endpoint: str) -> None: ...

    def move_to_folder(self, vm_name: str, endpoint: str, folder: str) -> None: ...
