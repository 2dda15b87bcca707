# SPDX-License-Identifier: LGPL-3.0-or-later
# -*- coding: utf-8 -*-
# vc2vc/vmware/vsphere_provider.py
from __future__ import annotations

"""
InfrastructureProvider backed by pyVmomi.

Inventory objects are looked up by name through a container view on the
endpoint's root folder. The managed object is carried in the returned
reference (``handle``) so submission does not have to search again.

Relocation across vCenters uses a ServiceLocator carrying the destination
credentials, instance UUID and SSL thumbprint. Network adapters are remapped
positionally: port group i goes to the VM's i-th ethernet card.
"""

import logging
import threading
from contextlib import contextmanager
from typing import Any, Dict, Iterator, List, Optional, Sequence

from pyVmomi import vim, vmodl

from ..core.exceptions import Vc2VcError, not_found, wrap_vmware
from ..core.logger import Log
from ..core.utils import U
from ..migration.models import (
    ClusterRef,
    DatastoreRef,
    HostRef,
    NetworkRef,
    SwitchType,
    TaskState,
    TaskStatus,
    VMRef,
)
from .clients.client import VMwareClient, task_error_message
from .clients.session import ProviderSession
from .vmware_utils import obj_name

_RUNNING_TASK_STATES = ("queued", "running")


def _fault_message(e: BaseException) -> str:
    return str(getattr(e, "msg", None) or getattr(e, "localizedMessage", None) or e)


def datastore_ref(ds: Any) -> DatastoreRef:
    s = ds.summary
    return DatastoreRef(
        name=obj_name(ds),
        capacity_gb=U.bytes_to_gb(s.capacity),
        free_space_gb=U.bytes_to_gb(s.freeSpace),
        handle=ds,
    )


def host_ref(h: Any) -> HostRef:
    state = str(h.runtime.connectionState)
    if getattr(h.runtime, "inMaintenanceMode", False):
        state = "maintenance"
    return HostRef(
        name=obj_name(h),
        connection_state=state,
        memory_used_gb=U.mb_to_gb(h.summary.quickStats.overallMemoryUsage),
        memory_total_gb=U.bytes_to_gb(h.hardware.memorySize),
        handle=h,
    )


def vm_ref(vm: Any, endpoint: str) -> VMRef:
    committed = vm.summary.storage.committed if vm.summary.storage else 0
    memory_mb = vm.config.hardware.memoryMB if vm.config else 0
    devices = getattr(vm.config.hardware, "device", None) if vm.config else None
    return VMRef(
        name=obj_name(vm),
        endpoint=endpoint,
        used_space_gb=U.bytes_to_gb(committed),
        powered_on=str(vm.runtime.powerState) == "poweredOn",
        memory_gb=U.mb_to_gb(memory_mb),
        nic_count=len(_ethernet_cards(devices)) if devices is not None else None,
        handle=vm,
    )


def _ethernet_cards(devices: Any) -> List[Any]:
    return [d for d in devices or [] if isinstance(d, vim.vm.device.VirtualEthernetCard)]


def datacenter_of(obj: Any) -> Any:
    cur = obj
    while cur is not None and not isinstance(cur, vim.Datacenter):
        cur = getattr(cur, "parent", None)
    return cur


def nic_device_changes(vm: Any, network: NetworkRef) -> List[Any]:
    """
    Edit specs pointing the VM's ethernet cards at the target port groups.
    NICs beyond the listed port groups are left untouched.
    """
    nics = _ethernet_cards(vm.config.hardware.device)
    if len(network.handles) > len(nics):
        raise wrap_vmware(
            f"{vm.name}: {len(network.handles)} port group(s) given but VM has {len(nics)} network adapter(s)",
            vm=str(vm.name),
        )

    changes = []
    for nic, pg in zip(nics, network.handles):
        if isinstance(pg, vim.dvs.DistributedVirtualPortgroup):
            conn = vim.dvs.PortConnection()
            conn.portgroupKey = pg.key
            conn.switchUuid = pg.config.distributedVirtualSwitch.uuid
            nic.backing = vim.vm.device.VirtualEthernetCard.DistributedVirtualPortBackingInfo()
            nic.backing.port = conn
        else:
            nic.backing = vim.vm.device.VirtualEthernetCard.NetworkBackingInfo()
            nic.backing.network = pg
            nic.backing.deviceName = pg.name

        dev = vim.vm.device.VirtualDeviceSpec()
        dev.operation = vim.vm.device.VirtualDeviceSpec.Operation.edit
        dev.device = nic
        changes.append(dev)
    return changes


class VsphereProvider:
    def __init__(self, logger: logging.Logger, session: ProviderSession):
        self.logger = logger
        self.session = session
        self._tasks: Dict[str, Any] = {}
        self._lock = threading.Lock()

    @contextmanager
    def _api(self, what: str, **ctx: Any) -> Iterator[None]:
        try:
            yield
        except Vc2VcError:
            raise
        except vmodl.MethodFault as e:
            raise wrap_vmware(f"{what}: {_fault_message(e)}", e, **ctx)
        except OSError as e:
            raise wrap_vmware(f"{what}: {e}", e, **ctx)

    def _client(self, endpoint: str) -> VMwareClient:
        return self.session.client(endpoint)

    # -- lookups ------------------------------------------------------------

    def find_vm(self, name: str, endpoint: str) -> Optional[VMRef]:
        with self._api(f"lookup vm {name!r} on {endpoint}"):
            vm = self._client(endpoint).find_object([vim.VirtualMachine], name)
            return vm_ref(vm, endpoint) if vm is not None else None

    def find_datastore(self, name: str, endpoint: str) -> Optional[DatastoreRef]:
        with self._api(f"lookup datastore {name!r} on {endpoint}"):
            ds = self._client(endpoint).find_object([vim.Datastore], name)
            return datastore_ref(ds) if ds is not None else None

    def find_datastore_cluster(self, name: str, endpoint: str) -> Optional[List[DatastoreRef]]:
        with self._api(f"lookup datastore cluster {name!r} on {endpoint}"):
            pod = self._client(endpoint).find_object([vim.StoragePod], name)
            if pod is None:
                return None
            return [datastore_ref(ds) for ds in pod.childEntity if isinstance(ds, vim.Datastore)]

    def find_cluster(self, name: str, endpoint: str) -> Optional[ClusterRef]:
        with self._api(f"lookup cluster {name!r} on {endpoint}"):
            cl = self._client(endpoint).find_object([vim.ClusterComputeResource], name)
            return ClusterRef(name=str(cl.name), endpoint=endpoint, handle=cl) if cl is not None else None

    def find_hosts(self, cluster: ClusterRef) -> List[HostRef]:
        with self._api(f"list hosts of cluster {cluster.name!r}"):
            cl = cluster.handle or self._client(cluster.endpoint).find_object(
                [vim.ClusterComputeResource], cluster.name
            )
            if cl is None:
                return []
            return [host_ref(h) for h in cl.host]

    def find_network(
        self,
        switch_name: str,
        port_groups: Sequence[str],
        switch_type: SwitchType,
        host: HostRef,
        endpoint: str,
    ) -> Optional[NetworkRef]:
        with self._api(f"lookup network {switch_name}/{','.join(port_groups)} on {endpoint}"):
            if switch_type == SwitchType.VDS:
                handles = self._vds_port_groups(switch_name, port_groups, host, endpoint)
            else:
                handles = self._standard_port_groups(switch_name, port_groups, host)
            if handles is None:
                return None
            return NetworkRef(
                switch_name=switch_name,
                switch_type=switch_type,
                port_groups=tuple(port_groups),
                handles=tuple(handles),
            )

    def _vds_port_groups(
        self, switch_name: str, port_groups: Sequence[str], host: HostRef, endpoint: str
    ) -> Optional[List[Any]]:
        dvs = self._client(endpoint).find_object([vim.DistributedVirtualSwitch], switch_name)
        if dvs is None:
            return None
        if host.handle is not None:
            members = [m.config.host for m in (dvs.config.host or [])]
            if host.handle not in members:
                self.logger.debug("host %s is not a member of switch %s", host.name, switch_name)
                return None
        by_name = {pg.name: pg for pg in dvs.portgroup}
        if any(pg not in by_name for pg in port_groups):
            return None
        return [by_name[pg] for pg in port_groups]

    def _standard_port_groups(
        self, switch_name: str, port_groups: Sequence[str], host: HostRef
    ) -> Optional[List[Any]]:
        h = host.handle
        if h is None:
            return None
        net_info = h.config.network
        if not any(vs.name == switch_name for vs in net_info.vswitch):
            return None
        on_switch = {pg.spec.name for pg in net_info.portgroup if pg.spec.vswitchName == switch_name}
        nets = {
            n.name: n
            for n in h.network
            if not isinstance(n, vim.dvs.DistributedVirtualPortgroup)
        }
        if any(pg not in on_switch or pg not in nets for pg in port_groups):
            return None
        return [nets[pg] for pg in port_groups]

    # -- tasks --------------------------------------------------------------

    def _service_locator(self, dst: VMwareClient) -> Any:
        creds = self.session.credentials(dst.host)
        url = f"https://{dst.host}" if dst.port == 443 else f"https://{dst.host}:{dst.port}"
        return vim.ServiceLocator(
            credential=vim.ServiceLocator.NamePassword(username=creds.user, password=creds.password),
            instanceUuid=dst.instance_uuid,
            url=url,
            sslThumbprint=dst.thumbprint,
        )

    def _folder(self, client: VMwareClient, name: Optional[str]) -> Any:
        if not name:
            return None
        return client.find_object([vim.Folder], name)

    def submit_relocation(
        self,
        vm: VMRef,
        dest_endpoint: str,
        datastore: DatastoreRef,
        host: HostRef,
        cluster: ClusterRef,
        network: NetworkRef,
        folder: Optional[str] = None,
    ) -> str:
        with self._api(f"relocate {vm.name} to {dest_endpoint}", vm=vm.name):
            src = self._client(vm.endpoint)
            dst = self._client(dest_endpoint)
            vm_mo = vm.handle or src.find_object([vim.VirtualMachine], vm.name)
            if vm_mo is None:
                raise not_found("vm", vm.name, vm.endpoint)

            spec = vim.vm.RelocateSpec()
            spec.datastore = datastore.handle
            spec.host = host.handle
            spec.pool = cluster.handle.resourcePool
            dc = datacenter_of(cluster.handle)
            spec.folder = self._folder(dst, folder) or (dc.vmFolder if dc is not None else None)
            if src is not dst:
                spec.service = self._service_locator(dst)
            spec.deviceChange = nic_device_changes(vm_mo, network)

            task = vm_mo.RelocateVM_Task(spec=spec, priority=vim.VirtualMachine.MovePriority.defaultPriority)
            task_id = str(task._moId)
            with self._lock:
                self._tasks[task_id] = task
            Log.trace(self.logger, "relocate task created", vm=vm.name, task=task_id)
            return task_id

    def poll_task(self, task_id: str) -> TaskStatus:
        with self._lock:
            task = self._tasks.get(task_id)
        if task is None:
            raise wrap_vmware(f"unknown task id {task_id!r}", task=task_id)

        with self._api(f"poll task {task_id}", task=task_id):
            info = task.info
            state = str(info.state)
        if state in _RUNNING_TASK_STATES:
            Log.trace(self.logger, "task progress", task=task_id, progress=info.progress)
            return TaskStatus(TaskState.RUNNING)

        with self._lock:
            self._tasks.pop(task_id, None)
        if state == "success":
            return TaskStatus(TaskState.SUCCESS)
        return TaskStatus(TaskState.ERROR, task_error_message(info))

    def power_on(self, vm_name: str, endpoint: str) -> None:
        with self._api(f"power on {vm_name} on {endpoint}", vm=vm_name):
            client = self._client(endpoint)
            vm = client.find_object([vim.VirtualMachine], vm_name)
            if vm is None:
                raise not_found("vm", vm_name, endpoint)
            if str(vm.runtime.powerState) == "poweredOn":
                return
            client.wait_for_task(vm.PowerOnVM_Task())

    def move_to_folder(self, vm_name: str, endpoint: str, folder: str) -> None:
        with self._api(f"move {vm_name} to folder {folder!r} on {endpoint}", vm=vm_name):
            client = self._client(endpoint)
            vm = client.find_object([vim.VirtualMachine], vm_name)
            if vm is None:
                raise not_found("vm", vm_name, endpoint)
            target = self._folder(client, folder)
            if target is None:
                raise not_found("folder", folder, endpoint)
            if vm.parent == target:
                return
            client.wait_for_task(target.MoveIntoFolder_Task([vm]))
