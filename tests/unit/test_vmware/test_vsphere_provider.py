# SPDX-License-Identifier: LGPL-3.0-or-later
from types import SimpleNamespace
from unittest.mock import MagicMock

import pytest
from pyVmomi import vim

from vc2vc.core.exceptions import NotFoundError, ProviderUnavailable, VMwareError, wrap_unavailable
from vc2vc.core.utils import GIB
from vc2vc.migration.models import HostRef, NetworkRef, SwitchType, TaskState
from vc2vc.vmware.vsphere_provider import (
    VsphereProvider,
    datacenter_of,
    datastore_ref,
    host_ref,
    nic_device_changes,
    vm_ref,
)


class InventoryClient:
    """find_object keyed by (first vim type, name)."""

    def __init__(self, host="vc-b"):
        self.host = host
        self.port = 443
        self.objects = {}
        self.waited = []
        self.error = None

    def add(self, vimtype, obj):
        self.objects[(vimtype, obj.name)] = obj
        return obj

    def find_object(self, vimtypes, name, *, cache=False):
        if self.error is not None:
            raise self.error
        return self.objects.get((vimtypes[0], name))

    def wait_for_task(self, task):
        self.waited.append(task)


class InventorySession:
    def __init__(self, *clients):
        self.clients = {c.host: c for c in clients}

    def client(self, endpoint):
        if endpoint not in self.clients:
            raise wrap_unavailable(endpoint)
        return self.clients[endpoint]


def _ds(name, capacity_gb, free_gb):
    ds = MagicMock()
    ds.__class__ = vim.Datastore
    ds.name = name
    ds.summary.capacity = capacity_gb * GIB
    ds.summary.freeSpace = free_gb * GIB
    return ds


def _host(name="esx01", state="connected", maintenance=False, used_mb=2048, total_gb=64):
    return SimpleNamespace(
        name=name,
        runtime=SimpleNamespace(connectionState=state, inMaintenanceMode=maintenance),
        summary=SimpleNamespace(quickStats=SimpleNamespace(overallMemoryUsage=used_mb)),
        hardware=SimpleNamespace(memorySize=total_gb * GIB),
    )


@pytest.fixture
def src():
    return InventoryClient("vc-a")


@pytest.fixture
def dst():
    return InventoryClient("vc-b")


@pytest.fixture
def provider(logger, src, dst):
    return VsphereProvider(logger, InventorySession(src, dst))


class TestRefs:
    def test_datastore_ref(self):
        ref = datastore_ref(_ds("DS01", 1000, 250))
        assert (ref.name, ref.capacity_gb, ref.free_space_gb) == ("DS01", 1000.0, 250.0)

    def test_host_ref_states(self):
        ref = host_ref(_host())
        assert ref.connected
        assert ref.memory_used_gb == 2.0
        assert ref.memory_total_gb == 64.0
        assert host_ref(_host(maintenance=True)).connection_state == "maintenance"
        assert not host_ref(_host(state="disconnected")).connected

    def test_vm_ref(self):
        vm = SimpleNamespace(
            name="app01",
            summary=SimpleNamespace(storage=SimpleNamespace(committed=40 * GIB)),
            runtime=SimpleNamespace(powerState="poweredOff"),
            config=SimpleNamespace(hardware=SimpleNamespace(memoryMB=8192)),
        )
        ref = vm_ref(vm, "vc-a")
        assert ref.used_space_gb == 40.0
        assert ref.powered_on is False
        assert ref.memory_gb == 8.0
        assert ref.nic_count is None
        assert ref.handle is vm

    def test_vm_ref_counts_network_adapters(self):
        nic = MagicMock()
        nic.__class__ = vim.vm.device.VirtualEthernetCard
        disk = MagicMock()
        disk.__class__ = vim.vm.device.VirtualDisk
        vm = SimpleNamespace(
            name="app01",
            summary=SimpleNamespace(storage=None),
            runtime=SimpleNamespace(powerState="poweredOn"),
            config=SimpleNamespace(hardware=SimpleNamespace(memoryMB=4096, device=[disk, nic])),
        )
        assert vm_ref(vm, "vc-a").nic_count == 1

    def test_vm_ref_without_storage_summary(self):
        vm = SimpleNamespace(
            name="tmpl",
            summary=SimpleNamespace(storage=None),
            runtime=SimpleNamespace(powerState="poweredOn"),
            config=None,
        )
        ref = vm_ref(vm, "vc-a")
        assert ref.used_space_gb == 0.0
        assert ref.powered_on

    def test_datacenter_of_walks_parents(self):
        dc = MagicMock()
        dc.__class__ = vim.Datacenter
        cluster = SimpleNamespace(parent=SimpleNamespace(parent=dc))
        assert datacenter_of(cluster) is dc
        assert datacenter_of(SimpleNamespace(parent=None)) is None


class TestLookups:
    def test_find_vm(self, provider, src):
        src.add(vim.VirtualMachine, SimpleNamespace(
            name="app01",
            summary=SimpleNamespace(storage=SimpleNamespace(committed=10 * GIB)),
            runtime=SimpleNamespace(powerState="poweredOn"),
            config=SimpleNamespace(hardware=SimpleNamespace(memoryMB=4096)),
        ))
        ref = provider.find_vm("app01", "vc-a")
        assert ref.endpoint == "vc-a"
        assert ref.used_space_gb == 10.0
        assert provider.find_vm("ghost", "vc-a") is None

    def test_find_datastore_cluster_members(self, provider, dst):
        pod = SimpleNamespace(name="POD01", childEntity=[_ds("DS01", 100, 50), SimpleNamespace(name="folder"), _ds("DS02", 100, 70)])
        dst.add(vim.StoragePod, pod)
        members = provider.find_datastore_cluster("POD01", "vc-b")
        assert [m.name for m in members] == ["DS01", "DS02"]
        assert provider.find_datastore_cluster("POD99", "vc-b") is None

    def test_find_cluster_and_hosts(self, provider, dst):
        dst.add(vim.ClusterComputeResource, SimpleNamespace(name="CL01", host=[_host("esx01"), _host("esx02")]))
        cl = provider.find_cluster("CL01", "vc-b")
        assert cl.endpoint == "vc-b"
        assert [h.name for h in provider.find_hosts(cl)] == ["esx01", "esx02"]

    def test_api_errors_become_vmware_errors(self, provider, src):
        src.error = OSError("connection reset")
        with pytest.raises(VMwareError) as ei:
            provider.find_vm("app01", "vc-a")
        assert "lookup vm 'app01' on vc-a: connection reset" in str(ei.value)

    def test_project_errors_pass_through(self, provider):
        with pytest.raises(ProviderUnavailable):
            provider.find_vm("app01", "vc-zz")


class TestNetworks:
    def _dvs(self, members, port_groups):
        return SimpleNamespace(
            name="DVS01",
            config=SimpleNamespace(host=[SimpleNamespace(config=SimpleNamespace(host=m)) for m in members]),
            portgroup=[SimpleNamespace(name=pg) for pg in port_groups],
        )

    def test_vds_resolves_in_order(self, provider, dst):
        esx = object()
        dst.add(vim.DistributedVirtualSwitch, self._dvs([esx], ["PG-DB", "PG-APP"]))
        host = HostRef("esx01", "connected", 1, 10, handle=esx)
        net = provider.find_network("DVS01", ["PG-APP", "PG-DB"], SwitchType.VDS, host, "vc-b")
        assert net.port_groups == ("PG-APP", "PG-DB")
        assert [h.name for h in net.handles] == ["PG-APP", "PG-DB"]

    def test_vds_missing_port_group(self, provider, dst):
        esx = object()
        dst.add(vim.DistributedVirtualSwitch, self._dvs([esx], ["PG-APP"]))
        host = HostRef("esx01", "connected", 1, 10, handle=esx)
        assert provider.find_network("DVS01", ["PG-APP", "PG-DB"], SwitchType.VDS, host, "vc-b") is None

    def test_vds_host_not_a_member(self, provider, dst):
        dst.add(vim.DistributedVirtualSwitch, self._dvs([object()], ["PG-APP"]))
        host = HostRef("esx09", "connected", 1, 10, handle=object())
        assert provider.find_network("DVS01", ["PG-APP"], SwitchType.VDS, host, "vc-b") is None

    def test_standard_switch(self, provider):
        vm_net = SimpleNamespace(name="VM Network")
        esx = SimpleNamespace(
            config=SimpleNamespace(network=SimpleNamespace(
                vswitch=[SimpleNamespace(name="vSwitch0")],
                portgroup=[
                    SimpleNamespace(spec=SimpleNamespace(name="VM Network", vswitchName="vSwitch0")),
                    SimpleNamespace(spec=SimpleNamespace(name="Backup", vswitchName="vSwitch1")),
                ],
            )),
            network=[vm_net, SimpleNamespace(name="Backup")],
        )
        host = HostRef("esx01", "connected", 1, 10, handle=esx)
        net = provider.find_network("vSwitch0", ["VM Network"], SwitchType.STANDARD, host, "vc-b")
        assert net.handles == (vm_net,)
        assert provider.find_network("vSwitch0", ["Backup"], SwitchType.STANDARD, host, "vc-b") is None
        assert provider.find_network("vSwitch9", ["VM Network"], SwitchType.STANDARD, host, "vc-b") is None


class TestTasks:
    def test_poll_task_states(self, provider):
        task = SimpleNamespace(info=SimpleNamespace(state="running", progress=40, error=None))
        provider._tasks["task-1"] = task
        assert provider.poll_task("task-1").state == TaskState.RUNNING

        task.info.state = "success"
        assert provider.poll_task("task-1").state == TaskState.SUCCESS
        assert "task-1" not in provider._tasks

    def test_poll_task_error_message(self, provider):
        err = SimpleNamespace(localizedMessage="Insufficient disk space on datastore")
        provider._tasks["task-2"] = SimpleNamespace(info=SimpleNamespace(state="error", progress=None, error=err))
        status = provider.poll_task("task-2")
        assert status.state == TaskState.ERROR
        assert status.message == "Insufficient disk space on datastore"

    def test_poll_unknown_task(self, provider):
        with pytest.raises(VMwareError):
            provider.poll_task("task-404")

    def test_nic_count_mismatch(self):
        vm = SimpleNamespace(name="app01", config=SimpleNamespace(hardware=SimpleNamespace(device=[])))
        net = NetworkRef("DVS01", SwitchType.VDS, ("PG-APP",), handles=(object(),))
        with pytest.raises(VMwareError) as ei:
            nic_device_changes(vm, net)
        assert "VM has 0 network adapter(s)" in str(ei.value)


class TestPostActions:
    def test_power_on_skips_running_vm(self, provider, dst):
        vm = dst.add(vim.VirtualMachine, SimpleNamespace(name="app01", runtime=SimpleNamespace(powerState="poweredOn")))
        vm.PowerOnVM_Task = MagicMock()
        provider.power_on("app01", "vc-b")
        vm.PowerOnVM_Task.assert_not_called()

    def test_power_on_waits_for_task(self, provider, dst):
        vm = dst.add(vim.VirtualMachine, SimpleNamespace(name="app01", runtime=SimpleNamespace(powerState="poweredOff")))
        vm.PowerOnVM_Task = MagicMock(return_value="task-9")
        provider.power_on("app01", "vc-b")
        assert dst.waited == ["task-9"]

    def test_power_on_missing_vm(self, provider):
        with pytest.raises(NotFoundError):
            provider.power_on("ghost", "vc-b")

    def test_move_to_missing_folder(self, provider, dst):
        dst.add(vim.VirtualMachine, SimpleNamespace(name="app01", parent=None))
        with pytest.raises(NotFoundError) as ei:
            provider.move_to_folder("app01", "vc-b", "Prod")
        assert ei.value.entity == "folder"

    def test_move_to_folder(self, provider, dst):
        vm = dst.add(vim.VirtualMachine, SimpleNamespace(name="app01", parent=None))
        folder = dst.add(vim.Folder, SimpleNamespace(name="Prod", MoveIntoFolder_Task=MagicMock(return_value="task-m")))
        provider.move_to_folder("app01", "vc-b", "Prod")
        folder.MoveIntoFolder_Task.assert_called_once_with([vm])
        assert dst.waited == ["task-m"]

    def test_move_noop_when_already_there(self, provider, dst):
        folder = dst.add(vim.Folder, SimpleNamespace(name="Prod", MoveIntoFolder_Task=MagicMock()))
        dst.add(vim.VirtualMachine, SimpleNamespace(name="app01", parent=folder))
        provider.move_to_folder("app01", "vc-b", "Prod")
        folder.MoveIntoFolder_Task.assert_not_called()
