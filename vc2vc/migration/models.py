# SPDX-License-Identifier: LGPL-3.0-or-later
# -*- coding: utf-8 -*-
# vc2vc/migration/models.py
"""
Migration work items, inventory references and run settings.
"""

from __future__ import annotations

import datetime as _dt
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from ..core.exceptions import InvalidTransition
from ..core.utils import U


class WorkItemStatus(str, Enum):
    PENDING = "Pending"
    VALIDATING = "Validating"
    REJECTED = "Rejected"
    SCHEDULED = "Scheduled"
    RUNNING = "Running"
    SUCCEEDED = "Succeeded"
    FAILED = "Failed"

    @property
    def terminal(self) -> bool:
        return self in TERMINAL_STATES

    @property
    def error(self) -> bool:
        return self in (WorkItemStatus.REJECTED, WorkItemStatus.FAILED)


TERMINAL_STATES = frozenset({WorkItemStatus.REJECTED, WorkItemStatus.SUCCEEDED, WorkItemStatus.FAILED})

_TRANSITIONS: Dict[WorkItemStatus, Tuple[WorkItemStatus, ...]] = {
    WorkItemStatus.PENDING: (WorkItemStatus.VALIDATING,),
    WorkItemStatus.VALIDATING: (WorkItemStatus.REJECTED, WorkItemStatus.SCHEDULED),
    # Scheduled -> Failed: the provider refused the submission itself.
    WorkItemStatus.SCHEDULED: (WorkItemStatus.RUNNING, WorkItemStatus.FAILED),
    WorkItemStatus.RUNNING: (WorkItemStatus.SUCCEEDED, WorkItemStatus.FAILED),
}


class SwitchType(str, Enum):
    VDS = "vds"
    STANDARD = "standard"

    @classmethod
    def parse(cls, value: Optional[str]) -> "SwitchType":
        v = (value or "").strip().lower()
        if v in ("vds", "dvs", "distributed", "dvswitch"):
            return cls.VDS
        if v in ("standard", "vss", "vswitch", "std"):
            return cls.STANDARD
        raise ValueError(f"unknown switch type: {value!r} (expected vds|standard)")


class TaskState(str, Enum):
    RUNNING = "running"
    SUCCESS = "success"
    ERROR = "error"


@dataclass(frozen=True)
class TaskStatus:
    state: TaskState
    message: str = ""

    @property
    def terminal(self) -> bool:
        return self.state in (TaskState.SUCCESS, TaskState.ERROR)


# ---------------------------------------------------------------------------
# Inventory references (point-in-time snapshots returned by the provider)
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class VMRef:
    name: str
    endpoint: str
    used_space_gb: float
    powered_on: bool = True
    memory_gb: float = 0.0
    nic_count: Optional[int] = None
    handle: Any = field(default=None, compare=False, repr=False)


@dataclass(frozen=True)
class DatastoreRef:
    name: str
    capacity_gb: float
    free_space_gb: float
    handle: Any = field(default=None, compare=False, repr=False)

    def buffered_free_gb(self, free_buffer_percent: float, reserved_gb: float = 0.0) -> float:
        """Free space left after keeping `free_buffer_percent` of capacity in reserve."""
        return self.free_space_gb - reserved_gb - (self.capacity_gb * float(free_buffer_percent) / 100.0)


@dataclass(frozen=True)
class ClusterRef:
    name: str
    endpoint: str
    handle: Any = field(default=None, compare=False, repr=False)


@dataclass(frozen=True)
class HostRef:
    name: str
    connection_state: str
    memory_used_gb: float
    memory_total_gb: float
    handle: Any = field(default=None, compare=False, repr=False)

    @property
    def connected(self) -> bool:
        return str(self.connection_state).strip().lower() == "connected"


@dataclass(frozen=True)
class NetworkRef:
    switch_name: str
    switch_type: SwitchType
    port_groups: Tuple[str, ...]
    handles: Tuple[Any, ...] = field(default=(), compare=False, repr=False)


@dataclass(frozen=True)
class Resolution:
    """Everything validation resolved for one item; consumed by submission."""
    vm: VMRef
    datastore: DatastoreRef
    cluster: ClusterRef
    host: HostRef
    network: NetworkRef


# ---------------------------------------------------------------------------
# Work item
# ---------------------------------------------------------------------------

@dataclass
class WorkItem:
    vm_name: str
    source_vc: str
    target_vc: str
    target_cluster: str
    target_datastore: str
    target_switch: str = ""
    target_port_group: str = ""
    switch_type: SwitchType = SwitchType.VDS
    application: str = ""
    target_folder: Optional[str] = None
    row: int = 0

    status: WorkItemStatus = WorkItemStatus.PENDING
    notes: str = ""
    task_id: Optional[str] = None
    start_time: Optional[_dt.datetime] = None
    end_time: Optional[_dt.datetime] = None
    duration_minutes: Optional[int] = None
    used_space_gb: Optional[float] = None
    source_powered_on: Optional[bool] = None
    resolution: Optional[Resolution] = field(default=None, repr=False)

    @property
    def port_groups(self) -> List[str]:
        return U.split_list(self.target_port_group)

    @property
    def cross_vc(self) -> bool:
        return self.source_vc.strip().lower() != self.target_vc.strip().lower()

    @property
    def throughput_gb_per_min(self) -> float:
        if not self.used_space_gb or not self.duration_minutes:
            return 0.0
        return float(self.used_space_gb) / float(self.duration_minutes)

    # -- transitions --------------------------------------------------------

    def _move(self, new: WorkItemStatus) -> None:
        if new not in _TRANSITIONS.get(self.status, ()):
            raise InvalidTransition(
                code=3,
                msg=f"{self.vm_name}: illegal transition {self.status.value} -> {new.value}",
                context={"vm": self.vm_name, "from": self.status.value, "to": new.value},
            )
        self.status = new

    def begin_validation(self) -> None:
        self._move(WorkItemStatus.VALIDATING)

    def reject(self, notes: str, now: _dt.datetime) -> None:
        self._move(WorkItemStatus.REJECTED)
        self.notes = notes
        self.end_time = now

    def schedule(self, resolution: Resolution) -> None:
        self._move(WorkItemStatus.SCHEDULED)
        self.resolution = resolution
        self.used_space_gb = resolution.vm.used_space_gb
        self.source_powered_on = resolution.vm.powered_on

    def start(self, task_id: str, now: _dt.datetime) -> None:
        if not task_id:
            raise InvalidTransition(code=3, msg=f"{self.vm_name}: empty task id", context={"vm": self.vm_name})
        self._move(WorkItemStatus.RUNNING)
        self.task_id = task_id
        self.start_time = now

    def succeed(self, now: _dt.datetime) -> None:
        self._move(WorkItemStatus.SUCCEEDED)
        self._finish(now)

    def fail(self, notes: str, now: _dt.datetime) -> None:
        self._move(WorkItemStatus.FAILED)
        self.notes = notes
        self._finish(now)

    def _finish(self, now: _dt.datetime) -> None:
        self.task_id = None
        self.end_time = now
        if self.start_time is not None:
            self.duration_minutes = int(round((now - self.start_time).total_seconds() / 60.0))

    # -- invariants ---------------------------------------------------------

    def invariant_errors(self) -> List[str]:
        errs: List[str] = []
        running = self.status == WorkItemStatus.RUNNING
        if bool(self.task_id) != running:
            errs.append(f"task_id={self.task_id!r} with status={self.status.value}")
        if (self.end_time is not None) != self.status.terminal:
            errs.append(f"end_time={self.end_time!r} with status={self.status.value}")
        return errs

    # -- construction / reporting --------------------------------------------

    @classmethod
    def from_row(cls, row: Dict[str, Any], *, index: int = 0) -> "WorkItem":
        """
        Build from a normalized input mapping (snake_case keys).

        Blank fields are kept blank; validation rejects the item later, so
        every input row still yields exactly one WorkItem. Raises ValueError
        only for an unknown switch type.
        """
        def get(key: str) -> str:
            v = row.get(key)
            return "" if v is None else str(v).strip()

        return cls(
            vm_name=get("vm_name"),
            application=get("application"),
            source_vc=get("source_vc"),
            target_vc=get("target_vc"),
            target_folder=get("target_folder") or None,
            target_cluster=get("target_cluster"),
            target_datastore=get("target_datastore"),
            target_switch=get("target_switch"),
            target_port_group=get("target_port_group"),
            switch_type=SwitchType.parse(get("switch_type") or "vds"),
            row=index,
        )

    def to_report_row(self) -> Dict[str, Any]:
        def ts(v: Optional[_dt.datetime]) -> str:
            return v.isoformat(sep=" ", timespec="seconds") if v else ""

        return {
            "row": self.row,
            "vm_name": self.vm_name,
            "application": self.application,
            "source_vc": self.source_vc,
            "target_vc": self.target_vc,
            "target_cluster": self.target_cluster,
            "target_datastore": self.target_datastore,
            "resolved_datastore": self.resolution.datastore.name if self.resolution else "",
            "resolved_host": self.resolution.host.name if self.resolution else "",
            "target_port_group": self.target_port_group,
            "status": self.status.value,
            "notes": self.notes,
            "start_time": ts(self.start_time),
            "end_time": ts(self.end_time),
            "duration_minutes": "" if self.duration_minutes is None else self.duration_minutes,
            "used_space_gb": "" if self.used_space_gb is None else round(self.used_space_gb, 2),
        }


@dataclass
class RunSettings:
    free_buffer_percent: float = 20.0
    max_concurrent: int = 2
    poll_interval_s: float = 5.0
    poll_workers: int = 1
    max_poll_errors: int = 5
    dry_run: bool = False
    reserve_placement: bool = False
    power_on_after: bool = True

    def __post_init__(self) -> None:
        if int(self.max_concurrent) < 1:
            raise ValueError("max_concurrent must be >= 1")
        if not 0 <= float(self.free_buffer_percent) < 100:
            raise ValueError("free_buffer_percent must be in [0, 100)")
        if float(self.poll_interval_s) < 0:
            raise ValueError("poll_interval_s must be >= 0")
        self.max_concurrent = int(self.max_concurrent)
        self.poll_workers = max(1, int(self.poll_workers))
        self.max_poll_errors = max(1, int(self.max_poll_errors))
