# SPDX-License-Identifier: LGPL-3.0-or-later
# -*- coding: utf-8 -*-
# vc2vc/migration/validation.py
"""
Pre-submission checks for one WorkItem.

Checks run in a fixed order and stop at the first failure:

  1. vm         source VM exists on source_vc
  2. datastore  target datastore (or datastore cluster) resolves
  3. capacity   resolved datastore keeps the free-space buffer after the copy
  4. cluster    target cluster exists and has an eligible host
  5. network    switch + every port group resolve on that host

Only read-only provider queries are made. The pipeline never mutates the
WorkItem; the scheduler applies the outcome.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Tuple

from ..core.exceptions import Vc2VcError, insufficient_capacity, not_found
from ..core.logger import Log
from ..vmware.provider import InfrastructureProvider
from .models import Resolution, WorkItem
from .placement import PlacementResolver

CheckFunc = Callable[[WorkItem, Dict[str, Any]], None]


@dataclass
class ValidationResult:
    ok: bool
    resolution: Optional[Resolution] = None
    failed_check: Optional[str] = None
    error: Optional[Vc2VcError] = None
    passed: List[str] = field(default_factory=list)

    @property
    def notes(self) -> str:
        if self.ok or self.error is None:
            return ""
        return f"{self.failed_check}: {self.error}"


class ValidationPipeline:
    def __init__(
        self,
        logger: logging.Logger,
        provider: InfrastructureProvider,
        placement: PlacementResolver,
        *,
        free_buffer_percent: float = 20.0,
    ):
        self.logger = logger
        self.provider = provider
        self.placement = placement
        self.free_buffer_percent = float(free_buffer_percent)
        self.checks: Tuple[Tuple[str, CheckFunc], ...] = (
            ("vm", self._check_vm),
            ("datastore", self._check_datastore),
            ("capacity", self._check_capacity),
            ("cluster", self._check_cluster),
            ("network", self._check_network),
        )

    def validate(self, item: WorkItem) -> ValidationResult:
        log = Log.bind(self.logger, vm=item.vm_name, row=item.row)
        ctx: Dict[str, Any] = {}
        passed: List[str] = []

        for name, check in self.checks:
            try:
                check(item, ctx)
            except Vc2VcError as e:
                log.warning("⛔ validation failed at %s: %s", name, e)
                return ValidationResult(ok=False, failed_check=name, error=e, passed=passed)
            passed.append(name)
            log.debug("check %s passed", name)

        resolution = Resolution(
            vm=ctx["vm"],
            datastore=ctx["datastore"],
            cluster=ctx["cluster"],
            host=ctx["host"],
            network=ctx["network"],
        )
        log.info(
            "🧭 placement: datastore=%s host=%s (%.1f GB)",
            resolution.datastore.name,
            resolution.host.name,
            resolution.vm.used_space_gb,
        )
        return ValidationResult(ok=True, resolution=resolution, passed=passed)

    # -- checks -------------------------------------------------------------

    def _check_vm(self, item: WorkItem, ctx: Dict[str, Any]) -> None:
        if not item.vm_name:
            raise not_found("vm", item.vm_name, item.source_vc)
        vm = self.provider.find_vm(item.vm_name, item.source_vc)
        if vm is None:
            raise not_found("vm", item.vm_name, item.source_vc)
        ctx["vm"] = vm

    def _check_datastore(self, item: WorkItem, ctx: Dict[str, Any]) -> None:
        ds = self.placement.resolve_datastore(item.target_datastore, item.target_vc)
        if ds is None:
            raise not_found("datastore", item.target_datastore, item.target_vc)
        ctx["datastore"] = ds

    def _check_capacity(self, item: WorkItem, ctx: Dict[str, Any]) -> None:
        ds = ctx["datastore"]
        required = float(ctx["vm"].used_space_gb)
        reserved = self.placement.reserved_datastore_gb(item.target_vc, ds.name)
        buffered_free = ds.buffered_free_gb(self.free_buffer_percent, reserved)
        if buffered_free < required:
            raise insufficient_capacity(ds.name, buffered_free, required)

    def _check_cluster(self, item: WorkItem, ctx: Dict[str, Any]) -> None:
        cluster = self.provider.find_cluster(item.target_cluster, item.target_vc)
        if cluster is None:
            raise not_found("cluster", item.target_cluster, item.target_vc)
        host = self.placement.resolve_host(cluster)
        if host is None:
            raise not_found("host", f"connected host in cluster {item.target_cluster}", item.target_vc)
        ctx["cluster"] = cluster
        ctx["host"] = host

    def _check_network(self, item: WorkItem, ctx: Dict[str, Any]) -> None:
        port_groups = item.port_groups
        label = f"{item.target_switch}/{','.join(port_groups)}"
        if not item.target_switch or not port_groups:
            raise not_found("network", label, item.target_vc)
        net = self.provider.find_network(
            item.target_switch,
            port_groups,
            item.switch_type,
            ctx["host"],
            item.target_vc,
        )
        if net is None:
            raise not_found("network", label, item.target_vc)
        nics = ctx["vm"].nic_count
        if nics is not None and len(port_groups) > nics:
            raise not_found(
                "network",
                f"{label} ({len(port_groups)} port group(s) for {nics} network adapter(s))",
                item.target_vc,
            )
        ctx["network"] = net
