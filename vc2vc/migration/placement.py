# SPDX-License-Identifier: LGPL-3.0-or-later
# -*- coding: utf-8 -*-
# vc2vc/migration/placement.py
"""
Target datastore / host selection.

Greedy and stateless by default: every call re-reads provider state and
picks the best candidate at that instant. Two items validated back to back
may pick the same datastore before the first migration has consumed any
space; that skew is accepted.

With reserve=True the resolver also remembers what it handed out to items
still in flight (datastore GB, host memory GB) and counts those amounts as
already used. Reservations are dropped by release() when the item reaches a
terminal state.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from typing import Dict, List, Optional, Sequence

from ..core.logger import Log
from ..vmware.provider import InfrastructureProvider
from .models import ClusterRef, DatastoreRef, HostRef, WorkItem


class PlacementResolver:
    def __init__(
        self,
        logger: logging.Logger,
        provider: InfrastructureProvider,
        *,
        reserve: bool = False,
    ):
        self.logger = logger
        self.provider = provider
        self.reserve = bool(reserve)
        self._ds_reserved_gb: Dict[str, float] = defaultdict(float)
        self._host_reserved_gb: Dict[str, float] = defaultdict(float)

    # -- reservations -------------------------------------------------------

    @staticmethod
    def _key(endpoint: str, name: str) -> str:
        return f"{endpoint.lower()}/{name}"

    def reserved_datastore_gb(self, endpoint: str, name: str) -> float:
        if not self.reserve:
            return 0.0
        return self._ds_reserved_gb.get(self._key(endpoint, name), 0.0)

    def reserved_host_gb(self, endpoint: str, name: str) -> float:
        if not self.reserve:
            return 0.0
        return self._host_reserved_gb.get(self._key(endpoint, name), 0.0)

    def claim(self, item: WorkItem) -> None:
        """Record the item's footprint against its resolved datastore and host."""
        if not self.reserve or item.resolution is None:
            return
        r = item.resolution
        self._ds_reserved_gb[self._key(item.target_vc, r.datastore.name)] += r.vm.used_space_gb
        self._host_reserved_gb[self._key(item.target_vc, r.host.name)] += r.vm.memory_gb
        Log.trace(self.logger, "placement claim", vm=item.vm_name, datastore=r.datastore.name, host=r.host.name)

    def release(self, item: WorkItem) -> None:
        if not self.reserve or item.resolution is None:
            return
        r = item.resolution
        for table, name, amount in (
            (self._ds_reserved_gb, r.datastore.name, r.vm.used_space_gb),
            (self._host_reserved_gb, r.host.name, r.vm.memory_gb),
        ):
            key = self._key(item.target_vc, name)
            left = table.get(key, 0.0) - amount
            if left <= 1e-9:
                table.pop(key, None)
            else:
                table[key] = left

    # -- datastores ---------------------------------------------------------

    def resolve_datastore(self, name: str, endpoint: str) -> Optional[DatastoreRef]:
        """
        A datastore named `name` wins outright. Otherwise `name` is taken as a
        datastore cluster and the member with the most free space is returned
        (first seen wins a tie). None if neither exists or the cluster is empty.
        """
        ds = self.provider.find_datastore(name, endpoint)
        if ds is not None:
            return ds

        members = self.provider.find_datastore_cluster(name, endpoint)
        if not members:
            return None

        best = self.pick_datastore(members, endpoint)
        Log.trace(self.logger, "datastore cluster resolved", cluster=name, datastore=best.name if best else None)
        return best

    def pick_datastore(self, candidates: Sequence[DatastoreRef], endpoint: str) -> Optional[DatastoreRef]:
        best: Optional[DatastoreRef] = None
        best_free = 0.0
        for ds in candidates:
            free = ds.free_space_gb - self.reserved_datastore_gb(endpoint, ds.name)
            # strict '>' keeps the first candidate on ties
            if best is None or free > best_free:
                best, best_free = ds, free
        return best

    # -- hosts --------------------------------------------------------------

    def resolve_host(self, cluster: ClusterRef) -> Optional[HostRef]:
        """
        Least memory-loaded connected host of `cluster` (used/total ratio,
        first seen wins a tie). Hosts reporting zero total memory are skipped.
        """
        return self.pick_host(self.provider.find_hosts(cluster), cluster.endpoint)

    def pick_host(self, hosts: Sequence[HostRef], endpoint: str) -> Optional[HostRef]:
        eligible: List[HostRef] = [h for h in hosts if h.connected and h.memory_total_gb > 0]
        best: Optional[HostRef] = None
        best_ratio = 0.0
        for h in eligible:
            used = h.memory_used_gb + self.reserved_host_gb(endpoint, h.name)
            ratio = used / h.memory_total_gb
            if best is None or ratio < best_ratio:
                best, best_ratio = h, ratio
        if best is None:
            self.logger.debug("No eligible host among %d candidate(s)", len(hosts))
        return best
