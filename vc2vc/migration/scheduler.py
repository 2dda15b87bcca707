# SPDX-License-Identifier: LGPL-3.0-or-later
# -*- coding: utf-8 -*-
# vc2vc/migration/scheduler.py
"""
Bounded-concurrency migration dispatcher.

One controlling loop makes every decision:

  - a slot is free and items are waiting -> validate, place, submit the next
    item (input order) and loop again without waiting
  - a slot is free and nothing is waiting -> leave the main loop
  - every slot is taken                   -> sleep poll_interval_s, poll all
                                             in-flight tasks, apply results

After the main loop the drain phase keeps polling until nothing is in flight.

Provider reads for one poll tick may run concurrently (poll_workers > 1),
but their results are applied one by one, in submission order, on the
controlling thread. Nothing else touches the in-flight table or the items.
"""

from __future__ import annotations

import datetime as _dt
import logging
import time
from collections import Counter, OrderedDict, deque
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Callable, Deque, Dict, Iterable, List, Optional, Sequence, Tuple

from ..core.exceptions import InvalidTransition, wrap_vmware
from ..core.logger import Log
from ..vmware.provider import InfrastructureProvider
from .models import RunSettings, TaskState, TaskStatus, WorkItem, WorkItemStatus
from .notifier import MigrationNotifier
from .placement import PlacementResolver
from .validation import ValidationPipeline


@dataclass(frozen=True)
class PollOutcome:
    task_id: str
    item: WorkItem
    status: Optional[TaskStatus] = None
    error: Optional[BaseException] = None


@dataclass(frozen=True)
class RunSummary:
    total: int
    counts: Dict[str, int]

    @property
    def errors(self) -> int:
        return self.counts.get(WorkItemStatus.REJECTED.value, 0) + self.counts.get(WorkItemStatus.FAILED.value, 0)

    @property
    def exit_code(self) -> int:
        return 1 if self.errors else 0

    @classmethod
    def of(cls, items: Sequence[WorkItem]) -> "RunSummary":
        counts = Counter(i.status.value for i in items)
        return cls(total=len(items), counts=dict(counts))


class MigrationScheduler:
    def __init__(
        self,
        logger: logging.Logger,
        provider: InfrastructureProvider,
        settings: Optional[RunSettings] = None,
        *,
        notifier: Optional[MigrationNotifier] = None,
        placement: Optional[PlacementResolver] = None,
        validator: Optional[ValidationPipeline] = None,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], _dt.datetime] = _dt.datetime.now,
    ):
        self.logger = logger
        self.provider = provider
        self.settings = settings or RunSettings()
        self.notifier = notifier or MigrationNotifier(logger, {"enabled": False})
        self.placement = placement or PlacementResolver(logger, provider, reserve=self.settings.reserve_placement)
        self.validator = validator or ValidationPipeline(
            logger,
            provider,
            self.placement,
            free_buffer_percent=self.settings.free_buffer_percent,
        )
        self.sleep = sleep
        self.clock = clock

        self.in_flight: "OrderedDict[str, WorkItem]" = OrderedDict()
        self.max_in_flight_seen = 0
        self.polls = 0
        self._poll_errors: Dict[str, int] = {}

    # -- main loop ----------------------------------------------------------

    def run(self, items: Iterable[WorkItem]) -> List[WorkItem]:
        items = list(items)
        pending: Deque[WorkItem] = deque(i for i in items if i.status == WorkItemStatus.PENDING)
        limit = self.settings.max_concurrent

        Log.step(
            self.logger,
            f"Scheduling {len(pending)} migration(s)",
            max_concurrent=limit,
            poll_interval_s=self.settings.poll_interval_s,
            dry_run=self.settings.dry_run,
        )

        while True:
            if len(self.in_flight) < limit:
                if not pending:
                    break
                self._dispatch(pending.popleft())
                continue
            self.poll_once()

        if self.in_flight:
            self.logger.info("⏳ Input exhausted; draining %d in-flight task(s)", len(self.in_flight))
        while self.in_flight:
            self.poll_once()

        return items

    # -- submission ---------------------------------------------------------

    def _dispatch(self, item: WorkItem) -> None:
        log = Log.bind(self.logger, vm=item.vm_name, row=item.row)
        item.begin_validation()

        try:
            result = self.validator.validate(item)
        except Exception as e:
            # provider adapters wrap API faults; anything else is still this item's failure
            log.debug("validation crashed", exc_info=True)
            item.reject(f"validation error: {type(e).__name__}: {e}", self.clock())
            self._finished(item)
            return

        if not result.ok or result.resolution is None:
            item.reject(result.notes, self.clock())
            self._finished(item)
            return

        item.schedule(result.resolution)
        self._check(item)

        if self.settings.dry_run:
            log.info("🧪 dry-run: would migrate to %s/%s", result.resolution.host.name, result.resolution.datastore.name)
            return

        r = result.resolution
        try:
            task_id = self.provider.submit_relocation(
                r.vm,
                item.target_vc,
                r.datastore,
                r.host,
                r.cluster,
                r.network,
                folder=item.target_folder,
            )
        except Exception as e:
            log.debug("submission failed", exc_info=True)
            item.fail(f"submit failed: {e}", self.clock())
            self._finished(item)
            return

        if task_id in self.in_flight:
            item.fail(f"provider returned duplicate task id {task_id!r}", self.clock())
            self._finished(item)
            return

        item.start(task_id, self.clock())
        self.in_flight[task_id] = item
        self.placement.claim(item)
        self.max_in_flight_seen = max(self.max_in_flight_seen, len(self.in_flight))
        self._check(item)

        log.info(
            "🚚 %s relocation submitted (task=%s, in-flight %d/%d)",
            "cross-vCenter" if item.cross_vc else "same-vCenter",
            task_id,
            len(self.in_flight),
            self.settings.max_concurrent,
        )
        self._notify(self.notifier.notify_started, item)

    # -- polling ------------------------------------------------------------

    def poll_once(self) -> None:
        """Wait one interval, then read and apply the state of every in-flight task."""
        self.sleep(self.settings.poll_interval_s)
        self.polls += 1
        snapshot = list(self.in_flight.items())
        Log.trace(self.logger, "poll tick", tick=self.polls, in_flight=len(snapshot))

        for outcome in self._read_all(snapshot):
            self._apply(outcome)

    def _read_one(self, task_id: str, item: WorkItem) -> PollOutcome:
        try:
            status = self.provider.poll_task(task_id)
            if status is None:
                raise wrap_vmware(f"no status returned for task {task_id}", task=task_id)
            return PollOutcome(task_id=task_id, item=item, status=status)
        except Exception as e:
            return PollOutcome(task_id=task_id, item=item, error=e)

    def _read_all(self, snapshot: Sequence[Tuple[str, WorkItem]]) -> List[PollOutcome]:
        workers = min(self.settings.poll_workers, len(snapshot))
        if workers <= 1:
            return [self._read_one(t, i) for t, i in snapshot]
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="vc2vc-poll") as pool:
            # map() yields in submission order regardless of completion order
            return list(pool.map(lambda ti: self._read_one(*ti), snapshot))

    def _apply(self, outcome: PollOutcome) -> None:
        item = outcome.item
        log = Log.bind(self.logger, vm=item.vm_name, task=outcome.task_id)

        if outcome.error is not None:
            n = self._poll_errors.get(outcome.task_id, 0) + 1
            self._poll_errors[outcome.task_id] = n
            if n < self.settings.max_poll_errors:
                log.warning("⚠️  task poll failed (%d/%d): %s", n, self.settings.max_poll_errors, outcome.error)
                return
            self._release(outcome.task_id)
            item.fail(f"task state unavailable after {n} polls: {outcome.error}", self.clock())
            log.error("💥 giving up on task: %s", outcome.error)
            self._finished(item)
            return

        self._poll_errors.pop(outcome.task_id, None)
        status = outcome.status
        if status.state == TaskState.RUNNING:
            return

        self._release(outcome.task_id)
        if status.state == TaskState.SUCCESS:
            item.succeed(self.clock())
            log.info("🎉 migration succeeded in %s min", item.duration_minutes)
            self._post_actions(item)
        else:
            item.fail(status.message or "migration task failed", self.clock())
            log.error("💥 migration failed: %s", item.notes)
        self._finished(item)

    def _release(self, task_id: str) -> None:
        item = self.in_flight.pop(task_id)
        self._poll_errors.pop(task_id, None)
        self.placement.release(item)

    def _post_actions(self, item: WorkItem) -> None:
        """Best effort: failures are logged, the item stays Succeeded."""
        if item.target_folder:
            try:
                self.provider.move_to_folder(item.vm_name, item.target_vc, item.target_folder)
                self.logger.info("📁 %s moved to folder %s", item.vm_name, item.target_folder)
            except Exception as e:
                self.logger.warning("⚠️  %s: move to folder %r failed: %s", item.vm_name, item.target_folder, e)

        if self.settings.power_on_after and item.source_powered_on is False:
            try:
                self.provider.power_on(item.vm_name, item.target_vc)
                self.logger.info("⚡ %s powered on", item.vm_name)
            except Exception as e:
                self.logger.warning("⚠️  %s: power on failed: %s", item.vm_name, e)

    # -- bookkeeping --------------------------------------------------------

    def _finished(self, item: WorkItem) -> None:
        self._check(item)
        if item.status.error:
            Log.fail(self.logger, f"{item.vm_name}: {item.status.value}: {item.notes}")
        self._notify(self.notifier.notify_finished, item)

    def _notify(self, send: Callable[[WorkItem], None], item: WorkItem) -> None:
        """Notifications never affect scheduling."""
        try:
            send(item)
        except Exception as e:
            self.logger.warning("⚠️  %s: notification failed: %s", item.vm_name, e)

    def _check(self, item: WorkItem) -> None:
        errs = item.invariant_errors()
        if len(self.in_flight) > self.settings.max_concurrent:
            errs.append(f"{len(self.in_flight)} tasks in flight > max_concurrent={self.settings.max_concurrent}")
        if errs:
            raise InvalidTransition(code=3, msg=f"{item.vm_name}: {'; '.join(errs)}", context={"vm": item.vm_name})
