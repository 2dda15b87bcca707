# SPDX-License-Identifier: LGPL-3.0-or-later
# -*- coding: utf-8 -*-
# vc2vc/orchestrator/orchestrator.py

from __future__ import annotations

import argparse
import logging
import time
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Set

from ..core.exceptions import ProviderUnavailable, wrap_fatal
from ..core.logger import Log
from ..core.logging_utils import log_step
from ..core.utils import U
from ..migration.models import RunSettings, WorkItem
from ..migration.notifier import MigrationNotifier
from ..migration.report import log_summary, write_report
from ..migration.scheduler import MigrationScheduler
from ..vmware.clients.session import ProviderSession
from ..vmware.provider import InfrastructureProvider
from ..vmware.vsphere_provider import VsphereProvider
from .input_loader import load_work_items

SessionFactory = Callable[[logging.Logger, argparse.Namespace, Dict[str, Any]], Any]
ProviderFactory = Callable[[logging.Logger, Any], InfrastructureProvider]


def default_session(logger: logging.Logger, args: argparse.Namespace, conf: Dict[str, Any]) -> ProviderSession:
    return ProviderSession(
        logger,
        user=args.vc_user,
        password=args.vc_password,
        port=args.vc_port,
        insecure=args.vc_insecure,
        timeout=args.vc_timeout,
        connect_attempts=args.connect_attempts,
        overrides=conf.get("vc_credentials") or {},
    )


class Orchestrator:
    """
    One migration run: load rows, connect, schedule, report.
    Returns the process exit code (0 clean, 1 if any row was Rejected/Failed).
    """

    def __init__(
        self,
        logger: logging.Logger,
        args: argparse.Namespace,
        conf: Optional[Dict[str, Any]] = None,
        *,
        session_factory: SessionFactory = default_session,
        provider_factory: ProviderFactory = VsphereProvider,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.logger = logger
        self.args = args
        self.conf = dict(conf or {})
        self.session_factory = session_factory
        self.provider_factory = provider_factory
        self.sleep = sleep

        Log.trace(
            self.logger,
            "🧠 Orchestrator init: input=%r dry_run=%r",
            getattr(args, "input", None),
            getattr(args, "dry_run", False),
        )

    # -- config -------------------------------------------------------------

    def settings(self) -> RunSettings:
        a = self.args
        return RunSettings(
            free_buffer_percent=a.free_buffer_percent,
            max_concurrent=a.max_concurrent,
            poll_interval_s=a.poll_interval,
            poll_workers=a.poll_workers,
            max_poll_errors=a.max_poll_errors,
            dry_run=a.dry_run,
            reserve_placement=a.reserve_placement,
            power_on_after=a.power_on_after,
        )

    def notifier_config(self) -> Dict[str, Any]:
        a = self.args
        return {
            "enabled": getattr(a, "notify_enabled", False),
            "on_start": getattr(a, "notify_on_start", True),
            "on_success": getattr(a, "notify_on_success", True),
            "on_failure": getattr(a, "notify_on_failure", True),
            "webhook_url": getattr(a, "webhook_url", None),
            "webhook_type": getattr(a, "webhook_type", "generic"),
            "email_to": getattr(a, "email_to", None),
            "email_from": getattr(a, "email_from", None),
            "email_smtp_host": getattr(a, "email_smtp_host", None),
            "email_smtp_port": getattr(a, "email_smtp_port", 25),
            "email_username": getattr(a, "email_username", None),
            "email_password": getattr(a, "email_password", None),
        }

    def report_path(self) -> Path:
        fmt = getattr(self.args, "report_format", "csv") or "csv"
        if getattr(self.args, "report", None):
            return Path(self.args.report).expanduser()
        src = Path(self.args.input).expanduser()
        return src.with_name(f"{src.stem}-report-{U.now_ts()}.{fmt}")

    @staticmethod
    def endpoints(items: List[WorkItem]) -> Set[str]:
        eps = {i.source_vc for i in items} | {i.target_vc for i in items}
        return {e for e in eps if e}

    # -- run ----------------------------------------------------------------

    def run(self) -> int:
        Log.banner(self.logger, "vc2vc migration run")
        items = load_work_items(self.logger, Path(self.args.input))
        if not items:
            self.logger.warning("⚠️  No migration rows in %s", self.args.input)
            return 0

        settings = self.settings()
        notifier = MigrationNotifier(self.logger, self.notifier_config())
        endpoints = self.endpoints(items)

        session = self.session_factory(self.logger, self.args, self.conf)
        try:
            with log_step(self.logger, f"Connecting to {len(endpoints)} vCenter endpoint(s)"):
                session.open(endpoints)
        except ProviderUnavailable as e:
            session.close()
            raise wrap_fatal(str(e), e, code=12, endpoint=(e.context or {}).get("endpoint"))

        try:
            provider = self.provider_factory(self.logger, session)
            scheduler = MigrationScheduler(
                self.logger,
                provider,
                settings,
                notifier=notifier,
                sleep=self.sleep,
            )
            scheduler.run(items)
        except KeyboardInterrupt:
            self.logger.warning("Interrupted; writing partial report (in-flight tasks keep running in vCenter)")
            self._write_report(items)
            raise
        except Exception as e:
            self.logger.error("💥 Scheduler aborted (%s); writing partial report", e)
            self._write_report(items)
            raise
        finally:
            session.close()

        self._write_report(items)
        summary = log_summary(self.logger, items)
        notifier.log_stats()
        if summary.exit_code:
            Log.warn(self.logger, f"{summary.errors} of {summary.total} row(s) did not migrate")
        else:
            Log.ok(self.logger, f"All {summary.total} row(s) processed cleanly")
        return summary.exit_code

    def _write_report(self, items: List[WorkItem]) -> Path:
        path = write_report(items, self.report_path(), getattr(self.args, "report_format", "csv") or "csv")
        self.logger.info("📝 Report written: %s", path)
        return path
