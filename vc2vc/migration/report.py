# SPDX-License-Identifier: LGPL-3.0-or-later
# -*- coding: utf-8 -*-
# vc2vc/migration/report.py
"""
Final per-row report (input order) and run summary.
"""

from __future__ import annotations

import csv
import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Sequence

from rich.table import Table

from ..core.utils import U
from ..vmware.vmware_utils import create_console
from .models import WorkItem, WorkItemStatus
from .scheduler import RunSummary

REPORT_FORMATS = ("csv", "json")


def report_rows(items: Sequence[WorkItem]) -> List[Dict[str, Any]]:
    """Rows sorted by input position, whatever order the tasks completed in."""
    return [i.to_report_row() for i in sorted(items, key=lambda i: i.row)]


def write_report(items: Sequence[WorkItem], path: Path, fmt: str = "csv") -> Path:
    fmt = (fmt or "csv").lower()
    if fmt not in REPORT_FORMATS:
        raise ValueError(f"unsupported report format: {fmt!r} (expected one of {', '.join(REPORT_FORMATS)})")

    path = Path(path).expanduser()
    U.ensure_dir(path.parent)
    rows = report_rows(items)

    if fmt == "json":
        summary = RunSummary.of(items)
        doc = {"summary": {"total": summary.total, "counts": summary.counts}, "items": rows}
        path.write_text(json.dumps(doc, indent=2, default=str) + "\n", encoding="utf-8")
        return path

    fields = list(rows[0].keys()) if rows else list(WorkItem(
        vm_name="", source_vc="", target_vc="", target_cluster="", target_datastore=""
    ).to_report_row().keys())
    with open(path, "w", encoding="utf-8", newline="") as f:
        w = csv.DictWriter(f, fieldnames=fields)
        w.writeheader()
        w.writerows(rows)
    return path


def log_summary(logger: logging.Logger, items: Sequence[WorkItem]) -> RunSummary:
    """Log one line per status and, on a TTY, print a rich table of the rows."""
    summary = RunSummary.of(items)
    for status in WorkItemStatus:
        n = summary.counts.get(status.value, 0)
        if n:
            logger.info("📊 %-10s %d", status.value, n)

    console = create_console(stderr=True)
    if console is not None and items:
        table = Table(title="vc2vc migration report", show_lines=False)
        for col in ("#", "VM", "Application", "Status", "Minutes", "GB", "Notes"):
            table.add_column(col)
        styles = {
            WorkItemStatus.SUCCEEDED: "green",
            WorkItemStatus.FAILED: "red",
            WorkItemStatus.REJECTED: "yellow",
        }
        for i in sorted(items, key=lambda i: i.row):
            table.add_row(
                str(i.row),
                i.vm_name,
                i.application,
                f"[{styles.get(i.status, 'white')}]{i.status.value}[/]",
                "" if i.duration_minutes is None else str(i.duration_minutes),
                "" if i.used_space_gb is None else f"{i.used_space_gb:.1f}",
                i.notes,
            )
        console.print(table)
    return summary
