# SPDX-License-Identifier: LGPL-3.0-or-later
# -*- coding: utf-8 -*-
# vc2vc/orchestrator/input_loader.py
from __future__ import annotations

"""
Migration list loading: CSV with a header row, or a YAML/JSON list of mappings.

Column names are matched ignoring case, spaces, '-' and '_', so
"VMName", "vm_name" and "VM Name" all land in WorkItem.vm_name.
"""

import csv
import json
import logging
import re
from pathlib import Path
from typing import Any, Dict, Iterable, List

import yaml

from ..core.exceptions import Fatal
from ..migration.models import WorkItem

_FIELD_ALIASES: Dict[str, str] = {
    "vmname": "vm_name",
    "vm": "vm_name",
    "name": "vm_name",
    "application": "application",
    "app": "application",
    "sourcevc": "source_vc",
    "sourcevcenter": "source_vc",
    "targetvc": "target_vc",
    "targetvcenter": "target_vc",
    "targetfolder": "target_folder",
    "folder": "target_folder",
    "targetcluster": "target_cluster",
    "cluster": "target_cluster",
    "targetdatastore": "target_datastore",
    "datastore": "target_datastore",
    "targetswitch": "target_switch",
    "switch": "target_switch",
    "targetportgroup": "target_port_group",
    "targetportgroups": "target_port_group",
    "portgroup": "target_port_group",
    "switchtype": "switch_type",
}


def normalize_key(key: Any) -> str:
    """'Target Port-Group' -> 'target_port_group' (unknown keys: squashed lower-case)."""
    squashed = re.sub(r"[^a-z0-9]", "", str(key or "").lower())
    return _FIELD_ALIASES.get(squashed, squashed)


def normalize_row(row: Dict[Any, Any]) -> Dict[str, Any]:
    out: Dict[str, Any] = {}
    for k, v in row.items():
        if k is None:
            # csv.DictReader puts surplus cells under None
            continue
        if isinstance(v, (list, tuple)):
            v = ",".join(str(x) for x in v)
        out[normalize_key(k)] = v
    return out


def _is_blank(row: Dict[str, Any]) -> bool:
    return all(v is None or str(v).strip() == "" for v in row.values())


def _read_csv(path: Path) -> List[Dict[str, Any]]:
    with open(path, "r", encoding="utf-8-sig", newline="") as f:
        reader = csv.DictReader(f)
        if not reader.fieldnames:
            return []
        return [dict(r) for r in reader]


def _read_structured(path: Path) -> List[Dict[str, Any]]:
    text = path.read_text(encoding="utf-8")
    if path.suffix.lower() == ".json":
        data = json.loads(text) if text.strip() else []
    else:
        data = yaml.safe_load(text) or []
    if isinstance(data, dict):
        # allow {"items": [...]} / {"vms": [...]}
        for key in ("items", "vms", "migrations"):
            if isinstance(data.get(key), list):
                data = data[key]
                break
    if not isinstance(data, list) or not all(isinstance(r, dict) for r in data):
        raise Fatal(2, f"{path}: expected a list of mappings")
    return data


def read_rows(path: Path) -> List[Dict[str, Any]]:
    path = Path(path).expanduser()
    try:
        if path.suffix.lower() == ".csv":
            return _read_csv(path)
        return _read_structured(path)
    except OSError as e:
        raise Fatal(2, f"Cannot read input {path}: {e}")
    except (csv.Error, yaml.YAMLError, json.JSONDecodeError) as e:
        raise Fatal(2, f"Invalid input {path}: {e}")


def build_work_items(rows: Iterable[Dict[Any, Any]]) -> List[WorkItem]:
    """One WorkItem per non-blank row, numbered from 1 in input order."""
    items: List[WorkItem] = []
    for raw in rows:
        row = normalize_row(raw)
        if _is_blank(row):
            continue
        index = len(items) + 1
        try:
            items.append(WorkItem.from_row(row, index=index))
        except ValueError as e:
            raise Fatal(2, f"row {index}: {e}")
    return items


def load_work_items(logger: logging.Logger, path: Path) -> List[WorkItem]:
    items = build_work_items(read_rows(path))
    logger.info("📄 Loaded %d migration row(s) from %s", len(items), path)
    return items
