# SPDX-License-Identifier: LGPL-3.0-or-later
# -*- coding: utf-8 -*-
# vc2vc/config/config_loader.py
from __future__ import annotations

import argparse
import glob
import json
import logging
import os
from pathlib import Path
from typing import Any, Dict, List, Sequence

import yaml

from ..core.exceptions import Fatal
from ..core.utils import U


def _normalize_keys(obj: Any) -> Any:
    """'max-concurrent' -> 'max_concurrent', recursively for dict keys."""
    if isinstance(obj, dict):
        return {str(k).replace("-", "_"): _normalize_keys(v) for k, v in obj.items()}
    if isinstance(obj, list):
        return [_normalize_keys(v) for v in obj]
    return obj


def _deep_merge(base: Dict[str, Any], over: Dict[str, Any]) -> Dict[str, Any]:
    out = dict(base)
    for k, v in over.items():
        if isinstance(v, dict) and isinstance(out.get(k), dict):
            out[k] = _deep_merge(out[k], v)
        else:
            out[k] = v
    return out


class Config:
    """
    YAML/JSON run configuration.

    Files are merged left to right (later wins, dicts merge recursively) and
    the result is applied to the argparse parser as defaults, so anything
    given on the command line still overrides the files.
    """

    @staticmethod
    def expand_configs(logger: logging.Logger, paths: Sequence[str]) -> List[Path]:
        out: List[Path] = []
        for raw in paths:
            p = os.path.expandvars(os.path.expanduser(str(raw)))
            matches = sorted(glob.glob(p)) if any(ch in p for ch in "*?[") else [p]
            if not matches:
                U.die(logger, f"Config glob matched nothing: {raw}", 2)
            for m in matches:
                mp = Path(m)
                if not mp.is_file():
                    U.die(logger, f"Config file not found: {m}", 2)
                out.append(mp)
        logger.debug("Config files: %s", ", ".join(str(p) for p in out) or "(none)")
        return out

    @staticmethod
    def load(logger: logging.Logger, path: Path) -> Dict[str, Any]:
        try:
            text = Path(path).read_text(encoding="utf-8")
        except OSError as e:
            raise Fatal(2, f"Cannot read config {path}: {e}")

        try:
            if Path(path).suffix.lower() == ".json":
                data = json.loads(text) if text.strip() else {}
            else:
                data = yaml.safe_load(text) or {}
        except (yaml.YAMLError, json.JSONDecodeError) as e:
            raise Fatal(2, f"Invalid config {path}: {e}")

        if not isinstance(data, dict):
            raise Fatal(2, f"Config {path} must be a mapping at top level, got {type(data).__name__}")
        logger.debug("Loaded config %s (%d keys)", path, len(data))
        return _normalize_keys(data)

    @staticmethod
    def load_many(logger: logging.Logger, paths: Sequence[Path]) -> Dict[str, Any]:
        merged: Dict[str, Any] = {}
        for p in paths:
            merged = _deep_merge(merged, Config.load(logger, p))
        return merged

    @staticmethod
    def apply_as_defaults(logger: logging.Logger, parser: argparse.ArgumentParser, conf: Dict[str, Any]) -> None:
        """
        Push config values that match an argparse dest into parser defaults.
        Keys with no matching option stay in `conf` for the caller.
        """
        dests = {a.dest for a in parser._actions}
        defaults = {k: v for k, v in conf.items() if k in dests}
        unknown = sorted(k for k in conf if k not in dests)
        if unknown:
            logger.debug("Config keys without CLI option: %s", ", ".join(unknown))
        if defaults:
            parser.set_defaults(**defaults)
