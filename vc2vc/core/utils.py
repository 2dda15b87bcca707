# SPDX-License-Identifier: LGPL-3.0-or-later
# -*- coding: utf-8 -*-
# vc2vc/core/utils.py
from __future__ import annotations

import datetime as _dt
import json
import logging
from pathlib import Path
from typing import Any, List, Optional

from .exceptions import Fatal

GIB = 1024 ** 3


class U:
    @staticmethod
    def die(logger: logging.Logger, msg: str, code: int = 1) -> None:
        logger.error(msg)
        raise Fatal(code, msg)

    @staticmethod
    def ensure_dir(p: Path) -> None:
        p.mkdir(parents=True, exist_ok=True)

    @staticmethod
    def now_ts() -> str:
        return _dt.datetime.now().strftime("%Y%m%d-%H%M%S")

    @staticmethod
    def json_dump(obj: Any) -> str:
        try:
            return json.dumps(obj, indent=2, sort_keys=True, default=str)
        except Exception:
            return repr(obj)

    @staticmethod
    def bytes_to_gb(n: Optional[int]) -> float:
        if not n:
            return 0.0
        return float(n) / GIB

    @staticmethod
    def mb_to_gb(n: Optional[int]) -> float:
        if not n:
            return 0.0
        return float(n) / 1024.0

    @staticmethod
    def split_list(s: Optional[str], sep: str = ",") -> List[str]:
        """'a, b,,c' -> ['a', 'b', 'c'] (order kept)."""
        if not s:
            return []
        return [x.strip() for x in str(s).split(sep) if x.strip()]

    @staticmethod
    def to_bool(v: Any, default: bool = False) -> bool:
        if v is None:
            return default
        if isinstance(v, bool):
            return v
        s = str(v).strip().lower()
        if s in ("1", "true", "yes", "y", "on"):
            return True
        if s in ("0", "false", "no", "n", "off", ""):
            return False
        return default
