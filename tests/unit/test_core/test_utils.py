# SPDX-License-Identifier: LGPL-3.0-or-later
import logging

import pytest

from vc2vc.core.exceptions import Fatal
from vc2vc.core.logger import TRACE, JsonFormatter, Log
from vc2vc.core.utils import GIB, U


@pytest.mark.unit
class TestU:
    def test_unit_conversions(self):
        assert U.bytes_to_gb(5 * GIB) == 5.0
        assert U.bytes_to_gb(None) == 0.0
        assert U.mb_to_gb(2048) == 2.0

    def test_split_list(self):
        assert U.split_list("PG-A, PG-B,,PG-C ") == ["PG-A", "PG-B", "PG-C"]
        assert U.split_list("") == []
        assert U.split_list(None) == []

    @pytest.mark.parametrize("raw, want", [("yes", True), ("0", False), (None, False), (True, True), ("maybe", False)])
    def test_to_bool(self, raw, want):
        assert U.to_bool(raw) is want

    def test_die_raises_fatal(self, logger):
        with pytest.raises(Fatal) as ei:
            U.die(logger, "bad config", 2)
        assert ei.value.code == 2

    def test_ensure_dir(self, tmp_path):
        p = tmp_path / "a" / "b"
        U.ensure_dir(p)
        assert p.is_dir()


@pytest.mark.unit
class TestLogSetup:
    def test_levels_from_flags(self):
        assert Log._level_from_flags(0, 0) == logging.INFO
        assert Log._level_from_flags(2, 0) == logging.DEBUG
        assert Log._level_from_flags(3, 0) == TRACE
        assert Log._level_from_flags(3, 1) == logging.WARNING
        assert Log._level_from_flags(0, 2) == logging.ERROR

    def test_setup_with_log_file(self, tmp_path):
        log_file = tmp_path / "logs" / "run.log"
        lg = Log.setup(1, str(log_file), color=False, logger_name="vc2vc.tests.setup")
        Log.bind(lg, vm="a1").info("hello")
        for h in lg.handlers:
            h.flush()
        text = log_file.read_text(encoding="utf-8")
        assert "hello" in text
        assert "vm=a1" in text

    def test_json_formatter(self):
        rec = logging.LogRecord("vc2vc", logging.INFO, __file__, 1, "submitted %s", ("task-1",), None)
        rec.ctx = {"vm": "a1"}
        out = JsonFormatter(utc=True).format(rec)
        assert '"submitted task-1"' in out
        assert '"a1"' in out
