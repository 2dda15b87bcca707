# SPDX-License-Identifier: LGPL-3.0-or-later
import csv
import logging

import pytest

from fakes.fake_provider import make_world
from fakes.fake_session import FakeSession
from vc2vc.cli.args import parse_args_with_config
from vc2vc.core.exceptions import Fatal
from vc2vc.orchestrator.orchestrator import Orchestrator

LOG = logging.getLogger("vc2vc.tests.orchestrator")

HEADER = "VMName,SourceVC,TargetVC,TargetCluster,TargetDatastore,TargetSwitch,TargetPortGroup\n"


def _args(tmp_path, rows, *extra):
    src = tmp_path / "wave1.csv"
    src.write_text(HEADER + "".join(rows), encoding="utf-8")
    argv = [
        "-i", str(src),
        "--report", str(tmp_path / "out" / "report.csv"),
        "--vc-user", "admin",
        "--vc-password", "pw",
        "--poll-interval", "0",
        *extra,
    ]
    args, conf, _ = parse_args_with_config(argv=argv, logger=LOG)
    return args, conf


def _run(args, conf, provider, session=None):
    session = session or FakeSession()
    orch = Orchestrator(
        LOG,
        args,
        conf,
        session_factory=lambda logger, a, c: session,
        provider_factory=lambda logger, s: provider,
        sleep=lambda s: None,
    )
    return orch.run(), session


def _report(path):
    with open(path, newline="", encoding="utf-8") as f:
        return list(csv.DictReader(f))


def test_clean_run_exits_zero(tmp_path):
    args, conf = _args(
        tmp_path,
        ["app01,vc-a,vc-b,CL01,DS01,DVS01,PG-APP\n", "app02,vc-a,vc-b,CL01,DS01,DVS01,PG-DB\n"],
    )
    provider = make_world(["app01", "app02"])
    rc, session = _run(args, conf, provider)

    assert rc == 0
    assert session.opened == ["vc-a", "vc-b"]
    assert session.closed
    assert provider.submitted == ["app01", "app02"]
    rows = _report(tmp_path / "out" / "report.csv")
    assert [r["status"] for r in rows] == ["Succeeded", "Succeeded"]


def test_rejected_row_exits_one(tmp_path):
    args, conf = _args(
        tmp_path,
        ["app01,vc-a,vc-b,CL01,DS01,DVS01,PG-APP\n", "ghost,vc-a,vc-b,CL01,DS01,DVS01,PG-APP\n"],
    )
    rc, _ = _run(args, conf, make_world(["app01"]))

    assert rc == 1
    rows = _report(tmp_path / "out" / "report.csv")
    assert [r["vm_name"] for r in rows] == ["app01", "ghost"]
    assert rows[1]["status"] == "Rejected"
    assert "vm not found" in rows[1]["notes"]


def test_dry_run_submits_nothing(tmp_path):
    args, conf = _args(tmp_path, ["app01,vc-a,vc-b,CL01,DS01,DVS01,PG-APP\n"], "--dry-run")
    provider = make_world(["app01"])
    rc, _ = _run(args, conf, provider)
    assert rc == 0
    assert provider.submitted == []


def test_unreachable_endpoint_is_fatal(tmp_path):
    args, conf = _args(tmp_path, ["app01,vc-a,vc-down,CL01,DS01,DVS01,PG-APP\n"])
    session = FakeSession(unreachable={"vc-down"})
    with pytest.raises(Fatal) as ei:
        _run(args, conf, make_world(["app01"]), session)
    assert ei.value.code == 12
    assert ei.value.context["endpoint"] == "vc-down"
    assert session.closed
    assert not (tmp_path / "out" / "report.csv").exists()


def test_empty_input(tmp_path):
    args, conf = _args(tmp_path, [])
    rc, session = _run(args, conf, make_world([]))
    assert rc == 0
    assert session.opened == []


def test_interrupt_writes_partial_report(tmp_path):
    args, conf = _args(tmp_path, ["app01,vc-a,vc-b,CL01,DS01,DVS01,PG-APP\n"])
    provider = make_world(["app01"])

    def boom(name, endpoint):
        raise KeyboardInterrupt

    provider.find_vm = boom
    with pytest.raises(KeyboardInterrupt):
        _run(args, conf, provider)
    rows = _report(tmp_path / "out" / "report.csv")
    assert rows[0]["status"] == "Validating"


def test_scheduler_crash_still_writes_partial_report(tmp_path, monkeypatch):
    args, conf = _args(
        tmp_path,
        ["app01,vc-a,vc-b,CL01,DS01,DVS01,PG-APP\n", "app02,vc-a,vc-b,CL01,DS01,DVS01,PG-APP\n"],
    )

    class CrashingScheduler:
        def __init__(self, *a, **k):
            pass

        def run(self, items):
            raise RuntimeError("scheduler state corrupted")

    monkeypatch.setattr("vc2vc.orchestrator.orchestrator.MigrationScheduler", CrashingScheduler)
    session = FakeSession()
    with pytest.raises(RuntimeError):
        _run(args, conf, make_world(["app01", "app02"]), session)
    assert session.closed
    rows = _report(tmp_path / "out" / "report.csv")
    assert [r["vm_name"] for r in rows] == ["app01", "app02"]
    assert {r["status"] for r in rows} == {"Pending"}


def test_unusable_smtp_host_does_not_abort_the_run(tmp_path, monkeypatch):
    args, conf = _args(
        tmp_path,
        ["app01,vc-a,vc-b,CL01,DS01,DVS01,PG-APP\n"],
        "--notify",
        "--email-to", "o@x.org",
        "--email-from", "v@x.org",
        "--email-smtp-host", "smtp..example.com",
    )

    def refuse(host, *a, **k):
        raise UnicodeError("encoding with 'idna' codec failed (label empty or too long)")

    monkeypatch.setattr("vc2vc.migration.notifier.smtplib.SMTP", refuse)
    rc, session = _run(args, conf, make_world(["app01"]))
    assert rc == 0
    assert session.closed
    rows = _report(tmp_path / "out" / "report.csv")
    assert rows[0]["status"] == "Succeeded"


def test_default_report_path_next_to_input(tmp_path):
    args, conf = _args(tmp_path, [], "--report-format", "json")
    args.report = None
    path = Orchestrator(LOG, args, conf).report_path()
    assert path.parent == tmp_path
    assert path.name.startswith("wave1-report-")
    assert path.suffix == ".json"


def test_settings_from_args(tmp_path):
    args, conf = _args(tmp_path, [], "--max-concurrent", "5", "--free-buffer-percent", "10", "--no-power-on")
    s = Orchestrator(LOG, args, conf).settings()
    assert (s.max_concurrent, s.free_buffer_percent, s.poll_interval_s, s.power_on_after) == (5, 10.0, 0.0, False)
