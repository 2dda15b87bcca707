# SPDX-License-Identifier: LGPL-3.0-or-later
# -*- coding: utf-8 -*-
# vc2vc/cli/args/groups.py
from __future__ import annotations

import argparse

from ...migration.report import REPORT_FORMATS


def _add_global_config_logging(p: argparse.ArgumentParser) -> None:
    # ------------------------------------------------------------------
    # Global config/logging (two-phase parse relies on these)
    # ------------------------------------------------------------------
    from ... import __version__

    p.add_argument(
        "--config",
        action="append",
        default=[],
        help="YAML/JSON config file (repeatable; later overrides earlier).",
    )
    p.add_argument("--dump-config", action="store_true", help="Print merged normalized config and exit.")
    p.add_argument("--dump-args", action="store_true", help="Print final parsed args and exit.")
    p.add_argument("--version", action="version", version=__version__)
    p.add_argument("-v", "--verbose", action="count", default=0, help="Verbosity: -v, -vv (debug), -vvv (trace)")
    p.add_argument("-q", "--quiet", action="count", default=0, help="Less output: -q warnings, -qq errors only")
    p.add_argument("--log-file", dest="log_file", default=None, help="Write logs to file.")
    p.add_argument("--json-logs", dest="json_logs", action="store_true", help="Emit NDJSON log lines on stderr.")
    p.add_argument("--no-color", dest="color", action="store_false", help="Disable colored log output.")
    p.set_defaults(color=True)


def _add_input_report(p: argparse.ArgumentParser) -> None:
    # ------------------------------------------------------------------
    # Input rows + final report
    # ------------------------------------------------------------------
    p.add_argument(
        "-i",
        "--input",
        dest="input",
        default=None,
        help="Migration list: CSV with a header row, or YAML/JSON list of mappings.",
    )
    p.add_argument(
        "--report",
        dest="report",
        default=None,
        help="Report path (default: <input-stem>-report-<timestamp>.<format> next to the input).",
    )
    p.add_argument("--report-format", dest="report_format", default="csv", choices=list(REPORT_FORMATS), help="Report format.")


def _add_scheduling_knobs(p: argparse.ArgumentParser) -> None:
    # ------------------------------------------------------------------
    # Validation / placement / scheduling
    # ------------------------------------------------------------------
    p.add_argument(
        "--free-buffer-percent",
        dest="free_buffer_percent",
        type=float,
        default=20.0,
        help="Percent of datastore capacity that must stay free after the copy.",
    )
    p.add_argument("--max-concurrent", dest="max_concurrent", type=int, default=2, help="Relocations in flight at once.")
    p.add_argument("--poll-interval", dest="poll_interval", type=float, default=5.0, help="Seconds between task polls.")
    p.add_argument(
        "--poll-workers",
        dest="poll_workers",
        type=int,
        default=1,
        help="Threads used to read task states per poll (results are still applied in order).",
    )
    p.add_argument(
        "--max-poll-errors",
        dest="max_poll_errors",
        type=int,
        default=5,
        help="Consecutive failed polls of one task before its item is marked Failed.",
    )
    p.add_argument("--dry-run", dest="dry_run", action="store_true", help="Validate and place only; submit nothing.")
    p.add_argument(
        "--reserve-placement",
        dest="reserve_placement",
        action="store_true",
        help="Count in-flight items against datastore free space and host memory during placement.",
    )
    p.add_argument(
        "--no-power-on",
        dest="power_on_after",
        action="store_false",
        help="Do not power on migrated VMs that were powered off at the source.",
    )
    p.set_defaults(power_on_after=True)


def _add_vcenter_knobs(p: argparse.ArgumentParser) -> None:
    # ------------------------------------------------------------------
    # vCenter access (endpoints themselves come from the input rows)
    # ------------------------------------------------------------------
    p.add_argument("--vc-user", dest="vc_user", default=None, help="vCenter username.")
    p.add_argument("--vc-password", dest="vc_password", default=None, help="vCenter password (prefer --vc-password-env).")
    p.add_argument("--vc-password-env", dest="vc_password_env", default=None, help="Env var holding the vCenter password.")
    p.add_argument("--vc-port", dest="vc_port", type=int, default=443, help="vCenter HTTPS port.")
    p.add_argument("--vc-insecure", dest="vc_insecure", action="store_true", help="Disable TLS certificate verification.")
    p.add_argument("--vc-timeout", dest="vc_timeout", type=float, default=None, help="Socket timeout (seconds) for connecting.")
    p.add_argument("--connect-attempts", dest="connect_attempts", type=int, default=3, help="Connection attempts per endpoint.")


def _add_notification_knobs(p: argparse.ArgumentParser) -> None:
    # ------------------------------------------------------------------
    # Notifications (webhook and/or e-mail)
    # ------------------------------------------------------------------
    p.add_argument("--notify", dest="notify_enabled", action="store_true", help="Enable start/finish notifications.")
    p.add_argument("--no-notify-start", dest="notify_on_start", action="store_false", help="Skip 'started' notifications.")
    p.add_argument("--no-notify-success", dest="notify_on_success", action="store_false", help="Skip success notifications.")
    p.add_argument("--no-notify-failure", dest="notify_on_failure", action="store_false", help="Skip failure notifications.")
    p.set_defaults(notify_on_start=True, notify_on_success=True, notify_on_failure=True)

    p.add_argument("--webhook-url", dest="webhook_url", default=None, help="Webhook URL.")
    p.add_argument(
        "--webhook-type",
        dest="webhook_type",
        default="generic",
        choices=["slack", "discord", "generic"],
        help="Webhook payload flavour.",
    )
    p.add_argument("--email-to", dest="email_to", default=None, help="Notification recipient.")
    p.add_argument("--email-from", dest="email_from", default=None, help="Notification sender.")
    p.add_argument("--email-smtp-host", dest="email_smtp_host", default=None, help="SMTP relay host.")
    p.add_argument("--email-smtp-port", dest="email_smtp_port", type=int, default=25, help="SMTP relay port.")
    p.add_argument("--email-username", dest="email_username", default=None, help="SMTP username (enables STARTTLS + login).")
    p.add_argument("--email-password", dest="email_password", default=None, help="SMTP password.")
