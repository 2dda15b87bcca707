# SPDX-License-Identifier: LGPL-3.0-or-later
# -*- coding: utf-8 -*-
# vc2vc/cli/args/validators.py
from __future__ import annotations

import argparse
import os
from typing import Any, Dict

from .helpers import _merged_get, _merged_secret, _require

_INPUT_EXTS = (".csv", ".yaml", ".yml", ".json")


def _validate_input(args: argparse.Namespace, conf: Dict[str, Any]) -> None:
    path = _merged_get(args, conf, "input")
    if not _require(path):
        raise SystemExit("missing required `input:` (YAML) or CLI --input")
    path = os.path.expanduser(str(path))
    if not os.path.isfile(path):
        raise SystemExit(f"--input file not found: {path}")
    ext = os.path.splitext(path)[1].lower()
    if ext not in _INPUT_EXTS:
        raise SystemExit(f"--input must be {'/'.join(_INPUT_EXTS)}, got: {path}")


def _validate_numbers(args: argparse.Namespace) -> None:
    buf = float(args.free_buffer_percent)
    if not 0 <= buf < 100:
        raise SystemExit(f"--free-buffer-percent must be in [0, 100), got {buf}")
    if int(args.max_concurrent) < 1:
        raise SystemExit(f"--max-concurrent must be >= 1, got {args.max_concurrent}")
    if float(args.poll_interval) < 0:
        raise SystemExit(f"--poll-interval must be >= 0, got {args.poll_interval}")
    if int(args.poll_workers) < 1:
        raise SystemExit(f"--poll-workers must be >= 1, got {args.poll_workers}")
    if int(args.max_poll_errors) < 1:
        raise SystemExit(f"--max-poll-errors must be >= 1, got {args.max_poll_errors}")
    if int(args.connect_attempts) < 1:
        raise SystemExit(f"--connect-attempts must be >= 1, got {args.connect_attempts}")


def _validate_vcenter_identity(args: argparse.Namespace, conf: Dict[str, Any]) -> None:
    """
    Dry runs still read inventory, so credentials are always required.
    The password is resolved here and stored on args for the orchestrator.
    """
    if not _require(_merged_get(args, conf, "vc_user")):
        raise SystemExit("missing required `vc_user:` (YAML) or CLI --vc-user")
    password = _merged_secret(args, conf, "vc_password", "vc_password_env")
    if not _require(password):
        raise SystemExit("missing vCenter password. Set `vc_password:` or `vc_password_env:` (or CLI equivalents).")
    args.vc_password = password

    overrides = conf.get("vc_credentials")
    if overrides is not None and not isinstance(overrides, dict):
        raise SystemExit("`vc_credentials:` must be a mapping of endpoint -> {user, password|password_env, port, insecure}")
    for ep, entry in (overrides or {}).items():
        if not isinstance(entry, dict):
            raise SystemExit(f"`vc_credentials.{ep}` must be a mapping")


def _validate_notifications(args: argparse.Namespace, conf: Dict[str, Any]) -> None:
    if not getattr(args, "notify_enabled", False):
        return
    webhook = _merged_get(args, conf, "webhook_url")
    email_to = _merged_get(args, conf, "email_to")
    if not _require(webhook) and not _require(email_to):
        raise SystemExit("notifications enabled but neither `webhook_url` nor `email_to` is set")
    if _require(email_to):
        for key in ("email_from", "email_smtp_host"):
            if not _require(_merged_get(args, conf, key)):
                raise SystemExit(f"e-mail notifications need `{key}:` (YAML) or CLI --{key.replace('_', '-')}")


def validate_args(args: argparse.Namespace, conf: Dict[str, Any]) -> None:
    _validate_input(args, conf)
    _validate_numbers(args)
    _validate_vcenter_identity(args, conf)
    _validate_notifications(args, conf)
