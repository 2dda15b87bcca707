# SPDX-License-Identifier: LGPL-3.0-or-later
# vc2vc/vmware/vsphere/errors.py
# -*- coding: utf-8 -*-
"""Exception classification and process exit codes for a run"""
from __future__ import annotations

import errno
import socket
from enum import IntEnum

from ...core.exceptions import InvalidTransition, NotFoundError, ProviderUnavailable, Vc2VcError, VMwareError


class RunExitCode(IntEnum):
    OK = 0
    ROWS_FAILED = 1
    USAGE = 2
    INTERNAL = 3

    AUTH = 10
    NOT_FOUND = 11
    NETWORK = 12

    VSPHERE_API = 30
    LOCAL_IO = 40

    INTERRUPTED = 130


def _is_auth_error(e: BaseException) -> bool:
    msg = str(e).lower()
    needles = [
        "not authenticated",
        "authentication",
        "unauthorized",
        "invalid login",
        "incorrect user name or password",
        "no permission",
        "access denied",
        "permission denied",
    ]
    cause = getattr(e, "cause", None)
    if cause is not None and type(cause).__name__ in ("InvalidLogin", "NoPermission"):
        return True
    return any(n in msg for n in needles)


def _is_network_error(e: BaseException) -> bool:
    if isinstance(e, (socket.timeout, TimeoutError, ConnectionError)):
        return True
    if isinstance(e, OSError) and e.errno in (
        errno.ECONNREFUSED,
        errno.ETIMEDOUT,
        errno.EHOSTUNREACH,
        errno.ENETUNREACH,
        errno.ECONNRESET,
    ):
        return True
    msg = str(e).lower()
    needles = [
        "timed out",
        "connection refused",
        "connection reset",
        "name or service not known",
        "temporary failure in name resolution",
        "handshake",
        "certificate verify failed",
    ]
    return any(n in msg for n in needles)


def _is_local_io_error(e: BaseException) -> bool:
    if isinstance(e, OSError) and e.errno in (
        errno.EACCES,
        errno.EPERM,
        errno.ENOSPC,
        errno.EROFS,
        errno.EDQUOT,
    ):
        return True
    msg = str(e).lower()
    needles = ["no space left", "read-only file system"]
    return any(n in msg for n in needles)


def classify_exit_code(e: BaseException) -> RunExitCode:
    if isinstance(e, KeyboardInterrupt):
        return RunExitCode.INTERRUPTED
    if isinstance(e, InvalidTransition):
        return RunExitCode.INTERNAL

    if isinstance(e, VMwareError):
        if _is_auth_error(e):
            return RunExitCode.AUTH
        if isinstance(e, NotFoundError):
            return RunExitCode.NOT_FOUND
        if isinstance(e, ProviderUnavailable) or _is_network_error(e):
            return RunExitCode.NETWORK
        return RunExitCode.VSPHERE_API

    if isinstance(e, Vc2VcError):
        try:
            return RunExitCode(e.code)
        except ValueError:
            return RunExitCode.ROWS_FAILED

    if _is_local_io_error(e):
        return RunExitCode.LOCAL_IO
    if _is_network_error(e):
        return RunExitCode.NETWORK
    return RunExitCode.INTERNAL
