# SPDX-License-Identifier: LGPL-3.0-or-later
import errno

import pytest

from vc2vc.core.exceptions import (
    Fatal,
    InvalidTransition,
    VMwareError,
    not_found,
    wrap_unavailable,
    wrap_vmware,
)
from vc2vc.vmware.vsphere.errors import RunExitCode, classify_exit_code


@pytest.mark.parametrize(
    "exc, want",
    [
        (KeyboardInterrupt(), RunExitCode.INTERRUPTED),
        (InvalidTransition(code=3, msg="Pending -> Running"), RunExitCode.INTERNAL),
        (not_found("vm", "a1", "vc-a"), RunExitCode.NOT_FOUND),
        (wrap_unavailable("vc-a", OSError("down")), RunExitCode.NETWORK),
        (wrap_vmware("relocate failed: invalid login"), RunExitCode.AUTH),
        (wrap_vmware("relocate failed: connection reset by peer"), RunExitCode.NETWORK),
        (VMwareError(code=30, msg="InvalidState"), RunExitCode.VSPHERE_API),
        (Fatal(code=2, msg="bad input"), RunExitCode.USAGE),
        (Fatal(code=77, msg="odd"), RunExitCode.ROWS_FAILED),
        (OSError(errno.ENOSPC, "No space left on device"), RunExitCode.LOCAL_IO),
        (ConnectionRefusedError(), RunExitCode.NETWORK),
        (RuntimeError("boom"), RunExitCode.INTERNAL),
    ],
)
def test_classify_exit_code(exc, want):
    assert classify_exit_code(exc) == want


def test_auth_detected_from_cause_type():
    class InvalidLogin(Exception):
        pass

    err = wrap_unavailable("vc-a", InvalidLogin("nope"))
    assert classify_exit_code(err) == RunExitCode.AUTH
