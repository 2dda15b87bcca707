# SPDX-License-Identifier: LGPL-3.0-or-later
"""Tests for exception handling and secret redaction."""
from __future__ import annotations

import pytest

from vc2vc.core.exceptions import (
    Fatal,
    InsufficientCapacity,
    NotFoundError,
    ProviderUnavailable,
    Vc2VcError,
    VMwareError,
    format_exception_for_cli,
    insufficient_capacity,
    not_found,
    wrap_fatal,
    wrap_unavailable,
)


@pytest.mark.unit
class TestExceptionHierarchy:
    def test_base_exception_creation(self):
        err = Vc2VcError(code=1, msg="Test error")
        assert err.code == 1
        assert err.msg == "Test error"
        assert err.cause is None
        assert err.context == {}

    def test_fatal_and_vmware_are_project_errors(self):
        assert isinstance(Fatal(code=2, msg="x"), Vc2VcError)
        assert isinstance(not_found("vm", "a", "vc"), VMwareError)
        assert isinstance(wrap_unavailable("vc"), VMwareError)

    def test_code_is_clamped(self):
        assert Vc2VcError(code=999).code == 255
        assert Vc2VcError(code=-3).code == 1
        assert Vc2VcError(code="nope").code == 1

    def test_message_is_single_line(self):
        err = Vc2VcError(msg="first\nsecond   third")
        assert str(err) == "first second third"

    def test_with_context_chains(self):
        err = Vc2VcError(msg="Error").with_context(vm_name="test-vm", operation="relocate")
        assert err.context == {"vm_name": "test-vm", "operation": "relocate"}


@pytest.mark.unit
class TestHelpers:
    def test_not_found_carries_entity(self):
        err = not_found("datastore", "DS01", "vc-b")
        assert isinstance(err, NotFoundError)
        assert err.entity == "datastore"
        assert str(err) == "datastore not found: 'DS01' on vc-b"

    def test_insufficient_capacity_message(self):
        err = insufficient_capacity("DS01", 5.0, 6.0)
        assert isinstance(err, InsufficientCapacity)
        assert "buffered free 5.00 GB < required 6.00 GB" in str(err)

    def test_wrap_unavailable(self):
        cause = ConnectionRefusedError("refused")
        err = wrap_unavailable("vc-a", cause)
        assert isinstance(err, ProviderUnavailable)
        assert err.code == 12
        assert err.cause is cause
        assert err.context["endpoint"] == "vc-a"

    def test_wrap_fatal(self):
        err = wrap_fatal("boom", ValueError("x"), code=12, endpoint="vc-a")
        assert isinstance(err, Fatal)
        assert err.code == 12
        assert err.context == {"endpoint": "vc-a"}

    def test_cli_formatting_levels(self):
        err = Vc2VcError(msg="broken", cause=ValueError("inner"), context={"vm": "a1"})
        assert format_exception_for_cli(err) == "broken"
        assert "vm='a1'" in format_exception_for_cli(err, verbose=1)
        assert "cause: ValueError: inner" in format_exception_for_cli(err, verbose=2)
        assert format_exception_for_cli(KeyError("k"), verbose=2).startswith("KeyError")


@pytest.mark.security
class TestSecretRedaction:
    def test_password_redacted_in_dict(self):
        err = Vc2VcError(msg="Auth failed").with_context(username="admin", password="super_secret_123", host="vc-a")
        d = err.to_dict()
        assert d["context"]["password"] == "***REDACTED***"
        assert d["context"]["username"] == "admin"
        assert d["context"]["host"] == "vc-a"

    def test_thumbprint_and_token_redacted(self):
        err = Vc2VcError(msg="x").with_context(ssl_thumbprint="AA:BB", api_token="t")
        d = err.to_dict()
        assert d["context"]["ssl_thumbprint"] == "***REDACTED***"
        assert d["context"]["api_token"] == "***REDACTED***"

    def test_secret_not_in_cli_context(self):
        err = Vc2VcError(msg="x", context={"vc_password": "hunter2"})
        assert "hunter2" not in format_exception_for_cli(err, verbose=2)
