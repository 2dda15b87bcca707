# SPDX-License-Identifier: LGPL-3.0-or-later
import ssl
from types import SimpleNamespace
from unittest.mock import MagicMock, patch

import pytest
from pyVmomi import vmodl

from vc2vc.core.exceptions import ProviderTaskError, ProviderUnavailable
from vc2vc.vmware.clients.client import VMwareClient, task_error_message


def _client(logger, **kw):
    kw.setdefault("connect_attempts", 1)
    return VMwareClient(logger, "vc-a", "admin", "secret", **kw)


def _with_view(client, objects):
    view = MagicMock()
    view.view = objects
    content = MagicMock()
    content.viewManager.CreateContainerView.return_value = view
    client.si = MagicMock()
    client.si.RetrieveContent.return_value = content
    return view


class _Gone:
    @property
    def name(self):
        raise vmodl.fault.ManagedObjectNotFound()


def test_missing_credentials_is_unavailable(logger):
    c = VMwareClient(logger, "vc-a", "admin", "")
    assert not c.has_creds()
    with pytest.raises(ProviderUnavailable):
        c.connect()


def test_connect_success(logger):
    si = MagicMock()
    with patch("vc2vc.vmware.clients.client.SmartConnect", return_value=si) as sc:
        c = _client(logger, port=8443)
        c.connect()
        c.connect()
    assert c.si is si
    assert sc.call_count == 1
    assert sc.call_args.kwargs["port"] == 8443


def test_connect_failure_is_unavailable(logger):
    with patch("vc2vc.vmware.clients.client.SmartConnect", side_effect=OSError("connection refused")):
        c = _client(logger)
        with pytest.raises(ProviderUnavailable) as ei:
            c.connect()
    assert c.si is None
    assert "connection refused" in str(ei.value)


def test_insecure_context_skips_verification(logger):
    ctx = _client(logger, insecure=True)._ssl_context()
    assert ctx.verify_mode == ssl.CERT_NONE
    assert ctx.check_hostname is False


def test_disconnect_clears_session(logger):
    c = _client(logger)
    c.si = MagicMock()
    with patch("vc2vc.vmware.clients.client.Disconnect") as d:
        c.disconnect()
    d.assert_called_once()
    assert c.si is None


def test_content_requires_connection(logger):
    with pytest.raises(ProviderUnavailable):
        _client(logger).content()


def test_find_object_by_name_destroys_view(logger):
    c = _client(logger)
    vm1, vm2 = SimpleNamespace(name="vm1"), SimpleNamespace(name="vm2")
    view = _with_view(c, [vm1, vm2])
    assert c.find_object([object], "vm2") is vm2
    assert c.find_object([object], "nope") is None
    assert c.find_object([object], "  ") is None
    assert view.Destroy.call_count == 2


def test_find_object_skips_vanished_objects(logger):
    c = _client(logger)
    target = SimpleNamespace(name="vm1")
    _with_view(c, [_Gone(), target])
    assert c.find_object([object], "vm1") is target


def test_find_object_cache(logger):
    c = _client(logger)
    target = SimpleNamespace(name="vm1")
    _with_view(c, [target])
    assert c.find_object([object], "vm1", cache=True) is target
    c.si.RetrieveContent.side_effect = AssertionError("should hit the cache")
    assert c.find_object([object], "vm1", cache=True) is target


def test_wait_for_task_error(logger):
    task = SimpleNamespace(info=SimpleNamespace(state="error", error=SimpleNamespace(localizedMessage="locked")))
    with pytest.raises(ProviderTaskError) as ei:
        _client(logger).wait_for_task(task)
    assert str(ei.value) == "locked"


def test_task_error_message_fallbacks():
    assert task_error_message(SimpleNamespace(error=None)) == "task failed"
    assert task_error_message(SimpleNamespace(error=SimpleNamespace(localizedMessage=None, msg="m"))) == "m"
