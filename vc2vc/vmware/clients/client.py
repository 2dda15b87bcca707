# SPDX-License-Identifier: LGPL-3.0-or-later
# -*- coding: utf-8 -*-
# vc2vc/vmware/clients/client.py
from __future__ import annotations

"""
Connection to one vCenter endpoint (pyVmomi).
"""

import logging
import socket
import ssl
import time
from typing import Any, Dict, List, Optional, Sequence

from pyVim.connect import Disconnect, SmartConnect
from pyVmomi import vim, vmodl

from ...core.exceptions import ProviderTaskError, wrap_unavailable, wrap_vmware
from ...core.retry import retry_operation
from ..vmware_utils import server_thumbprint


class VMwareClient:
    """
    vCenter client: session lifecycle plus the inventory primitives the
    provider adapter builds on.
    """

    def __init__(
        self,
        logger: logging.Logger,
        host: str,
        user: str,
        password: str,
        *,
        port: int = 443,
        insecure: bool = False,
        timeout: Optional[float] = None,
        connect_attempts: int = 3,
    ) -> None:
        self.logger = logger
        self.host = (host or "").strip()
        self.user = (user or "").strip()
        self.password = password or ""
        self.port = int(port)
        self.insecure = bool(insecure)
        self.timeout = timeout
        self.connect_attempts = max(1, int(connect_attempts))

        self.si: Any = None
        self._thumbprint: Optional[str] = None
        self._obj_cache: Dict[str, Any] = {}

    def has_creds(self) -> bool:
        return bool(self.host and self.user and self.password)

    # Context managers

    def __enter__(self) -> "VMwareClient":
        self.connect()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> bool:
        self.disconnect()
        return False

    # Connection

    def _ssl_context(self) -> ssl.SSLContext:
        """
        SSL context for the vSphere connection.

        insecure=True disables certificate verification (self-signed labs only).
        """
        if self.insecure:
            self.logger.warning(
                "TLS certificate verification is DISABLED for %s (insecure=True).",
                self.host,
            )
            ctx = ssl.SSLContext(ssl.PROTOCOL_TLS_CLIENT)
            ctx.check_hostname = False
            ctx.verify_mode = ssl.CERT_NONE
            return ctx
        return ssl.create_default_context()

    def _smart_connect(self) -> Any:
        ctx = self._ssl_context()
        old_timeout = socket.getdefaulttimeout()
        if self.timeout is not None:
            socket.setdefaulttimeout(self.timeout)
        try:
            return SmartConnect(
                host=self.host,
                user=self.user,
                pwd=self.password,
                port=self.port,
                sslContext=ctx,
            )
        finally:
            socket.setdefaulttimeout(old_timeout)

    def connect(self) -> None:
        """Open the session; any failure after the retries is ProviderUnavailable."""
        if self.si is not None:
            return
        if not self.has_creds():
            raise wrap_unavailable(self.host or "<empty host>", ValueError("missing vCenter credentials"))
        try:
            self.si = retry_operation(
                self._smart_connect,
                max_attempts=self.connect_attempts,
                operation_name=f"connect {self.host}",
                logger=self.logger,
                exceptions=(OSError, vim.fault.VimFault, vmodl.MethodFault),
            )
        except vim.fault.InvalidLogin as e:
            self.si = None
            raise wrap_unavailable(self.host, e).with_context(reason="invalid login")
        except Exception as e:
            self.si = None
            raise wrap_unavailable(self.host, e)
        self.logger.info("🔌 Connected to vCenter: %s:%s", self.host, self.port)

    def disconnect(self) -> None:
        try:
            if self.si is not None:
                Disconnect(self.si)
        except Exception as e:
            self.logger.error("Error during disconnect from %s: %s", self.host, e)
        finally:
            self.si = None
            self._obj_cache = {}

    def content(self) -> Any:
        if not self.si:
            raise wrap_unavailable(self.host, RuntimeError("not connected"))
        try:
            return self.si.RetrieveContent()
        except Exception as e:
            raise wrap_vmware(f"Failed to retrieve content from {self.host}: {e}", e)

    @property
    def instance_uuid(self) -> str:
        return str(self.content().about.instanceUuid)

    @property
    def thumbprint(self) -> str:
        if self._thumbprint is None:
            self._thumbprint = server_thumbprint(self.host, self.port)
        return self._thumbprint

    # Inventory

    def list_objects(self, vimtypes: Sequence[Any]) -> List[Any]:
        content = self.content()
        view = content.viewManager.CreateContainerView(content.rootFolder, list(vimtypes), True)
        try:
            return list(view.view)
        finally:
            try:
                view.Destroy()
            except Exception:
                pass

    def find_object(self, vimtypes: Sequence[Any], name: str, *, cache: bool = False) -> Any:
        """First managed object of `vimtypes` whose name equals `name`, or None."""
        n = (name or "").strip()
        if not n:
            return None
        key = f"{','.join(getattr(t, '__name__', str(t)) for t in vimtypes)}:{n}"
        if cache and key in self._obj_cache:
            return self._obj_cache[key]

        for obj in self.list_objects(vimtypes):
            try:
                if obj.name == n:
                    if cache:
                        self._obj_cache[key] = obj
                    return obj
            except vmodl.fault.ManagedObjectNotFound:
                # deleted after the container view was created
                continue
        return None

    def wait_for_task(self, task: Any, *, poll_s: float = 1.0) -> None:
        while str(task.info.state) not in ("success", "error"):
            time.sleep(poll_s)
        if str(task.info.state) == "error":
            raise ProviderTaskError(code=30, msg=task_error_message(task.info))


def task_error_message(info: Any) -> str:
    err = getattr(info, "error", None)
    if err is None:
        return "task failed"
    msg = getattr(err, "localizedMessage", None) or getattr(err, "msg", None)
    if msg:
        return str(msg)
    return str(err)
