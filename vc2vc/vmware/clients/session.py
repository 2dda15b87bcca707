# SPDX-License-Identifier: LGPL-3.0-or-later
# -*- coding: utf-8 -*-
# vc2vc/vmware/clients/session.py
from __future__ import annotations

"""
One run's set of vCenter connections, keyed by endpoint name.
"""

import logging
import os
from dataclasses import dataclass
from typing import Any, Dict, Iterable, Mapping, Optional

from ...core.exceptions import wrap_unavailable
from ...core.utils import U
from .client import VMwareClient


@dataclass(frozen=True)
class EndpointCredentials:
    user: str
    password: str
    port: int = 443
    insecure: bool = False


def _password(entry: Mapping[str, Any], default: str) -> str:
    if entry.get("password"):
        return str(entry["password"])
    env = entry.get("password_env")
    if env:
        return os.environ.get(str(env), "")
    return default


class ProviderSession:
    """
    Opens a VMwareClient for every endpoint named by the input rows.

    Credentials come from the run defaults, optionally overridden per endpoint:

      vc_credentials:
        vc-b.example.com:
          user: administrator@vsphere.local
          password_env: VC_B_PASSWORD
          port: 443
          insecure: false
    """

    def __init__(
        self,
        logger: logging.Logger,
        *,
        user: str,
        password: str,
        port: int = 443,
        insecure: bool = False,
        timeout: Optional[float] = None,
        connect_attempts: int = 3,
        overrides: Optional[Mapping[str, Mapping[str, Any]]] = None,
        client_factory=VMwareClient,
    ) -> None:
        self.logger = logger
        self.default = EndpointCredentials(user=user or "", password=password or "", port=int(port), insecure=bool(insecure))
        self.timeout = timeout
        self.connect_attempts = connect_attempts
        self.overrides = {str(k).lower(): dict(v or {}) for k, v in (overrides or {}).items()}
        self.client_factory = client_factory
        self._clients: Dict[str, VMwareClient] = {}

    def __enter__(self) -> "ProviderSession":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> bool:
        self.close()
        return False

    def credentials(self, endpoint: str) -> EndpointCredentials:
        o = self.overrides.get(endpoint.lower())
        if not o:
            return self.default
        return EndpointCredentials(
            user=str(o.get("user") or self.default.user),
            password=_password(o, self.default.password),
            port=int(o.get("port") or self.default.port),
            insecure=U.to_bool(o.get("insecure"), self.default.insecure),
        )

    def open(self, endpoints: Iterable[str]) -> None:
        """Connect to every endpoint; the first unreachable one aborts the run."""
        for ep in sorted({e.strip() for e in endpoints if e and e.strip()}, key=str.lower):
            if ep.lower() in self._clients:
                continue
            creds = self.credentials(ep)
            client = self.client_factory(
                self.logger,
                ep,
                creds.user,
                creds.password,
                port=creds.port,
                insecure=creds.insecure,
                timeout=self.timeout,
                connect_attempts=self.connect_attempts,
            )
            client.connect()
            self._clients[ep.lower()] = client

    def client(self, endpoint: str) -> VMwareClient:
        c = self._clients.get((endpoint or "").strip().lower())
        if c is None:
            raise wrap_unavailable(endpoint, RuntimeError("no open session for this endpoint"))
        return c

    @property
    def endpoints(self):
        return [c.host for c in self._clients.values()]

    def close(self) -> None:
        for c in self._clients.values():
            c.disconnect()
        self._clients = {}


__all__ = ["EndpointCredentials", "ProviderSession"]
