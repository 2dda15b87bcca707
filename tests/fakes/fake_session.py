# SPDX-License-Identifier: LGPL-3.0-or-later
from vc2vc.core.exceptions import wrap_unavailable


class FakeClient:
    def __init__(self, logger, host, user, password, **kw):
        self.host = host
        self.user = user
        self.password = password
        self.kw = kw
        self.connected = False
        self.fail = False

    def connect(self):
        if self.fail or self.host.startswith("down"):
            raise wrap_unavailable(self.host, OSError("connection refused"))
        self.connected = True

    def disconnect(self):
        self.connected = False


class FakeSession:
    """Stands in for ProviderSession in orchestrator tests."""

    def __init__(self, unreachable=()):
        self.unreachable = set(unreachable)
        self.opened = []
        self.closed = False

    def open(self, endpoints):
        for ep in sorted(endpoints):
            if ep in self.unreachable:
                raise wrap_unavailable(ep, OSError("connection refused"))
            self.opened.append(ep)

    def close(self):
        self.closed = True
