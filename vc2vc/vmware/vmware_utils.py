# SPDX-License-Identifier: LGPL-3.0-or-later
# -*- coding: utf-8 -*-
"""
Shared helpers for the vSphere adapter and console output.
"""
from __future__ import annotations

import hashlib
import ssl
import sys
from typing import Any, Optional

from rich.console import Console


def is_tty(stream=None) -> bool:
    """
    Check if the specified stream (or stdout by default) is a TTY.
    """
    try:
        if stream is None:
            stream = sys.stdout
        return stream.isatty()
    except Exception:
        return False


def create_console(*, stderr: bool = True) -> Optional[Console]:
    """
    Rich Console for summary output, or None when the stream is not a TTY.
    """
    if not is_tty(sys.stderr if stderr else sys.stdout):
        return None
    return Console(stderr=stderr)


def sha1_thumbprint(der_cert: bytes) -> str:
    """
    vCenter style SHA1 thumbprint: upper-case hex pairs joined by ':'.

    >>> sha1_thumbprint(b"abc")[:8]
    'A9:99:3E'
    """
    digest = hashlib.sha1(der_cert).hexdigest().upper()
    return ":".join(digest[i:i + 2] for i in range(0, len(digest), 2))


def server_thumbprint(host: str, port: int = 443) -> str:
    """Fetch the server certificate of `host:port` and return its SHA1 thumbprint."""
    pem = ssl.get_server_certificate((host, int(port)))
    return sha1_thumbprint(ssl.PEM_cert_to_DER_cert(pem))


def obj_name(obj: Any) -> str:
    """Managed object name, or '' when the attribute is missing."""
    name = getattr(obj, "name", None)
    return str(name).strip() if name else ""
