# SPDX-License-Identifier: LGPL-3.0-or-later
# vc2vc/core/exceptions.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional


def _safe_int(x: Any, default: int = 1) -> int:
    try:
        return int(x)
    except Exception:
        return default


def _clamp_exit_code(code: int) -> int:
    # Exit codes are 0..255.
    if code < 0:
        return 1
    if code > 255:
        return 255
    return code


def _one_line(s: str, limit: int = 600) -> str:
    s = (s or "").strip().replace("\r", " ").replace("\n", " ")
    s = " ".join(s.split())
    return s if len(s) <= limit else (s[: limit - 3] + "...")


_SECRET_KEY_PARTS = (
    "pass",
    "password",
    "passwd",
    "secret",
    "token",
    "apikey",
    "api_key",
    "auth",
    "cookie",
    "session",
    "bearer",
    "private",
    "thumbprint",
)

REDACTED = "***REDACTED***"


def _is_secret_key(k: str) -> bool:
    ks = (k or "").lower()
    return any(p in ks for p in _SECRET_KEY_PARTS)


def _redacted(ctx: Dict[str, Any]) -> Dict[str, Any]:
    return {k: (REDACTED if _is_secret_key(str(k)) else v) for k, v in ctx.items()}


def _format_context_compact(ctx: Dict[str, Any]) -> str:
    # Stable order, redaction, single-line.
    parts = []
    for k in sorted(ctx.keys()):
        v = ctx.get(k)
        if _is_secret_key(str(k)):
            parts.append(f"{k}=<redacted>")
        else:
            parts.append(f"{k}={v!r}")
    return ", ".join(parts)


@dataclass(eq=False)
class Vc2VcError(Exception):
    """
    Base project error with:
      - stable fields for reporting/JSON
      - readable __str__ (what users see)
      - safe code handling (never crashes on int())
    """
    code: int = 1
    msg: str = "error"
    cause: Optional[BaseException] = None
    context: Optional[Dict[str, Any]] = None

    def __post_init__(self) -> None:
        self.code = _clamp_exit_code(_safe_int(self.code, default=1))
        self.msg = _one_line(self.msg) or self.__class__.__name__
        if self.context is None:
            self.context = {}
        super().__init__(self.msg)
        self.args = (self.msg,)

    def with_context(self, **ctx: Any) -> "Vc2VcError":
        if self.context is None:
            self.context = {}
        self.context.update(ctx)
        return self

    def user_message(self, *, include_context: bool = False, include_cause: bool = False) -> str:
        """
        Human-friendly message for CLI output/logs.
        """
        base = self.msg or self.__class__.__name__
        parts = [base]

        if include_context and self.context:
            parts.append(f"[{_one_line(_format_context_compact(self.context), limit=600)}]")

        if include_cause and self.cause is not None:
            parts.append(f"(cause: {type(self.cause).__name__}: {_one_line(str(self.cause))})")

        return " ".join(parts)

    def __str__(self) -> str:
        return self.user_message(include_context=False, include_cause=False)

    def to_dict(self, *, include_cause: bool = False) -> Dict[str, Any]:
        d: Dict[str, Any] = {
            "type": self.__class__.__name__,
            "code": self.code,
            "message": self.msg,
            "context": _redacted(self.context or {}),
        }
        if include_cause and self.cause is not None:
            d["cause"] = {"type": type(self.cause).__name__, "message": _one_line(str(self.cause))}
        return d


class Fatal(Vc2VcError):
    """
    User-facing fatal error (exit code should be honored by top-level main()).
    """
    pass


class VMwareError(Vc2VcError):
    """
    vSphere/vCenter operation failed.
    Use for pyvmomi / SDK errors that are not more specific below.
    """
    pass


class NotFoundError(VMwareError):
    """
    An inventory object (vm, datastore, cluster, host, network) does not exist.
    The kind is kept in context["entity"].
    """

    @property
    def entity(self) -> str:
        return str((self.context or {}).get("entity", "object"))


class InsufficientCapacity(VMwareError):
    """Target datastore cannot hold the VM once the free-space buffer is kept."""
    pass


class ProviderTaskError(VMwareError):
    """A submitted migration task finished in the error state."""
    pass


class ProviderUnavailable(VMwareError):
    """Connection-level failure talking to a vCenter endpoint."""
    pass


class InvalidTransition(Vc2VcError):
    """WorkItem lifecycle move that the state machine does not allow."""
    pass


def wrap_fatal(msg: str, exc: Optional[BaseException] = None, code: int = 1, **context: Any) -> Fatal:
    return Fatal(code=code, msg=msg, cause=exc, context=context or None)


def wrap_vmware(msg: str, exc: Optional[BaseException] = None, code: int = 30, **context: Any) -> VMwareError:
    return VMwareError(code=code, msg=msg, cause=exc, context=context or None)


def not_found(entity: str, name: str, endpoint: Optional[str] = None) -> NotFoundError:
    where = f" on {endpoint}" if endpoint else ""
    return NotFoundError(
        code=11,
        msg=f"{entity} not found: {name!r}{where}",
        context={"entity": entity, "name": name, "endpoint": endpoint},
    )


def insufficient_capacity(datastore: str, buffered_free_gb: float, required_gb: float) -> InsufficientCapacity:
    return InsufficientCapacity(
        code=11,
        msg=(
            f"insufficient capacity on datastore {datastore!r}: "
            f"buffered free {buffered_free_gb:.2f} GB < required {required_gb:.2f} GB"
        ),
        context={"datastore": datastore, "buffered_free_gb": buffered_free_gb, "required_gb": required_gb},
    )


def wrap_unavailable(endpoint: str, exc: Optional[BaseException] = None) -> ProviderUnavailable:
    return ProviderUnavailable(
        code=12,
        msg=f"vCenter endpoint unavailable: {endpoint}" + (f": {exc}" if exc is not None else ""),
        cause=exc,
        context={"endpoint": endpoint},
    )


def format_exception_for_cli(e: BaseException, *, verbose: int = 0) -> str:
    """
    One-liner output for CLI.

    verbose=0: just message
    verbose=1: message + compact context (if any)
    verbose>=2: message + context + cause
    """
    if isinstance(e, Vc2VcError):
        return e.user_message(
            include_context=(verbose >= 1),
            include_cause=(verbose >= 2),
        )

    if verbose >= 2:
        return f"{type(e).__name__}: {_one_line(str(e))}"
    return _one_line(str(e)) or type(e).__name__
