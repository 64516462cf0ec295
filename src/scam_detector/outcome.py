"""Explicit result type for best-effort computations.

``attempt`` runs a callable and hands back an ``Outcome`` that carries either
the value or the error kind and message, so a failed helper stays visible to
callers and tests instead of turning into ``None``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, Generic, Optional, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class Outcome(Generic[T]):
    value: Optional[T] = None
    error_kind: Optional[str] = None
    error_message: Optional[str] = None

    @classmethod
    def ok(cls, value: T) -> "Outcome[T]":
        return cls(value=value)

    @classmethod
    def failed(cls, kind: str, message: str) -> "Outcome[T]":
        return cls(error_kind=kind, error_message=message)

    @property
    def is_ok(self) -> bool:
        return self.error_kind is None

    def unwrap_or(self, default: T) -> T:
        return self.value if self.is_ok else default  # type: ignore[return-value]

    def to_payload(self) -> Any:
        if self.is_ok:
            return self.value
        payload: Dict[str, Any] = {"error": self.error_kind, "message": self.error_message}
        return payload


def attempt(fn: Callable[..., T], *args: Any, **kwargs: Any) -> Outcome[T]:
    try:
        return Outcome.ok(fn(*args, **kwargs))
    except Exception as exc:
        name = getattr(fn, "__name__", repr(fn))
        logger.warning(
            "%s failed: %s",
            name,
            exc,
            extra={"extra": {"helper": name, "error_kind": type(exc).__name__}},
        )
        return Outcome.failed(type(exc).__name__, str(exc))
