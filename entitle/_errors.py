"""
Every pipeline failure is a value.

Handlers return ``Result[T, PipelineError]``; the HTTP layer maps the kind
to a status code and renders ``{"error": message}``.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, auto


class ErrorKind(Enum):
    """Kinds of pipeline errors."""

    UNAUTHENTICATED = auto()  # Missing/invalid bearer credential
    INVALID_INPUT = auto()  # Rejected before any external call
    UPSTREAM_REJECTED = auto()  # Gateway, directory or authority said no
    INVALID_SIGNATURE = auto()  # Payment callback failed HMAC check
    ALREADY_CONSUMED = auto()  # Replayed payment under REJECT_CONSUMED
    UPDATE_FAILED = auto()  # Payment verified, entitlement not committed


_STATUS: dict[ErrorKind, int] = {
    ErrorKind.UNAUTHENTICATED: 401,
    ErrorKind.INVALID_INPUT: 400,
    ErrorKind.UPSTREAM_REJECTED: 500,
    ErrorKind.INVALID_SIGNATURE: 400,
    ErrorKind.ALREADY_CONSUMED: 409,
    ErrorKind.UPDATE_FAILED: 500,
}


@dataclass(frozen=True, slots=True)
class PipelineError:
    kind: ErrorKind
    message: str

    @property
    def status(self) -> int:
        return _STATUS[self.kind]

    def to_json(self) -> dict[str, str]:
        return {"error": self.message}


class Errors:
    @staticmethod
    def unauthenticated(msg: str = "Unauthorized") -> PipelineError:
        return PipelineError(ErrorKind.UNAUTHENTICATED, msg)

    @staticmethod
    def invalid_input(msg: str) -> PipelineError:
        return PipelineError(ErrorKind.INVALID_INPUT, msg)

    @staticmethod
    def upstream_rejected(msg: str) -> PipelineError:
        return PipelineError(ErrorKind.UPSTREAM_REJECTED, msg)

    @staticmethod
    def invalid_signature(msg: str = "Invalid payment signature") -> PipelineError:
        return PipelineError(ErrorKind.INVALID_SIGNATURE, msg)

    @staticmethod
    def already_consumed(msg: str = "Payment already consumed") -> PipelineError:
        return PipelineError(ErrorKind.ALREADY_CONSUMED, msg)

    @staticmethod
    def update_failed(msg: str) -> PipelineError:
        return PipelineError(ErrorKind.UPDATE_FAILED, msg)


__all__ = (
    "ErrorKind",
    "PipelineError",
    "Errors",
)
