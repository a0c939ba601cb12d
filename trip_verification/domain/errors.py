"""Typed failures raised by the lifecycle engine and the registry."""

from __future__ import annotations

from typing import Optional

from .enums import ErrorCode


class TripVerificationError(Exception):
    """A rejected call.  ``code`` says which precondition failed."""

    def __init__(self, code: ErrorCode, detail: Optional[str] = None):
        self.code = code
        self.detail = detail or code.name.replace("_", " ").capitalize()
        super().__init__(f"[{int(code)}] {self.detail}")


class InvalidStateTransition(TripVerificationError):
    """Raised when a trip status change violates the state machine."""

    def __init__(self, detail: str):
        super().__init__(ErrorCode.INVALID_STATUS, detail)
