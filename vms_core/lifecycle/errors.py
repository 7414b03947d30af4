# vms_core/lifecycle/errors.py
from __future__ import annotations


class LifecycleError(Exception):
    """
    Base error raised by the lifecycle engine.
    Raised before any write, so the record is never partially changed.
    """

    default_code = "lifecycle_error"

    def __init__(self, message: str, *, code: str | None = None):
        super().__init__(message)
        self.message = message
        self.code = code or self.default_code


class InvalidCommand(LifecycleError):
    """Command payload is malformed (blank names, unsupported durations...)."""

    default_code = "invalid_command"


class TransitionRejected(LifecycleError):
    """Command is well formed but not allowed from the record's current state."""

    default_code = "transition_rejected"
