from __future__ import annotations

from typing import Optional


class RppError(Exception):
    """Base class for lesson-plan workflow errors."""


class WorkflowValidationError(RppError):
    """A precondition was not met; nothing was called and no status changed."""

    def __init__(self, message: str, *, code: str = "validation_error") -> None:
        super().__init__(message)
        self.message = message
        self.code = code


class GenerationError(RppError):
    """The generation service failed or returned content that breaks the schema."""

    def __init__(self, message: str, *, operation: Optional[str] = None) -> None:
        super().__init__(message)
        self.message = message
        self.operation = operation


class GenerationConfigError(RppError):
    """The generation client cannot start (no model id / credentials configured)."""


class PersistError(RppError):
    """Writing the lesson draft to its slot failed."""


class EditPreconditionError(RppError, LookupError):
    """An edit path or objective id does not exist in the stored result."""


class StateConflictError(RppError):
    """The persisted workflow state changed since this invocation loaded it."""
