"""Workflow error taxonomy.

Each error carries a stable machine ``code``, a caller-facing ``message`` and
optional structured ``details``; the API layer turns them into error envelopes.
"""

from __future__ import annotations

from typing import Any


class WorkflowError(Exception):
    status_code = 400
    default_code = "workflow_error"

    def __init__(self, message: str, *, code: str | None = None, details: Any = None) -> None:
        super().__init__(message)
        self.message = message
        self.code = code or self.default_code
        self.details = details

    def to_dict(self) -> dict[str, Any]:
        return {"code": self.code, "message": self.message, "details": self.details}


class AuthenticationError(WorkflowError):
    status_code = 401
    default_code = "authentication_required"

    def __init__(self, message: str = "Authentication required", **kwargs: Any) -> None:
        super().__init__(message, **kwargs)


class AuthorizationError(WorkflowError):
    status_code = 403
    default_code = "permission_denied"


class ValidationError(WorkflowError):
    status_code = 422
    default_code = "validation_error"


class NotFoundError(WorkflowError):
    status_code = 404
    default_code = "not_found"


class InvalidTransitionError(WorkflowError):
    status_code = 409
    default_code = "invalid_state_transition"


class ConflictError(WorkflowError):
    status_code = 409
    default_code = "conflict"


class PersistenceError(WorkflowError):
    """Storage failure. The message never includes driver detail."""

    status_code = 500
    default_code = "persistence_failure"

    def __init__(self, message: str = "The operation could not be completed", **kwargs: Any) -> None:
        super().__init__(message, **kwargs)
