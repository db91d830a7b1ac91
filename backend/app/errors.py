"""Error taxonomy shared by the authorization core and the transport layer.

Every error is terminal for the action that raised it. The transport layer
maps ``status_code`` onto the HTTP response; nothing is retried internally.
"""
from typing import Any


class AppError(Exception):
    """Base class for expected, user-facing failures."""

    status_code = 500
    kind = "error"
    default_message = "Internal error"
    default_subsystem: str | None = None

    def __init__(
        self,
        message: str | None = None,
        subsystem: str | None = None,
        **context: Any,
    ):
        self.message = message or self.default_message
        self.subsystem = subsystem or self.default_subsystem
        self.context = context
        super().__init__(self.message)

    def to_dict(self) -> dict:
        return {
            "detail": self.message,
            "error": self.kind,
            "subsystem": self.subsystem,
        }


class Unauthenticated(AppError):
    """No valid principal established."""
    status_code = 401
    kind = "unauthenticated"
    default_message = "Could not validate credentials"


class Forbidden(AppError):
    """Principal is known but lacks authority for this action."""
    status_code = 403
    kind = "forbidden"
    default_message = "Insufficient permissions"


class ModuleAccessDenied(Forbidden):
    """Denied by the effective permission resolver (who may use a module)."""
    default_subsystem = "module_access"

    def __init__(self, module: str, level: str, **context: Any):
        super().__init__(
            f"Access denied to module {module}: {level} permission required",
            module=module,
            level=level,
            **context,
        )


class UserAdministrationDenied(Forbidden):
    """Denied by the user lifecycle authority (who may administer whom)."""
    default_subsystem = "user_admin"


class NotFound(AppError):
    status_code = 404
    kind = "not_found"
    default_message = "Resource not found"


class BadRequest(AppError):
    status_code = 400
    kind = "bad_request"
    default_message = "Invalid request"


class Conflict(AppError):
    status_code = 409
    kind = "conflict"
    default_message = "Resource already exists"
