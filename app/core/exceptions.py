"""
Typed application errors.

Services raise these; the handlers registered in app.main turn them into
JSON responses. Anything that is not an AppError is treated as an
unexpected failure and answered with a generic 500.
"""

from typing import Any, Dict, List, Optional


def validation_details(errors: List[Dict[str, Any]]) -> List[Dict[str, str]]:
    """Flatten pydantic error dicts into {field, message} pairs using wire (alias) field names."""
    details = []
    for err in errors:
        loc = [str(part) for part in err.get("loc", ()) if part not in ("body", "query", "path")]
        message = str(err.get("msg", "Invalid value"))
        if message.startswith("Value error, "):
            message = message[len("Value error, "):]
        details.append({"field": ".".join(loc), "message": message})
    return details


class AppError(Exception):
    status_code: int = 500
    default_message: str = "An unexpected server error occurred."

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        return {"detail": self.message}


class ValidationError(AppError):
    status_code = 400
    default_message = "Invalid request."

    def __init__(self, message: Optional[str] = None, errors: Optional[List[Dict[str, str]]] = None):
        super().__init__(message)
        self.errors = errors or []

    @classmethod
    def for_field(cls, field: str, message: str) -> "ValidationError":
        return cls(message, errors=[{"field": field, "message": message}])

    def to_dict(self) -> Dict[str, Any]:
        body = super().to_dict()
        if self.errors:
            body["errors"] = self.errors
        return body


class AuthError(AppError):
    """Missing, malformed or expired credential. Expiry is only told apart in the message."""
    status_code = 401
    default_message = "Authentication required."


class ForbiddenError(AppError):
    status_code = 403
    default_message = "You do not have access to this resource."


class NotFoundError(AppError):
    status_code = 404
    default_message = "Resource not found."


class ConflictError(AppError):
    status_code = 409
    default_message = "Resource already exists."


class ServerError(AppError):
    status_code = 500


class ServiceUnavailableError(ServerError):
    """Backing store or identity provider did not answer in time. Safe to retry."""
    status_code = 503
    default_message = "Service temporarily unavailable. Please retry."
