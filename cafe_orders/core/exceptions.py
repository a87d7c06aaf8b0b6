"""
Error Taxonomy

Every failure a store or service can report is one of these classes.
The API layer maps each one to a JSON ``{"error": ...}`` body using
``status_code``; nothing here knows about HTTP beyond that number.
"""

from typing import Any, Optional, Sequence


class CafeOrdersError(Exception):
    """Base class for all application errors."""

    status_code: int = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict:
        """Convert to the JSON error body."""
        return {"error": self.message}


class ValidationError(CafeOrdersError):
    """Input failed a shape check (phone, name, tableNo, price...)."""

    status_code = 400

    def __init__(self, field: str, message: str):
        super().__init__(message)
        self.field = field

    def to_dict(self) -> dict:
        return {"error": self.message, "field": self.field}

    @classmethod
    def from_errors(cls, errors: Sequence[dict[str, Any]]) -> "ValidationError":
        """
        Build from pydantic's ``errors()`` list, reporting the first one.

        ``loc`` entries such as ``("body", "items", 0, "quantity")`` become
        the dotted field name ``items.0.quantity``.
        """
        if not errors:
            return cls("body", "Invalid request body")
        error = errors[0]
        parts = [str(p) for p in error.get("loc", ()) if p not in ("body", "query", "path")]
        field = ".".join(parts) or "body"
        kind = error.get("type", "")
        msg = str(error.get("msg", "is invalid"))
        if kind == "value_error":
            msg = msg.removeprefix("Value error, ")
            return cls(field, f"{field} {msg}")
        if kind == "missing":
            return cls(field, f"{field} is required")
        return cls(field, f"{field}: {msg}")


class NotFoundError(CafeOrdersError):
    """Unknown id on update/complete/lookup."""

    status_code = 404

    def __init__(self, resource: str, identifier: str):
        super().__init__(f"{resource} {identifier} not found")
        self.resource = resource
        self.identifier = identifier


class StorageError(CafeOrdersError):
    """I/O or persistence failure in a storage backend."""

    status_code = 500

    def __init__(self, message: str, cause: Optional[BaseException] = None):
        super().__init__(message)
        self.cause = cause
