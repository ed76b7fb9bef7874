"""
Picture API — Custom Exception Hierarchy
==========================================

What:  Application-specific exceptions for the picture resource.
Why:   Services raise domain errors; global handlers registered in main.py
       turn them into HTTP responses with the right status code.
How:   Each exception class carries a message and optional context dict.
       The message is safe to return to clients; the context is only logged.

Exception Hierarchy:
    PictureAPIError (base)
    ├── ValidationError   → 400 Bad Request, {"error": message}
    ├── NotFoundError     → 404 Not Found, empty body
    └── FileStorageError  → 500 Internal Server Error

Database faults are not wrapped: they propagate to the catch-all handler.
"""

from typing import Any, Dict, Iterable, Optional


class PictureAPIError(Exception):
    """
    Base exception for all Picture API errors.

    Attributes:
        message:  User-facing error description (safe to return in API response)
        context:  Additional debug info (logged but NOT returned to client)
    """

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)


class ValidationError(PictureAPIError):
    """
    Raised when client input fails validation.

    When:    Missing form fields, unknown restaurant, malformed JSON body,
             empty or oversized upload.
    HTTP:    400 Bad Request

    Example response:
        {"error": "Restaurant introuvable"}
    """

    def __init__(
        self,
        message: str = "Requête invalide",
        field: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if field:
            ctx["field"] = field
        super().__init__(message=message, context=ctx)
        self.field = field

    @classmethod
    def missing_fields(cls, fields: Iterable[str]) -> "ValidationError":
        """Builds the error listing every required field the request lacks."""
        names = list(fields)
        return cls(
            message=f"Champs requis manquants : {', '.join(names)}",
            context={"missing": names},
        )


class NotFoundError(PictureAPIError):
    """
    Raised when a requested resource does not exist.

    When:    GET/PUT/DELETE /api/picture/{id} with an unknown id.
    HTTP:    404 Not Found (empty body)

    SQLAlchemy returns None for missing records; the repository callers
    convert None into this exception so routes stay free of status logic.
    """

    def __init__(
        self,
        resource: str = "resource",
        resource_id: Optional[Any] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        message = f"The requested {resource} was not found"
        if resource_id is not None:
            message = f"{resource} with ID '{resource_id}' was not found"
        ctx = context or {}
        ctx["resource"] = resource
        if resource_id is not None:
            ctx["resource_id"] = resource_id
        super().__init__(message=message, context=ctx)


class FileStorageError(PictureAPIError):
    """
    Raised when writing an uploaded file to disk fails.

    When:    Disk full, permission denied, directory not writable.
    HTTP:    500 Internal Server Error

    The OS error and path go into the context for the server log; the client
    only sees the generic message.
    """

    def __init__(
        self,
        message: str = "Impossible d'enregistrer le fichier",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)
