"""Domain exceptions for the BeatCrest application.

Defines domain-level exceptions that represent business rule violations.
These exceptions are independent of infrastructure concerns. Presentation
layer maps them to HTTP responses in exception handlers.
"""

from typing import Any


class BeatCrestException(Exception):
    """Base exception for all BeatCrest application errors.

    All custom exceptions should inherit from this class to allow
    consistent error handling. Presentation layer maps these to HTTP
    responses using message, error_code, and details.

    Attributes:
        message: Human-readable error description.
        error_code: Machine-readable error code.
        details: Additional error context (e.g. field, resource_id).
    """

    def __init__(
        self,
        message: str,
        error_code: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize the exception.

        Args:
            message: Human-readable error description.
            error_code: Optional machine-readable code; defaults to class name.
            details: Optional dict of extra context.
        """
        self.message = message
        self.error_code = error_code or self.__class__.__name__
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> dict[str, Any]:
        """Return a JSON-serializable error body."""
        return {
            "error": self.error_code,
            "message": self.message,
            "details": self.details,
        }


class ValidationException(BeatCrestException):
    """Raised when input validation fails (e.g. invalid format or range)."""

    def __init__(self, message: str, field: str | None = None) -> None:
        """Initialize with message and optional field name.

        Args:
            message: Description of the validation failure.
            field: Optional field or attribute that failed validation.
        """
        details = {"field": field} if field else {}
        super().__init__(message, "VALIDATION_ERROR", details)


class ResourceNotFoundException(BeatCrestException):
    """Raised when an entity required by an operation does not exist."""

    def __init__(self, resource_type: str, resource_id: str) -> None:
        """Initialize with resource type and id.

        Args:
            resource_type: Type of resource (e.g. 'user', 'beat').
            resource_id: The ID that was not found.
        """
        super().__init__(
            f"{resource_type} not found: {resource_id}",
            "RESOURCE_NOT_FOUND",
            {"resource_type": resource_type, "resource_id": resource_id},
        )


class UserAlreadyExistsException(BeatCrestException):
    """Raised when creating a user whose username or email is already registered."""

    def __init__(self, field: str, value: str) -> None:
        """Initialize with the conflicting field.

        Args:
            field: 'username' or 'email'.
            value: The duplicate value.
        """
        super().__init__(
            f"A user with this {field} already exists",
            "USER_ALREADY_EXISTS",
            {"field": field, "value": value},
        )


class TenantAlreadyExistsException(BeatCrestException):
    """Raised when creating a tenant whose name is already taken."""

    def __init__(self, name: str) -> None:
        """Initialize with the duplicate tenant name.

        Args:
            name: The tenant name that already exists.
        """
        super().__init__(
            f"Tenant with name '{name}' already exists",
            "TENANT_ALREADY_EXISTS",
            {"name": name},
        )
