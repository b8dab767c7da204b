"""
Registration Errors
===================

Exception taxonomy for the registration flow. Each error carries the HTTP
status it renders as and a message that is safe to show end users.

Version: 0.1.0
"""

from fastapi import status


class RegistrationError(Exception):
    """Base class for all registration flow errors."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message: str = "A system error occurred. Please try again later."

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(RegistrationError):
    """Malformed input, keyed by field name."""

    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Please check your input."

    def __init__(
        self,
        issues: dict[str, list[str]],
        message: str | None = None,
    ) -> None:
        super().__init__(message)
        self.issues = issues


class NotFoundError(RegistrationError):
    """Management id absent from the backing store."""

    status_code = status.HTTP_404_NOT_FOUND
    default_message = "The management ID was not found."


class NeedsRegistrationError(NotFoundError):
    """Status lookup on a record that has not been registered yet."""

    default_message = "This management ID has not been registered yet."


class ConflictError(RegistrationError):
    """Record already registered."""

    status_code = status.HTTP_409_CONFLICT
    default_message = "This management ID has already been registered."


class AuthMismatchError(RegistrationError):
    """Supplied phone number does not match the stored one."""

    status_code = status.HTTP_403_FORBIDDEN
    default_message = "The management ID and phone number combination is incorrect."

    def __init__(self, message: str | None = None, status_code: int | None = None) -> None:
        super().__init__(message)
        if status_code is not None:
            self.status_code = status_code


class UpstreamError(RegistrationError):
    """Backing store unreachable or returned a malformed response."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str | None = None, detail: str | None = None) -> None:
        super().__init__(message)
        # Raw upstream error text; logged, never shown outside development
        self.detail = detail or self.message
