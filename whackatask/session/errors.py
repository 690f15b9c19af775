"""Error kinds surfaced by the session layer.

A missing profile is not an error: every lookup returns None instead.
"""

from typing import Optional

GENERIC_ERROR_MESSAGE = "Something went wrong. Please try again."

_AUTH_MESSAGES = {
    "auth/email-already-in-use": "This email is already registered. Try signing in!",
    "auth/invalid-email": "Please enter a valid email address.",
    "auth/weak-password": "Password should be at least 6 characters.",
    "auth/user-not-found": "No account found with this email or username.",
    "auth/wrong-password": "Incorrect password. Try again!",
    "auth/invalid-credential": "Invalid email/username or password. Please try again!",
    "auth/too-many-requests": "Too many attempts. Please wait a moment.",
}

UNKNOWN_USERNAME_MESSAGE = "No account found with this username."


def friendly_auth_message(code: Optional[str]) -> str:
    """Convert an identity error code to a user-facing message."""
    return _AUTH_MESSAGES.get(code or "", GENERIC_ERROR_MESSAGE)


class AuthRejected(Exception):
    """Sign-up, sign-in or sign-out was refused by the identity service."""

    def __init__(self, code: Optional[str], message: Optional[str] = None):
        self.code = code
        self.message = message or friendly_auth_message(code)
        super().__init__(self.message)


class ValidationFailed(ValueError):
    """Input rejected locally, before any store call."""

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class PersistenceFailure(Exception):
    """Writing a mutation to the document store failed.

    The cached profile is left at its last known good value.
    """

    def __init__(self, operation: str, cause: Exception):
        self.operation = operation
        self.cause = cause
        super().__init__(f"{operation} failed: {type(cause).__name__}: {cause}")
