"""Error taxonomy shared by services and routes.

Services raise these; each auth route catches them at the top of the flow
and renders ``{"message": ...}`` or ``{"error": ...}`` with the carried
status code. Anything else is an unexpected failure (500).
"""


class InkpressError(Exception):
    """Base class. Carries the HTTP status and a client-safe message."""

    status_code = 500
    default_message = "Internal Server Error"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(InkpressError):
    """Missing or malformed input."""

    status_code = 400
    default_message = "Invalid request"


class DuplicateEmailError(ValidationError):
    default_message = "Email already in use"


class NotFoundError(InkpressError):
    """No such user / profile (or a reset token that no longer resolves)."""

    status_code = 404
    default_message = "Not found"


class AuthError(InkpressError):
    """Bad credentials."""

    status_code = 400
    default_message = "Invalid email or password!"


class InvalidCredentialsError(AuthError):
    pass


class DependencyError(InkpressError):
    """A collaborator (store, mail provider) failed."""

    status_code = 500


class PersistenceError(DependencyError):
    default_message = "Server error"


class MailDeliveryError(DependencyError):
    default_message = "Failed to send email"
