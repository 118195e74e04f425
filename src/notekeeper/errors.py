"""Error taxonomy shared by the server, the services and the client."""


class NotekeeperError(Exception):
    """Base class for all Notekeeper errors."""

    status_code = 500

    def __init__(self, message: str = "", details: list[dict] | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or []


class AuthError(NotekeeperError):
    """Missing, invalid or expired bearer token."""

    status_code = 401

    def __init__(self, message: str = "Unauthorized", status_code: int = 401):
        super().__init__(message)
        self.status_code = status_code


class InvalidCredentialsError(NotekeeperError):
    """Login failed. Never says whether the username or the password was wrong."""

    status_code = 400

    def __init__(self, message: str = "Invalid username or password"):
        super().__init__(message)


class ValidationError(NotekeeperError):
    """Malformed input."""

    status_code = 400


class RateLimitError(NotekeeperError):
    """Too many requests from one client in the current window."""

    status_code = 429

    def __init__(self, message: str = "Too many requests, please try again later"):
        super().__init__(message)


class NoteNotFoundError(NotekeeperError):
    status_code = 404


class UserNotFoundError(NotekeeperError):
    status_code = 404


class RemoteStoreError(NotekeeperError):
    """The row store could not be read or written."""

    status_code = 500


class CalendarSyncError(NotekeeperError):
    """A calendar call failed. Callers log it and carry on."""

    status_code = 502


class NetworkError(NotekeeperError):
    """The client could not reach the backend."""

    status_code = 0
