"""Exception taxonomy for the tracker API.

Each error carries the HTTP status it renders as; the app-level error
handler turns any TrackerError into `{"success": false, "error": ...}`.
"""


class TrackerError(Exception):
    """Base exception for the tracker."""

    status_code = 500

    def __init__(self, message="An error occurred"):
        self.message = message
        super().__init__(self.message)


class ValidationError(TrackerError):
    """Raised when a request body is missing fields or carries bad values."""

    status_code = 400


class AuthenticationError(TrackerError):
    """Raised when credentials don't match."""

    status_code = 401


class PermissionDenied(TrackerError):
    """Raised when the caller is known but not allowed."""

    status_code = 403


class NotFoundError(TrackerError):
    """Raised when a referenced entity id does not exist."""

    status_code = 404


class ConflictError(TrackerError):
    """Raised when a unique field (username, email, project code) is taken."""

    status_code = 409


class CodeConflictError(ConflictError):
    """Raised when a sequential entity code could not be assigned.

    The caller may retry the request.
    """


class UpstreamStoreError(TrackerError):
    """Raised when the backing store can't be reached or rejects a query."""

    status_code = 500
