"""Error taxonomy shared by clients, services and the API layer.

Every error raised on purpose by this codebase derives from AppError. The
HTTP layer maps ``status_code`` straight onto the response; anything that is
not an AppError is a bug and surfaces as a plain 500.
"""


class AppError(Exception):
    """Base class for all expected application errors."""

    status_code: int = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ValidationError(AppError):
    """A required input is missing or empty. Caller's fault, never retried."""

    status_code = 400


class NotFoundError(AppError):
    """A referenced record does not exist."""

    status_code = 404


class ProviderError(AppError):
    """The remote inference call failed or returned an unusable shape.

    Attributes:
        upstream_status: HTTP status returned by the provider, if any.
        upstream_body:   Raw response body returned by the provider, if any.
    """

    status_code = 502

    def __init__(self, message: str, upstream_status: int | None = None, upstream_body: str | None = None) -> None:
        super().__init__(message)
        self.upstream_status = upstream_status
        self.upstream_body = upstream_body


class StorageError(AppError):
    """A database call failed or timed out."""

    status_code = 500


class ProvisioningError(AppError):
    """The schema could not be brought into a consistent state. Fatal at startup."""

    status_code = 500
