"""Migration error taxonomy."""

from typing import Optional


class MigrationError(Exception):
    """Base exception for workspace migration errors."""

    pass


class APIError(MigrationError):
    """Base exception for remote resource API errors."""

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        response_data: Optional[dict] = None,
    ):
        """Initialize API error.

        Args:
            message: Error message
            status_code: HTTP status code
            response_data: Response data from API
        """
        super().__init__(message)
        self.status_code = status_code
        self.response_data = response_data


class AuthError(APIError):
    """Credential mint or exchange failed for an identity."""

    pass


class TransientAPIError(APIError):
    """Network failure or 5xx response."""

    pass


class RateLimitError(TransientAPIError):
    """Rate limit exceeded error."""

    def __init__(self, message: str, retry_after: int = 60, **kwargs):
        """Initialize rate limit error.

        Args:
            message: Error message
            retry_after: Seconds to wait before retry
            **kwargs: Additional arguments for base class
        """
        super().__init__(message, **kwargs)
        self.retry_after = retry_after


class NotFoundError(APIError):
    """Resource not found error."""

    pass


class MalformedResponse(APIError):
    """Response payload did not have the expected shape."""

    pass


class ResourceUpdateError(APIError):
    """Re-parenting a single project failed."""

    def __init__(self, message: str, resource_id: str, **kwargs):
        super().__init__(message, **kwargs)
        self.resource_id = resource_id


class IdentityEnumerationError(MigrationError):
    """The identity provider could not be paged through. Fatal to the run."""

    pass


class BlobError(MigrationError):
    """Base exception for object storage errors."""

    def __init__(self, message: str, key: Optional[str] = None):
        super().__init__(message)
        self.key = key


class BlobNotFound(BlobError):
    """Object does not exist."""

    pass


class BlobConflict(BlobError):
    """Destination object already exists."""

    pass


class BlobIOError(BlobError):
    """Object could not be read, probed or written."""

    pass
