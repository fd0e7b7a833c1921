"""Custom exceptions for deployctl."""

from typing import Optional


class DeployctlError(Exception):
    """Base exception for all CLI errors."""

    exit_code = 1

    def __init__(self, message: str, code: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.code = code


class UsageError(DeployctlError):
    """Missing or malformed command line input."""
    pass


class ConfigurationError(DeployctlError):
    """Configuration error."""
    pass


class AuthenticationError(DeployctlError):
    """No usable API token could be obtained."""
    pass


class APIError(DeployctlError):
    """Deployment API request or stream failed."""

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        status: Optional[int] = None,
        trace_id: Optional[str] = None,
    ):
        super().__init__(message, code)
        self.status = status
        self.trace_id = trace_id

    def __str__(self) -> str:
        text = self.message
        if self.code:
            text = f"{self.code}: {text}"
        if self.trace_id:
            text = f"{text} (x-deno-ray: {self.trace_id})"
        return text


class SourceDownloadError(APIError):
    """Source download aborted by a transport failure."""
    pass


class InvariantViolation(AssertionError):
    """The API sent data that breaks the download protocol."""
    pass
