"""Exception hierarchy for sync runs."""

from typing import List, Optional


class CloudSyncError(Exception):
    """Base class for all cloudsync errors."""


class ConfigurationError(CloudSyncError):
    """Invalid or incomplete configuration."""

    def __init__(self, setting: str, details: Optional[str] = None):
        self.setting = setting
        super().__init__(f"Invalid configuration for {setting}" + (f": {details}" if details else ""))


class AuthenticationError(CloudSyncError):
    """Credentials were rejected or could not be obtained."""

    def __init__(self, provider: str, details: Optional[str] = None):
        self.provider = provider
        super().__init__(f"Authentication failed for {provider}" + (f": {details}" if details else ""))


class ListingError(CloudSyncError):
    """A backend could not enumerate its files."""

    def __init__(self, side: str, details: Optional[str] = None):
        self.side = side
        super().__init__(f"Failed to list files on {side}" + (f": {details}" if details else ""))


class UninitializedContainerError(ListingError):
    """The remote location does not exist yet.

    Callers treat this as an empty listing rather than a failure.
    """


class TransferError(CloudSyncError):
    """A read, write or delete against a backend failed for one action."""

    def __init__(self, kind, identity: str, cause: BaseException):
        self.kind = kind
        self.identity = identity
        self.cause = cause
        super().__init__(f"{getattr(kind, 'value', kind)} failed for {identity}: {cause}")


class MergeError(CloudSyncError):
    """Two diverged versions could not be merged (e.g. undecodable content)."""

    def __init__(self, identity: str, details: Optional[str] = None):
        self.identity = identity
        super().__init__(f"Merge failed for {identity}" + (f": {details}" if details else ""))


class BaselineError(CloudSyncError):
    """A baseline document could not be read or written."""

    def __init__(self, operation: str, path, details: Optional[str] = None):
        self.operation = operation
        self.path = path
        super().__init__(
            f"Baseline {operation} failed for {path}" + (f": {details}" if details else "")
        )


class ActionFailure:
    """One failed action inside an aborted plan."""

    def __init__(self, identity: str, kind, error: BaseException):
        self.identity = identity
        self.kind = kind
        self.error = error

    def __repr__(self) -> str:
        return f"ActionFailure({self.identity!r}, {getattr(self.kind, 'value', self.kind)}, {self.error!r})"

    def __str__(self) -> str:
        return f"{getattr(self.kind, 'value', self.kind)} {self.identity}: {self.error}"


class PlanAbortedError(CloudSyncError):
    """Plan execution stopped (or finished) with failed actions; the baseline was not committed."""

    def __init__(self, endpoint: str, failures: List[ActionFailure], report=None):
        self.endpoint = endpoint
        self.failures = list(failures)
        self.report = report
        first = self.failures[0] if self.failures else None
        message = f"Sync with {endpoint} aborted after {len(self.failures)} failed action(s)"
        if first is not None:
            message += f"; first failure: {first}"
        super().__init__(message)
