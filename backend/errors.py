class BackendError(RuntimeError):
    """Base class for failures reported by the session or data store."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class AuthError(BackendError):
    """Raised when the session store rejects a sign up / sign in / sign out."""


class DataStoreError(BackendError):
    """Raised when a table read or write fails."""


class PolicyViolationError(DataStoreError):
    """Raised when a write is rejected by a table's row-level access policy."""
