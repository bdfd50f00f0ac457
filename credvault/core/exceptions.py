"""
Custom application exceptions.

Only failures that abort a whole call are exceptions. Problems with a
single ingested record are reported as RejectionReason values instead.
"""


class CredVaultError(Exception):
    """Base exception for credvault."""

    def __init__(self, message: str = "An unexpected error occurred"):
        self.message = message
        super().__init__(self.message)


class UrlValidationError(CredVaultError):
    """Raised when a URL fails validation."""

    def __init__(self, url: str, reason: str = "Invalid URL"):
        self.url = url
        self.reason = reason
        super().__init__(f"URL validation failed for '{url}': {reason}")


class StoreError(CredVaultError):
    """
    Raised when a store transaction fails.

    The transaction has been rolled back by the time this is raised, so
    the caller must treat the whole operation as not applied.
    """

    def __init__(self, operation: str, reason: str = "Unknown error"):
        self.operation = operation
        self.reason = reason
        super().__init__(f"Store error during '{operation}': {reason}")


class InvalidSearchFieldError(CredVaultError):
    """Raised when a credential search names a column that does not exist."""

    def __init__(self, field: str):
        self.field = field
        super().__init__(f"Unsupported search field: '{field}'")
