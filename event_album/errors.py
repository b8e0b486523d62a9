"""
Error types raised by the event album engine.

Every error carries a human-readable ``message`` that can be shown to the
end user as-is. None of them is fatal: the caller may retry the operation.
"""


class AlbumError(Exception):
    """Base class for all event album errors."""

    def __init__(self, message):
        super().__init__(message)
        self.message = message


class AuthenticationRequired(AlbumError):
    """No user identity (email or name) could be resolved."""

    def __init__(self, message="User authentication required. Please log in to continue."):
        super().__init__(message)


class InvalidIdentity(AlbumError):
    """An identity is present but cannot be used to build a storage key."""


class ValidationError(AlbumError):
    """A file was rejected before any network call (type, size, name)."""

    def __init__(self, message, filename=None):
        super().__init__(message)
        self.filename = filename


class TransferError(AlbumError):
    """A put, get or delete against the store (or a photo URL) failed."""

    def __init__(self, message, cause=None, filename=None, key=None, url=None):
        super().__init__(message)
        self.cause = cause
        self.filename = filename
        self.key = key
        self.url = url


class ListingError(AlbumError):
    """Enumerating an event namespace failed."""

    def __init__(self, message, cause=None):
        super().__init__(message)
        self.cause = cause
