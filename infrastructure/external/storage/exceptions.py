"""Storage service exceptions."""


class StorageError(Exception):
    """Base storage exception."""
    pass


class NotFoundError(StorageError):
    """File not found in storage."""
    pass


class ValidationError(StorageError):
    """Storage validation error (unsafe key, foreign URL)."""
    pass
