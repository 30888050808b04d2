"""Custom exception hierarchy for the share persistence layer."""


class SecretShareError(Exception):
    """Base exception for all secretshare errors."""

    retryable: bool = False
    """True when repeating the same call may succeed."""


class NotFoundError(SecretShareError):
    """Raised when a user, secret or share does not exist.

    Also raised when a delete batch matches zero rows for one of its targets.
    """


class ConstraintViolationError(SecretShareError):
    """Raised when a write breaks a uniqueness or foreign key constraint."""


class InvalidInputError(SecretShareError, ValueError):
    """Raised when a share is malformed (e.g. an empty target list)."""


class StorageError(SecretShareError):
    """Raised on storage backend failures (DB connection, transaction, etc.)."""

    retryable = True
