from typing import Optional


class CostsError(Exception):
    """Base class for errors surfaced to API callers.

    ``subject_id`` carries the identifier the failing request was about
    (usually a user id) so it can be echoed back in the error body.
    """

    def __init__(self, message: str, subject_id: Optional[object] = None) -> None:
        super().__init__(message)
        self.subject_id = subject_id


class ValidationError(CostsError, ValueError):
    pass


class NotFoundError(CostsError, LookupError):
    pass


class StorageError(CostsError):
    pass


class CacheWriteConflict(StorageError):
    """A cached report for the same (user, year, month) already exists."""
