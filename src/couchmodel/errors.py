"""Exception taxonomy for view queries and the store client."""

from typing import Any, Optional


class CouchModelError(Exception):
    """Base class for every error raised by couchmodel."""


class ConfigurationError(CouchModelError):
    """No database could be resolved for a request."""


class UsageError(CouchModelError, ValueError):
    """A view filter or accessor was combined in a way the query rules forbid."""


class StoreError(CouchModelError):
    """The store rejected a request or could not be reached."""

    def __init__(self, message: str, status_code: Optional[int] = None, body: Any = None):
        super().__init__(message)
        self.status_code = status_code
        self.body = body


class RecoverableNotFound(StoreError):
    """The design document or named view is absent on the target database."""


class DocumentNotFound(StoreError):
    """A single document lookup returned 404."""


class UnimplementedError(CouchModelError, NotImplementedError):
    """Operation is reserved but not available yet."""
