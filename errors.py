"""
Error types raised by the catalog and account services.

Each error carries the HTTP status it maps to. Route handlers let them
propagate and the app turns them into `{"success": False, "error": ...}`.
"""

from contextlib import contextmanager

from bson.errors import InvalidId
from pymongo.errors import PyMongoError


class ShopError(Exception):
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotFound(ShopError):
    status_code = 404


class DuplicateUser(ShopError):
    status_code = 400


class ConfigNotFound(ShopError):
    status_code = 404


class PersistenceError(ShopError):
    """Any other failure coming out of the storage layer"""
    status_code = 500


@contextmanager
def storage_errors():
    """Re-raise driver failures (including malformed ObjectIds) as PersistenceError"""
    try:
        yield
    except (PyMongoError, InvalidId) as e:
        raise PersistenceError(str(e)) from e
