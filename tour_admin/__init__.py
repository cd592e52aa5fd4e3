from .config import config
from .logging_setup import logger, get_logger
from .exceptions import TourAdminError, DatabaseError, StorageError, ValidationError, NotFoundError, AuthError
from .context import ClientContext, create_context

__all__ = [
    'config',
    'logger',
    'get_logger',
    'TourAdminError',
    'DatabaseError',
    'StorageError',
    'ValidationError',
    'NotFoundError',
    'AuthError',
    'ClientContext',
    'create_context'
]
