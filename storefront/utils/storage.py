# storefront/utils/storage.py
from contextlib import contextmanager

from sqlalchemy.exc import SQLAlchemyError

from storefront.domain.errors import StorageError
from storefront.utils.logging import get_logger

logger = get_logger(__name__)


@contextmanager
def storage_errors(action: str):
    """Turn any SQLAlchemy failure that escapes the retries into a StorageError."""
    try:
        yield
    except SQLAlchemyError as e:
        logger.error(f"Storage failure while trying to {action}: {e}")
        raise StorageError(f"Storage failure while trying to {action}") from e
