# storefront/utils/retry.py
from sqlalchemy.exc import IntegrityError, OperationalError
from tenacity import retry, stop_after_attempt, wait_exponential, retry_if_exception_type


def db_retry():
    """
    Retry a whole unit of work when it loses a race:
    - IntegrityError: a concurrent insert won the unique constraint
    - OperationalError: sqlite "database is locked" / postgres serialization failure
    The wrapped call must roll back its session before the error escapes.
    """
    return retry(
        reraise=True,
        stop=stop_after_attempt(5),
        wait=wait_exponential(multiplier=0.05, min=0.05, max=1),
        retry=retry_if_exception_type((IntegrityError, OperationalError)),
    )
