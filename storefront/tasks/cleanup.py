# storefront/tasks/cleanup.py
from storefront.celery_worker import celery_app
from storefront.data.database import SessionLocal
from storefront.services.cart_service import CartService
from storefront.utils.logging import get_logger
from storefront.utils.settings import GUEST_CART_TTL_SECONDS

logger = get_logger(__name__)


@celery_app.task(name="storefront.tasks.cleanup.prune_guest_carts_task")
def prune_guest_carts_task(max_age_seconds: int = GUEST_CART_TTL_SECONDS):
    """Anonymous carts outlive their sessions; drop the ones nobody can reach anymore."""
    logger.info("Prune guest carts task started")

    db = SessionLocal()
    try:
        pruned = CartService(db).prune_guest_carts(max_age_seconds)
    finally:
        db.close()

    logger.info(f"Pruned {pruned} guest carts")
    return pruned
