# storefront/services/notification_service.py
from typing import Optional

from kombu.exceptions import OperationalError

from storefront.celery_worker import celery_app
from storefront.utils.logging import get_logger

logger = get_logger(__name__)


class NotificationService:
    """
    Order notifications, processed asynchronously by Celery.
    Queued after the order transaction commits; a broker outage is logged
    and never undoes an order.
    """

    @staticmethod
    def send_order_notification(user_id: Optional[int], order_id: int, status: str):
        try:
            send_order_notification_task.delay(user_id, order_id, status)
        except OperationalError as e:
            logger.warning(f"Could not queue notification for order {order_id}: {e}")


@celery_app.task(name="storefront.services.notification_service.send_order_notification_task")
def send_order_notification_task(user_id: Optional[int], order_id: int, status: str):
    """
    A real deployment would send e-mail here; for now it only logs.
    """
    recipient = f"user {user_id}" if user_id is not None else "guest"
    logger.info(f"[NOTIFICATION] {recipient}: order {order_id} is {status}")

    return {"user_id": user_id, "order_id": order_id, "status": status, "sent": True}
