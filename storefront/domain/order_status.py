# storefront/domain/order_status.py
from enum import Enum


class OrderStatus(str, Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


ALLOWED_TRANSITIONS = {
    OrderStatus.PENDING: {OrderStatus.PROCESSING, OrderStatus.CANCELLED},
    OrderStatus.PROCESSING: {OrderStatus.COMPLETED, OrderStatus.CANCELLED},
    OrderStatus.COMPLETED: set(),
    OrderStatus.CANCELLED: set(),
}


def parse_status(value) -> OrderStatus | None:
    try:
        return OrderStatus(str(value).strip().lower())
    except ValueError:
        return None


def can_transition(current: OrderStatus, target: OrderStatus) -> bool:
    return current == target or target in ALLOWED_TRANSITIONS[current]
