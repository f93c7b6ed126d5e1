"""Order status transitions for admin order management."""

import logging
from typing import Dict, List, Set

from nursery.models.order_models import OrderStatus

logger = logging.getLogger(__name__)


class OrderStateMachine:
    """
    Valid order status transitions:
    - pending -> processing | cancelled
    - Paid -> processing | cancelled
    - processing -> shipped | cancelled
    - shipped -> delivered | cancelled

    delivered and cancelled are final.
    """

    VALID_TRANSITIONS: Dict[str, Set[str]] = {
        OrderStatus.PENDING: {OrderStatus.PROCESSING, OrderStatus.CANCELLED},
        OrderStatus.PAID: {OrderStatus.PROCESSING, OrderStatus.CANCELLED},
        OrderStatus.PROCESSING: {OrderStatus.SHIPPED, OrderStatus.CANCELLED},
        OrderStatus.SHIPPED: {OrderStatus.DELIVERED, OrderStatus.CANCELLED},
        OrderStatus.DELIVERED: set(),
        OrderStatus.CANCELLED: set(),
    }

    @classmethod
    def is_valid_transition(cls, from_status: str, to_status: str) -> bool:
        return to_status in cls.VALID_TRANSITIONS.get(from_status, set())

    @classmethod
    def get_valid_transitions(cls, from_status: str) -> List[str]:
        return sorted(cls.VALID_TRANSITIONS.get(from_status, set()))

    @classmethod
    def is_final_status(cls, status: str) -> bool:
        return not cls.VALID_TRANSITIONS.get(status)
