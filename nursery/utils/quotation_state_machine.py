"""
Quotation State Machine for validating quotation status transitions.

A quotation_code groups one user request row (merchant_code is NULL) and any
number of merchant response rows. Both kinds share the status column but
follow different paths:

User request row:
- pending -> admin approved       (admin approved one merchant response)
- pending -> closed               (user withdrew the request)
- admin approved -> user order placed   (admin marks the order as placed)
- admin approved -> user_confirmed      (user ordered from the approved response)
- user order placed -> user_confirmed

Merchant response row (created as waiting_for_admin):
- waiting_for_admin -> approved | rejected   (admin decision)
- waiting_for_admin -> closed                (merchant withdrew the response)
- approved -> user_confirmed                 (user ordered from this response)

Staying in the same status is NOT a valid transition: repeating an approval,
rejection or confirmation is reported instead of silently re-applied.
"""

import logging
from typing import Dict, List, Optional, Set, Tuple

from nursery.models.quotation_models import QuotationStatus

logger = logging.getLogger(__name__)


class InvalidQuotationTransition(ValueError):
    def __init__(self, from_status: str, to_status: str, is_user_request: bool):
        self.from_status = from_status
        self.to_status = to_status
        self.is_user_request = is_user_request
        kind = "user request" if is_user_request else "merchant quotation"
        super().__init__(f"Cannot move {kind} from '{from_status}' to '{to_status}'")


class QuotationStatusTransition:
    """A valid status transition and the actor allowed to trigger it"""

    def __init__(self, from_status: QuotationStatus, to_status: QuotationStatus,
                 actor: str, description: str = ""):
        self.from_status = from_status.value
        self.to_status = to_status.value
        self.actor = actor
        self.description = description

    def __repr__(self):
        return f"{self.from_status} -> {self.to_status} ({self.actor})"


class QuotationStateMachine:

    USER_REQUEST_TRANSITIONS: List[QuotationStatusTransition] = [
        QuotationStatusTransition(
            QuotationStatus.PENDING, QuotationStatus.ADMIN_APPROVED, "admin",
            "A merchant response was approved by admin",
        ),
        QuotationStatusTransition(
            QuotationStatus.PENDING, QuotationStatus.CLOSED, "user",
            "User withdrew the quotation request",
        ),
        QuotationStatusTransition(
            QuotationStatus.ADMIN_APPROVED, QuotationStatus.USER_ORDER_PLACED, "admin",
            "Admin marked the order as placed",
        ),
        QuotationStatusTransition(
            QuotationStatus.ADMIN_APPROVED, QuotationStatus.USER_CONFIRMED, "user",
            "User placed an order from the approved quotation",
        ),
        QuotationStatusTransition(
            QuotationStatus.USER_ORDER_PLACED, QuotationStatus.USER_CONFIRMED, "user",
            "User placed an order from the approved quotation",
        ),
    ]

    MERCHANT_TRANSITIONS: List[QuotationStatusTransition] = [
        QuotationStatusTransition(
            QuotationStatus.WAITING_FOR_ADMIN, QuotationStatus.APPROVED, "admin",
            "Admin approved the merchant price",
        ),
        QuotationStatusTransition(
            QuotationStatus.WAITING_FOR_ADMIN, QuotationStatus.REJECTED, "admin",
            "Admin rejected the merchant price",
        ),
        QuotationStatusTransition(
            QuotationStatus.WAITING_FOR_ADMIN, QuotationStatus.CLOSED, "merchant",
            "Merchant withdrew the response",
        ),
        QuotationStatusTransition(
            QuotationStatus.APPROVED, QuotationStatus.USER_CONFIRMED, "user",
            "User placed an order from this merchant price",
        ),
    ]

    _maps: Dict[bool, Dict[str, Set[str]]] = {}
    _descriptions: Dict[Tuple[bool, str, str], QuotationStatusTransition] = {}

    @classmethod
    def _build_transition_maps(cls):
        if cls._maps:
            return
        for is_user_request, transitions in (
            (True, cls.USER_REQUEST_TRANSITIONS),
            (False, cls.MERCHANT_TRANSITIONS),
        ):
            mapping: Dict[str, Set[str]] = {}
            for transition in transitions:
                mapping.setdefault(transition.from_status, set()).add(transition.to_status)
                cls._descriptions[(is_user_request, transition.from_status, transition.to_status)] = transition
            cls._maps[is_user_request] = mapping

    @classmethod
    def initial_status(cls, is_user_request: bool) -> str:
        if is_user_request:
            return QuotationStatus.PENDING.value
        return QuotationStatus.WAITING_FOR_ADMIN.value

    @classmethod
    def can_transition(cls, from_status: str, to_status: str, is_user_request: bool) -> bool:
        cls._build_transition_maps()
        return to_status in cls._maps[is_user_request].get(from_status, set())

    @classmethod
    def get_valid_next_statuses(cls, from_status: str, is_user_request: bool) -> List[str]:
        cls._build_transition_maps()
        return sorted(cls._maps[is_user_request].get(from_status, set()))

    @classmethod
    def is_final(cls, status: str, is_user_request: bool) -> bool:
        return not cls.get_valid_next_statuses(status, is_user_request)

    @classmethod
    def actor_for(cls, from_status: str, to_status: str, is_user_request: bool) -> Optional[str]:
        cls._build_transition_maps()
        transition = cls._descriptions.get((is_user_request, from_status, to_status))
        return transition.actor if transition else None

    @classmethod
    def validate_transition(cls, quotation_id: Optional[int], from_status: str, to_status: str,
                            is_user_request: bool, performed_by: Optional[str] = None) -> str:
        """
        Validate a status transition and log it.

        Returns the new status, raises InvalidQuotationTransition otherwise.
        """
        if not cls.can_transition(from_status, to_status, is_user_request):
            logger.warning(
                "Rejected quotation transition id=%s %s -> %s (user_request=%s)",
                quotation_id, from_status, to_status, is_user_request,
            )
            raise InvalidQuotationTransition(from_status, to_status, is_user_request)

        transition = cls._descriptions[(is_user_request, from_status, to_status)]
        logger.info(
            "QUOTATION_STATUS_TRANSITION: id=%s %s -> %s by %s: %s",
            quotation_id, from_status, to_status, performed_by or transition.actor, transition.description,
        )
        return to_status


def apply_transition(quotation, to_status: QuotationStatus, performed_by: Optional[str] = None) -> None:
    """Validate and set the new status on a Quotation row."""
    quotation.status = QuotationStateMachine.validate_transition(
        quotation.id,
        quotation.status,
        to_status.value,
        quotation.merchant_code is None,
        performed_by,
    )
