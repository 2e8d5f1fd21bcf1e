"""Order lifecycle: one status enum, one transition table.

Admins move an order forward through fulfilment; customers can cancel
before it ships and close it out once delivered. Closing states are
terminal.
"""

import enum
from typing import Optional

from services.store_service.models.enums import OrderStatus


class OrderEvent(str, enum.Enum):
    ADVANCE = "advance"
    CANCEL = "cancel"
    CONFIRM_RECEIPT = "confirm_receipt"
    REPORT_LOST = "report_lost"
    REQUEST_REFUND = "request_refund"


class Actor(str, enum.Enum):
    ADMIN = "admin"
    CUSTOMER = "customer"


TRANSITIONS: dict[tuple[OrderStatus, OrderEvent], OrderStatus] = {
    (OrderStatus.PENDING, OrderEvent.ADVANCE): OrderStatus.PREPARING,
    (OrderStatus.PREPARING, OrderEvent.ADVANCE): OrderStatus.SHIPPED,
    (OrderStatus.SHIPPED, OrderEvent.ADVANCE): OrderStatus.DELIVERED,
    (OrderStatus.PENDING, OrderEvent.CANCEL): OrderStatus.CANCELLED,
    (OrderStatus.PREPARING, OrderEvent.CANCEL): OrderStatus.CANCELLED,
    (OrderStatus.DELIVERED, OrderEvent.CONFIRM_RECEIPT): OrderStatus.WELL_RECEIVED,
    (OrderStatus.DELIVERED, OrderEvent.REPORT_LOST): OrderStatus.LOST,
    (OrderStatus.DELIVERED, OrderEvent.REQUEST_REFUND): OrderStatus.REFUND_REQUESTED,
}

EVENT_ACTORS: dict[OrderEvent, Actor] = {
    OrderEvent.ADVANCE: Actor.ADMIN,
    OrderEvent.CANCEL: Actor.CUSTOMER,
    OrderEvent.CONFIRM_RECEIPT: Actor.CUSTOMER,
    OrderEvent.REPORT_LOST: Actor.CUSTOMER,
    OrderEvent.REQUEST_REFUND: Actor.CUSTOMER,
}

TERMINAL_STATUSES = frozenset(
    {
        OrderStatus.WELL_RECEIVED,
        OrderStatus.LOST,
        OrderStatus.REFUND_REQUESTED,
        OrderStatus.CANCELLED,
    }
)

ACTIVE_STATUSES = tuple(s for s in OrderStatus if s not in TERMINAL_STATUSES)

CANCELLABLE_STATUSES = frozenset(
    status for (status, event) in TRANSITIONS if event == OrderEvent.CANCEL
)

# Profile edits are blocked while an order is out for delivery.
PROFILE_LOCK_STATUSES = (OrderStatus.SHIPPED,)


class InvalidTransitionError(Exception):
    """Raised when an event does not apply to the order's current status."""

    def __init__(self, current: OrderStatus, event: OrderEvent, actor: Optional[Actor] = None):
        self.current = current
        self.event = event
        self.actor = actor
        if actor is not None and EVENT_ACTORS[event] != actor:
            message = f"{actor.value} cannot {event.value} an order"
        else:
            message = f"Cannot {event.value} an order that is {current.value}"
        super().__init__(message)


def is_terminal(status: OrderStatus) -> bool:
    return status in TERMINAL_STATUSES


def next_status(
    current: OrderStatus, event: OrderEvent, actor: Optional[Actor] = None
) -> OrderStatus:
    """Return the status reached by applying ``event`` to ``current``.

    When ``actor`` is given it must be the actor allowed to raise the event.
    """
    if actor is not None and EVENT_ACTORS[event] != actor:
        raise InvalidTransitionError(current, event, actor)
    try:
        return TRANSITIONS[(current, event)]
    except KeyError:
        raise InvalidTransitionError(current, event) from None


def allowed_events(current: OrderStatus, actor: Optional[Actor] = None) -> list[OrderEvent]:
    """Events that can be applied to an order in ``current`` status."""
    return [
        event
        for (status, event) in TRANSITIONS
        if status == current and (actor is None or EVENT_ACTORS[event] == actor)
    ]
