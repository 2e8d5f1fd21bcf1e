"""Unit tests for the order status machine."""

import pytest
from services.store_service.lifecycle import (
    ACTIVE_STATUSES,
    CANCELLABLE_STATUSES,
    TERMINAL_STATUSES,
    Actor,
    InvalidTransitionError,
    OrderEvent,
    allowed_events,
    is_terminal,
    next_status,
)
from services.store_service.models import OrderStatus, parse_order_status


@pytest.mark.unit
def test_admin_advances_through_fulfilment():
    status = OrderStatus.PENDING
    seen = []
    while not is_terminal(status) and OrderEvent.ADVANCE in allowed_events(status):
        status = next_status(status, OrderEvent.ADVANCE, Actor.ADMIN)
        seen.append(status)

    assert seen == [OrderStatus.PREPARING, OrderStatus.SHIPPED, OrderStatus.DELIVERED]


@pytest.mark.unit
@pytest.mark.parametrize(
    "event, expected",
    [
        (OrderEvent.CONFIRM_RECEIPT, OrderStatus.WELL_RECEIVED),
        (OrderEvent.REPORT_LOST, OrderStatus.LOST),
        (OrderEvent.REQUEST_REFUND, OrderStatus.REFUND_REQUESTED),
    ],
)
def test_customer_closes_delivered_order(event, expected):
    result = next_status(OrderStatus.DELIVERED, event, Actor.CUSTOMER)
    assert result == expected
    assert is_terminal(result)


@pytest.mark.unit
def test_cancel_only_before_shipping():
    assert CANCELLABLE_STATUSES == {OrderStatus.PENDING, OrderStatus.PREPARING}
    assert next_status(OrderStatus.PREPARING, OrderEvent.CANCEL) == OrderStatus.CANCELLED

    with pytest.raises(InvalidTransitionError) as exc:
        next_status(OrderStatus.SHIPPED, OrderEvent.CANCEL, Actor.CUSTOMER)
    assert "shipped" in str(exc.value)


@pytest.mark.unit
@pytest.mark.parametrize("status", sorted(TERMINAL_STATUSES, key=lambda s: s.value))
def test_terminal_statuses_accept_no_events(status):
    assert allowed_events(status) == []
    for event in OrderEvent:
        with pytest.raises(InvalidTransitionError):
            next_status(status, event)


@pytest.mark.unit
def test_wrong_actor_is_rejected():
    with pytest.raises(InvalidTransitionError) as exc:
        next_status(OrderStatus.PENDING, OrderEvent.ADVANCE, Actor.CUSTOMER)
    assert exc.value.actor == Actor.CUSTOMER

    with pytest.raises(InvalidTransitionError):
        next_status(OrderStatus.DELIVERED, OrderEvent.CONFIRM_RECEIPT, Actor.ADMIN)


@pytest.mark.unit
def test_allowed_events_by_actor():
    assert allowed_events(OrderStatus.PENDING, Actor.ADMIN) == [OrderEvent.ADVANCE]
    assert allowed_events(OrderStatus.PENDING, Actor.CUSTOMER) == [OrderEvent.CANCEL]
    assert set(allowed_events(OrderStatus.DELIVERED, Actor.CUSTOMER)) == {
        OrderEvent.CONFIRM_RECEIPT,
        OrderEvent.REPORT_LOST,
        OrderEvent.REQUEST_REFUND,
    }


@pytest.mark.unit
def test_active_statuses_are_the_non_terminal_ones():
    assert set(ACTIVE_STATUSES) == {
        OrderStatus.PENDING,
        OrderStatus.PREPARING,
        OrderStatus.SHIPPED,
        OrderStatus.DELIVERED,
    }


@pytest.mark.unit
@pytest.mark.parametrize(
    "raw, expected",
    [
        ("delivering", OrderStatus.SHIPPED),
        ("completed", OrderStatus.DELIVERED),
        ("paid", OrderStatus.PENDING),
        ("pending_payment", OrderStatus.PENDING),
        ("accepted", OrderStatus.WELL_RECEIVED),
        ("Shipped", OrderStatus.SHIPPED),
        ("cancelled", OrderStatus.CANCELLED),
    ],
)
def test_parse_order_status_maps_legacy_labels(raw, expected):
    assert parse_order_status(raw) == expected


@pytest.mark.unit
def test_parse_order_status_rejects_unknown_label():
    with pytest.raises(ValueError):
        parse_order_status("teleported")
