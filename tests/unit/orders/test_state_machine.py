from __future__ import annotations

from decimal import Decimal

import pytest

from modules.orders.constants import (
    PAYMENT_TO_ORDER_STATUS,
    VALID_TRANSITIONS,
    OrderStatus,
    PaymentStatus,
)
from modules.orders.models import Order

pytestmark = pytest.mark.unit

ALLOWED = [
    (OrderStatus.PENDING, OrderStatus.PAID),
    (OrderStatus.PENDING, OrderStatus.CANCELLED),
    (OrderStatus.PAID, OrderStatus.SHIPPED),
    (OrderStatus.PAID, OrderStatus.CANCELLED),
    (OrderStatus.PAID, OrderStatus.REFUNDED),
    (OrderStatus.SHIPPED, OrderStatus.DELIVERED),
    (OrderStatus.DELIVERED, OrderStatus.REFUNDED),
]


class TestTransitionTable:
    def test_every_status_has_an_entry(self):
        assert set(VALID_TRANSITIONS) == set(OrderStatus.values)

    def test_table_matches_the_lifecycle(self):
        pairs = {(src, dst) for src, targets in VALID_TRANSITIONS.items() for dst in targets}
        assert pairs == set(ALLOWED)

    @pytest.mark.parametrize("status", [OrderStatus.CANCELLED, OrderStatus.REFUNDED])
    def test_terminal_states_have_no_way_out(self, status):
        order = Order(status=status)
        assert order.is_terminal
        assert not any(order.can_transition_to(target) for target in OrderStatus.values)

    @pytest.mark.parametrize(
        "status,expected",
        [
            (OrderStatus.PENDING, True),
            (OrderStatus.PAID, True),
            (OrderStatus.SHIPPED, False),
            (OrderStatus.DELIVERED, False),
            (OrderStatus.CANCELLED, False),
        ],
    )
    def test_is_cancellable(self, status, expected):
        assert Order(status=status).is_cancellable is expected

    def test_pending_cannot_jump_to_shipped(self):
        assert not Order(status=OrderStatus.PENDING).can_transition_to(OrderStatus.SHIPPED)


class TestPaymentMapping:
    @pytest.mark.parametrize(
        "payment_status,order_status",
        [
            (PaymentStatus.CONFIRMED, OrderStatus.PAID),
            (PaymentStatus.RECEIVED, OrderStatus.PAID),
            (PaymentStatus.CANCELLED, OrderStatus.CANCELLED),
            (PaymentStatus.REFUNDED, OrderStatus.REFUNDED),
        ],
    )
    def test_settling_statuses(self, payment_status, order_status):
        assert PAYMENT_TO_ORDER_STATUS[payment_status] == order_status

    @pytest.mark.parametrize("payment_status", [PaymentStatus.PENDING, PaymentStatus.OVERDUE])
    def test_non_settling_statuses_are_unmapped(self, payment_status):
        assert payment_status not in PAYMENT_TO_ORDER_STATUS


class TestOrderHelpers:
    @pytest.mark.parametrize(
        "subtotal,shipping,discount,expected",
        [
            ("200.00", "10.00", "0.00", "210.00"),
            ("200.00", "0.00", "50.00", "150.00"),
            ("20.00", "5.00", "100.00", "0.00"),
        ],
    )
    def test_compute_total(self, subtotal, shipping, discount, expected):
        total = Order.compute_total(Decimal(subtotal), Decimal(shipping), Decimal(discount))
        assert total == Decimal(expected)

    def test_append_note(self):
        order = Order(notes="")
        order.append_note("Presente")
        order.append_note("Cancelled: desistência")
        assert order.notes == "Presente\nCancelled: desistência"

    def test_str_uses_order_number(self):
        assert str(Order(order_number="42", status=OrderStatus.PAID)) == "#42 (PAID)"
