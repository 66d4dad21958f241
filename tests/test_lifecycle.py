"""Tests for the order status state machine and aggregates."""

import itertools
import json
from decimal import Decimal

import pytest

from velvet_vogue.common.errors import InvalidTransition, ValidationError
from velvet_vogue.common.lifecycle import (
    INITIAL_STATUS,
    STATUS_CYCLE,
    Order,
    OrderStatus,
    advance,
    aggregate,
    allowed_transitions,
    create_order,
    is_terminal,
    set_status,
)
from velvet_vogue.common.pricing import ShippingMethod, compute_summary

from conftest import make_item


@pytest.fixture
def order(customer):
    items = [make_item("VV004", "25.00", 2)]
    return create_order(
        "VV-00000001",
        items,
        compute_summary(items, ShippingMethod.STANDARD),
        customer,
        ShippingMethod.STANDARD,
        "card",
    )


class TestCreateOrder:
    def test_starts_processing(self, order):
        assert order.status is INITIAL_STATUS is OrderStatus.PROCESSING

    def test_total_comes_from_pricing(self, order):
        assert order.total == Decimal("60.00")

    def test_dict_round_trip(self, order):
        assert Order.from_dict(order.to_dict()) == order


class TestAdvance:
    def test_processing_to_shipped(self, order):
        assert advance(order).status is OrderStatus.SHIPPED

    def test_full_cycle_is_identity(self, order):
        current = order
        for _ in range(len(STATUS_CYCLE)):
            current = advance(current)

        assert current.status is order.status
        assert current == order

    def test_cancelled_wraps_to_pending(self, order):
        cancelled = set_status(order, "cancelled")

        assert advance(cancelled).status is OrderStatus.PENDING

    def test_only_status_changes(self, order):
        advanced = advance(order)

        assert advanced.items == order.items
        assert advanced.pricing == order.pricing
        assert advanced.created_at == order.created_at


class TestSetStatus:
    @pytest.mark.parametrize(
        "start, target",
        [
            ("pending", "processing"),
            ("pending", "cancelled"),
            ("processing", "shipped"),
            ("shipped", "delivered"),
            ("shipped", "cancelled"),
        ],
    )
    def test_allowed(self, order, start, target):
        start_order = Order.from_dict({**order.to_dict(), "status": start})

        assert set_status(start_order, target).status.value == target

    @pytest.mark.parametrize(
        "start, target",
        [
            ("processing", "pending"),
            ("processing", "processing"),
            ("shipped", "processing"),
            ("delivered", "cancelled"),
            ("cancelled", "pending"),
        ],
    )
    def test_rejected(self, order, start, target):
        start_order = Order.from_dict({**order.to_dict(), "status": start})

        with pytest.raises(InvalidTransition):
            set_status(start_order, target)

    def test_unknown_status(self, order):
        with pytest.raises(ValidationError):
            set_status(order, "lost")

    def test_terminal_states(self):
        assert is_terminal("delivered")
        assert is_terminal(OrderStatus.CANCELLED)
        assert not is_terminal("pending")
        assert allowed_transitions("processing") == {OrderStatus.SHIPPED, OrderStatus.CANCELLED}


class TestAggregate:
    def test_empty(self):
        result = aggregate([])

        assert result.total_orders == 0
        assert result.total_revenue == Decimal("0")
        assert all(count == 0 for count in result.count_by_status.values())
        assert set(result.count_by_status) == set(STATUS_CYCLE)

    def test_counts_and_revenue(self, order):
        shipped = advance(order)
        other = Order.from_dict({**order.to_dict(), "id": "VV-00000002"})

        result = aggregate([order, shipped, other])

        assert result.total_orders == 3
        assert result.total_revenue == Decimal("180.00")
        assert result.count_by_status[OrderStatus.PROCESSING] == 2
        assert result.count_by_status[OrderStatus.SHIPPED] == 1
        assert sum(result.count_by_status.values()) == result.total_orders

    def test_order_independent(self, order):
        orders = [
            order,
            Order.from_dict({**order.to_dict(), "id": "VV-00000002", "status": "shipped"}),
            Order.from_dict({**order.to_dict(), "id": "VV-00000003", "status": "cancelled"}),
            Order.from_dict({**order.to_dict(), "id": "VV-00000004", "status": "pending"}),
        ]

        results = {
            json.dumps(aggregate(permutation).to_dict(), sort_keys=True)
            for permutation in itertools.permutations(orders)
        }

        assert len(results) == 1

    def test_to_dict(self, order):
        data = aggregate([order]).to_dict()

        assert data["total_revenue"] == "60.00"
        assert data["count_by_status"]["processing"] == 1
        assert data["count_by_status"]["cancelled"] == 0
