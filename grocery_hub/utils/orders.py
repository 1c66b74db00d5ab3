from decimal import Decimal

from ..constants import OrderStatus, OrderType
from ..errors import InvalidStatusTransition

# Linear progression shared by every order type; "ready" branches on type.
STATUS_FLOW = {
    OrderStatus.PENDING: OrderStatus.CONFIRMED,
    OrderStatus.CONFIRMED: OrderStatus.PREPARING,
    OrderStatus.PREPARING: OrderStatus.READY,
    OrderStatus.OUT_FOR_DELIVERY: OrderStatus.DELIVERED,
}


def next_status(status, order_type):
    """Return the status an order moves to next, or None when it is finished."""
    if status == OrderStatus.READY:
        if order_type == OrderType.DELIVERY:
            return OrderStatus.OUT_FOR_DELIVERY
        return OrderStatus.COMPLETED
    return STATUS_FLOW.get(status)


def can_cancel(status):
    return status == OrderStatus.PENDING


def validate_transition(current, target, order_type):
    if target not in OrderStatus.ALL:
        raise InvalidStatusTransition("Invalid status")
    if target == OrderStatus.CANCELLED:
        if not can_cancel(current):
            raise InvalidStatusTransition("Only pending orders can be cancelled")
        return target
    expected = next_status(current, order_type)
    if expected is None:
        raise InvalidStatusTransition(f"Order is already {current.replace('_', ' ')}")
    if target != expected:
        raise InvalidStatusTransition(
            f"Cannot move order from {current} to {target}; next status is {expected}"
        )
    return target


def status_timeline(order_type):
    """Statuses a consumer sees for an order, in order."""
    timeline = [OrderStatus.PENDING, OrderStatus.CONFIRMED, OrderStatus.PREPARING, OrderStatus.READY]
    if order_type == OrderType.DELIVERY:
        timeline += [OrderStatus.OUT_FOR_DELIVERY, OrderStatus.DELIVERED]
    else:
        timeline.append(OrderStatus.COMPLETED)
    return timeline


def timeline_steps(order):
    """(status, reached, is_current) triples for rendering the progress bar."""
    timeline = status_timeline(order.order_type)
    current_index = timeline.index(order.status) if order.status in timeline else -1
    return [
        (status, index <= current_index, status == order.status)
        for index, status in enumerate(timeline)
    ]


def is_reviewable(status):
    return status in OrderStatus.FINISHED


def calculate_order_total(items):
    total = Decimal("0")
    for item in items:
        total += Decimal(str(item["unit_price"])) * item["quantity"]
    return total
