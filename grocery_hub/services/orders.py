"""
Order placement and fulfilment.

Stock is decremented with a guarded UPDATE (only when enough stock is left)
inside the same transaction that writes the order and its items, so a failed
line rolls back the whole order.
"""

import logging
from collections import OrderedDict

from sqlalchemy.exc import SQLAlchemyError

from .. import db
from ..constants import OrderStatus, OrderType, PaymentMethod, UserRole
from ..errors import GroceryHubError, InsufficientStock, InvalidStatusTransition, NotFoundError, ValidationError
from ..models import Order, OrderItem, ShopProduct, User, utcnow
from ..utils.helper import generate_invoice_number
from ..utils.orders import calculate_order_total, validate_transition
from .catalog import parse_quantity

logger = logging.getLogger(__name__)

CHECKOUT_ORDER_TYPES = (OrderType.DELIVERY, OrderType.PICKUP)


def _decrement_stock(shop_product, quantity):
    result = db.session.execute(
        db.update(ShopProduct)
        .where(
            ShopProduct.id == shop_product.id,
            ShopProduct.is_available.is_(True),
            ShopProduct.stock_quantity >= quantity,
        )
        .values(stock_quantity=ShopProduct.stock_quantity - quantity)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount != 1:
        raise InsufficientStock(f"Not enough stock for {shop_product.global_product.name}")


def _restore_stock(order):
    for item in order.items:
        db.session.execute(
            db.update(ShopProduct)
            .where(ShopProduct.id == item.shop_product_id)
            .values(stock_quantity=ShopProduct.stock_quantity + item.quantity)
            .execution_options(synchronize_session=False)
        )


def _add_items(order, lines):
    priced = []
    for shop_product, quantity in lines:
        if shop_product.shop_id != order.shop_id:
            raise ValidationError("All items must come from the same shop")
        if quantity < 1:
            raise ValidationError("Quantity must be at least 1")
        unit_price = shop_product.price
        _decrement_stock(shop_product, quantity)
        order.items.append(OrderItem(
            shop_product_id=shop_product.id,
            quantity=quantity,
            unit_price=unit_price,
            subtotal=unit_price * quantity,
        ))
        priced.append({"unit_price": unit_price, "quantity": quantity})
    order.total_amount = calculate_order_total(priced)


def _commit_order(order, lines, description):
    try:
        db.session.add(order)
        _add_items(order, lines)
        db.session.commit()
    except GroceryHubError:
        db.session.rollback()
        raise
    except SQLAlchemyError as exc:
        db.session.rollback()
        logger.error("Error %s: %s", description, exc)
        raise GroceryHubError(f"Failed to {description}", 500) from exc
    return order


def place_order(shop, lines, order_type, consumer=None, delivery_address=None, guest=None,
                delivery_latitude=None, delivery_longitude=None):
    """Checkout for a consumer or a guest. `lines` are (shop_product, quantity) pairs."""
    lines = list(lines)
    if not shop.is_visible:
        raise ValidationError("This shop is not accepting orders right now")
    if order_type not in CHECKOUT_ORDER_TYPES:
        raise ValidationError("Invalid order type")
    if not lines:
        raise ValidationError("Your cart is empty")
    if order_type == OrderType.DELIVERY and not (delivery_address or "").strip():
        raise ValidationError("Please enter a delivery address")

    guest = guest or {}
    if consumer is None and not all((guest.get(key) or "").strip() for key in ("name", "email", "phone")):
        raise ValidationError("Please fill in all guest details")

    order = Order(
        consumer_id=consumer.id if consumer else None,
        shop_id=shop.id,
        order_type=order_type,
        status=OrderStatus.PENDING,
        delivery_address=delivery_address.strip() if order_type == OrderType.DELIVERY else None,
        delivery_latitude=delivery_latitude if order_type == OrderType.DELIVERY else None,
        delivery_longitude=delivery_longitude if order_type == OrderType.DELIVERY else None,
        guest_name=None if consumer else guest["name"].strip(),
        guest_email=None if consumer else guest["email"].strip(),
        guest_phone=None if consumer else guest["phone"].strip(),
    )
    _commit_order(order, lines, "place order")
    logger.info("Order %s placed at %s (%s, total %s)", order.id, shop.name, order_type, order.total_amount)
    return order


def _merge_pos_items(items):
    merged = OrderedDict()
    for item in items or []:
        if not isinstance(item, dict):
            raise ValidationError("Each item needs a product")
        shop_product_id = item.get("shopProductId") or item.get("shop_product_id")
        quantity = parse_quantity(item.get("quantity", 0), "Quantity")
        if not shop_product_id:
            raise ValidationError("Each item needs a product")
        merged[shop_product_id] = merged.get(shop_product_id, 0) + quantity
    return merged


def create_pos_order(shop, items, payment_method):
    """Walk-in sale recorded at the counter; completed immediately."""
    if payment_method not in PaymentMethod.ALL:
        raise ValidationError("Invalid payment method")
    merged = _merge_pos_items(items)
    if not merged:
        raise ValidationError("Cart is empty")

    lines = []
    for shop_product_id, quantity in merged.items():
        listing = ShopProduct.query.filter_by(id=shop_product_id, shop_id=shop.id).first()
        if listing is None:
            raise NotFoundError("Product not found")
        lines.append((listing, quantity))

    order = Order(
        consumer_id=None,
        shop_id=shop.id,
        order_type=OrderType.WALK_IN,
        status=OrderStatus.COMPLETED,
        payment_method=payment_method,
        invoice_number=generate_invoice_number(),
        completed_at=utcnow(),
    )
    _commit_order(order, lines, "create POS order")
    logger.info("POS order %s completed at %s (%s)", order.id, shop.name, payment_method)
    return order


def get_shop_order(shop, order_id):
    order = Order.query.filter_by(id=order_id, shop_id=shop.id).first()
    if order is None:
        raise NotFoundError("Order not found")
    return order


def _move_order(order, status, **values):
    """Change the status only while it still matches what `order` was loaded with."""
    result = db.session.execute(
        db.update(Order)
        .where(Order.id == order.id, Order.status == order.status)
        .values(status=status, **values)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount != 1:
        db.session.rollback()
        raise InvalidStatusTransition("This order was changed in the meantime, reload it and try again")


def update_status(shop, order_id, status):
    order = get_shop_order(shop, order_id)
    validate_transition(order.status, status, order.order_type)

    values = {"completed_at": utcnow()} if status in OrderStatus.FINISHED else {}
    _move_order(order, status, **values)
    if status == OrderStatus.CANCELLED:
        _restore_stock(order)
    db.session.commit()
    logger.info("Order %s moved to %s", order.id, status)
    return order


def available_delivery_partners():
    return (
        User.query
        .filter_by(role=UserRole.DELIVERY_PARTNER, is_active=True)
        .order_by(User.full_name)
        .all()
    )


def assign_delivery(shop, order_id, partner_id):
    order = get_shop_order(shop, order_id)
    if order.order_type != OrderType.DELIVERY:
        raise ValidationError("Only delivery orders can be assigned to a delivery partner")
    if order.status != OrderStatus.READY:
        raise ValidationError("Only orders that are ready can be sent out for delivery")

    partner = User.query.filter_by(id=partner_id, role=UserRole.DELIVERY_PARTNER).first() if partner_id else None
    if partner is None or not partner.is_active:
        raise ValidationError("Invalid delivery partner")

    _move_order(order, OrderStatus.OUT_FOR_DELIVERY, assigned_delivery_partner_id=partner.id)
    db.session.commit()
    logger.info("Order %s assigned to %s", order.id, partner.email)
    return order


def mark_delivered(partner, order_id):
    order = Order.query.filter_by(id=order_id, assigned_delivery_partner_id=partner.id).first()
    if order is None:
        raise NotFoundError("Order not found")
    validate_transition(order.status, OrderStatus.DELIVERED, order.order_type)
    _move_order(order, OrderStatus.DELIVERED, completed_at=utcnow())
    db.session.commit()
    logger.info("Order %s delivered by %s", order.id, partner.email)
    return order


def find_guest_order(order_id):
    if not order_id:
        return None
    return (
        Order.query
        .filter(Order.id == order_id, Order.consumer_id.is_(None), Order.order_type != OrderType.WALK_IN)
        .first()
    )
