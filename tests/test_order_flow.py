from decimal import Decimal

import pytest

from grocery_hub import db
from grocery_hub.constants import OrderStatus, OrderType
from grocery_hub.errors import InsufficientStock, InvalidStatusTransition, NotFoundError, PermissionDenied, ValidationError
from grocery_hub.models import Order, Shop, ShopProduct, User
from grocery_hub.services import orders, reports, reviews
from grocery_hub.utils.orders import calculate_order_total, next_status, status_timeline


def load(seed):
    return (
        db.session.get(Shop, seed.shop_id),
        db.session.get(ShopProduct, seed.rice_listing_id),
        db.session.get(ShopProduct, seed.milk_listing_id),
        db.session.get(User, seed.consumer_id),
    )


def test_next_status_branches_on_order_type():
    assert next_status(OrderStatus.PENDING, OrderType.PICKUP) == OrderStatus.CONFIRMED
    assert next_status(OrderStatus.READY, OrderType.DELIVERY) == OrderStatus.OUT_FOR_DELIVERY
    assert next_status(OrderStatus.READY, OrderType.PICKUP) == OrderStatus.COMPLETED
    assert next_status(OrderStatus.COMPLETED, OrderType.PICKUP) is None
    assert status_timeline(OrderType.DELIVERY)[-1] == OrderStatus.DELIVERED


def test_order_total_uses_decimal_arithmetic():
    total = calculate_order_total([
        {"unit_price": Decimal("0.10"), "quantity": 3},
        {"unit_price": "420.50", "quantity": 2},
    ])
    assert total == Decimal("841.30")


def test_place_order_decrements_stock(ctx, seed):
    shop, rice, milk, consumer = load(seed)

    order = orders.place_order(shop, [(rice, 2), (milk, 1)], OrderType.PICKUP, consumer=consumer)

    assert order.status == OrderStatus.PENDING
    assert order.total_amount == Decimal("920.50")
    assert len(order.items) == 2
    assert db.session.get(ShopProduct, seed.rice_listing_id).stock_quantity == 8
    assert db.session.get(ShopProduct, seed.milk_listing_id).stock_quantity == 2


def test_insufficient_stock_rolls_back_the_whole_order(ctx, seed):
    shop, rice, milk, consumer = load(seed)

    with pytest.raises(InsufficientStock):
        orders.place_order(shop, [(rice, 2), (milk, 5)], OrderType.PICKUP, consumer=consumer)

    assert Order.query.count() == 0
    assert db.session.get(ShopProduct, seed.rice_listing_id).stock_quantity == 10
    assert db.session.get(ShopProduct, seed.milk_listing_id).stock_quantity == 3


def test_delivery_order_needs_an_address(ctx, seed):
    shop, rice, _, consumer = load(seed)
    with pytest.raises(ValidationError):
        orders.place_order(shop, [(rice, 1)], OrderType.DELIVERY, consumer=consumer, delivery_address="  ")


def test_guest_order_requires_contact_details(ctx, seed):
    shop, rice, _, _ = load(seed)

    with pytest.raises(ValidationError):
        orders.place_order(shop, [(rice, 1)], OrderType.PICKUP, guest={"name": "Kamal", "email": "", "phone": ""})

    order = orders.place_order(
        shop, [(rice, 1)], OrderType.PICKUP,
        guest={"name": "Kamal", "email": "kamal@freshmart.lk", "phone": "0771234567"},
    )
    assert order.is_guest
    assert order.customer_name == "Kamal"
    assert orders.find_guest_order(order.id).id == order.id


def test_hidden_shop_does_not_take_orders(ctx, seed):
    shop, rice, _, consumer = load(seed)
    shop.is_active = False
    db.session.commit()
    with pytest.raises(ValidationError):
        orders.place_order(shop, [(rice, 1)], OrderType.PICKUP, consumer=consumer)


def test_status_must_follow_the_flow(ctx, seed):
    shop, rice, _, consumer = load(seed)
    order = orders.place_order(shop, [(rice, 1)], OrderType.PICKUP, consumer=consumer)

    with pytest.raises(InvalidStatusTransition):
        orders.update_status(shop, order.id, OrderStatus.READY)
    with pytest.raises(InvalidStatusTransition):
        orders.update_status(shop, order.id, "shipped")

    for status in (OrderStatus.CONFIRMED, OrderStatus.PREPARING, OrderStatus.READY, OrderStatus.COMPLETED):
        orders.update_status(shop, order.id, status)

    order = db.session.get(Order, order.id)
    assert order.status == OrderStatus.COMPLETED
    assert order.completed_at is not None
    with pytest.raises(InvalidStatusTransition):
        orders.update_status(shop, order.id, OrderStatus.CANCELLED)


def test_cancelling_restores_stock(ctx, seed):
    shop, rice, _, consumer = load(seed)
    order = orders.place_order(shop, [(rice, 4)], OrderType.PICKUP, consumer=consumer)
    assert db.session.get(ShopProduct, seed.rice_listing_id).stock_quantity == 6

    orders.update_status(shop, order.id, OrderStatus.CANCELLED)

    assert db.session.get(Order, order.id).status == OrderStatus.CANCELLED
    assert db.session.get(ShopProduct, seed.rice_listing_id).stock_quantity == 10


def test_cancelling_an_order_cancelled_elsewhere_restores_stock_once(app, ctx, seed):
    shop, rice, _, consumer = load(seed)
    order = orders.place_order(shop, [(rice, 4)], OrderType.PICKUP, consumer=consumer)
    order_id = order.id
    assert order.status == OrderStatus.PENDING

    # Another request cancels it while this session still holds it as pending
    with app.app_context():
        orders.update_status(db.session.get(Shop, seed.shop_id), order_id, OrderStatus.CANCELLED)

    with pytest.raises(InvalidStatusTransition):
        orders.update_status(shop, order_id, OrderStatus.CANCELLED)

    assert db.session.get(Order, order_id).status == OrderStatus.CANCELLED
    assert db.session.get(ShopProduct, seed.rice_listing_id).stock_quantity == 10


def test_delivery_assignment_and_completion(ctx, seed):
    shop, rice, _, consumer = load(seed)
    partner = db.session.get(User, seed.partner_id)
    order = orders.place_order(
        shop, [(rice, 1)], OrderType.DELIVERY, consumer=consumer, delivery_address="5 Galle Road",
    )

    with pytest.raises(ValidationError):
        orders.assign_delivery(shop, order.id, partner.id)

    for status in (OrderStatus.CONFIRMED, OrderStatus.PREPARING, OrderStatus.READY):
        orders.update_status(shop, order.id, status)

    with pytest.raises(ValidationError):
        orders.assign_delivery(shop, order.id, consumer.id)

    orders.assign_delivery(shop, order.id, partner.id)
    order = db.session.get(Order, order.id)
    assert order.status == OrderStatus.OUT_FOR_DELIVERY
    assert order.delivery_partner.id == partner.id

    someone_else = User.query.filter_by(id=seed.admin_id).first()
    with pytest.raises(NotFoundError):
        orders.mark_delivered(someone_else, order.id)

    orders.mark_delivered(partner, order.id)
    assert db.session.get(Order, order.id).status == OrderStatus.DELIVERED


def test_pos_order_is_completed_with_invoice(ctx, seed):
    shop, _, _, _ = load(seed)

    order = orders.create_pos_order(
        shop,
        [
            {"shopProductId": seed.rice_listing_id, "quantity": 1},
            {"shopProductId": seed.rice_listing_id, "quantity": 2},
            {"shop_product_id": seed.milk_listing_id, "quantity": "1"},
        ],
        "card",
    )

    assert order.order_type == OrderType.WALK_IN
    assert order.status == OrderStatus.COMPLETED
    assert order.consumer_id is None
    assert order.invoice_number.startswith("INV-")
    assert order.total_amount == Decimal("1170.50")
    assert len(order.items) == 2
    assert db.session.get(ShopProduct, seed.rice_listing_id).stock_quantity == 7


def test_pos_order_rejects_bad_input(ctx, seed):
    shop, _, _, _ = load(seed)
    with pytest.raises(ValidationError):
        orders.create_pos_order(shop, [{"shopProductId": seed.rice_listing_id, "quantity": 1}], "bitcoin")
    with pytest.raises(ValidationError):
        orders.create_pos_order(shop, [], "cash")
    with pytest.raises(ValidationError):
        orders.create_pos_order(shop, ["x"], "cash")
    with pytest.raises(ValidationError):
        orders.create_pos_order(shop, [{"shopProductId": seed.rice_listing_id, "quantity": 1.5}], "cash")
    with pytest.raises(NotFoundError):
        orders.create_pos_order(shop, [{"shopProductId": "missing", "quantity": 1}], "cash")
    with pytest.raises(InsufficientStock):
        orders.create_pos_order(shop, [{"shopProductId": seed.milk_listing_id, "quantity": 4}], "cash")


def test_reports_count_finished_orders_only(ctx, seed):
    shop, rice, milk, consumer = load(seed)
    orders.create_pos_order(shop, [{"shopProductId": seed.rice_listing_id, "quantity": 2}], "cash")
    orders.create_pos_order(shop, [{"shopProductId": seed.milk_listing_id, "quantity": 1}], "cash")
    pending = orders.place_order(shop, [(rice, 1)], OrderType.PICKUP, consumer=consumer)
    cancelled = orders.place_order(shop, [(rice, 1)], OrderType.PICKUP, consumer=consumer)
    orders.update_status(shop, cancelled.id, OrderStatus.CANCELLED)

    report = reports.sales_report(shop)
    assert report["total_orders"] == 2
    assert report["total_revenue"] == Decimal("920.50")
    assert report["today_orders"] == 2
    assert [product["name"] for product in report["top_products"]] == ["Samba Rice", "Fresh Milk"]
    assert report["top_products"][0]["quantity"] == 2

    summary = reports.shop_summary(shop)
    assert summary["orders"] == 3
    assert summary["pending"] == 1
    assert summary["revenue"] == Decimal("920.50") + pending.total_amount
    assert summary["low_stock"] == 1


def test_reviews_only_for_finished_own_orders(ctx, seed):
    shop, rice, _, consumer = load(seed)
    order = orders.place_order(shop, [(rice, 1)], OrderType.PICKUP, consumer=consumer)

    with pytest.raises(ValidationError):
        reviews.submit_review(consumer, order.id, 5)

    for status in (OrderStatus.CONFIRMED, OrderStatus.PREPARING, OrderStatus.READY, OrderStatus.COMPLETED):
        orders.update_status(shop, order.id, status)

    stranger = db.session.get(User, seed.partner_id)
    with pytest.raises(PermissionDenied):
        reviews.submit_review(stranger, order.id, 4)
    with pytest.raises(ValidationError):
        reviews.submit_review(consumer, order.id, 6)

    reviews.submit_review(consumer, order.id, 4, "Quick and friendly")
    with pytest.raises(ValidationError):
        reviews.submit_review(consumer, order.id, 5)

    shop = db.session.get(Shop, seed.shop_id)
    assert shop.rating == 4
    assert shop.review_count == 1
