from collections import OrderedDict
from datetime import datetime, timezone
from decimal import Decimal

from sqlalchemy import func

from .. import db
from ..constants import OrderStatus, ProductRequestStatus, UserRole
from ..models import GlobalProduct, Order, OrderItem, ProductRequest, Shop, ShopProduct, User

TOP_PRODUCTS_LIMIT = 5


def shop_summary(shop):
    """Dashboard figures for a shop owner; cancelled orders are left out."""
    orders = Order.query.filter(Order.shop_id == shop.id, Order.status != OrderStatus.CANCELLED).all()
    return {
        "products": ShopProduct.query.filter_by(shop_id=shop.id).count(),
        "orders": len(orders),
        "revenue": sum((Decimal(order.total_amount) for order in orders), Decimal("0")),
        "pending": sum(1 for order in orders if order.status == OrderStatus.PENDING),
        "low_stock": ShopProduct.query.filter(
            ShopProduct.shop_id == shop.id, ShopProduct.stock_quantity <= 5
        ).count(),
    }


def sales_report(shop, today=None):
    today = today or datetime.now(timezone.utc).date()
    orders = (
        Order.query
        .filter(Order.shop_id == shop.id, Order.status.in_(OrderStatus.FINISHED))
        .all()
    )
    todays = [order for order in orders if order.created_at and order.created_at.date() == today]

    rows = (
        db.session.query(GlobalProduct.name, OrderItem.quantity, OrderItem.subtotal)
        .join(ShopProduct, OrderItem.shop_product_id == ShopProduct.id)
        .join(GlobalProduct, ShopProduct.global_product_id == GlobalProduct.id)
        .join(Order, OrderItem.order_id == Order.id)
        .filter(Order.shop_id == shop.id, Order.status.in_(OrderStatus.FINISHED))
        .all()
    )
    product_stats = OrderedDict()
    for name, quantity, subtotal in rows:
        stats = product_stats.setdefault(name, {"name": name, "quantity": 0, "revenue": Decimal("0")})
        stats["quantity"] += quantity
        stats["revenue"] += Decimal(subtotal)

    top_products = sorted(product_stats.values(), key=lambda stats: stats["revenue"], reverse=True)

    return {
        "total_orders": len(orders),
        "total_revenue": sum((Decimal(order.total_amount) for order in orders), Decimal("0")),
        "today_orders": len(todays),
        "today_revenue": sum((Decimal(order.total_amount) for order in todays), Decimal("0")),
        "top_products": top_products[:TOP_PRODUCTS_LIMIT],
    }


def admin_overview():
    return {
        "shops": Shop.query.count(),
        "products": GlobalProduct.query.count(),
        "orders": Order.query.count(),
        "users": User.query.count(),
        "pending_shops": Shop.query.filter_by(is_approved=False).order_by(Shop.created_at.desc()).all(),
        "pending_requests": (
            ProductRequest.query
            .filter_by(status=ProductRequestStatus.PENDING)
            .order_by(ProductRequest.created_at.desc())
            .all()
        ),
    }


def role_counts():
    counts = dict.fromkeys(UserRole.ALL, 0)
    for role, total in db.session.query(User.role, func.count(User.id)).group_by(User.role):
        counts[role] = total
    return counts
