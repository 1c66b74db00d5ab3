"""Per-shop shopping carts kept in the Flask session."""

from dataclasses import dataclass
from decimal import Decimal

from flask import current_app, session

from .. import db
from ..errors import InsufficientStock, NotFoundError, ValidationError
from ..models import ShopProduct

CART_KEY = "carts"


@dataclass
class CartLine:
    shop_product: ShopProduct
    quantity: int

    @property
    def unit_price(self):
        return Decimal(self.shop_product.price)

    @property
    def subtotal(self):
        return self.unit_price * self.quantity


def _carts():
    return session.setdefault(CART_KEY, {})


def _save():
    session.modified = True


def shop_ids():
    return [shop_id for shop_id, items in _carts().items() if items]


def add_item(shop_product, quantity=1):
    if not shop_product.is_available or not shop_product.shop.is_visible:
        raise NotFoundError("Product is not available")
    if quantity < 1:
        raise ValidationError("Quantity must be at least 1")

    items = _carts().setdefault(shop_product.shop_id, {})
    if shop_product.id not in items and len(items) >= current_app.config["MAX_CART_ITEMS"]:
        raise ValidationError("Your cart is full")

    new_quantity = items.get(shop_product.id, 0) + quantity
    if new_quantity > shop_product.stock_quantity:
        raise InsufficientStock("Not enough stock")

    items[shop_product.id] = new_quantity
    _save()
    return new_quantity


def update_item(shop_id, shop_product_id, quantity):
    if quantity <= 0:
        remove_item(shop_id, shop_product_id)
        return 0

    items = _carts().get(shop_id, {})
    if shop_product_id not in items:
        raise NotFoundError("Item is not in your cart")

    shop_product = db.session.get(ShopProduct, shop_product_id)
    if shop_product is None:
        remove_item(shop_id, shop_product_id)
        raise NotFoundError("Product is no longer available")
    if quantity > shop_product.stock_quantity:
        raise InsufficientStock("Not enough stock")

    items[shop_product_id] = quantity
    _save()
    return quantity


def remove_item(shop_id, shop_product_id):
    carts = _carts()
    items = carts.get(shop_id, {})
    items.pop(shop_product_id, None)
    if not items:
        carts.pop(shop_id, None)
    _save()


def clear(shop_id):
    _carts().pop(shop_id, None)
    _save()


def cart_lines(shop_id):
    """Resolve the cart for one shop, dropping products that disappeared or were disabled."""
    items = _carts().get(shop_id, {})
    lines = []
    stale = []
    for shop_product_id, quantity in items.items():
        shop_product = db.session.get(ShopProduct, shop_product_id)
        if shop_product is None or not shop_product.is_available or shop_product.shop_id != shop_id:
            stale.append(shop_product_id)
            continue
        lines.append(CartLine(shop_product, quantity))

    for shop_product_id in stale:
        remove_item(shop_id, shop_product_id)
    return lines


def cart_total(lines):
    return sum((line.subtotal for line in lines), Decimal("0"))


def item_count(shop_id=None):
    carts = _carts()
    if shop_id is not None:
        return sum(carts.get(shop_id, {}).values())
    return sum(sum(items.values()) for items in carts.values())
