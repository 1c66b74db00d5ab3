import logging
from decimal import Decimal, InvalidOperation

from .. import db
from ..constants import ProductRequestStatus
from ..errors import NotFoundError, ValidationError
from ..models import GlobalProduct, ProductRequest, ShopProduct
from ..utils.storage import remove_product_image, save_product_image

logger = logging.getLogger(__name__)

DEFAULT_BASE_UNIT = "piece"


def parse_price(value):
    try:
        price = Decimal(str(value)).quantize(Decimal("0.01"))
    except (InvalidOperation, TypeError, ValueError):
        raise ValidationError("Price must be a number")
    if not price.is_finite():
        raise ValidationError("Price must be a number")
    if price < 0:
        raise ValidationError("Price cannot be negative")
    return price


def parse_quantity(value, field="Stock quantity"):
    # Whole numbers only, so no bools or fractional floats
    if isinstance(value, bool) or (isinstance(value, float) and not value.is_integer()):
        raise ValidationError(f"{field} must be a whole number")
    try:
        quantity = int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{field} must be a whole number")
    if quantity < 0:
        raise ValidationError(f"{field} cannot be negative")
    return quantity


# Global catalogue (admin)

def create_global_product(admin, name, category, base_unit, description=None, image_file=None, image_url=None):
    if not (name or "").strip() or not category or not base_unit:
        raise ValidationError("Name, category, and base unit are required")

    if image_file is not None and getattr(image_file, "filename", ""):
        image_url = save_product_image(image_file)

    product = GlobalProduct(
        name=name.strip(),
        description=description,
        category=category,
        base_unit=base_unit,
        image_url=image_url or None,
        created_by=admin.id,
        # Products created by an admin are approved straight away
        is_approved=True,
    )
    db.session.add(product)
    db.session.commit()
    logger.info("Global product %s created by %s", product.name, admin.email)
    return product


def get_global_product(product_id):
    product = db.session.get(GlobalProduct, product_id)
    if product is None:
        raise NotFoundError("Product not found")
    return product


def update_global_product(product_id, name, category, base_unit, description=None, image_file=None, image_url=None):
    product = get_global_product(product_id)
    if not (name or "").strip() or not category or not base_unit:
        raise ValidationError("Name, category, and base unit are required")

    if image_file is not None and getattr(image_file, "filename", ""):
        new_url = save_product_image(image_file)
        remove_product_image(product.image_url)
        image_url = new_url

    product.name = name.strip()
    product.description = description
    product.category = category
    product.base_unit = base_unit
    product.image_url = image_url or None
    db.session.commit()
    return product


def approve_global_product(product_id):
    product = get_global_product(product_id)
    product.is_approved = True
    db.session.commit()
    return product


def _pending_request(request_id):
    product_request = db.session.get(ProductRequest, request_id)
    if product_request is None:
        raise NotFoundError("Product request not found")
    if product_request.status != ProductRequestStatus.PENDING:
        raise ValidationError(f"Request has already been {product_request.status}")
    return product_request


def approve_product_request(admin, request_id):
    product_request = _pending_request(request_id)
    product = GlobalProduct(
        name=product_request.product_name,
        description=product_request.description,
        category=product_request.category or "Other",
        base_unit=product_request.base_unit or DEFAULT_BASE_UNIT,
        image_url=None,
        created_by=admin.id,
        is_approved=True,
    )
    db.session.add(product)
    product_request.status = ProductRequestStatus.APPROVED
    db.session.commit()
    logger.info("Product request %s approved as %s", product_request.id, product.id)
    return product


def reject_product_request(request_id):
    product_request = _pending_request(request_id)
    product_request.status = ProductRequestStatus.REJECTED
    db.session.commit()
    return product_request


# Shop listings (shop owner)

def add_shop_product(shop, global_product_id, price, stock_quantity):
    product = db.session.get(GlobalProduct, global_product_id) if global_product_id else None
    if product is None or not product.is_approved:
        raise NotFoundError("Product not found")
    existing = ShopProduct.query.filter_by(shop_id=shop.id, global_product_id=product.id).first()
    if existing:
        raise ValidationError("Product already added to shop")

    listing = ShopProduct(
        shop_id=shop.id,
        global_product_id=product.id,
        price=parse_price(price),
        stock_quantity=parse_quantity(stock_quantity),
        is_available=True,
    )
    db.session.add(listing)
    db.session.commit()
    return listing


def get_shop_product(shop, shop_product_id):
    listing = ShopProduct.query.filter_by(id=shop_product_id, shop_id=shop.id).first()
    if listing is None:
        raise NotFoundError("Product not found")
    return listing


def update_shop_product(shop, shop_product_id, price, stock_quantity, is_available):
    listing = get_shop_product(shop, shop_product_id)
    listing.price = parse_price(price)
    listing.stock_quantity = parse_quantity(stock_quantity)
    listing.is_available = bool(is_available)
    db.session.commit()
    return listing


def request_product(shop, product_name, description=None, category=None, base_unit=None):
    if not (product_name or "").strip():
        raise ValidationError("Product name is required")
    product_request = ProductRequest(
        shop_id=shop.id,
        product_name=product_name.strip(),
        description=description,
        category=category,
        base_unit=base_unit,
        status=ProductRequestStatus.PENDING,
    )
    db.session.add(product_request)
    db.session.commit()
    return product_request


def approved_products_not_in(shop):
    listed = db.select(ShopProduct.global_product_id).where(ShopProduct.shop_id == shop.id)
    return (
        GlobalProduct.query
        .filter(GlobalProduct.is_approved.is_(True), GlobalProduct.id.not_in(listed))
        .order_by(GlobalProduct.name)
        .all()
    )
