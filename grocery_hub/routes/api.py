from functools import wraps

from flask import Blueprint, current_app, request
from flask_login import current_user
from werkzeug.exceptions import HTTPException

from ..constants import SORT_OPTIONS, UserRole
from ..errors import GroceryHubError, ValidationError
from ..services import accounts, catalog, orders, shops
from ..utils.decorators import api_role_required, owned_shop
from ..utils.geo import search_visible_shops
from ..utils.response import domain_error_response, error_response, success_response

api_bp = Blueprint('api', __name__, url_prefix='/api')


@api_bp.errorhandler(GroceryHubError)
def handle_domain_error(error):
    return domain_error_response(error)


@api_bp.errorhandler(Exception)
def handle_unexpected_error(error):
    if isinstance(error, HTTPException):
        return error_response(error.description, error.code)
    current_app.logger.exception("Unhandled API error on %s", request.path)
    return error_response("Internal server error", 500)


def _payload():
    data = request.get_json(silent=True)
    return data if isinstance(data, dict) else {}


def _flag(data, key, default):
    value = data.get(key, default)
    if not isinstance(value, bool):
        raise ValidationError(f"{key} must be true or false")
    return value


def with_shop(view):
    """Resolve the caller's shop or answer 404."""
    @wraps(view)
    def wrapped(*args, **kwargs):
        shop = owned_shop()
        if shop is None:
            return error_response("No shop found", 404)
        return view(shop, *args, **kwargs)
    return wrapped


# Admin

@api_bp.route('/admin/update-shop-status', methods=['POST'])
@api_role_required(UserRole.ADMIN)
def update_shop_status():
    data = _payload()
    shop = shops.apply_admin_action(data.get('shopId'), data.get('action'))
    return success_response(shop.to_dict(), message=f"Shop {data.get('action')} applied")


@api_bp.route('/admin/toggle-user-status', methods=['POST'])
@api_role_required(UserRole.ADMIN)
def toggle_user_status():
    data = _payload()
    user = accounts.set_user_active(current_user, data.get('userId'), _flag(data, 'isActive', None))
    return success_response(user.to_dict(), message="User status updated")


# Shop owner

@api_bp.route('/shop-owner/settings', methods=['PUT'])
@api_role_required(UserRole.SHOP_OWNER)
@with_shop
def update_shop_settings(shop):
    data = _payload()
    shop = shops.update_settings(
        shop,
        name=data.get('name'),
        description=data.get('description'),
        address=data.get('address'),
        latitude=data.get('latitude'),
        longitude=data.get('longitude'),
        is_active=_flag(data, 'isActive', shop.is_active),
        delivery_range_km=data.get('deliveryRange', shop.delivery_range_km),
    )
    return success_response(shop.to_dict(), message="Shop settings saved")


@api_bp.route('/shop-owner/products/add', methods=['POST'])
@api_role_required(UserRole.SHOP_OWNER)
@with_shop
def add_shop_product(shop):
    data = _payload()
    listing = catalog.add_shop_product(
        shop,
        global_product_id=data.get('globalProductId'),
        price=data.get('price'),
        stock_quantity=data.get('stockQuantity', 0),
    )
    return success_response(listing.to_dict(), message="Product added", code=201)


@api_bp.route('/shop-owner/products/<shop_product_id>', methods=['PUT'])
@api_role_required(UserRole.SHOP_OWNER)
@with_shop
def update_shop_product(shop, shop_product_id):
    data = _payload()
    listing = catalog.get_shop_product(shop, shop_product_id)
    listing = catalog.update_shop_product(
        shop,
        listing.id,
        price=data.get('price', listing.price),
        stock_quantity=data.get('stockQuantity', listing.stock_quantity),
        is_available=_flag(data, 'isAvailable', listing.is_available),
    )
    return success_response(listing.to_dict(), message="Product updated")


@api_bp.route('/shop-owner/products/request', methods=['POST'])
@api_role_required(UserRole.SHOP_OWNER)
@with_shop
def request_product(shop):
    data = _payload()
    product_request = catalog.request_product(
        shop,
        product_name=data.get('productName'),
        description=data.get('description'),
        category=data.get('category'),
        base_unit=data.get('baseUnit'),
    )
    return success_response({"id": product_request.id}, message="Request sent", code=201)


@api_bp.route('/shop-owner/orders/<order_id>/status', methods=['PUT'])
@api_role_required(UserRole.SHOP_OWNER)
@with_shop
def update_order_status(shop, order_id):
    order = orders.update_status(shop, order_id, _payload().get('status'))
    return success_response(order.to_dict(), message="Order status updated")


@api_bp.route('/shop-owner/orders/<order_id>/assign-delivery', methods=['PUT'])
@api_role_required(UserRole.SHOP_OWNER)
@with_shop
def assign_delivery(shop, order_id):
    order = orders.assign_delivery(shop, order_id, _payload().get('deliveryPartnerId'))
    return success_response(order.to_dict(), message="Delivery partner assigned")


@api_bp.route('/shop-owner/pos/create-order', methods=['POST'])
@api_role_required(UserRole.SHOP_OWNER)
@with_shop
def create_pos_order(shop):
    data = _payload()
    items = data.get('items')
    if not isinstance(items, list):
        return error_response("items must be a list", 400)
    order = orders.create_pos_order(shop, items, data.get('paymentMethod'))
    return success_response(
        {
            "orderId": order.id,
            "invoiceNumber": order.invoice_number,
            "totalAmount": float(order.total_amount),
        },
        message="Sale completed",
        code=201,
    )


# Public

@api_bp.route('/shops/nearby')
def nearby_shops():
    sort_by = request.args.get('sort', 'distance')
    if sort_by not in SORT_OPTIONS:
        sort_by = 'distance'
    results = search_visible_shops(
        lat=request.args.get('lat'),
        lng=request.args.get('lng'),
        radius=request.args.get('radius'),
        query=request.args.get('q', '').strip(),
        sort_by=sort_by,
    )
    results["shops"] = [match.to_dict() for match in results["shops"]]
    return success_response(results)
