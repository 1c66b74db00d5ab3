from functools import wraps

from flask import Blueprint, current_app, flash, redirect, render_template, request, url_for
from flask_login import current_user

from ..constants import OrderStatus, UserRole
from ..errors import GroceryHubError
from ..forms import AddShopProductForm, POSCheckoutForm, ProductRequestForm, ShopForm, ShopProductForm, ShopSettingsForm
from ..models import Order, ShopProduct
from ..services import catalog, orders, reports, shops
from ..utils.decorators import owned_shop, role_required
from ..utils.orders import can_cancel, next_status

shop_owner_bp = Blueprint('shop_owner', __name__, url_prefix='/shop-owner')


@shop_owner_bp.before_request
@role_required(UserRole.SHOP_OWNER)
def guard():
    """Every page here requires the shop owner role."""


def shop_required(view):
    """Pass the owner's shop to the view, or send them to create one."""
    @wraps(view)
    def wrapped(*args, **kwargs):
        shop = owned_shop()
        if shop is None:
            flash("Create your shop to get started.", "info")
            return redirect(url_for('shop_owner.create_shop'))
        return view(shop, *args, **kwargs)
    return wrapped


@shop_owner_bp.route('/')
@shop_required
def dashboard(shop):
    recent_orders = (
        Order.query
        .filter_by(shop_id=shop.id)
        .order_by(Order.created_at.desc())
        .limit(5)
        .all()
    )
    return render_template(
        'shop_owner/dashboard.html',
        shop=shop,
        summary=reports.shop_summary(shop),
        recent_orders=recent_orders,
    )


@shop_owner_bp.route('/create-shop', methods=['GET', 'POST'])
def create_shop():
    if owned_shop() is not None:
        return redirect(url_for('shop_owner.dashboard'))

    form = ShopForm()
    if form.validate_on_submit():
        try:
            shop = shops.create_shop(
                current_user,
                name=form.name.data,
                description=form.description.data,
                address=form.address.data,
                latitude=form.latitude.data,
                longitude=form.longitude.data,
                delivery_range_km=form.delivery_range_km.data,
            )
        except GroceryHubError as exc:
            flash(exc.message, "danger")
        else:
            flash(f"{shop.name} was created and is waiting for admin approval.", "success")
            return redirect(url_for('shop_owner.dashboard'))
    return render_template('shop_owner/create_shop.html', form=form)


@shop_owner_bp.route('/settings', methods=['GET', 'POST'])
@shop_required
def settings(shop):
    form = ShopSettingsForm(obj=shop)
    if form.validate_on_submit():
        try:
            shops.update_settings(
                shop,
                name=form.name.data,
                description=form.description.data,
                address=form.address.data,
                latitude=form.latitude.data,
                longitude=form.longitude.data,
                is_active=form.is_active.data,
                delivery_range_km=form.delivery_range_km.data,
            )
        except GroceryHubError as exc:
            flash(exc.message, "danger")
        else:
            flash("Shop settings saved.", "success")
            return redirect(url_for('shop_owner.settings'))
    return render_template('shop_owner/settings.html', form=form, shop=shop)


@shop_owner_bp.route('/products')
@shop_required
def products(shop):
    listings = (
        ShopProduct.query
        .filter_by(shop_id=shop.id)
        .order_by(ShopProduct.updated_at.desc())
        .all()
    )
    return render_template(
        'shop_owner/products.html',
        shop=shop,
        listings=listings,
        product_requests=sorted(shop.product_requests, key=lambda item: item.created_at, reverse=True),
    )


@shop_owner_bp.route('/products/add', methods=['GET', 'POST'])
@shop_required
def add_product(shop):
    form = AddShopProductForm()
    form.global_product_id.choices = [
        (product.id, f"{product.name} ({product.base_unit})")
        for product in catalog.approved_products_not_in(shop)
    ]
    if form.validate_on_submit():
        try:
            listing = catalog.add_shop_product(
                shop,
                global_product_id=form.global_product_id.data,
                price=form.price.data,
                stock_quantity=form.stock_quantity.data or 0,
            )
        except GroceryHubError as exc:
            flash(exc.message, "danger")
        else:
            flash(f"{listing.name} added to your shop.", "success")
            return redirect(url_for('shop_owner.products'))
    return render_template('shop_owner/add_product.html', form=form, shop=shop)


@shop_owner_bp.route('/products/<shop_product_id>/edit', methods=['GET', 'POST'])
@shop_required
def edit_product(shop, shop_product_id):
    try:
        listing = catalog.get_shop_product(shop, shop_product_id)
    except GroceryHubError:
        flash("Product not found.", "danger")
        return redirect(url_for('shop_owner.products'))

    form = ShopProductForm(obj=listing)
    if form.validate_on_submit():
        try:
            catalog.update_shop_product(
                shop,
                listing.id,
                price=form.price.data,
                stock_quantity=form.stock_quantity.data or 0,
                is_available=form.is_available.data,
            )
        except GroceryHubError as exc:
            flash(exc.message, "danger")
        else:
            flash(f"{listing.name} updated.", "success")
            return redirect(url_for('shop_owner.products'))
    return render_template('shop_owner/edit_product.html', form=form, listing=listing)


@shop_owner_bp.route('/products/request', methods=['GET', 'POST'])
@shop_required
def request_product(shop):
    form = ProductRequestForm()
    if form.validate_on_submit():
        try:
            catalog.request_product(
                shop,
                product_name=form.product_name.data,
                description=form.description.data,
                category=form.category.data,
                base_unit=form.base_unit.data,
            )
        except GroceryHubError as exc:
            flash(exc.message, "danger")
        else:
            flash("Request sent. An admin will review it shortly.", "success")
            return redirect(url_for('shop_owner.products'))
    return render_template('shop_owner/request_product.html', form=form)


@shop_owner_bp.route('/orders')
@shop_required
def order_list(shop):
    status = request.args.get('status', 'all')
    query = Order.query.filter_by(shop_id=shop.id).order_by(Order.created_at.desc())
    if status in OrderStatus.ALL:
        query = query.filter_by(status=status)
    return render_template(
        'shop_owner/orders.html',
        shop=shop,
        orders=query.all(),
        status=status,
        statuses=OrderStatus.ALL,
        partners=orders.available_delivery_partners(),
        next_status=next_status,
        can_cancel=can_cancel,
    )


@shop_owner_bp.route('/orders/<order_id>')
@shop_required
def order_detail(shop, order_id):
    try:
        order = orders.get_shop_order(shop, order_id)
    except GroceryHubError as exc:
        flash(exc.message, "danger")
        return redirect(url_for('shop_owner.order_list'))
    return render_template('shop_owner/order_detail.html', shop=shop, order=order)


@shop_owner_bp.route('/orders/<order_id>/status', methods=['POST'])
@shop_required
def update_order_status(shop, order_id):
    status = request.form.get('status', '')
    try:
        order = orders.update_status(shop, order_id, status)
        flash(f"Order #{order.id[:8]} is now {status.replace('_', ' ')}.", "success")
    except GroceryHubError as exc:
        current_app.logger.warning("Status change for order %s refused: %s", order_id, exc.message)
        flash(exc.message, "danger")
    return redirect(request.referrer or url_for('shop_owner.order_list'))


@shop_owner_bp.route('/orders/<order_id>/assign', methods=['POST'])
@shop_required
def assign_delivery(shop, order_id):
    try:
        order = orders.assign_delivery(shop, order_id, request.form.get('delivery_partner_id'))
        flash(f"Order #{order.id[:8]} assigned to {order.delivery_partner.full_name}.", "success")
    except GroceryHubError as exc:
        flash(exc.message, "danger")
    return redirect(request.referrer or url_for('shop_owner.order_list'))


def _pos_items(form_data):
    items = []
    for shop_product_id, quantity in zip(form_data.getlist('product_id'), form_data.getlist('quantity')):
        if quantity and quantity.strip() not in ("", "0"):
            items.append({"shopProductId": shop_product_id, "quantity": quantity})
    return items


@shop_owner_bp.route('/pos', methods=['GET', 'POST'])
@shop_required
def pos(shop):
    form = POSCheckoutForm()
    if form.validate_on_submit():
        try:
            order = orders.create_pos_order(shop, _pos_items(request.form), form.payment_method.data)
        except GroceryHubError as exc:
            flash(exc.message, "danger")
        else:
            flash(f"Sale completed. Invoice {order.invoice_number}.", "success")
            return redirect(url_for('shop_owner.order_detail', order_id=order.id))

    listings = (
        ShopProduct.query
        .filter(
            ShopProduct.shop_id == shop.id,
            ShopProduct.is_available.is_(True),
            ShopProduct.stock_quantity > 0,
        )
        .all()
    )
    listings.sort(key=lambda listing: listing.name.lower())
    return render_template('shop_owner/pos.html', shop=shop, form=form, listings=listings)


@shop_owner_bp.route('/reports')
@shop_required
def sales_report(shop):
    return render_template('shop_owner/reports.html', shop=shop, report=reports.sales_report(shop))
