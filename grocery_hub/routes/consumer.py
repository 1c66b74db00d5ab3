from flask import Blueprint, abort, flash, redirect, render_template, request, session, url_for
from flask_login import current_user

from .. import db
from ..constants import OrderType, PRODUCT_CATEGORIES, SORT_OPTIONS, UserRole
from ..errors import GroceryHubError
from ..forms import AddressForm, CheckoutForm, ProfileForm, ReviewForm
from ..models import Order, Shop, ShopProduct
from ..services import accounts, orders, reviews
from ..utils import cart
from ..utils.decorators import redirect_other_roles, role_required
from ..utils.geo import search_visible_shops
from ..utils.orders import is_reviewable, timeline_steps

consumer_bp = Blueprint('consumer', __name__, url_prefix='/consumer')

GUEST_ORDER_KEY = "guest_last_order_id"


def _is_consumer():
    return current_user.is_authenticated and current_user.role == UserRole.CONSUMER


def _visible_shop(shop_id):
    shop = db.session.get(Shop, shop_id)
    if shop is None or not shop.is_visible:
        abort(404)
    return shop


@consumer_bp.route('/')
@redirect_other_roles(UserRole.CONSUMER)
def dashboard():
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
    return render_template('consumer/dashboard.html', results=results, sort_options=SORT_OPTIONS)


@consumer_bp.route('/shops/<shop_id>')
@redirect_other_roles(UserRole.CONSUMER)
def shop_detail(shop_id):
    shop = _visible_shop(shop_id)
    category = request.args.get('category', 'all')
    search = request.args.get('q', '').strip().lower()

    listings = (
        ShopProduct.query
        .filter_by(shop_id=shop.id, is_available=True)
        .all()
    )
    if category in PRODUCT_CATEGORIES:
        listings = [listing for listing in listings if listing.global_product.category == category]
    if search:
        listings = [listing for listing in listings if search in listing.name.lower()]
    listings.sort(key=lambda listing: listing.name.lower())

    return render_template(
        'consumer/shop.html',
        shop=shop,
        listings=listings,
        categories=PRODUCT_CATEGORIES,
        category=category,
        search=search,
        cart_count=cart.item_count(shop.id),
    )


@consumer_bp.route('/shops/<shop_id>/cart', methods=['POST'])
@redirect_other_roles(UserRole.CONSUMER)
def add_to_cart(shop_id):
    listing = ShopProduct.query.filter_by(id=request.form.get('shop_product_id'), shop_id=shop_id).first()
    if listing is None:
        abort(404)
    try:
        quantity = int(request.form.get('quantity', 1))
        cart.add_item(listing, quantity)
        flash(f"{listing.name} added to your cart.", "success")
    except ValueError:
        flash("Quantity must be a whole number.", "danger")
    except GroceryHubError as exc:
        flash(exc.message, "danger")
    return redirect(request.referrer or url_for('consumer.shop_detail', shop_id=shop_id))


@consumer_bp.route('/cart')
@redirect_other_roles(UserRole.CONSUMER)
def view_cart():
    carts = []
    for shop_id in cart.shop_ids():
        shop = db.session.get(Shop, shop_id)
        lines = cart.cart_lines(shop_id)
        if shop is None or not lines:
            cart.clear(shop_id)
            continue
        carts.append({"shop": shop, "lines": lines, "total": cart.cart_total(lines)})
    return render_template('consumer/cart.html', carts=carts)


@consumer_bp.route('/cart/<shop_id>/update', methods=['POST'])
@redirect_other_roles(UserRole.CONSUMER)
def update_cart(shop_id):
    try:
        quantity = int(request.form.get('quantity', 0))
        cart.update_item(shop_id, request.form.get('shop_product_id'), quantity)
    except ValueError:
        flash("Quantity must be a whole number.", "danger")
    except GroceryHubError as exc:
        flash(exc.message, "danger")
    return redirect(url_for('consumer.view_cart'))


@consumer_bp.route('/cart/<shop_id>/remove', methods=['POST'])
@redirect_other_roles(UserRole.CONSUMER)
def remove_from_cart(shop_id):
    cart.remove_item(shop_id, request.form.get('shop_product_id'))
    flash("Item removed from your cart.", "info")
    return redirect(url_for('consumer.view_cart'))


@consumer_bp.route('/cart/<shop_id>/checkout', methods=['GET', 'POST'])
@redirect_other_roles(UserRole.CONSUMER)
def checkout(shop_id):
    shop = _visible_shop(shop_id)
    lines = cart.cart_lines(shop.id)
    if not lines:
        flash("Your cart is empty.", "info")
        return redirect(url_for('consumer.view_cart'))

    form = CheckoutForm()
    if request.method == 'GET' and _is_consumer():
        address = accounts.default_address(current_user)
        if address is not None:
            form.delivery_address.data = address.address

    if form.validate_on_submit():
        consumer = current_user if _is_consumer() else None
        guest = None
        if consumer is None:
            guest = {
                "name": form.guest_name.data,
                "email": form.guest_email.data,
                "phone": form.guest_phone.data,
            }
        try:
            order = orders.place_order(
                shop,
                [(line.shop_product, line.quantity) for line in lines],
                form.order_type.data,
                consumer=consumer,
                delivery_address=form.delivery_address.data,
                guest=guest,
            )
        except GroceryHubError as exc:
            flash(exc.message, "danger")
        else:
            cart.clear(shop.id)
            if consumer is None:
                session[GUEST_ORDER_KEY] = order.id
            flash("Order placed successfully!", "success")
            return redirect(url_for('consumer.order_detail', order_id=order.id))

    return render_template(
        'consumer/checkout.html',
        shop=shop,
        form=form,
        lines=lines,
        total=cart.cart_total(lines),
        is_guest=not _is_consumer(),
        delivery_type=OrderType.DELIVERY,
    )


@consumer_bp.route('/orders')
@redirect_other_roles(UserRole.CONSUMER)
def order_list():
    if _is_consumer():
        own_orders = (
            Order.query
            .filter_by(consumer_id=current_user.id)
            .order_by(Order.created_at.desc())
            .all()
        )
        return render_template('consumer/orders.html', orders=own_orders, review_form=ReviewForm())

    order_id = request.args.get('order_id') or session.get(GUEST_ORDER_KEY)
    order = orders.find_guest_order(order_id)
    if order is not None:
        return redirect(url_for('consumer.order_detail', order_id=order.id))
    if request.args.get('order_id'):
        flash("We could not find a guest order with that number.", "danger")
    return render_template('consumer/track_order.html')


@consumer_bp.route('/orders/<order_id>')
@redirect_other_roles(UserRole.CONSUMER)
def order_detail(order_id):
    if _is_consumer():
        order = Order.query.filter_by(id=order_id, consumer_id=current_user.id).first()
    else:
        order = orders.find_guest_order(order_id)
    if order is None:
        abort(404)

    review_form = None
    if _is_consumer() and is_reviewable(order.status) and order.review is None:
        review_form = ReviewForm(order_id=order.id)
    return render_template(
        'consumer/order_detail.html',
        order=order,
        steps=timeline_steps(order),
        review_form=review_form,
    )


@consumer_bp.route('/reviews', methods=['POST'])
@role_required(UserRole.CONSUMER)
def submit_review():
    form = ReviewForm()
    if form.validate_on_submit():
        try:
            reviews.submit_review(current_user, form.order_id.data, form.rating.data, form.review_text.data)
            flash("Thank you for your review!", "success")
        except GroceryHubError as exc:
            flash(exc.message, "danger")
        return redirect(url_for('consumer.order_detail', order_id=form.order_id.data))
    flash("Please choose a rating between 1 and 5.", "danger")
    return redirect(url_for('consumer.order_list'))


@consumer_bp.route('/profile', methods=['GET', 'POST'])
@role_required(UserRole.CONSUMER)
def profile():
    form = ProfileForm(obj=current_user)
    if form.validate_on_submit():
        try:
            accounts.update_profile(current_user, form.full_name.data, form.phone.data)
        except GroceryHubError as exc:
            flash(exc.message, "danger")
        else:
            flash("Profile updated.", "success")
            return redirect(url_for('consumer.profile'))
    return render_template(
        'consumer/profile.html',
        form=form,
        address_form=AddressForm(prefix="address"),
        addresses=current_user.addresses,
    )


@consumer_bp.route('/profile/addresses', methods=['POST'])
@role_required(UserRole.CONSUMER)
def add_address():
    form = AddressForm(prefix="address")
    if form.validate_on_submit():
        try:
            accounts.add_address(current_user, form.label.data, form.address.data, form.is_default.data)
            flash("Address saved.", "success")
        except GroceryHubError as exc:
            flash(exc.message, "danger")
    else:
        flash("Label and address are required.", "danger")
    return redirect(url_for('consumer.profile'))


@consumer_bp.route('/profile/addresses/<address_id>/default', methods=['POST'])
@role_required(UserRole.CONSUMER)
def make_default_address(address_id):
    try:
        accounts.set_default_address(current_user, address_id)
        flash("Default address updated.", "success")
    except GroceryHubError as exc:
        flash(exc.message, "danger")
    return redirect(url_for('consumer.profile'))


@consumer_bp.route('/profile/addresses/<address_id>/delete', methods=['POST'])
@role_required(UserRole.CONSUMER)
def delete_address(address_id):
    try:
        accounts.delete_address(current_user, address_id)
        flash("Address removed.", "info")
    except GroceryHubError as exc:
        flash(exc.message, "danger")
    return redirect(url_for('consumer.profile'))
