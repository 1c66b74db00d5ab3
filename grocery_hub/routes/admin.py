from flask import Blueprint, current_app, flash, redirect, render_template, request, url_for
from flask_login import current_user

from .. import db
from ..constants import PRODUCT_CATEGORIES, ProductRequestStatus, UserRole
from ..errors import GroceryHubError
from ..forms import GlobalProductForm
from ..models import GlobalProduct, ProductRequest, Shop, User
from ..services import accounts, catalog, reports, shops
from ..utils.decorators import role_required

admin_bp = Blueprint('admin', __name__, url_prefix='/admin')


@admin_bp.before_request
@role_required(UserRole.ADMIN)
def guard():
    """Every admin page requires the admin role."""


@admin_bp.route('/')
def dashboard():
    return render_template('admin/dashboard.html', overview=reports.admin_overview())


@admin_bp.route('/shops')
def shop_list():
    status = request.args.get('status', 'all')
    query = Shop.query.order_by(Shop.created_at.desc())
    if status == 'pending':
        query = query.filter_by(is_approved=False)
    elif status == 'active':
        query = query.filter_by(is_approved=True, is_active=True)
    all_shops = query.all()
    return render_template(
        'admin/shops.html',
        shops=all_shops,
        status=status,
        pending_count=Shop.query.filter_by(is_approved=False).count(),
        active_count=Shop.query.filter_by(is_approved=True, is_active=True).count(),
    )


@admin_bp.route('/shops/<shop_id>/<action>', methods=['POST'])
def shop_action(shop_id, action):
    try:
        shop = shops.apply_admin_action(shop_id, action)
        flash(f"{shop.name}: {action} done.", "success")
    except GroceryHubError as exc:
        current_app.logger.warning("Error updating shop %s: %s", shop_id, exc.message)
        flash(exc.message, "danger")
    return redirect(request.referrer or url_for('admin.shop_list'))


@admin_bp.route('/users')
def user_list():
    role = request.args.get('role')
    query = User.query.order_by(User.created_at.desc())
    if role in UserRole.ALL:
        query = query.filter_by(role=role)
    return render_template(
        'admin/users.html',
        users=query.all(),
        role=role,
        role_stats=reports.role_counts(),
    )


@admin_bp.route('/users/<user_id>/toggle', methods=['POST'])
def toggle_user(user_id):
    target = db.get_or_404(User, user_id)
    try:
        user = accounts.set_user_active(current_user, target.id, not target.is_active)
        flash(f"{user.full_name} is now {'active' if user.is_active else 'suspended'}.", "success")
    except GroceryHubError as exc:
        flash(exc.message, "danger")
    return redirect(url_for('admin.user_list'))


@admin_bp.route('/products')
def product_list():
    search = request.args.get('q', '').strip()
    category = request.args.get('category', 'all')
    query = GlobalProduct.query.order_by(GlobalProduct.created_at.desc())
    if search:
        query = query.filter(GlobalProduct.name.ilike(f"%{search}%"))
    if category in PRODUCT_CATEGORIES:
        query = query.filter_by(category=category)

    requests_pending = (
        ProductRequest.query
        .filter_by(status=ProductRequestStatus.PENDING)
        .order_by(ProductRequest.created_at.desc())
        .all()
    )
    return render_template(
        'admin/products.html',
        products=query.all(),
        product_requests=requests_pending,
        categories=PRODUCT_CATEGORIES,
        search=search,
        category=category,
    )


@admin_bp.route('/products/new', methods=['GET', 'POST'])
def new_product():
    form = GlobalProductForm()
    if form.validate_on_submit():
        try:
            product = catalog.create_global_product(
                current_user,
                name=form.name.data,
                description=form.description.data,
                category=form.category.data,
                base_unit=form.base_unit.data,
                image_file=form.image.data,
                image_url=form.image_url.data,
            )
        except GroceryHubError as exc:
            current_app.logger.error("Error creating product: %s", exc.message)
            flash(exc.message, "danger")
        else:
            flash(f"{product.name} added to the catalogue.", "success")
            return redirect(url_for('admin.product_list'))
    return render_template('admin/product_form.html', form=form, product=None)


@admin_bp.route('/products/<product_id>/edit', methods=['GET', 'POST'])
def edit_product(product_id):
    product = db.get_or_404(GlobalProduct, product_id)
    form = GlobalProductForm(obj=product)
    if form.validate_on_submit():
        try:
            catalog.update_global_product(
                product.id,
                name=form.name.data,
                description=form.description.data,
                category=form.category.data,
                base_unit=form.base_unit.data,
                image_file=form.image.data,
                image_url=form.image_url.data,
            )
        except GroceryHubError as exc:
            current_app.logger.error("Error updating product: %s", exc.message)
            flash(exc.message, "danger")
        else:
            flash("Product updated.", "success")
            return redirect(url_for('admin.product_list'))
    return render_template('admin/product_form.html', form=form, product=product)


@admin_bp.route('/products/<product_id>/approve', methods=['POST'])
def approve_product(product_id):
    try:
        product = catalog.approve_global_product(product_id)
        flash(f"{product.name} approved.", "success")
    except GroceryHubError as exc:
        flash(exc.message, "danger")
    return redirect(url_for('admin.product_list'))


@admin_bp.route('/requests/<request_id>/approve', methods=['POST'])
def approve_request(request_id):
    try:
        product = catalog.approve_product_request(current_user, request_id)
        flash(f"Request approved. {product.name} is now in the catalogue.", "success")
    except GroceryHubError as exc:
        current_app.logger.error("Error approving request %s: %s", request_id, exc.message)
        flash(exc.message, "danger")
    return redirect(request.referrer or url_for('admin.product_list'))


@admin_bp.route('/requests/<request_id>/reject', methods=['POST'])
def reject_request(request_id):
    try:
        catalog.reject_product_request(request_id)
        flash("Request rejected.", "info")
    except GroceryHubError as exc:
        current_app.logger.error("Error rejecting request %s: %s", request_id, exc.message)
        flash(exc.message, "danger")
    return redirect(request.referrer or url_for('admin.product_list'))
