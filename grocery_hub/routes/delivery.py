from flask import Blueprint, flash, redirect, render_template, request, url_for
from flask_login import current_user

from ..constants import OrderStatus, UserRole
from ..errors import GroceryHubError
from ..models import Order
from ..services import orders
from ..utils.decorators import role_required

delivery_bp = Blueprint('delivery', __name__, url_prefix='/delivery')


@delivery_bp.before_request
@role_required(UserRole.DELIVERY_PARTNER)
def guard():
    """Delivery partners only."""


@delivery_bp.route('/')
def dashboard():
    assigned = (
        Order.query
        .filter_by(assigned_delivery_partner_id=current_user.id)
        .order_by(Order.created_at.desc())
        .all()
    )
    active = [order for order in assigned if order.status == OrderStatus.OUT_FOR_DELIVERY]
    delivered = [order for order in assigned if order.status == OrderStatus.DELIVERED]
    return render_template('delivery/index.html', active=active, delivered=delivered)


@delivery_bp.route('/orders/<order_id>/delivered', methods=['POST'])
def mark_delivered(order_id):
    try:
        order = orders.mark_delivered(current_user, order_id)
        flash(f"Order #{order.id[:8]} marked as delivered.", "success")
    except GroceryHubError as exc:
        flash(exc.message, "danger")
    return redirect(request.referrer or url_for('delivery.dashboard'))
