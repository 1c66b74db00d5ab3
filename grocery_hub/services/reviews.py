from .. import db
from ..errors import NotFoundError, PermissionDenied, ValidationError
from ..models import Order, ShopReview
from ..utils.orders import is_reviewable


def submit_review(consumer, order_id, rating, review_text=None):
    order = db.session.get(Order, order_id)
    if order is None:
        raise NotFoundError("Order not found")
    if order.consumer_id != consumer.id:
        raise PermissionDenied("You can only review your own orders")
    if not is_reviewable(order.status):
        raise ValidationError("You can review an order once it has been delivered or completed")
    if order.review is not None:
        raise ValidationError("You have already reviewed this order")

    try:
        rating = int(rating)
    except (TypeError, ValueError):
        raise ValidationError("Rating must be between 1 and 5")
    if not 1 <= rating <= 5:
        raise ValidationError("Rating must be between 1 and 5")

    review = ShopReview(
        shop_id=order.shop_id,
        consumer_id=consumer.id,
        order_id=order.id,
        rating=rating,
        review_text=(review_text or "").strip() or None,
    )
    db.session.add(review)
    db.session.commit()
    return review
