import logging

from .. import db
from ..errors import NotFoundError, ValidationError
from ..models import Shop

logger = logging.getLogger(__name__)

# Admin moderation actions and the fields each one sets
SHOP_ACTIONS = {
    "approve": {"is_approved": True},
    "reject": {"is_approved": False, "is_active": False},
    "activate": {"is_active": True},
    "deactivate": {"is_active": False},
}


def validate_coordinates(latitude, longitude):
    try:
        lat = float(latitude)
        lng = float(longitude)
    except (TypeError, ValueError):
        raise ValidationError(
            'Invalid coordinates. Please use the "Get My Location" button or enter valid numbers.'
        )
    if lat != lat or lng != lng:
        raise ValidationError("Invalid coordinates.")
    if not -90 <= lat <= 90 or not -180 <= lng <= 180:
        raise ValidationError(
            "Coordinates out of range. Latitude must be between -90 and 90, "
            "longitude between -180 and 180."
        )
    return lat, lng


def _validate_delivery_range(value):
    try:
        delivery_range = float(value)
    except (TypeError, ValueError):
        raise ValidationError("Delivery range must be a number")
    if delivery_range <= 0:
        raise ValidationError("Delivery range must be greater than zero")
    return delivery_range


def create_shop(owner, name, address, latitude, longitude, description=None, delivery_range_km=None):
    if Shop.query.filter_by(owner_id=owner.id).first():
        raise ValidationError("You already have a shop")
    if not (name or "").strip() or not (address or "").strip():
        raise ValidationError("Shop name and address are required")
    lat, lng = validate_coordinates(latitude, longitude)

    shop = Shop(
        owner_id=owner.id,
        name=name.strip(),
        description=description,
        address=address.strip(),
        latitude=lat,
        longitude=lng,
        is_active=True,
        is_approved=False,
    )
    if delivery_range_km is not None:
        shop.delivery_range_km = _validate_delivery_range(delivery_range_km)
    db.session.add(shop)
    db.session.commit()
    logger.info("Shop %s created by %s, awaiting approval", shop.name, owner.email)
    return shop


def update_settings(shop, name, description, address, latitude, longitude, is_active, delivery_range_km):
    if not (name or "").strip() or not (address or "").strip():
        raise ValidationError("Shop name and address are required")
    lat, lng = validate_coordinates(latitude, longitude)

    shop.name = name.strip()
    shop.description = description
    shop.address = address.strip()
    shop.latitude = lat
    shop.longitude = lng
    shop.is_active = bool(is_active)
    shop.delivery_range_km = _validate_delivery_range(delivery_range_km)
    db.session.commit()
    return shop


def apply_admin_action(shop_id, action):
    changes = SHOP_ACTIONS.get(action)
    if changes is None:
        raise ValidationError("Invalid action")
    shop = db.session.get(Shop, shop_id)
    if shop is None:
        raise NotFoundError("Shop not found")
    for field, value in changes.items():
        setattr(shop, field, value)
    db.session.commit()
    logger.info("Shop %s: %s", shop.name, action)
    return shop
