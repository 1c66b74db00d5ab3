import logging

from .. import db
from ..constants import UserRole
from ..errors import NotFoundError, ValidationError
from ..models import ConsumerAddress, User
from ..utils.helper import is_valid_phone

logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 6
SELF_SERVICE_ROLES = (UserRole.CONSUMER, UserRole.SHOP_OWNER, UserRole.DELIVERY_PARTNER)


def normalize_email(email):
    return (email or "").strip().lower()


def register_user(email, password, full_name, phone=None, role=UserRole.CONSUMER, allowed_roles=SELF_SERVICE_ROLES):
    email = normalize_email(email)
    if role not in allowed_roles:
        raise ValidationError("Invalid role")
    if len(password or "") < MIN_PASSWORD_LENGTH:
        raise ValidationError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters")
    if phone and not is_valid_phone(phone):
        raise ValidationError("Please enter a valid phone number")
    if User.query.filter_by(email=email).first():
        raise ValidationError("An account with this email already exists")

    user = User(email=email, full_name=full_name.strip(), phone=phone, role=role)
    user.set_password(password)
    db.session.add(user)
    db.session.commit()
    logger.info("Registered %s as %s", email, role)
    return user


def authenticate(email, password):
    user = User.query.filter_by(email=normalize_email(email)).first()
    if user is None or not user.check_password(password):
        return None
    return user


def update_profile(user, full_name, phone):
    if not (full_name or "").strip():
        raise ValidationError("Full name is required")
    if phone and not is_valid_phone(phone):
        raise ValidationError("Please enter a valid phone number")
    user.full_name = full_name.strip()
    user.phone = phone
    db.session.commit()
    return user


def set_user_active(acting_admin, user_id, is_active):
    user = db.session.get(User, user_id)
    if user is None:
        raise NotFoundError("User not found")
    if user.id == acting_admin.id and not is_active:
        raise ValidationError("You cannot suspend your own account")
    user.is_active = bool(is_active)
    db.session.commit()
    logger.info("User %s %s by %s", user.email, "activated" if user.is_active else "suspended", acting_admin.email)
    return user


def _clear_default_address(user):
    ConsumerAddress.query.filter_by(consumer_id=user.id).update({"is_default": False})


def add_address(user, label, address, is_default=False, latitude=0, longitude=0):
    if not (label or "").strip() or not (address or "").strip():
        raise ValidationError("Label and address are required")
    if is_default:
        _clear_default_address(user)
    entry = ConsumerAddress(
        consumer_id=user.id,
        label=label.strip(),
        address=address.strip(),
        latitude=latitude or 0,
        longitude=longitude or 0,
        is_default=bool(is_default),
    )
    db.session.add(entry)
    db.session.commit()
    return entry


def _owned_address(user, address_id):
    entry = ConsumerAddress.query.filter_by(id=address_id, consumer_id=user.id).first()
    if entry is None:
        raise NotFoundError("Address not found")
    return entry


def delete_address(user, address_id):
    entry = _owned_address(user, address_id)
    db.session.delete(entry)
    db.session.commit()


def set_default_address(user, address_id):
    entry = _owned_address(user, address_id)
    _clear_default_address(user)
    entry.is_default = True
    db.session.commit()
    return entry


def default_address(user):
    return ConsumerAddress.query.filter_by(consumer_id=user.id, is_default=True).first()
