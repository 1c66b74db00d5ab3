import random
import re
import time
from datetime import datetime
from urllib.parse import urlparse

from flask import current_app

PHONE_PATTERN = re.compile(r"^\+?[\d\s\-()]+$")

STATUS_BADGES = {
    "pending": "badge-warning",
    "confirmed": "badge-info",
    "preparing": "badge-purple",
    "ready": "badge-success",
    "out_for_delivery": "badge-indigo",
    "delivered": "badge-success",
    "completed": "badge-muted",
    "cancelled": "badge-danger",
    "approved": "badge-success",
    "rejected": "badge-danger",
}


def format_price(amount, currency=None):
    currency = currency or current_app.config.get("CURRENCY", "LKR")
    return f"{currency} {float(amount or 0):,.2f}"


def format_date(value):
    if isinstance(value, str):
        value = datetime.fromisoformat(value)
    if value is None:
        return ""
    return value.strftime("%B %d, %Y").replace(" 0", " ")


def format_datetime(value):
    if isinstance(value, str):
        value = datetime.fromisoformat(value)
    if value is None:
        return ""
    return value.strftime("%b %d, %Y, %I:%M %p")


def truncate(text, length):
    text = text or ""
    if len(text) <= length:
        return text
    return text[:length] + "..."


def status_label(status):
    return (status or "").replace("_", " ").title()


def status_badge(status):
    return STATUS_BADGES.get(status, "badge-muted")


def is_valid_phone(phone):
    if not phone or not PHONE_PATTERN.match(phone):
        return False
    return len(re.sub(r"\D", "", phone)) >= 10


def generate_invoice_number():
    timestamp = int(time.time() * 1000)
    return f"INV-{timestamp}-{random.randint(0, 999)}"


def short_id(value):
    return (value or "")[:8]


def safe_redirect_target(target):
    """Return target only when it is a path on this site."""
    if not target or not target.startswith("/") or target.startswith("//"):
        return None
    parsed = urlparse(target)
    if parsed.scheme or parsed.netloc:
        return None
    return target


def register_template_filters(app):
    app.jinja_env.filters["price"] = format_price
    app.jinja_env.filters["date"] = format_date
    app.jinja_env.filters["datetime"] = format_datetime
    app.jinja_env.filters["truncate_text"] = truncate
    app.jinja_env.filters["status_label"] = status_label
    app.jinja_env.filters["status_badge"] = status_badge
    app.jinja_env.filters["short_id"] = short_id
