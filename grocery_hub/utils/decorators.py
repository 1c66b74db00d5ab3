from functools import wraps

from flask import flash, redirect, request, url_for
from flask_login import current_user

from ..models import Shop
from .response import error_response


def role_required(*roles):
    """Page guard: anonymous users go to login, other roles go to their own dashboard."""
    def deco(view):
        @wraps(view)
        def wrapped(*args, **kwargs):
            if not current_user.is_authenticated:
                flash("Please log in first.", "info")
                return redirect(url_for("auth.login", redirect=request.full_path.rstrip("?")))
            if current_user.role not in roles:
                return redirect(url_for(current_user.home_endpoint))
            return view(*args, **kwargs)
        return wrapped
    return deco


def api_role_required(*roles):
    """JSON guard: 401 for anonymous callers, 403 for the wrong role."""
    def deco(view):
        @wraps(view)
        def wrapped(*args, **kwargs):
            if not current_user.is_authenticated:
                return error_response("Unauthorized", 401)
            if current_user.role not in roles:
                return error_response("Forbidden", 403)
            return view(*args, **kwargs)
        return wrapped
    return deco


def redirect_other_roles(role):
    """Let guests through, but send signed-in users of another role to their dashboard."""
    def deco(view):
        @wraps(view)
        def wrapped(*args, **kwargs):
            if current_user.is_authenticated and current_user.role != role:
                return redirect(url_for(current_user.home_endpoint))
            return view(*args, **kwargs)
        return wrapped
    return deco


def owned_shop():
    """The current shop owner's shop, or None."""
    if not current_user.is_authenticated:
        return None
    return Shop.query.filter_by(owner_id=current_user.id).first()
