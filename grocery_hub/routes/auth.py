from flask import Blueprint, current_app, flash, redirect, render_template, request, url_for
from flask_login import current_user, login_required, login_user, logout_user

from ..errors import ValidationError
from ..forms import LoginForm, RegisterForm
from ..services import accounts
from ..utils.helper import safe_redirect_target

auth_bp = Blueprint('auth', __name__, url_prefix='/auth')


def _destination(user, requested):
    target = safe_redirect_target(requested)
    if target and target != '/':
        return target
    return url_for(user.home_endpoint)


@auth_bp.route('/login', methods=['GET', 'POST'])
def login():
    requested = request.args.get('redirect', '/')
    if current_user.is_authenticated:
        return redirect(_destination(current_user, requested))

    form = LoginForm()
    if form.validate_on_submit():
        user = accounts.authenticate(form.email.data, form.password.data)
        if user is None:
            flash("Invalid email or password", "danger")
        elif not login_user(user):
            current_app.logger.info("Suspended account %s tried to sign in", user.email)
            flash("Your account has been suspended. Please contact support.", "danger")
        else:
            current_app.logger.info("%s signed in", user.email)
            return redirect(_destination(user, requested))

    return render_template('auth/login.html', form=form, redirect_to=requested)


@auth_bp.route('/register', methods=['GET', 'POST'])
def register():
    if current_user.is_authenticated:
        return redirect(url_for(current_user.home_endpoint))

    form = RegisterForm()
    if form.validate_on_submit():
        try:
            user = accounts.register_user(
                email=form.email.data,
                password=form.password.data,
                full_name=form.full_name.data,
                phone=form.phone.data,
                role=form.role.data,
            )
        except ValidationError as exc:
            flash(exc.message, "danger")
        else:
            login_user(user)
            flash("Welcome to Grocery Hub!", "success")
            return redirect(url_for(user.home_endpoint))

    return render_template('auth/register.html', form=form)


@auth_bp.route('/logout')
@login_required
def logout():
    logout_user()
    flash("You have been logged out.", "info")
    return redirect(url_for('auth.login'))
