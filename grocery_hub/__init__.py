import logging
import os

from dotenv import load_dotenv
from flask import Flask, render_template, request
from flask_login import LoginManager
from flask_sqlalchemy import SQLAlchemy
from flask_wtf.csrf import CSRFProtect

from config import config_map

# Load environment variables from .env
load_dotenv()

# Initialize extensions without app
login_manager = LoginManager()
login_manager.login_view = "auth.login"
login_manager.login_message_category = "info"

db = SQLAlchemy()
csrf = CSRFProtect()


def create_app(config_name=None, test_config=None):
    app = Flask(__name__)

    # Pick config based on FLASK_ENV
    config_type = (config_name or os.getenv("FLASK_ENV", "development")).lower()
    app.config.from_object(config_map.get(config_type, config_map["development"]))
    if test_config:
        app.config.update(test_config)

    configure_logging(app)
    os.makedirs(app.config["UPLOAD_FOLDER"], exist_ok=True)

    # Initialize extensions
    login_manager.init_app(app)
    db.init_app(app)
    csrf.init_app(app)

    from .models import User

    @login_manager.user_loader
    def load_user(user_id):
        return db.session.get(User, user_id)

    # Import and register blueprints
    from .routes import main
    from .routes.auth import auth_bp
    from .routes.admin import admin_bp
    from .routes.shop_owner import shop_owner_bp
    from .routes.consumer import consumer_bp
    from .routes.delivery import delivery_bp
    from .routes.api import api_bp
    app.register_blueprint(main)
    app.register_blueprint(auth_bp)
    app.register_blueprint(admin_bp)
    app.register_blueprint(shop_owner_bp)
    app.register_blueprint(consumer_bp)
    app.register_blueprint(delivery_bp)
    app.register_blueprint(api_bp)
    csrf.exempt(api_bp)

    from .utils.helper import register_template_filters
    register_template_filters(app)

    from .commands import register_commands
    register_commands(app)

    register_error_pages(app)

    # Initialize database tables
    with app.app_context():
        db.create_all()

    app.logger.info("Grocery Hub started with %s config", config_type)
    return app


def configure_logging(app):
    level = getattr(logging, str(app.config.get("LOG_LEVEL", "INFO")).upper(), logging.INFO)
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )
    app.logger.setLevel(level)


def register_error_pages(app):
    from .utils.response import error_response

    @app.errorhandler(403)
    def forbidden(error):
        if request.path.startswith("/api/"):
            return error_response("Forbidden", 403)
        return render_template("errors/403.html"), 403

    @app.errorhandler(404)
    def not_found(error):
        if request.path.startswith("/api/"):
            return error_response("Not found", 404)
        return render_template("errors/404.html"), 404
