from flask import Blueprint

main = Blueprint('main', __name__)

from . import index  # noqa: E402,F401
