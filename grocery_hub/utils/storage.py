import logging
import os
import secrets
import time

from flask import current_app, url_for
from werkzeug.utils import secure_filename

from ..errors import ValidationError

logger = logging.getLogger(__name__)

PRODUCT_IMAGE_DIR = "products"
MAX_IMAGE_BYTES = 5 * 1024 * 1024


def allowed_image_extension(filename):
    extension = os.path.splitext(filename)[1].lower().lstrip(".")
    if not extension:
        return False
    return extension in current_app.config["PRODUCT_IMAGE_EXTENSIONS"]


def _file_size(image_file):
    stream = image_file.stream
    position = stream.tell()
    stream.seek(0, os.SEEK_END)
    size = stream.tell()
    stream.seek(position)
    return size


def save_product_image(image_file):
    """Store an uploaded product image and return its public URL."""
    if not image_file or not getattr(image_file, "filename", ""):
        raise ValidationError("No file provided")

    original_filename = secure_filename(image_file.filename)
    if not original_filename or not allowed_image_extension(original_filename):
        raise ValidationError("Invalid file type. Please upload a JPG, PNG, or WebP image.")

    size = _file_size(image_file)
    if size == 0:
        raise ValidationError("No file provided")
    if size > MAX_IMAGE_BYTES:
        raise ValidationError("File size too large. Maximum size is 5MB.")

    extension = os.path.splitext(original_filename)[1].lower()
    filename = f"{int(time.time() * 1000)}-{secrets.token_hex(4)}{extension}"
    directory = os.path.join(current_app.config["UPLOAD_FOLDER"], PRODUCT_IMAGE_DIR)
    os.makedirs(directory, exist_ok=True)

    try:
        image_file.save(os.path.join(directory, filename))
    except OSError as exc:
        logger.error("Upload error: %s", exc)
        raise ValidationError("Failed to upload image") from exc

    return url_for("main.uploaded_file", filename=f"{PRODUCT_IMAGE_DIR}/{filename}")


def remove_product_image(image_url):
    if not image_url:
        return
    prefix = url_for("main.uploaded_file", filename="")
    if not image_url.startswith(prefix) or ".." in image_url:
        return
    target = os.path.join(current_app.config["UPLOAD_FOLDER"], image_url[len(prefix):])
    try:
        os.remove(target)
    except FileNotFoundError:
        return
    except OSError as exc:
        logger.warning("Could not remove product image %s: %s", target, exc)
