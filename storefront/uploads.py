import os
import re
import secrets
import time
from typing import Optional, Tuple

from flask import current_app

UPLOAD_URL_PREFIX = "/uploads/"
DEFAULT_MAX_IMAGE_BYTES = 5 * 1024 * 1024

EXTENSION_PATTERN = re.compile(r"^\.[a-z0-9]+$")


def too_large_message(max_bytes: int) -> str:
    return f"File too large. Maximum size is {max_bytes // (1024 * 1024)}MB."


def is_image_upload(image_file) -> bool:
    mimetype = str(getattr(image_file, "mimetype", "") or "")
    return mimetype.lower().startswith("image/")


def upload_size(image_file) -> int:
    stream = image_file.stream
    stream.seek(0, os.SEEK_END)
    size = stream.tell()
    stream.seek(0)
    return size


def generate_image_filename(original_filename: str) -> str:
    # The extension comes from the raw name; secure_filename drops non-ASCII stems.
    extension = os.path.splitext(original_filename or "")[1].lower()
    if not EXTENSION_PATTERN.match(extension):
        extension = ""
    timestamp = int(time.time() * 1000)
    return f"image-{timestamp}-{secrets.randbelow(10**9)}{extension}"


def save_product_image(
    image_file, upload_folder: str, max_bytes: int = DEFAULT_MAX_IMAGE_BYTES
) -> Tuple[Optional[str], Optional[str]]:
    """Store an uploaded image and return ``(public_path, error)``."""
    if not image_file or not getattr(image_file, "filename", ""):
        return None, "An image file is required."

    if not is_image_upload(image_file):
        return None, "Only image files are allowed!"

    if upload_size(image_file) > max_bytes:
        return None, too_large_message(max_bytes)

    unique_filename = generate_image_filename(image_file.filename)
    destination = os.path.join(upload_folder, unique_filename)

    try:
        image_file.save(destination)
    except OSError as exc:
        current_app.logger.warning("Unable to store upload %s: %s", unique_filename, exc)
        return None, "We could not store the uploaded image. Please try again."

    return UPLOAD_URL_PREFIX + unique_filename, None


def image_file_path(image_path: Optional[str], upload_folder: str) -> Optional[str]:
    if not image_path:
        return None

    filename = os.path.basename(str(image_path).strip())
    if not filename:
        return None

    return os.path.join(upload_folder, filename)


def remove_product_image(image_path: Optional[str], upload_folder: str) -> bool:
    """Best-effort removal of an uploaded image.

    Returns False when a file that should be gone is still on disk; the
    orphan is logged so it can be cleaned up by hand.
    """
    target = image_file_path(image_path, upload_folder)
    if not target:
        return True

    try:
        os.remove(target)
    except FileNotFoundError:
        return True
    except OSError as exc:
        current_app.logger.warning("Orphaned upload left at %s: %s", target, exc)
        return False

    return True
