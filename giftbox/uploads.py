import io
import os
import secrets
import time

from PIL import Image, UnidentifiedImageError

from giftbox.helpers import ValidationError

ALLOWED_MIME_TYPES = ("image/jpeg", "image/jpg", "image/png", "image/gif", "image/webp", "image/avif")
ALLOWED_EXTENSIONS = ("jpg", "jpeg", "png", "gif", "webp", "avif")
IMAGE_FORMATS = ("JPEG", "PNG", "GIF", "WEBP", "AVIF")


def extension_of(filename):
    if "." not in filename:
        return ""
    return filename.rsplit(".", 1)[1].lower()


def image_format(data: bytes):
    """Name of the image format Pillow reads from ``data``, or None if it is not an allowed image."""
    try:
        with Image.open(io.BytesIO(data)) as img:
            fmt = img.format
            img.verify()
    except (UnidentifiedImageError, Image.DecompressionBombError, OSError, SyntaxError, ValueError):
        return None
    return fmt if fmt in IMAGE_FORMATS else None


def save_image(file, upload_dir, max_bytes):
    """Validate an uploaded image and store it under a random name.

    Returns ``(filename, size)``.
    """
    if file is None:
        raise ValidationError("No file provided")
    name = (file.filename or "").strip()
    if not name:
        raise ValidationError("Invalid file name")
    ext = extension_of(name)
    if ext not in ALLOWED_EXTENSIONS:
        raise ValidationError("Invalid file type. Allowed types: JPG, PNG, GIF, WebP, AVIF",
                              details={"allowed_types": list(ALLOWED_EXTENSIONS)})
    if file.mimetype not in ALLOWED_MIME_TYPES:
        raise ValidationError("Invalid file type. Only image files are allowed.",
                              details={"allowed_types": list(ALLOWED_MIME_TYPES)})
    data = file.read(max_bytes + 1)
    if not data:
        raise ValidationError("File is empty")
    if len(data) > max_bytes:
        raise ValidationError(
            f"File size exceeds maximum allowed size of {max_bytes // (1024 * 1024)}MB",
            details={"max_size": max_bytes})
    if image_format(data) is None:
        raise ValidationError("File content does not match image format. "
                              "File may be corrupted or not an image.")

    os.makedirs(upload_dir, exist_ok=True)
    filename = f"{int(time.time() * 1000)}-{secrets.token_hex(6)}.{ext}"
    with open(os.path.join(upload_dir, filename), "wb") as fh:
        fh.write(data)
    return filename, len(data)
