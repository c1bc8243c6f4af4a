from django.conf import settings
from django.core.exceptions import ValidationError
from PIL import Image, UnidentifiedImageError

BYTES_IN_MB = 1024 * 1024


def validate_image_file(uploaded_file):
    """
    Validate a package cover image: size in MB, format (Pillow-detected)
    and pixel dimensions. The file pointer is rewound before returning.
    """
    max_mb = int(getattr(settings, "PACKAGE_IMAGE_MAX_MB", 5))
    if uploaded_file.size > max_mb * BYTES_IN_MB:
        raise ValidationError(f"File too large: max {max_mb} MB")

    try:
        uploaded_file.seek(0)
        Image.open(uploaded_file).verify()
    except (UnidentifiedImageError, OSError, SyntaxError):
        raise ValidationError("Unsupported or corrupted image")

    # verify() leaves the image unusable; reopen for format and size
    uploaded_file.seek(0)
    img = Image.open(uploaded_file)

    fmt = (img.format or "").upper()
    allowed = set(getattr(settings, "PACKAGE_IMAGE_ALLOWED_FORMATS", {"JPEG", "PNG", "WEBP"}))
    if fmt not in allowed:
        raise ValidationError(f"Unsupported format: {fmt or 'unknown'}. Allowed: {', '.join(sorted(allowed))}")

    width, height = img.size
    max_w = int(getattr(settings, "PACKAGE_IMAGE_MAX_WIDTH", 6000))
    max_h = int(getattr(settings, "PACKAGE_IMAGE_MAX_HEIGHT", 6000))
    if width > max_w or height > max_h:
        raise ValidationError(f"Image too large: {width}x{height}px (max {max_w}x{max_h}px)")

    uploaded_file.seek(0)
