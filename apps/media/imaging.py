"""Image inspection and thumbnails with Pillow."""
from io import BytesIO

from PIL import Image, ImageOps

THUMBNAIL_SIZE = (300, 300)


def _open(fileobj):
    if hasattr(fileobj, 'seek'):
        fileobj.seek(0)
    img = Image.open(fileobj)
    # Respect EXIF orientation so width/height match what viewers display
    return ImageOps.exif_transpose(img)


def get_image_dimensions(fileobj) -> tuple[int, int]:
    """Return (width, height) of an image."""
    return _open(fileobj).size


def make_thumbnail(fileobj, size=THUMBNAIL_SIZE) -> bytes:
    """Return a JPEG thumbnail that fits inside ``size``."""
    img = _open(fileobj)
    thumb = img.copy()
    thumb.thumbnail(size, Image.LANCZOS)

    # Convert to RGB if needed (RGBA, P, etc.)
    if thumb.mode not in ('RGB', 'L'):
        thumb = thumb.convert('RGB')

    out = BytesIO()
    thumb.save(out, 'JPEG', quality=80)
    return out.getvalue()
