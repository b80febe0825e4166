from __future__ import annotations

import io
import os

from PIL import Image

from .errors import EncodeError, IncompleteImageError
from .models import ImageGrid


def to_image(grid: ImageGrid) -> Image.Image:
    """Convert a fully populated grid to an RGB Pillow image."""
    if not grid.is_complete:
        raise IncompleteImageError(
            f"Grid has {grid.filled} of {len(grid)} pixels written"
        )
    return Image.fromarray(grid.pixels)


def resize_image(image: Image.Image, width: int, height: int) -> Image.Image:
    if image.size == (width, height):
        return image
    try:
        return image.resize((width, height), Image.LANCZOS)
    except (ValueError, MemoryError) as e:
        raise EncodeError(f"Cannot resize image to {width}x{height}: {e}") from e


def encode_png(image: Image.Image) -> bytes:
    buf = io.BytesIO()
    try:
        image.save(buf, format="PNG")
    except (OSError, ValueError) as e:
        raise EncodeError(f"PNG encoding failed: {e}") from e
    return buf.getvalue()


def write_file(data: bytes, path: str) -> None:
    """Write encoded image bytes, creating the parent directory if needed."""
    try:
        os.makedirs(os.path.dirname(path) or ".", exist_ok=True)
        with open(path, "wb") as f:
            f.write(data)
    except OSError as e:
        raise EncodeError(f"Cannot write {path}: {e}") from e


def render_png(grid: ImageGrid, output_width: int, output_height: int) -> bytes:
    """Resize *grid* to the output size and encode it as PNG."""
    return encode_png(resize_image(to_image(grid), output_width, output_height))
