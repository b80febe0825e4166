from __future__ import annotations

from typing import Callable

from .errors import IncompleteImageError
from .models import ImageGrid, Pixel
from .workers import PixelChannel


def collect_pixels(
    channel: PixelChannel,
    width: int,
    height: int,
    pixel_count: int,
    on_pixel: Callable[[Pixel, int], None] | None = None,
) -> ImageGrid:
    """Drain *channel* into a new :class:`ImageGrid`.

    Receives exactly *pixel_count* results in any order and places each
    one at :meth:`ImageGrid.position`.  *on_pixel* is called with the
    pixel and the number received so far.

    Raises :class:`IncompleteImageError` if the channel closes early or a
    pixel index arrives twice, and :class:`TransformFailure` if a worker
    failed.
    """
    if pixel_count != width * height:
        raise ValueError(
            f"pixel_count {pixel_count} does not match a {width}x{height} grid"
        )

    grid = ImageGrid(width, height)
    received = 0
    while received < pixel_count:
        pixel = channel.receive()
        if pixel is None:
            raise IncompleteImageError(
                f"Result channel closed after {received} of {pixel_count} pixels"
            )
        grid.place(pixel.index, pixel.color)
        received += 1
        if on_pixel:
            on_pixel(pixel, received)
    return grid
