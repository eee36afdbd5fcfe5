"""
Mapping between screen (widget) coordinates and image-pixel coordinates.

The image is scaled uniformly to fit the viewport (minus padding) and
centered, leaving letterbox bars on two sides.  ``screen_to_image`` and
``image_to_screen`` are exact inverses up to floating-point error.  This
module is Qt-free.
"""

from dataclasses import dataclass

from image_cropper.geometry import Point, Rect, Size


def fit_display_size(viewport: Size, image_size: Size, padding: float = 0.0) -> Size:
    """Calculate the displayed image size that fits *viewport* minus *padding*."""
    if image_size.is_empty():
        return Size(0.0, 0.0)
    avail_w = max(0.0, viewport.width - 2 * padding)
    avail_h = max(0.0, viewport.height - 2 * padding)
    scale = min(avail_w / image_size.width, avail_h / image_size.height)
    return Size(image_size.width * scale, image_size.height * scale)


@dataclass(frozen=True)
class ViewTransform:
    """Scale and offset taking image pixels to screen coordinates."""
    scale_x: float = 1.0
    scale_y: float = 1.0
    offset_x: float = 0.0
    offset_y: float = 0.0

    @classmethod
    def from_placement(cls, viewport: Rect, display_size: Size, image_size: Size) -> "ViewTransform":
        """Build the transform for an image drawn centered in *viewport*."""
        if image_size.is_empty():
            return cls(0.0, 0.0, viewport.left, viewport.top)
        return cls(
            scale_x=display_size.width / image_size.width,
            scale_y=display_size.height / image_size.height,
            offset_x=viewport.left + (viewport.width - display_size.width) / 2,
            offset_y=viewport.top + (viewport.height - display_size.height) / 2,
        )

    @classmethod
    def fit(cls, viewport: Rect, image_size: Size, padding: float = 0.0) -> "ViewTransform":
        """Scale-to-fit transform for *image_size* letterboxed in *viewport*."""
        display = fit_display_size(Size(viewport.width, viewport.height), image_size, padding)
        return cls.from_placement(viewport, display, image_size)

    @property
    def scale(self) -> float:
        return min(self.scale_x, self.scale_y)

    def image_to_screen(self, point: Point) -> Point:
        return Point(point.x * self.scale_x + self.offset_x, point.y * self.scale_y + self.offset_y)

    def screen_to_image(self, point: Point) -> Point:
        if self.scale_x == 0 or self.scale_y == 0:
            return Point(0.0, 0.0)
        return Point((point.x - self.offset_x) / self.scale_x, (point.y - self.offset_y) / self.scale_y)

    def rect_to_screen(self, rect: Rect) -> Rect:
        left, top = self.image_to_screen(rect.top_left)
        right, bottom = self.image_to_screen(rect.bottom_right)
        return Rect(left, top, right, bottom)

    def length_to_image(self, length: float) -> float:
        """Convert a screen distance (e.g. a hit tolerance) to image pixels."""
        if self.scale <= 0:
            return float(length)
        return length / self.scale


def screen_to_image(point: Point, viewport: Rect, display_size: Size, image_size: Size) -> Point:
    """Map a screen position to image-pixel coordinates."""
    return ViewTransform.from_placement(viewport, display_size, image_size).screen_to_image(point)


def image_to_screen(point: Point, viewport: Rect, display_size: Size, image_size: Size) -> Point:
    """Map an image-pixel position to screen coordinates."""
    return ViewTransform.from_placement(viewport, display_size, image_size).image_to_screen(point)
