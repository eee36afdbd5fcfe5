"""
Geometry primitives for the crop editor.

``Rect`` is an immutable axis-aligned rectangle in continuous image-pixel
coordinates (``left``/``top`` inclusive, ``right``/``bottom`` exclusive when
converted to a pixel box).  The module-level helpers are pure functions
returning new rectangles: they normalise inverted rectangles, clamp to image
bounds, and fit a rectangle to an aspect ratio about an anchor.  This module
is Qt-free.
"""

from dataclasses import dataclass
from typing import NamedTuple

# Anchors are expressed as fractions of the rectangle: (0, 0) is the top-left
# corner, (1, 1) the bottom-right, (0.5, 0.5) the center.
ANCHOR_CENTER = (0.5, 0.5)
ANCHOR_TOP_LEFT = (0.0, 0.0)


# =============================================================================
# Data classes
# =============================================================================
class Point(NamedTuple):
    """A position in either screen or image coordinates."""
    x: float
    y: float


@dataclass(frozen=True)
class Size:
    """Width and height of an image or display area."""
    width: float
    height: float

    def is_empty(self) -> bool:
        return self.width <= 0 or self.height <= 0

    def rect(self) -> "Rect":
        """Return the rectangle ``[0, width] x [0, height]``."""
        return Rect(0.0, 0.0, float(self.width), float(self.height))


@dataclass(frozen=True)
class Rect:
    """Axis-aligned rectangle stored as its four edges."""
    left: float = 0.0
    top: float = 0.0
    right: float = 0.0
    bottom: float = 0.0

    @classmethod
    def from_xywh(cls, x: float, y: float, w: float, h: float) -> "Rect":
        return cls(float(x), float(y), float(x + w), float(y + h))

    @classmethod
    def from_center(cls, cx: float, cy: float, w: float, h: float) -> "Rect":
        half_w = w * 0.5
        half_h = h * 0.5
        return cls(cx - half_w, cy - half_h, cx + half_w, cy + half_h)

    @property
    def width(self) -> float:
        return self.right - self.left

    @property
    def height(self) -> float:
        return self.bottom - self.top

    @property
    def center(self) -> Point:
        return Point((self.left + self.right) * 0.5, (self.top + self.bottom) * 0.5)

    @property
    def top_left(self) -> Point:
        return Point(self.left, self.top)

    @property
    def bottom_right(self) -> Point:
        return Point(self.right, self.bottom)

    def as_xywh(self) -> tuple[float, float, float, float]:
        return self.left, self.top, self.width, self.height

    def translated(self, dx: float, dy: float) -> "Rect":
        return Rect(self.left + dx, self.top + dy, self.right + dx, self.bottom + dy)

    def contains(self, point: Point) -> bool:
        return self.left <= point.x <= self.right and self.top <= point.y <= self.bottom

    def to_pixel_box(self, bounds: Size) -> tuple[int, int, int, int]:
        """Return an integer ``(left, upper, right, lower)`` box for Pillow.

        The box is at least one pixel in each direction and always lies
        inside *bounds*.
        """
        img_w = max(1, int(bounds.width))
        img_h = max(1, int(bounds.height))
        x = min(max(0, int(round(self.left))), img_w - 1)
        y = min(max(0, int(round(self.top))), img_h - 1)
        w = min(max(1, int(round(self.width))), img_w - x)
        h = min(max(1, int(round(self.height))), img_h - y)
        return x, y, x + w, y + h


# =============================================================================
# Rectangle operations
# =============================================================================
def normalize(rect: Rect) -> Rect:
    """Swap inverted edges so that ``left <= right`` and ``top <= bottom``."""
    left, right = sorted((rect.left, rect.right))
    top, bottom = sorted((rect.top, rect.bottom))
    return Rect(left, top, right, bottom)


def clamp_to_bounds(rect: Rect, bounds: Size) -> Rect:
    """Move *rect* inside *bounds*, keeping its size where possible.

    A dimension larger than the bounds is reduced symmetrically about the
    rectangle's center before the rectangle is translated back inside.
    """
    rect = normalize(rect)
    img_w = float(bounds.width)
    img_h = float(bounds.height)
    w = min(rect.width, img_w)
    h = min(rect.height, img_h)
    cx, cy = rect.center
    left = cx - w * 0.5 if w < rect.width else rect.left
    top = cy - h * 0.5 if h < rect.height else rect.top
    left = max(0.0, min(left, img_w - w))
    top = max(0.0, min(top, img_h - h))
    return Rect(left, top, min(left + w, img_w), min(top + h, img_h))


def fit_ratio(rect: Rect, ratio: float, anchor: tuple[float, float] = ANCHOR_CENTER) -> Rect:
    """Return the largest rectangle of *ratio* (width / height) inside *rect*.

    The point of *rect* named by *anchor* stays fixed.
    """
    rect = normalize(rect)
    w = rect.width
    h = rect.height
    if h <= 0 or w <= 0:
        return rect
    if w / h > ratio:
        w = h * ratio
    else:
        h = w / ratio
    ax = rect.left + rect.width * anchor[0]
    ay = rect.top + rect.height * anchor[1]
    left = ax - w * anchor[0]
    top = ay - h * anchor[1]
    return Rect(left, top, left + w, top + h)


def calculate_max_crop(bounds: Size, ratio: float) -> tuple[float, float]:
    """Calculate the maximum crop dimensions for *ratio* within *bounds*."""
    # Try full width
    crop_w = float(bounds.width)
    crop_h = crop_w / ratio
    if crop_h <= bounds.height:
        return crop_w, crop_h
    # Full height
    crop_h = float(bounds.height)
    crop_w = min(crop_h * ratio, float(bounds.width))
    return crop_w, crop_h


def center_rect(bounds: Size, w: float, h: float) -> Rect:
    """Return a *w* x *h* rectangle centered in *bounds*."""
    return Rect.from_xywh((bounds.width - w) / 2, (bounds.height - h) / 2, w, h)


def largest_rect_for_ratio(bounds: Size, ratio: float | None) -> Rect:
    """Maximum crop of *ratio*, centered.  ``None`` means the whole image."""
    if ratio is None:
        return bounds.rect()
    cw, ch = calculate_max_crop(bounds, ratio)
    return clamp_to_bounds(center_rect(bounds, cw, ch), bounds)
