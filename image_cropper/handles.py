"""
Crop handle identities and hit testing.

Pure geometric functions that decide which of the nine interaction zones
(eight resize handles plus the body) lies under a point.  The point and the
rectangle must be in the same coordinate space; the tolerance is expressed
in that space too.  This module is Qt-free.
"""

import enum

from image_cropper.geometry import Point, Rect


class Handle(enum.Enum):
    """Enumeration of crop box interaction zones."""

    TOP_LEFT = "top_left"
    TOP = "top"
    TOP_RIGHT = "top_right"
    RIGHT = "right"
    BOTTOM_RIGHT = "bottom_right"
    BOTTOM = "bottom"
    BOTTOM_LEFT = "bottom_left"
    LEFT = "left"
    BODY = "body"

    @property
    def is_corner(self) -> bool:
        return self in _CORNERS

    @property
    def fraction(self) -> tuple[float, float]:
        """Position of this handle as a fraction of the rectangle."""
        return _FRACTIONS[self]

    @property
    def opposite(self) -> "Handle":
        """The handle that stays fixed while this one is dragged."""
        fx, fy = self.fraction
        return _BY_FRACTION[(1.0 - fx, 1.0 - fy)]


_CORNERS = frozenset({Handle.TOP_LEFT, Handle.TOP_RIGHT, Handle.BOTTOM_LEFT, Handle.BOTTOM_RIGHT})

_FRACTIONS = {
    Handle.TOP_LEFT: (0.0, 0.0),
    Handle.TOP: (0.5, 0.0),
    Handle.TOP_RIGHT: (1.0, 0.0),
    Handle.RIGHT: (1.0, 0.5),
    Handle.BOTTOM_RIGHT: (1.0, 1.0),
    Handle.BOTTOM: (0.5, 1.0),
    Handle.BOTTOM_LEFT: (0.0, 1.0),
    Handle.LEFT: (0.0, 0.5),
    Handle.BODY: (0.5, 0.5),
}
_BY_FRACTION = {fraction: handle for handle, fraction in _FRACTIONS.items()}


def handle_point(rect: Rect, handle: Handle) -> Point:
    """Return the position of *handle* on *rect*."""
    fx, fy = handle.fraction
    return Point(rect.left + rect.width * fx, rect.top + rect.height * fy)


def handle_points(rect: Rect) -> dict[Handle, Point]:
    """Return marker positions for the eight resize handles."""
    return {h: handle_point(rect, h) for h in Handle if h is not Handle.BODY}


def hit_test(point: Point, rect: Rect, tolerance: float) -> Handle | None:
    """Determine which handle (if any) is under *point*.

    Corner zones are squares of side ``2 * tolerance`` centered on each
    corner and win over edges.  Edge zones are strips of width
    ``2 * tolerance`` along each edge.  Anything else inside *rect* is the
    body; anything else is ``None``.
    """
    px, py = point
    t = float(tolerance)

    corners = [
        (Handle.TOP_LEFT, rect.left, rect.top),
        (Handle.TOP_RIGHT, rect.right, rect.top),
        (Handle.BOTTOM_LEFT, rect.left, rect.bottom),
        (Handle.BOTTOM_RIGHT, rect.right, rect.bottom),
    ]
    for handle, cx, cy in corners:
        if abs(px - cx) <= t and abs(py - cy) <= t:
            return handle

    within_x = rect.left <= px <= rect.right
    within_y = rect.top <= py <= rect.bottom
    if within_x and abs(py - rect.top) <= t:
        return Handle.TOP
    if within_x and abs(py - rect.bottom) <= t:
        return Handle.BOTTOM
    if within_y and abs(px - rect.left) <= t:
        return Handle.LEFT
    if within_y and abs(px - rect.right) <= t:
        return Handle.RIGHT

    if rect.contains(point):
        return Handle.BODY
    return None
