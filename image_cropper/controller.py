"""
Crop rectangle controller.

``CropController`` owns the authoritative crop rectangle (image-pixel
coordinates) and a two-state machine, Idle and Dragging, driven by pointer
events that have already been mapped into image space.  Every update keeps
the rectangle inside the image bounds, at least the minimum size, and, for
a constrained mode, at the active aspect ratio.

Resize conventions:

* The anchor (opposite corner or edge) captured on pointer-down never moves
  during the drag.  Dragging past it flips the rectangle to the other side.
* With a ratio active, corner handles and the left/right edges drive the
  width; the top/bottom edges drive the height.
* An edge drag under a ratio grows the perpendicular dimension away from
  the top edge (left/right handles) or the left edge (top/bottom handles).
* When the image bounds would push the anchor, the rectangle shrinks
  instead.

The controller performs no I/O and is Qt-free.
"""

import logging
from dataclasses import dataclass

from image_cropper.config import HANDLE_TOLERANCE, MIN_CROP_SIZE
from image_cropper.geometry import (
    ANCHOR_CENTER, Point, Rect, Size, calculate_max_crop, clamp_to_bounds, fit_ratio, largest_rect_for_ratio,
    normalize,
)
from image_cropper.handles import Handle, handle_point, hit_test
from image_cropper.ratios import AspectRatio, Axis, apply_ratio

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DragSession:
    """Transient state for one pointer gesture."""
    handle: Handle
    start: Rect
    anchor: Point          # fixed point for resize; unused for move
    offset: Point          # handle (or top-left for move) minus pointer at press
    direction: tuple[float, float]  # anchor fraction at press


class CropController:
    """State machine for an interactive crop rectangle."""

    def __init__(
        self,
        aspect_ratio: AspectRatio | None = None,
        *,
        min_size: float = MIN_CROP_SIZE,
        hit_tolerance: float = HANDLE_TOLERANCE,
    ):
        self._bounds: Size | None = None
        self._rect = Rect()
        self._aspect_ratio = aspect_ratio or AspectRatio.free()
        self._portrait = False
        self._min_size = float(min_size)
        self._session: DragSession | None = None
        # Image-space tolerance; the view updates it when its scale changes
        self.hit_tolerance = float(hit_tolerance)

    # --- State accessors ---

    @property
    def image_size(self) -> Size | None:
        return self._bounds

    def has_image(self) -> bool:
        return self._bounds is not None

    @property
    def aspect_ratio(self) -> AspectRatio:
        return self._aspect_ratio

    @property
    def portrait(self) -> bool:
        return self._portrait

    @property
    def is_dragging(self) -> bool:
        return self._session is not None

    @property
    def active_handle(self) -> Handle | None:
        return self._session.handle if self._session else None

    def current_rectangle(self) -> Rect:
        return self._rect

    def ratio_value(self) -> float | None:
        """The numeric width / height constraint currently in force."""
        return self._aspect_ratio.value(self._bounds)

    def min_dimension(self) -> float:
        """Minimum width/height.

        Never larger than the image itself, nor than the largest rectangle
        the active ratio allows inside it.
        """
        if self._bounds is None:
            return self._min_size
        floor = min(self._min_size, self._bounds.width, self._bounds.height)
        ratio = self.ratio_value()
        if ratio is not None:
            floor = min(floor, *calculate_max_crop(self._bounds, ratio))
        return floor

    # --- Configuration ---

    def set_image_bounds(self, width: float, height: float) -> None:
        """Set the loaded image size and reset the rectangle.

        Non-positive dimensions unload the image.
        """
        self._session = None
        if width <= 0 or height <= 0:
            self._bounds = None
            self._rect = Rect()
            logger.debug("Image bounds cleared")
            return
        self._bounds = Size(float(width), float(height))
        self.reset()
        logger.debug("Image bounds set to %sx%s, crop reset to %s", width, height, self._rect)

    def clear(self) -> None:
        self.set_image_bounds(0, 0)

    def set_aspect_ratio(self, aspect_ratio: AspectRatio) -> None:
        """Switch the ratio mode and re-validate the current rectangle.

        A drag in progress is ended first; its anchor and offset were
        captured for the previous ratio.
        """
        self._aspect_ratio = aspect_ratio
        logger.debug("Aspect ratio set to %s", aspect_ratio.label())
        if self._session is not None:
            logger.debug("Drag on %s ended by mode change", self._session.handle.name)
            self._session = None
        if self._bounds is not None:
            self._rect = self._conform(self._rect)

    def toggle_orientation(self) -> None:
        """Swap landscape/portrait for the active mode and re-validate."""
        self._portrait = not self._portrait
        if self._aspect_ratio.is_free:
            return
        self.set_aspect_ratio(self._aspect_ratio.swapped())

    def set_rectangle(self, rect: Rect) -> None:
        """Replace the rectangle with a collaborator-supplied one."""
        if self._bounds is None:
            return
        self._rect = self._conform(self._enforce_floor(clamp_to_bounds(rect, self._bounds)))

    def reset(self) -> None:
        """Largest rectangle valid for the active mode, centered."""
        if self._bounds is None:
            return
        self._session = None
        self._rect = largest_rect_for_ratio(self._bounds, self.ratio_value())

    # --- Pointer events (image coordinates) ---

    def hover(self, position: Point) -> Handle | None:
        """Return the handle under *position* without starting a drag."""
        if self._bounds is None:
            return None
        return hit_test(Point(*position), self._rect, self.hit_tolerance)

    def on_pointer_down(self, position: Point) -> Handle | None:
        """Start a drag session if *position* hits the rectangle."""
        if self._bounds is None:
            return None
        position = Point(*position)
        handle = hit_test(position, self._rect, self.hit_tolerance)
        if handle is None:
            return None

        rect = self._rect
        if handle is Handle.BODY:
            offset = Point(rect.left - position.x, rect.top - position.y)
            self._session = DragSession(handle, rect, rect.top_left, offset, (0.0, 0.0))
        else:
            grabbed = handle_point(rect, handle)
            offset = Point(grabbed.x - position.x, grabbed.y - position.y)
            fx, fy = handle.opposite.fraction
            # Edge handles keep the top/left edge fixed along the other axis
            if handle in (Handle.LEFT, Handle.RIGHT):
                fy = 0.0
            elif handle in (Handle.TOP, Handle.BOTTOM):
                fx = 0.0
            anchor = Point(rect.left + rect.width * fx, rect.top + rect.height * fy)
            self._session = DragSession(handle, rect, anchor, offset, (fx, fy))
        logger.debug("Drag started on %s", handle.name)
        return handle

    def on_pointer_move(self, position: Point) -> Rect:
        """Update the rectangle for the active drag; no-op when idle."""
        session = self._session
        if session is None or self._bounds is None:
            return self._rect
        target = Point(position[0] + session.offset.x, position[1] + session.offset.y)
        if session.handle is Handle.BODY:
            self._rect = self._moved(session.start, target.x, target.y)
        else:
            self._rect = self._resized(session, target)
        return self._rect

    def on_pointer_up(self) -> None:
        if self._session is not None:
            logger.debug("Drag finished on %s: %s", self._session.handle.name, self._rect)
        self._session = None

    def on_pointer_cancel(self) -> None:
        # The last computed rectangle stays committed
        self._session = None

    def nudge(self, dx: float, dy: float) -> Rect:
        """Move the rectangle by a keyboard step, stopping at the bounds."""
        if self._bounds is None or self._session is not None:
            return self._rect
        self._rect = self._moved(self._rect, self._rect.left + dx, self._rect.top + dy)
        return self._rect

    # --- Internals ---

    def _moved(self, start: Rect, left: float, top: float) -> Rect:
        return clamp_to_bounds(start.translated(left - start.left, top - start.top), self._bounds)

    def _resized(self, session: DragSession, target: Point) -> Rect:
        handle = session.handle
        start = session.start
        ax, ay = session.anchor
        ratio = self.ratio_value()
        floor = self.min_dimension()

        # Raw rectangle spanned by the anchor and the dragged handle
        if handle.is_corner:
            raw = Rect(ax, ay, target.x, target.y)
        elif handle in (Handle.LEFT, Handle.RIGHT):
            raw = Rect(ax, start.top, target.x, start.bottom)
        else:
            raw = Rect(start.left, ay, start.right, target.y)

        fx, fy = session.direction
        if handle is not Handle.TOP and handle is not Handle.BOTTOM:
            fx = _direction(target.x, ax, fx)
        if handle is not Handle.LEFT and handle is not Handle.RIGHT:
            fy = _direction(target.y, ay, fy)

        axis = Axis.HEIGHT if handle in (Handle.TOP, Handle.BOTTOM) else Axis.WIDTH
        rect = apply_ratio(raw, ratio, axis, (fx, fy))
        w = rect.width
        h = rect.height

        if ratio is None:
            need_w = need_h = floor
        else:
            need_w = max(floor, floor * ratio)
            need_h = need_w / ratio

        # Crossing the anchor towards a border with no room keeps the old side
        if fx != session.direction[0] and _room(ax, fx, self._bounds.width) < need_w:
            fx = session.direction[0]
            w = 0.0
        if fy != session.direction[1] and _room(ay, fy, self._bounds.height) < need_h:
            fy = session.direction[1]
            h = 0.0
        room_w = _room(ax, fx, self._bounds.width)
        room_h = _room(ay, fy, self._bounds.height)

        if ratio is None:
            if handle in (Handle.TOP, Handle.BOTTOM):
                w = start.width
            else:
                w = min(max(w, floor), room_w)
            if handle in (Handle.LEFT, Handle.RIGHT):
                h = start.height
            else:
                h = min(max(h, floor), room_h)
        else:
            if axis is Axis.HEIGHT:
                w = h * ratio
            w = min(max(w, need_w), room_w, room_h * ratio)
            h = w / ratio

        if ratio is None and handle in (Handle.TOP, Handle.BOTTOM):
            left = start.left
        else:
            left = ax - w * fx
        if ratio is None and handle in (Handle.LEFT, Handle.RIGHT):
            top = start.top
        else:
            top = ay - h * fy
        return clamp_to_bounds(Rect(left, top, left + w, top + h), self._bounds)

    def _enforce_floor(self, rect: Rect) -> Rect:
        floor = self.min_dimension()
        if rect.width >= floor and rect.height >= floor:
            return rect
        cx, cy = rect.center
        grown = Rect.from_center(cx, cy, max(rect.width, floor), max(rect.height, floor))
        return clamp_to_bounds(grown, self._bounds)

    def _conform(self, rect: Rect) -> Rect:
        """Fit *rect* to the active ratio about its center, within bounds."""
        ratio = self.ratio_value()
        rect = clamp_to_bounds(normalize(rect), self._bounds)
        if ratio is None:
            return self._enforce_floor(rect)
        fitted = fit_ratio(rect, ratio, ANCHOR_CENTER)
        floor = self.min_dimension()
        if fitted.width < floor or fitted.height < floor:
            logger.debug("Ratio %.4f collapses the crop; using the largest centered fit", ratio)
            return largest_rect_for_ratio(self._bounds, ratio)
        return clamp_to_bounds(fitted, self._bounds)


def _direction(target: float, anchor: float, fallback: float) -> float:
    """Anchor fraction (0 = rectangle extends forward, 1 = backward)."""
    if target > anchor:
        return 0.0
    if target < anchor:
        return 1.0
    return fallback


def _room(anchor: float, fraction: float, extent: float) -> float:
    """Space available from *anchor* in the direction given by *fraction*."""
    return extent - anchor if fraction == 0.0 else anchor
