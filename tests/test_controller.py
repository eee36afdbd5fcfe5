"""Tests for the crop rectangle controller state machine."""

import pytest

from image_cropper.controller import CropController
from image_cropper.geometry import Point, Rect
from image_cropper.handles import Handle, handle_point
from image_cropper.ratios import AspectRatio

IMAGE_W, IMAGE_H = 1000, 800
RATIO_EPS = 1e-6
BOUNDS_EPS = 1e-9


def _make(aspect_ratio=None, rect=None):
    controller = CropController(aspect_ratio)
    controller.set_image_bounds(IMAGE_W, IMAGE_H)
    if rect is not None:
        controller.set_rectangle(rect)
    return controller


def _drag(controller, start, end):
    handle = controller.on_pointer_down(Point(*start))
    controller.on_pointer_move(Point(*end))
    controller.on_pointer_up()
    return handle


def _assert_valid(controller):
    rect = controller.current_rectangle()
    size = controller.image_size
    assert rect.left >= -BOUNDS_EPS and rect.top >= -BOUNDS_EPS, f"{rect} escapes the image"
    assert rect.right <= size.width + BOUNDS_EPS and rect.bottom <= size.height + BOUNDS_EPS, f"{rect} escapes the image"
    assert rect.width >= controller.min_dimension() - BOUNDS_EPS
    assert rect.height >= controller.min_dimension() - BOUNDS_EPS
    ratio = controller.ratio_value()
    if ratio is not None:
        assert abs(rect.width / rect.height - ratio) <= RATIO_EPS


@pytest.fixture
def free_controller():
    return _make(rect=Rect(100, 100, 300, 300))


# --- No image ---

def test_operations_without_image_are_noops():
    """Pointer and configuration calls do nothing until an image is loaded."""
    controller = CropController()

    assert controller.on_pointer_down(Point(5, 5)) is None
    assert not controller.is_dragging
    assert controller.on_pointer_move(Point(50, 50)) == Rect()
    controller.on_pointer_up()
    controller.on_pointer_cancel()
    controller.nudge(10, 10)
    controller.set_rectangle(Rect(0, 0, 50, 50))
    controller.set_aspect_ratio(AspectRatio.preset(1, 1))
    controller.reset()

    assert controller.current_rectangle() == Rect()
    assert not controller.has_image()
    assert controller.hover(Point(0, 0)) is None


def test_clearing_image_returns_to_noop_state(free_controller):
    free_controller.clear()

    assert not free_controller.has_image()
    assert free_controller.on_pointer_down(Point(200, 200)) is None


# --- Image bounds ---

def test_set_image_bounds_resets_free_to_full_image():
    controller = _make()
    assert controller.current_rectangle() == Rect(0, 0, IMAGE_W, IMAGE_H)


def test_set_image_bounds_resets_to_largest_centered_ratio():
    controller = _make(AspectRatio.preset(1, 1))
    assert controller.current_rectangle() == Rect(100, 0, 900, 800)


def test_replacing_image_resets_rectangle(free_controller):
    free_controller.set_image_bounds(400, 200)
    assert free_controller.current_rectangle() == Rect(0, 0, 400, 200)


def test_reset_restores_default(free_controller):
    free_controller.reset()
    assert free_controller.current_rectangle() == Rect(0, 0, IMAGE_W, IMAGE_H)


# --- Resize scenarios ---

def test_original_ratio_corner_drag_scenario():
    """Dragging BottomRight of an Original-ratio crop keeps 1.25 and stays inside."""
    controller = _make(AspectRatio.original(), Rect(100, 80, 500, 400))

    handle = _drag(controller, (500, 400), (900, 900))

    rect = controller.current_rectangle()
    assert handle is Handle.BOTTOM_RIGHT
    assert rect.width / rect.height == pytest.approx(1.25)
    assert rect.bottom <= IMAGE_H
    assert rect.top_left == (100, 80)
    assert rect == Rect(100, 80, 900, 720)


def test_custom_ratio_left_edge_scenario():
    """Left edge to x=50 on 2:1 gives 450x225 with the right edge and top fixed."""
    controller = _make(AspectRatio.custom(2, 1), Rect(100, 100, 500, 300))

    handle = _drag(controller, (100, 200), (50, 200))

    rect = controller.current_rectangle()
    assert handle is Handle.LEFT
    assert rect.width == pytest.approx(450)
    assert rect.height == pytest.approx(225)
    assert rect.right == 500
    assert rect.top == 100
    assert rect.bottom == pytest.approx(325)


def test_corner_drag_past_bounds_shrinks_instead_of_moving_anchor():
    controller = _make(AspectRatio.original(), Rect(100, 80, 500, 400))

    _drag(controller, (500, 400), (2000, 2000))

    assert controller.current_rectangle() == Rect(100, 80, 1000, 800)
    _assert_valid(controller)


def test_drag_past_anchor_flips_rectangle(free_controller):
    """Dragging BottomRight over the TopLeft anchor mirrors the rectangle."""
    _drag(free_controller, (300, 300), (50, 50))

    assert free_controller.current_rectangle() == Rect(50, 50, 100, 100)


def test_free_edge_drag_changes_one_dimension(free_controller):
    _drag(free_controller, (200, 300), (200, 500))

    assert free_controller.current_rectangle() == Rect(100, 100, 300, 500)


def test_minimum_size_floor(free_controller):
    """A resize cannot collapse the rectangle below the floor."""
    _drag(free_controller, (300, 300), (102, 102))

    assert free_controller.current_rectangle() == Rect(100, 100, 110, 110)


def test_floor_never_exceeds_image():
    controller = CropController()
    controller.set_image_bounds(5, 5)

    _drag(controller, (5, 5), (0, 0))

    assert controller.min_dimension() == 5
    assert controller.current_rectangle() == Rect(0, 0, 5, 5)


_HANDLES = [h for h in Handle if h is not Handle.BODY]
_TARGETS = [(-100, -100), (2000, 2000), (500, 10), (10, 790), (480, 400), (0, 400), (450, 400)]


@pytest.mark.parametrize("handle", _HANDLES, ids=lambda h: h.name)
@pytest.mark.parametrize("target", _TARGETS)
def test_constrained_resize_invariants(handle, target):
    """Every 3:2 resize stays inside the image, above the floor and on ratio."""
    start = Rect(300, 300, 600, 500)
    controller = _make(AspectRatio.custom(3, 2), start)

    grabbed = _drag(controller, handle_point(start, handle), target)

    assert grabbed is handle
    _assert_valid(controller)
    if handle.is_corner:
        anchor = handle_point(start, handle.opposite)
        rect = controller.current_rectangle()
        corners = [(rect.left, rect.top), (rect.right, rect.top), (rect.left, rect.bottom), (rect.right, rect.bottom)]
        assert any(c == pytest.approx(anchor) for c in corners), "anchor corner moved"


@pytest.mark.parametrize("handle", _HANDLES, ids=lambda h: h.name)
@pytest.mark.parametrize("target", _TARGETS)
def test_free_resize_invariants(handle, target):
    start = Rect(300, 300, 600, 500)
    controller = _make(rect=start)

    _drag(controller, handle_point(start, handle), target)

    _assert_valid(controller)


# --- Move ---

def test_move_preserves_size_and_stops_at_boundary():
    """Body drags never resize and stop flush with the image edge."""
    controller = _make(rect=Rect(100, 100, 150, 400))

    assert _drag(controller, (125, 250), (2125, 250)) is Handle.BODY
    assert controller.current_rectangle() == Rect(950, 100, 1000, 400)

    _drag(controller, (975, 250), (-500, -500))
    assert controller.current_rectangle() == Rect(0, 0, 50, 300)


def test_move_follows_pointer_delta(free_controller):
    free_controller.on_pointer_down(Point(200, 200))
    free_controller.on_pointer_move(Point(230, 180))

    assert free_controller.current_rectangle() == Rect(130, 80, 330, 280)


def test_nudge_stops_at_boundary(free_controller):
    free_controller.nudge(-1000, 5)
    assert free_controller.current_rectangle() == Rect(0, 105, 200, 305)


# --- Session lifecycle ---

def test_pointer_down_outside_stays_idle(free_controller):
    assert free_controller.on_pointer_down(Point(700, 700)) is None
    assert not free_controller.is_dragging
    assert free_controller.on_pointer_move(Point(10, 10)) == Rect(100, 100, 300, 300)


def test_cancel_commits_last_rectangle(free_controller):
    """Cancelling keeps the last computed rectangle and returns to idle."""
    free_controller.on_pointer_down(Point(300, 300))
    assert free_controller.active_handle is Handle.BOTTOM_RIGHT
    free_controller.on_pointer_move(Point(400, 350))
    free_controller.on_pointer_cancel()

    assert not free_controller.is_dragging
    assert free_controller.active_handle is None
    assert free_controller.current_rectangle() == Rect(100, 100, 400, 350)


def test_nudge_ignored_while_dragging(free_controller):
    free_controller.on_pointer_down(Point(200, 200))
    free_controller.nudge(10, 10)
    assert free_controller.current_rectangle() == Rect(100, 100, 300, 300)


def test_hover_does_not_start_drag(free_controller):
    assert free_controller.hover(Point(100, 100)) is Handle.TOP_LEFT
    assert not free_controller.is_dragging


def test_hit_tolerance_is_adjustable(free_controller):
    assert free_controller.hover(Point(75, 75)) is None
    free_controller.hit_tolerance = 30
    assert free_controller.hover(Point(75, 75)) is Handle.TOP_LEFT


# --- Mode changes ---

def test_free_to_square_fits_about_center():
    """A 50x300 strip becomes a 50x50 square around the same center."""
    controller = _make(rect=Rect(100, 100, 150, 400))

    controller.set_aspect_ratio(AspectRatio.preset(1, 1))

    rect = controller.current_rectangle()
    assert rect == Rect(100, 225, 150, 275)
    assert rect.center == (125, 250)


def test_mode_change_falls_back_to_largest_fit():
    """A fit that would collapse below the floor uses the largest centered crop."""
    controller = _make(rect=Rect(0, 0, 10, 800))

    controller.set_aspect_ratio(AspectRatio.preset(16, 9))

    assert controller.current_rectangle().as_xywh() == pytest.approx((0, 118.75, 1000, 562.5))
    _assert_valid(controller)


def test_set_rectangle_conforms_to_ratio():
    controller = _make(AspectRatio.preset(1, 1))

    controller.set_rectangle(Rect(-100, 0, 300, 200))

    assert controller.current_rectangle() == Rect(100, 0, 300, 200)


def test_toggle_orientation_round_trip():
    """Toggling twice restores the exact ratio."""
    controller = _make(AspectRatio.preset(16, 9))

    controller.toggle_orientation()
    assert controller.portrait
    assert controller.aspect_ratio == AspectRatio.preset(9, 16)
    _assert_valid(controller)

    controller.toggle_orientation()
    assert not controller.portrait
    assert controller.aspect_ratio == AspectRatio.preset(16, 9)
    assert controller.ratio_value() == 16 / 9
    _assert_valid(controller)


def test_toggle_orientation_original():
    controller = _make(AspectRatio.original())

    controller.toggle_orientation()

    assert controller.ratio_value() == pytest.approx(0.8)
    _assert_valid(controller)


def test_toggle_orientation_free_keeps_rectangle(free_controller):
    free_controller.toggle_orientation()

    assert free_controller.portrait
    assert free_controller.aspect_ratio == AspectRatio.free()
    assert free_controller.current_rectangle() == Rect(100, 100, 300, 300)


# --- Mode changes during a drag ---

def _toggle(controller):
    controller.toggle_orientation()


def _square(controller):
    controller.set_aspect_ratio(AspectRatio.preset(1, 1))


@pytest.mark.parametrize("change", [_toggle, _square], ids=["toggle", "square"])
@pytest.mark.parametrize("press", [(500, 400), (1000, 681.25)], ids=["body", "bottom_right"])
@pytest.mark.parametrize("move_after", [False, True], ids=["still", "moved"])
@pytest.mark.parametrize("release", ["on_pointer_up", "on_pointer_cancel"])
def test_mode_change_mid_drag_is_applied(change, press, move_after, release):
    """Changing the ratio while a button is held ends the drag and re-applies the ratio."""
    controller = _make(AspectRatio.preset(16, 9))
    controller.on_pointer_down(Point(*press))
    assert controller.is_dragging

    change(controller)

    assert not controller.is_dragging
    committed = controller.current_rectangle()
    if move_after:
        controller.on_pointer_move(Point(press[0] - 200, press[1] - 200))
    getattr(controller, release)()

    assert controller.current_rectangle() == committed
    _assert_valid(controller)


def test_toggle_mid_body_drag_then_release():
    """Body drag, orientation toggle, release: the crop ends up at 9:16."""
    controller = _make(AspectRatio.preset(16, 9))

    controller.on_pointer_down(Point(500, 400))
    controller.toggle_orientation()
    controller.on_pointer_up()

    rect = controller.current_rectangle()
    assert rect.width / rect.height == pytest.approx(9 / 16)
    assert rect.center == pytest.approx((500, 400))


# --- Extreme ratios ---

def test_floor_capped_by_extreme_ratio():
    """A 100:1 crop on an 800x600 image can only be 8px tall, so the floor is 8."""
    controller = CropController()
    controller.set_image_bounds(800, 600)

    controller.set_aspect_ratio(AspectRatio.custom(100, 1))

    assert controller.min_dimension() == pytest.approx(8)
    assert controller.current_rectangle() == Rect(0, 296, 800, 304)
    _assert_valid(controller)


@pytest.mark.parametrize("target", [(98, 1), (0, 0), (300, 30), (50, 7)])
def test_drag_with_ratio_larger_than_floor_allows(target):
    """On a 15px-tall image a 1:3 crop is at most 5px wide; drags respect that floor."""
    controller = CropController(AspectRatio.custom(1, 3), hit_tolerance=1)
    controller.set_image_bounds(200, 15)
    start = controller.current_rectangle()

    assert _drag(controller, start.bottom_right, target) is Handle.BOTTOM_RIGHT

    assert controller.min_dimension() == pytest.approx(5)
    _assert_valid(controller)
