"""Tests for screen <-> image coordinate mapping."""

import pytest

from image_cropper.geometry import Point, Rect, Size
from image_cropper.transform import ViewTransform, fit_display_size, image_to_screen, screen_to_image


@pytest.fixture
def transform():
    """1000x800 image letterboxed in an 840x640 view with 20px padding."""
    return ViewTransform.fit(Rect(0, 0, 840, 640), Size(1000, 800), padding=20)


def test_fit_display_size():
    assert fit_display_size(Size(840, 640), Size(1000, 800), 20) == Size(750, 600)


def test_fit_centers_image(transform):
    assert transform.scale == pytest.approx(0.75)
    assert transform.image_to_screen(Point(0, 0)) == pytest.approx((45, 20))
    assert transform.image_to_screen(Point(1000, 800)) == pytest.approx((795, 620))


@pytest.mark.parametrize("point", [(0, 0), (45, 20), (123.4, 567.8), (839.9, 0.1), (420, 320)])
def test_screen_image_round_trip(transform, point):
    """Mapping a screen point to the image and back returns the same point."""
    p = Point(*point)
    assert transform.image_to_screen(transform.screen_to_image(p)) == pytest.approx(p)
    assert transform.screen_to_image(transform.image_to_screen(p)) == pytest.approx(p)


def test_rect_mapping_round_trip(transform):
    rect = Rect(100, 80, 500, 400)

    on_screen = transform.rect_to_screen(rect)

    assert on_screen.as_xywh() == pytest.approx((120, 80, 300, 240))
    assert transform.screen_to_image(on_screen.bottom_right) == pytest.approx(rect.bottom_right)


def test_module_level_functions():
    """The stateless helpers take the viewport and both sizes explicitly."""
    viewport = Rect(10, 10, 410, 310)
    display = Size(400, 200)
    image = Size(800, 400)

    assert screen_to_image(Point(210, 160), viewport, display, image) == pytest.approx((400, 200))
    assert image_to_screen(Point(400, 200), viewport, display, image) == pytest.approx((210, 160))


def test_length_to_image(transform):
    assert transform.length_to_image(10) == pytest.approx(10 / 0.75)


def test_degenerate_viewport():
    """A viewport smaller than the padding maps everything to the origin."""
    transform = ViewTransform.fit(Rect(0, 0, 10, 10), Size(100, 100), padding=20)

    assert transform.screen_to_image(Point(5, 5)) == (0, 0)
    assert transform.length_to_image(10) == 10
