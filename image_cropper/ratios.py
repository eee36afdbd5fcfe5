"""
Aspect-ratio modes and the ratio policy applied to crop rectangles.

An ``AspectRatio`` is one of Free, Preset, Original or Custom.  Preset and
Custom carry explicit ``ratio_w:ratio_h`` components; Original takes its
ratio from the loaded image and only remembers whether it is transposed.
Components are validated when a mode is constructed, so the crop controller
never sees a zero or negative ratio.  This module is Qt-free.
"""

import enum
import math
from dataclasses import dataclass, replace
from math import gcd

from image_cropper.config import PRESET_RATIOS
from image_cropper.geometry import Rect, Size, normalize


class RatioMode(enum.Enum):
    FREE = "free"
    PRESET = "preset"
    ORIGINAL = "original"
    CUSTOM = "custom"


class Axis(enum.Enum):
    """The dimension the user drives during a constrained resize."""
    WIDTH = "width"
    HEIGHT = "height"


# =============================================================================
# Aspect-ratio helpers
# =============================================================================
def normalize_ratio(w: int, h: int) -> tuple[int, int]:
    """Reduce ratio to simplest form via GCD. (16, 10) → (8, 5)"""
    g = gcd(w, h)
    return w // g, h // g


def aspect_key(w: int, h: int) -> str:
    """Normalized string key for a ratio. (16, 10) → '8:5'"""
    nw, nh = normalize_ratio(w, h)
    return f"{nw}:{nh}"


def _format_component(value: float) -> str:
    return str(int(value)) if float(value).is_integer() else f"{value:g}"


def _validate_components(ratio_w: float, ratio_h: float) -> None:
    for name, val in (("ratio_w", ratio_w), ("ratio_h", ratio_h)):
        if isinstance(val, bool) or not isinstance(val, (int, float)):
            raise ValueError(f"{name} must be a number, got {val!r}")
        if not math.isfinite(val) or val <= 0:
            raise ValueError(f"{name} must be a positive number, got {val!r}")


# =============================================================================
# Aspect ratio mode
# =============================================================================
@dataclass(frozen=True)
class AspectRatio:
    """Active constraint on the crop rectangle's width:height relationship.

    Use the ``free``/``original``/``preset``/``custom`` constructors rather
    than instantiating directly; they validate the components.
    """
    mode: RatioMode = RatioMode.FREE
    ratio_w: float = 0
    ratio_h: float = 0
    transposed: bool = False  # Original only: use image height:width

    @classmethod
    def free(cls) -> "AspectRatio":
        return cls(RatioMode.FREE)

    @classmethod
    def original(cls, transposed: bool = False) -> "AspectRatio":
        return cls(RatioMode.ORIGINAL, transposed=transposed)

    @classmethod
    def preset(cls, ratio_w: float, ratio_h: float) -> "AspectRatio":
        _validate_components(ratio_w, ratio_h)
        return cls(RatioMode.PRESET, ratio_w, ratio_h)

    @classmethod
    def custom(cls, ratio_w: float, ratio_h: float) -> "AspectRatio":
        _validate_components(ratio_w, ratio_h)
        return cls(RatioMode.CUSTOM, ratio_w, ratio_h)

    @property
    def is_free(self) -> bool:
        return self.mode is RatioMode.FREE

    def value(self, image_size: Size | None = None) -> float | None:
        """Return the target width / height, or None when unconstrained.

        Original needs *image_size*; without a loaded image it is
        unconstrained.
        """
        if self.mode is RatioMode.FREE:
            return None
        if self.mode is RatioMode.ORIGINAL:
            if image_size is None or image_size.is_empty():
                return None
            if self.transposed:
                return image_size.height / image_size.width
            return image_size.width / image_size.height
        return self.ratio_w / self.ratio_h

    def swapped(self) -> "AspectRatio":
        """Return the orientation counterpart (landscape <-> portrait).

        Swapping twice returns an equal mode.  Free has no orientation.
        """
        if self.mode is RatioMode.FREE:
            return self
        if self.mode is RatioMode.ORIGINAL:
            return replace(self, transposed=not self.transposed)
        return replace(self, ratio_w=self.ratio_h, ratio_h=self.ratio_w)

    def label(self) -> str:
        if self.mode is RatioMode.FREE:
            return "Free"
        if self.mode is RatioMode.ORIGINAL:
            return "Original (portrait)" if self.transposed else "Original"
        text = f"{_format_component(self.ratio_w)}:{_format_component(self.ratio_h)}"
        if self.mode is RatioMode.CUSTOM:
            # Whole-number custom ratios are shown reduced (8:6 -> 4:3)
            if float(self.ratio_w).is_integer() and float(self.ratio_h).is_integer():
                text = aspect_key(int(self.ratio_w), int(self.ratio_h))
            return f"Custom {text}"
        return text


def preset_modes(portrait: bool = False) -> list[AspectRatio]:
    """Return the preset modes in the requested orientation."""
    modes = [AspectRatio.preset(w, h) for w, h in PRESET_RATIOS]
    if portrait:
        modes = [m.swapped() for m in modes]
    return modes


# =============================================================================
# Ratio policy
# =============================================================================
def apply_ratio(
    rect: Rect,
    ratio: float | None,
    axis: Axis,
    anchor: tuple[float, float],
) -> Rect:
    """Return *rect* corrected to *ratio*, keeping the *anchor* point fixed.

    The dimension named by *axis* is kept; the other one is derived from
    it.  *anchor* is a fraction of the rectangle, e.g. ``(1, 0)`` for the
    top-right corner.  Free (``ratio is None``) returns the normalised
    input unchanged.
    """
    rect = normalize(rect)
    if ratio is None:
        return rect
    if axis is Axis.WIDTH:
        w = rect.width
        h = w / ratio
    else:
        h = rect.height
        w = h * ratio
    ax = rect.left + rect.width * anchor[0]
    ay = rect.top + rect.height * anchor[1]
    left = ax - w * anchor[0]
    top = ay - h * anchor[1]
    return Rect(left, top, left + w, top + h)
