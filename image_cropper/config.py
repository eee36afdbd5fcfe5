"""
Application constants and configuration.

All constants controlling crop-editor behaviour, preset aspect ratios and
file handling live here.  Nothing is persisted between sessions; the values
below are the only configuration the application reads.
"""

# =============================================================================
# APP IDENTITY
# =============================================================================
APP_NAME = "image-cropper"
WINDOW_TITLE = "Image Cropper"

# =============================================================================
# PRESET RATIOS: landscape presets; portrait counterparts come from the
# orientation toggle, which swaps ratio_w and ratio_h
# =============================================================================
PRESET_RATIOS = [
    (1, 1),
    (3, 2),
    (4, 3),
    (16, 9),
    (16, 10),
]

# Custom ratio defaults and spin box range
DEFAULT_CUSTOM_RATIO = (4, 3)
CUSTOM_RATIO_MIN = 1
CUSTOM_RATIO_MAX = 100

# =============================================================================
# Crop editor behaviour
# =============================================================================

# Minimum crop size (pixels in image coordinates)
MIN_CROP_SIZE = 10

# Hit tolerance around handles (pixels in screen coordinates)
HANDLE_TOLERANCE = 10

# Half-size of the drawn handle markers (pixels in screen coordinates)
HANDLE_SIZE = 5

# Padding around the letterboxed image (pixels in screen coordinates)
VIEW_PADDING = 20

# Nudge amounts (pixels in image coordinates)
NUDGE_SMALL = 1
NUDGE_LARGE = 10


# =============================================================================
# File handling
# =============================================================================

# Extensions accepted by the open dialog and drag-and-drop
OPEN_EXTENSIONS = {".png", ".jpg", ".jpeg", ".bmp", ".tif", ".tiff", ".webp", ".psd"}

# Save extension -> Pillow format name
SAVE_FORMATS = {
    ".png": "PNG",
    ".jpg": "JPEG",
    ".jpeg": "JPEG",
    ".bmp": "BMP",
}

# PNG compression level (0-9, 9 = maximum compression)
PNG_COMPRESS_LEVEL = 9

# JPEG export quality
JPEG_QUALITY_DEFAULT = 95
