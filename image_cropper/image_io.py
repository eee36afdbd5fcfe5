"""
Qt-free image I/O utilities.

Opens images (including layered PSD files), reads dimensions without full
decoding, slices the crop rectangle out of a decoded image and encodes the
result as PNG, JPEG or BMP.
"""

import logging
from pathlib import Path

from PIL import Image
from psd_tools import PSDImage

from image_cropper.config import JPEG_QUALITY_DEFAULT, PNG_COMPRESS_LEVEL, SAVE_FORMATS
from image_cropper.geometry import Rect, Size

logger = logging.getLogger(__name__)

# Allow very large images (Pillow's default limit is ~178MP)
Image.MAX_IMAGE_PIXELS = None


def open_image(path: Path) -> Image.Image:
    """Open an image file, using psd-tools for PSD and Pillow for the rest."""
    path = Path(path)
    if path.suffix.lower() == ".psd":
        psd = PSDImage.open(str(path))
        img = psd.composite()
    else:
        img = Image.open(path)
        img.load()
    logger.info("Opened %s (%dx%d, %s)", path.name, img.width, img.height, img.mode)
    return img


def get_image_size(path: Path) -> tuple[int, int]:
    """Get image dimensions without fully loading/compositing."""
    path = Path(path)
    if path.suffix.lower() == ".psd":
        psd = PSDImage.open(str(path))
        return psd.width, psd.height
    with Image.open(path) as img:
        return img.size


def save_format_for(path: Path) -> str:
    """Return the Pillow format name for *path*'s extension.

    Raises ValueError for extensions the exporter does not write.
    """
    fmt = SAVE_FORMATS.get(Path(path).suffix.lower())
    if fmt is None:
        supported = ", ".join(sorted(SAVE_FORMATS))
        raise ValueError(f"Unsupported output format {Path(path).suffix!r} (expected one of {supported})")
    return fmt


def crop_image(img: Image.Image, rect: Rect) -> Image.Image:
    """Slice *rect* (image-pixel coordinates) out of *img*."""
    box = rect.to_pixel_box(Size(img.width, img.height))
    return img.crop(box)


def save_image(img: Image.Image, path: Path, jpeg_quality: int = JPEG_QUALITY_DEFAULT) -> Path:
    """Encode *img* to *path*, choosing the format from the extension."""
    path = Path(path)
    fmt = save_format_for(path)
    if fmt == "JPEG":
        img.convert("RGB").save(str(path), "JPEG", quality=jpeg_quality, optimize=True)
    elif fmt == "BMP":
        img.convert("RGB").save(str(path), "BMP")
    else:
        if img.mode not in ("1", "L", "LA", "I", "P", "RGB", "RGBA"):
            img = img.convert("RGBA")
        img.save(str(path), "PNG", compress_level=PNG_COMPRESS_LEVEL)
    logger.info("Saved %s (%dx%d)", path, img.width, img.height)
    return path


def export_crop(img: Image.Image, rect: Rect, path: Path, jpeg_quality: int = JPEG_QUALITY_DEFAULT) -> Path:
    """Crop *img* to *rect* and save it to *path*."""
    return save_image(crop_image(img, rect), path, jpeg_quality=jpeg_quality)


def unique_path(out_path: Path) -> Path:
    """Return a unique path by appending -01, -02, etc. if file already exists."""
    if not out_path.exists():
        return out_path
    stem = out_path.stem
    suffix = out_path.suffix
    parent = out_path.parent
    counter = 1
    while True:
        candidate = parent / f"{stem}-{counter:02d}{suffix}"
        if not candidate.exists():
            return candidate
        counter += 1
