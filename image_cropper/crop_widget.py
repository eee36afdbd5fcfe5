"""
Interactive crop-overlay widget and Qt image helpers.

This module contains everything that touches both Qt **and** image display:
``pil_to_qpixmap``, the background ``ImageLoaderThread``, and the
``ImageCropWidget`` editor.  All crop geometry is delegated to
``CropController``; the widget only maps events between screen and image
coordinates and paints the result.
"""

from pathlib import Path

from PIL import Image
from PyQt6.QtWidgets import QWidget, QSizePolicy
from PyQt6.QtCore import Qt, QRectF, QPointF, pyqtSignal, QThread
from PyQt6.QtGui import (
    QPainter, QPixmap, QColor, QPen, QBrush, QImage,
    QKeyEvent, QMouseEvent, QPaintEvent, QResizeEvent,
    QDragEnterEvent, QDropEvent,
)

from image_cropper.config import (
    HANDLE_SIZE, HANDLE_TOLERANCE, NUDGE_LARGE, NUDGE_SMALL, OPEN_EXTENSIONS, VIEW_PADDING,
)
from image_cropper.controller import CropController
from image_cropper.geometry import Point, Rect
from image_cropper.handles import Handle, handle_points
from image_cropper.image_io import open_image
from image_cropper.transform import ViewTransform


# =============================================================================
# Qt ↔ PIL helpers
# =============================================================================

def pil_to_qpixmap(pil_img: Image.Image) -> QPixmap:
    """Convert a PIL Image to QPixmap."""
    img_rgba = pil_img.convert("RGBA")
    data = img_rgba.tobytes("raw", "RGBA")
    qimg = QImage(data, img_rgba.width, img_rgba.height, QImage.Format.Format_RGBA8888)
    # QImage does not own *data*; copy before it goes out of scope
    return QPixmap.fromImage(qimg.copy())


def cursor_for_handle(handle: Handle | None) -> Qt.CursorShape:
    """Return the appropriate cursor shape for a given crop handle."""
    return {
        Handle.LEFT: Qt.CursorShape.SizeHorCursor,
        Handle.RIGHT: Qt.CursorShape.SizeHorCursor,
        Handle.TOP: Qt.CursorShape.SizeVerCursor,
        Handle.BOTTOM: Qt.CursorShape.SizeVerCursor,
        Handle.TOP_LEFT: Qt.CursorShape.SizeFDiagCursor,
        Handle.BOTTOM_RIGHT: Qt.CursorShape.SizeFDiagCursor,
        Handle.TOP_RIGHT: Qt.CursorShape.SizeBDiagCursor,
        Handle.BOTTOM_LEFT: Qt.CursorShape.SizeBDiagCursor,
        Handle.BODY: Qt.CursorShape.SizeAllCursor,
    }.get(handle, Qt.CursorShape.ArrowCursor)


def _to_qrect(rect: Rect) -> QRectF:
    return QRectF(rect.left, rect.top, rect.width, rect.height)


# =============================================================================
# Background image loader
# =============================================================================

class ImageLoaderThread(QThread):
    """Background thread for decoding images (especially large PSDs).

    Emits the decoded PIL image; the pixmap is built on the GUI thread.
    """
    finished = pyqtSignal(object)
    error = pyqtSignal(str)

    def __init__(self, path: Path, parent=None):
        super().__init__(parent)
        self._path = path

    def run(self):
        try:
            self.finished.emit(open_image(self._path))
        except Exception as e:
            self.error.emit(str(e))


# =============================================================================
# Image Crop Widget: interactive crop overlay on image
# =============================================================================

class ImageCropWidget(QWidget):
    """Widget that displays an image with an interactive, resizable crop overlay."""

    crop_changed = pyqtSignal()
    file_dropped = pyqtSignal(str)

    def __init__(self, controller: CropController | None = None, parent=None):
        super().__init__(parent)
        self.setMinimumSize(400, 300)
        self.setFocusPolicy(Qt.FocusPolicy.StrongFocus)
        self.setSizePolicy(QSizePolicy.Policy.Expanding, QSizePolicy.Policy.Expanding)
        self.setMouseTracking(True)
        self.setAcceptDrops(True)

        self._controller = controller or CropController()
        self._pixmap: QPixmap | None = None
        self._transform = ViewTransform()
        self._loading = False

    @property
    def controller(self) -> CropController:
        return self._controller

    def set_loading(self, loading: bool):
        """Show/hide loading indicator."""
        self._loading = loading
        self.update()

    def set_image(self, pixmap: QPixmap, img_w: int, img_h: int):
        """Set the image to display and reset the crop to the image."""
        self._loading = False
        self._pixmap = pixmap
        self._controller.set_image_bounds(img_w, img_h)
        self._update_display_mapping()
        self.crop_changed.emit()
        self.update()

    def has_image(self) -> bool:
        """Return True if an image is loaded and ready for crop operations."""
        return self._pixmap is not None

    def clear(self):
        self._pixmap = None
        self._controller.clear()
        self.update()

    def refresh(self):
        """Repaint after the controller was changed from outside the widget."""
        self.crop_changed.emit()
        self.update()

    # --- Coordinate mapping ---

    def _update_display_mapping(self):
        """Calculate scale and offset to fit image in widget with letterboxing."""
        size = self._controller.image_size
        if not self._pixmap or size is None:
            return
        viewport = Rect(0.0, 0.0, float(self.width()), float(self.height()))
        self._transform = ViewTransform.fit(viewport, size, VIEW_PADDING)
        self._controller.hit_tolerance = self._transform.length_to_image(HANDLE_TOLERANCE)

    def _event_to_img(self, pos: QPointF) -> Point:
        return self._transform.screen_to_image(Point(pos.x(), pos.y()))

    def _crop_display_rect(self) -> QRectF:
        return _to_qrect(self._transform.rect_to_screen(self._controller.current_rectangle()))

    # --- Painting ---

    def paintEvent(self, event: QPaintEvent):
        painter = QPainter(self)
        painter.setRenderHint(QPainter.RenderHint.SmoothPixmapTransform)
        painter.fillRect(self.rect(), QColor(30, 30, 30))

        size = self._controller.image_size
        if not self._pixmap or size is None:
            painter.setPen(QColor(128, 128, 128))
            msg = "Loading image…" if self._loading else "Open or drop an image to start cropping"
            painter.drawText(self.rect(), Qt.AlignmentFlag.AlignCenter, msg)
            painter.end()
            return

        # Draw image
        dest = _to_qrect(self._transform.rect_to_screen(size.rect()))
        painter.drawPixmap(dest.toRect(), self._pixmap)

        # Dim area outside crop
        crop_rect = self._crop_display_rect()
        dim = QColor(0, 0, 0, 150)

        # Top strip
        painter.fillRect(QRectF(dest.left(), dest.top(), dest.width(), crop_rect.top() - dest.top()), dim)
        # Bottom strip
        painter.fillRect(QRectF(dest.left(), crop_rect.bottom(), dest.width(), dest.bottom() - crop_rect.bottom()), dim)
        # Left strip
        painter.fillRect(QRectF(dest.left(), crop_rect.top(), crop_rect.left() - dest.left(), crop_rect.height()), dim)
        # Right strip
        painter.fillRect(QRectF(crop_rect.right(), crop_rect.top(), dest.right() - crop_rect.right(), crop_rect.height()), dim)

        # Draw crop border
        pen = QPen(QColor(255, 255, 255), 1)
        painter.setPen(pen)
        painter.drawRect(crop_rect)

        # Draw rule-of-thirds lines
        pen_thirds = QPen(QColor(255, 255, 255, 80), 1, Qt.PenStyle.DashLine)
        painter.setPen(pen_thirds)
        for i in range(1, 3):
            x = crop_rect.left() + crop_rect.width() * i / 3
            painter.drawLine(QPointF(x, crop_rect.top()), QPointF(x, crop_rect.bottom()))
            y = crop_rect.top() + crop_rect.height() * i / 3
            painter.drawLine(QPointF(crop_rect.left(), y), QPointF(crop_rect.right(), y))

        # Draw the eight handles
        painter.setRenderHint(QPainter.RenderHint.Antialiasing)
        painter.setPen(QPen(QColor(0, 0, 0), 1))
        painter.setBrush(QBrush(QColor(255, 255, 255)))
        screen_rect = self._transform.rect_to_screen(self._controller.current_rectangle())
        for point in handle_points(screen_rect).values():
            painter.drawEllipse(QPointF(point.x, point.y), HANDLE_SIZE, HANDLE_SIZE)

        # Draw crop size label
        crop = self._controller.current_rectangle()
        painter.setPen(QColor(255, 255, 255))
        label = f"{round(crop.width)} × {round(crop.height)}"
        painter.drawText(
            crop_rect.adjusted(0, -20, 0, 0).toRect(),
            Qt.AlignmentFlag.AlignHCenter | Qt.AlignmentFlag.AlignBottom,
            label,
        )

        painter.end()

    def resizeEvent(self, event: QResizeEvent):
        self._update_display_mapping()
        super().resizeEvent(event)

    # --- Mouse interaction ---

    def mousePressEvent(self, event: QMouseEvent):
        if event.button() != Qt.MouseButton.LeftButton or not self._pixmap:
            return
        handle = self._controller.on_pointer_down(self._event_to_img(event.position()))
        if handle is Handle.BODY:
            self.setCursor(Qt.CursorShape.ClosedHandCursor)

    def mouseMoveEvent(self, event: QMouseEvent):
        if not self._pixmap:
            return
        pos = self._event_to_img(event.position())

        if self._controller.is_dragging:
            self._controller.on_pointer_move(pos)
            self.crop_changed.emit()
            self.update()
        else:
            self.setCursor(cursor_for_handle(self._controller.hover(pos)))

    def mouseReleaseEvent(self, event: QMouseEvent):
        if event.button() == Qt.MouseButton.LeftButton:
            self._controller.on_pointer_up()
            self.setCursor(cursor_for_handle(self._controller.hover(self._event_to_img(event.position()))))

    def leaveEvent(self, event):
        # Qt grabs the mouse while a button is held, so this only fires mid-drag on a forced ungrab
        if self._controller.is_dragging:
            self._controller.on_pointer_cancel()
        self.unsetCursor()
        super().leaveEvent(event)

    # --- Keyboard nudge ---

    def keyPressEvent(self, event: QKeyEvent):
        if not self._pixmap:
            return
        if event.key() == Qt.Key.Key_Escape and self._controller.is_dragging:
            self._controller.on_pointer_cancel()
            return
        amount = NUDGE_LARGE if event.modifiers() & Qt.KeyboardModifier.ShiftModifier else NUDGE_SMALL
        deltas = {
            Qt.Key.Key_Left: (-amount, 0),
            Qt.Key.Key_Right: (amount, 0),
            Qt.Key.Key_Up: (0, -amount),
            Qt.Key.Key_Down: (0, amount),
        }
        delta = deltas.get(event.key())
        if delta is None:
            super().keyPressEvent(event)
            return
        self._controller.nudge(*delta)
        self.crop_changed.emit()
        self.update()

    # --- Drag and drop ---

    def dragEnterEvent(self, event: QDragEnterEvent):
        if self._dropped_path(event) is not None:
            event.acceptProposedAction()
        else:
            event.ignore()

    def dropEvent(self, event: QDropEvent):
        path = self._dropped_path(event)
        if path is None:
            super().dropEvent(event)
            return
        event.acceptProposedAction()
        self.file_dropped.emit(str(path))

    @staticmethod
    def _dropped_path(event) -> Path | None:
        """Return the first dropped local file with a supported extension."""
        md = event.mimeData()
        if not md.hasUrls():
            return None
        for url in md.urls():
            local = url.toLocalFile()
            if local and Path(local).suffix.lower() in OPEN_EXTENSIONS:
                return Path(local)
        return None
