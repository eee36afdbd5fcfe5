"""
Main application window.

Orchestrates image loading (dialog or drag-and-drop), aspect-ratio
selection, orientation toggling and export of the cropped region.
"""

import logging
from pathlib import Path

from PIL import Image
from PyQt6.QtWidgets import (
    QMainWindow, QWidget, QVBoxLayout, QHBoxLayout, QPushButton, QLabel,
    QFileDialog, QGroupBox, QMessageBox, QStatusBar, QToolBar, QComboBox,
    QSpinBox, QApplication,
)
from PyQt6.QtCore import Qt
from PyQt6.QtGui import QAction, QKeySequence, QShortcut

from image_cropper.config import (
    CUSTOM_RATIO_MAX, CUSTOM_RATIO_MIN, DEFAULT_CUSTOM_RATIO, OPEN_EXTENSIONS, WINDOW_TITLE,
)
from image_cropper.controller import CropController
from image_cropper.crop_widget import ImageCropWidget, ImageLoaderThread, pil_to_qpixmap
from image_cropper.image_io import export_crop, get_image_size, unique_path
from image_cropper.ratios import AspectRatio, RatioMode, preset_modes

logger = logging.getLogger(__name__)

_CUSTOM = "custom"
_SAVE_FILTERS = "PNG (*.png);;JPEG (*.jpg *.jpeg);;BMP (*.bmp)"


class MainWindow(QMainWindow):
    def __init__(self):
        super().__init__()
        self.setWindowTitle(WINDOW_TITLE)
        self.setMinimumSize(800, 600)

        self._controller = CropController()
        self._image: Image.Image | None = None
        self._image_path: Path | None = None
        self._loader: ImageLoaderThread | None = None

        self._build_ui()
        self._update_button_states()

    # =========================================================================
    # UI construction
    # =========================================================================

    def _build_ui(self):
        self._build_toolbar()

        central = QWidget()
        self.setCentralWidget(central)
        main_layout = QHBoxLayout(central)
        main_layout.setContentsMargins(4, 4, 4, 4)

        self._crop_widget = ImageCropWidget(self._controller)
        self._crop_widget.crop_changed.connect(self._update_crop_info)
        self._crop_widget.file_dropped.connect(lambda p: self.open_path(Path(p)))
        main_layout.addWidget(self._crop_widget, stretch=1)

        main_layout.addWidget(self._build_right_panel())

        self._status = QStatusBar()
        self.setStatusBar(self._status)
        self._status.showMessage("Open an image or drop one onto the window to begin.")

        # --- Keyboard Shortcuts ---
        QShortcut(QKeySequence(Qt.Key.Key_C), self, self._reset_crop)
        QShortcut(QKeySequence(Qt.Key.Key_R), self, self._toggle_orientation)

    def _build_toolbar(self):
        toolbar = QToolBar("Main")
        toolbar.setMovable(False)
        self.addToolBar(toolbar)

        act_open = QAction("📂 Open Image", self)
        act_open.setShortcut(QKeySequence.StandardKey.Open)
        act_open.triggered.connect(self._select_image)
        toolbar.addAction(act_open)

        self._act_save = QAction("💾 Save Cropped Image", self)
        self._act_save.setShortcut(QKeySequence.StandardKey.Save)
        self._act_save.triggered.connect(self._save_cropped)
        toolbar.addAction(self._act_save)

    def _build_right_panel(self) -> QWidget:
        right_panel = QWidget()
        right_panel.setFixedWidth(240)
        layout = QVBoxLayout(right_panel)
        layout.setContentsMargins(4, 0, 0, 0)

        layout.addWidget(self._build_ratio_group())

        self._crop_info_label = QLabel("Crop: —")
        self._crop_info_label.setWordWrap(True)
        layout.addWidget(self._crop_info_label)

        btn_reset = QPushButton("🎯 Reset Crop")
        btn_reset.setToolTip("Reset crop to the largest centered area for the current ratio")
        btn_reset.clicked.connect(self._reset_crop)
        layout.addWidget(btn_reset)
        self._btn_reset = btn_reset

        layout.addWidget(self._build_shortcuts_group())
        layout.addStretch()
        return right_panel

    def _build_ratio_group(self) -> QGroupBox:
        ratio_group = QGroupBox("Aspect Ratio")
        layout = QVBoxLayout(ratio_group)

        self._ratio_combo = QComboBox()
        self._ratio_combo.currentIndexChanged.connect(self._on_ratio_selected)
        layout.addWidget(self._ratio_combo)

        self._btn_orientation = QPushButton()
        self._btn_orientation.setToolTip("Swap between landscape and portrait ratios")
        self._btn_orientation.clicked.connect(self._toggle_orientation)
        layout.addWidget(self._btn_orientation)

        # Custom ratio W : H
        custom_row = QHBoxLayout()
        self._custom_w = QSpinBox()
        self._custom_h = QSpinBox()
        for spin, value in ((self._custom_w, DEFAULT_CUSTOM_RATIO[0]), (self._custom_h, DEFAULT_CUSTOM_RATIO[1])):
            spin.setRange(CUSTOM_RATIO_MIN, CUSTOM_RATIO_MAX)
            spin.setValue(value)
            spin.valueChanged.connect(self._on_custom_changed)
        custom_row.addWidget(self._custom_w)
        custom_row.addWidget(QLabel(":"))
        custom_row.addWidget(self._custom_h)
        self._custom_widget = QWidget()
        self._custom_widget.setLayout(custom_row)
        layout.addWidget(self._custom_widget)

        self._rebuild_ratio_combo()
        return ratio_group

    def _rebuild_ratio_combo(self):
        """Fill the combo with Free, Original, presets (current orientation), Custom."""
        portrait = self._controller.portrait
        self._ratio_combo.blockSignals(True)
        self._ratio_combo.clear()
        self._ratio_combo.addItem("Free", AspectRatio.free())
        self._ratio_combo.addItem("Original", AspectRatio.original(transposed=portrait))
        self._ratio_combo.insertSeparator(self._ratio_combo.count())
        for mode in preset_modes(portrait):
            self._ratio_combo.addItem(mode.label(), mode)
        self._ratio_combo.insertSeparator(self._ratio_combo.count())
        self._ratio_combo.addItem("Custom", _CUSTOM)

        # Reselect the controller's active mode
        active = self._controller.aspect_ratio
        index = 0
        for i in range(self._ratio_combo.count()):
            data = self._ratio_combo.itemData(i)
            if (data == _CUSTOM and active.mode is RatioMode.CUSTOM) or data == active:
                index = i
                break
        self._ratio_combo.setCurrentIndex(index)
        self._ratio_combo.blockSignals(False)

        self._custom_widget.setVisible(active.mode is RatioMode.CUSTOM)
        self._btn_orientation.setText("🔄 Portrait" if portrait else "🔄 Landscape")

    def _build_shortcuts_group(self) -> QGroupBox:
        help_group = QGroupBox("Shortcuts")
        help_layout = QVBoxLayout(help_group)
        help_label = QLabel(
            "Arrow keys: nudge crop (1px)\n"
            "Shift+Arrow: nudge (10px)\n"
            "Drag corners/edges: resize crop\n"
            "Drag body: move crop\n"
            "Esc: cancel drag\n"
            "\n"
            "Ctrl+O: open image\n"
            "Ctrl+S: save cropped image\n"
            "R: toggle orientation\n"
            "C: reset crop"
        )
        help_label.setStyleSheet("color: #888; font-size: 8pt;")
        help_layout.addWidget(help_label)
        return help_group

    # =========================================================================
    # Image loading
    # =========================================================================

    def _select_image(self):
        patterns = " ".join(f"*{ext}" for ext in sorted(OPEN_EXTENSIONS))
        start = str(self._image_path.parent if self._image_path else Path.home())
        path, _ = QFileDialog.getOpenFileName(self, "Open Image", start, f"Images ({patterns})")
        if path:
            self.open_path(Path(path))

    def open_path(self, path: Path):
        if path.suffix.lower() not in OPEN_EXTENSIONS:
            self._status.showMessage(f"Unsupported file type: {path.name}")
            return
        # Header check; an unreadable file leaves the current image in place
        try:
            img_w, img_h = get_image_size(path)
        except Exception as e:
            logger.warning("Cannot read %s: %s", path, e)
            self._status.showMessage(f"Failed to load image: {e}")
            QMessageBox.warning(self, "Open Failed", f"Could not open {path.name}:\n{e}")
            return

        self._crop_widget.clear()
        self._crop_widget.set_loading(True)
        self._image = None
        self._image_path = path
        self._update_button_states()
        self._update_crop_info()

        # Cancel any previous loader
        if self._loader is not None:
            try:
                self._loader.finished.disconnect()
                self._loader.error.disconnect()
            except (TypeError, RuntimeError):
                pass  # Already disconnected or destroyed
            if self._loader.isRunning():
                self._loader.quit()
                self._loader.wait(500)

        self._loader = ImageLoaderThread(path, self)
        self._loader.finished.connect(lambda img, p=path: self._on_image_loaded(p, img))
        self._loader.error.connect(lambda err, p=path: self._on_image_load_error(p, err))
        self._loader.start()
        self._status.showMessage(f"Loading {path.name} ({img_w}×{img_h})…")

    def _on_image_loaded(self, path: Path, img: Image.Image):
        """Called when background image loading completes."""
        if path != self._image_path:
            return  # Another file was opened before loading finished
        self._image = img
        self._crop_widget.set_image(pil_to_qpixmap(img), img.width, img.height)
        self._update_button_states()
        self._status.showMessage(f"{path.name} — {img.width}×{img.height}")

    def _on_image_load_error(self, path: Path, error: str):
        """Called when background image loading fails."""
        if path != self._image_path:
            return
        logger.warning("Failed to load %s: %s", path, error)
        self._crop_widget.set_loading(False)
        self._image_path = None
        self._update_button_states()
        self._status.showMessage(f"Failed to load image: {error}")
        QMessageBox.warning(self, "Open Failed", f"Could not open {path.name}:\n{error}")

    # =========================================================================
    # Aspect ratio
    # =========================================================================

    def _on_ratio_selected(self, index: int):
        data = self._ratio_combo.itemData(index)
        if data is None:
            return
        is_custom = data == _CUSTOM
        self._custom_widget.setVisible(is_custom)
        mode = self._custom_mode() if is_custom else data
        self._controller.set_aspect_ratio(mode)
        self._crop_widget.refresh()

    def _custom_mode(self) -> AspectRatio:
        return AspectRatio.custom(self._custom_w.value(), self._custom_h.value())

    def _on_custom_changed(self, _value: int):
        if self._controller.aspect_ratio.mode is not RatioMode.CUSTOM:
            return
        self._controller.set_aspect_ratio(self._custom_mode())
        self._crop_widget.refresh()

    def _toggle_orientation(self):
        self._controller.toggle_orientation()
        active = self._controller.aspect_ratio
        if active.mode is RatioMode.CUSTOM:
            for spin, value in ((self._custom_w, active.ratio_w), (self._custom_h, active.ratio_h)):
                spin.blockSignals(True)
                spin.setValue(int(value))
                spin.blockSignals(False)
        self._rebuild_ratio_combo()
        self._crop_widget.refresh()

    # =========================================================================
    # Crop actions
    # =========================================================================

    def _reset_crop(self):
        if not self._controller.has_image():
            return
        self._controller.reset()
        self._crop_widget.refresh()

    def _update_crop_info(self):
        if not self._controller.has_image():
            self._crop_info_label.setText("Crop: —")
            return
        x, y, w, h = self._controller.current_rectangle().as_xywh()
        size = self._controller.image_size
        self._crop_info_label.setText(
            f"Crop: {round(w)}×{round(h)}\n"
            f"Position: ({round(x)}, {round(y)})\n"
            f"Image: {int(size.width)}×{int(size.height)}\n"
            f"Ratio: {self._controller.aspect_ratio.label()}"
        )

    def _update_button_states(self):
        has_image = self._image is not None
        self._act_save.setEnabled(has_image)
        self._btn_reset.setEnabled(has_image)

    # =========================================================================
    # Export
    # =========================================================================

    def _save_cropped(self):
        if self._image is None or self._image_path is None:
            return
        suggested = unique_path(self._image_path.with_name(f"{self._image_path.stem}_cropped.png"))
        path, _ = QFileDialog.getSaveFileName(self, "Save Cropped Image", str(suggested), _SAVE_FILTERS)
        if not path:
            return
        out_path = Path(path)
        if not out_path.suffix:
            out_path = out_path.with_suffix(".png")

        rect = self._controller.current_rectangle()
        QApplication.setOverrideCursor(Qt.CursorShape.WaitCursor)
        try:
            export_crop(self._image, rect, out_path)
        except (OSError, ValueError) as exc:
            logger.error("Could not save %s: %s", out_path, exc)
            QMessageBox.warning(self, "Save Failed", f"Could not save cropped image:\n{exc}")
            return
        finally:
            QApplication.restoreOverrideCursor()
        self._status.showMessage(f"Saved: {out_path}")

    def closeEvent(self, event):
        if self._loader is not None and self._loader.isRunning():
            self._loader.wait(2000)
        super().closeEvent(event)
