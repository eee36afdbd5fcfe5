"""Interactive image cropper with aspect-ratio constrained crop rectangles."""

__version__ = "0.1.0"
