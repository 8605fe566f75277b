"""
Camera package.

Canonical imports:
- `from camera.camera import create_device_from_config`
- `from camera.backends.opencv import OpenCVCaptureDevice` (USB + stream URLs)
- `from camera.backends.still import StillImageDevice` (fixed image, demos)
"""
