"""Webcam object detection with a Darknet YOLO network running on OpenCV DNN."""

__version__ = "1.0.0"

# Lazy imports keep `import object_detection` free of the OpenCV dependency
__all__ = [
    'Settings',
    'load_settings',
    'Detection',
    'DarknetYoloEngine',
    'ObjectDetectionApp',
]


def __getattr__(name):
    """Lazy import of modules."""
    if name in ('Settings', 'load_settings'):
        from .config import Settings, load_settings
        return Settings if name == 'Settings' else load_settings
    elif name == 'Detection':
        from .inference.base import Detection
        return Detection
    elif name == 'DarknetYoloEngine':
        from .inference.darknet_engine import DarknetYoloEngine
        return DarknetYoloEngine
    elif name == 'ObjectDetectionApp':
        from .app import ObjectDetectionApp
        return ObjectDetectionApp
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
