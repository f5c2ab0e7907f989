"""
Command line entry point for the webcam object detector.
"""
import argparse
import sys
from typing import List, Optional

from loguru import logger
from pydantic import ValidationError

from .config import load_settings
from .utils.logging import setup_logging
from .utils.opencv import configure_opencv_logging


def _parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Run YOLO object detection on a webcam feed")
    parser.add_argument("--config", help="YAML settings file")
    parser.add_argument("--model-dir", dest="model_dir", help="Directory holding cfg, weights and labels")
    parser.add_argument("--camera", dest="camera_index", type=int, help="Camera device index")
    parser.add_argument("--camera-api", dest="camera_api", help="Capture API (any, dshow, v4l2, ...)")
    parser.add_argument("--confidence", dest="confidence_threshold", type=float, help="Class confidence threshold")
    parser.add_argument("--nms-score", dest="nms_score_threshold", type=float, help="NMS score threshold")
    parser.add_argument("--nms-iou", dest="nms_iou_threshold", type=float, help="NMS overlap threshold")
    parser.add_argument("--resize", dest="resize_factor", type=float, help="Downscale factor before inference")
    parser.add_argument("--max-frames", dest="max_frames", type=int, help="Stop after this many frames")
    parser.add_argument("--log-level", dest="log_level", help="Log level")
    parser.add_argument("--json-logs", dest="json_logs", action="store_true", default=None, help="Log as JSON")
    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point."""
    args = _parse_args(argv)
    overrides = vars(args).copy()
    config_path = overrides.pop("config")

    try:
        settings = load_settings(config_path, **overrides)
    except (FileNotFoundError, ValueError, ValidationError) as e:
        setup_logging("INFO")
        logger.error(f"Invalid configuration: {e}")
        return 1

    setup_logging(settings.log_level, json_logs=settings.json_logs, log_file=settings.log_file)
    configure_opencv_logging(settings.suppress_cv_warnings)

    logger.info("=" * 60)
    logger.info(settings.app_name)
    logger.info("=" * 60)
    logger.info(f"Model: {settings.cfg_path} / {settings.weights_path}")
    logger.info(f"Labels: {settings.labels_path}")
    logger.info(
        f"Thresholds: confidence={settings.confidence_threshold} "
        f"nms_score={settings.nms_score_threshold} nms_iou={settings.nms_iou_threshold}"
    )
    logger.info(f"Camera: {settings.camera_index} ({settings.camera_api})")
    logger.info("=" * 60)

    import cv2

    from .app import ObjectDetectionApp

    if settings.enable_metrics:
        from .metrics import start_metrics_server

        try:
            start_metrics_server(settings.metrics_port)
        except OSError as e:
            logger.error(f"Cannot start metrics server on port {settings.metrics_port}: {e}")
            return 1

    try:
        ObjectDetectionApp(settings).run()
    except (FileNotFoundError, ValueError, RuntimeError, cv2.error) as e:
        logger.error(f"Startup failed: {e}")
        return 1
    return 0


if __name__ == '__main__':
    sys.exit(main())
