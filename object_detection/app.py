"""
Webcam detection loop: read, detect, draw, show, until the exit key.
"""
import time
from typing import List, Optional, Tuple

import numpy as np
from loguru import logger

from .config import Settings
from .inference.base import Detection, InferenceEngine
from .inference.darknet_engine import DarknetYoloEngine
from .ingestion.camera import CameraSource
from .metrics import DETECTIONS_DRAWN, FRAMES_PROCESSED, INFERENCE_SECONDS
from .utils.display import DisplayWindow
from .utils.visualization import draw_detections, scale_frame


class ObjectDetectionApp:
    """
    Single-threaded detection loop over one camera and one window.

    The engine, camera and window are acquired once in run() and always
    released before it returns, whatever ends the loop.
    """

    def __init__(
        self,
        settings: Settings,
        engine: Optional[InferenceEngine] = None,
        camera: Optional[CameraSource] = None,
        display: Optional[DisplayWindow] = None,
    ):
        """
        Initialize the application.

        Args:
            settings: Resolved application settings
            engine: Inference engine; built from settings when omitted
            camera: Frame source; built from settings when omitted
            display: Output window; built from settings when omitted
        """
        self.settings = settings
        self.engine = engine or DarknetYoloEngine.from_settings(settings)
        self.camera = camera or CameraSource(settings.camera_index, settings.camera_api)
        self.display = display or DisplayWindow(
            settings.window_name, settings.exit_key, settings.wait_key_ms
        )
        self.frames_processed = 0

    def process_frame(self, frame: np.ndarray) -> Tuple[np.ndarray, List[Detection]]:
        """
        Detect on a downscaled copy of the frame and return the annotated output.

        Args:
            frame: Captured BGR frame

        Returns:
            Annotated frame rescaled for display, and the detections drawn on it
        """
        small = scale_frame(frame, self.settings.resize_factor)

        started = time.perf_counter()
        detections = self.engine.infer(small)
        INFERENCE_SECONDS.observe(time.perf_counter() - started)

        annotated = draw_detections(small.copy(), detections)
        for det in detections:
            DETECTIONS_DRAWN.labels(class_name=det.class_name).inc()

        return scale_frame(annotated, self.settings.output_scale), detections

    def run(self) -> int:
        """Run until the exit key, end of stream, max_frames or Ctrl+C; returns frames processed."""
        logger.info("Starting object detection")
        try:
            self.engine.load()
            self.camera.open()
            self.display.open()
            self._loop()
        except KeyboardInterrupt:
            logger.info("Interrupted, shutting down")
        finally:
            self.close()

        logger.info(f"Processed {self.frames_processed} frames")
        return self.frames_processed

    def _loop(self) -> None:
        max_frames = self.settings.max_frames
        while True:
            ok, frame = self.camera.read()
            if not ok or frame is None:
                logger.warning("Camera returned no frame, stopping")
                break

            annotated, detections = self.process_frame(frame)
            self.frames_processed += 1
            FRAMES_PROCESSED.inc()
            logger.debug(f"Frame {self.frames_processed}: {len(detections)} detections")

            self.display.show(annotated)
            if self.display.should_close():
                logger.info("Exit key pressed")
                break
            if max_frames is not None and self.frames_processed >= max_frames:
                logger.info(f"Reached max_frames={max_frames}")
                break

    def close(self) -> None:
        # release everything even if one step fails
        try:
            self.camera.release()
        finally:
            try:
                self.display.close()
            finally:
                self.engine.close()
