from typing import Optional, Tuple

from loguru import logger

_CAPTURE_APIS = {
    "any": "CAP_ANY",
    "dshow": "CAP_DSHOW",
    "msmf": "CAP_MSMF",
    "v4l2": "CAP_V4L2",
    "avfoundation": "CAP_AVFOUNDATION",
    "gstreamer": "CAP_GSTREAMER",
    "ffmpeg": "CAP_FFMPEG",
}


class CameraSource:
    """A local camera device opened once and read frame by frame."""

    def __init__(self, index: int = 0, api: str = "any") -> None:
        self.index = index
        self.api = api
        self._cap = None
        self.frames_read = 0

    def open(self) -> None:
        import cv2

        attr = _CAPTURE_APIS.get(self.api.lower())
        if attr is None:
            raise ValueError(f"Unsupported capture API: {self.api}")

        cap = cv2.VideoCapture(self.index, getattr(cv2, attr))
        if not cap.isOpened():
            cap.release()
            raise RuntimeError(f"Cannot open camera {self.index} (api={self.api})")

        self._cap = cap
        logger.info(
            "Camera opened: dev={} api={} size={}x{}",
            self.index,
            self.api,
            int(cap.get(cv2.CAP_PROP_FRAME_WIDTH)),
            int(cap.get(cv2.CAP_PROP_FRAME_HEIGHT)),
        )

    def read(self) -> Tuple[bool, Optional[object]]:
        if self._cap is None:
            return False, None
        ok, frame = self._cap.read()
        if ok:
            self.frames_read += 1
        return ok, frame

    def release(self) -> None:
        if self._cap is not None:
            try:
                self._cap.release()
            finally:
                self._cap = None
                logger.info("Camera {} released after {} frames", self.index, self.frames_read)

    def __enter__(self) -> "CameraSource":
        self.open()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.release()
