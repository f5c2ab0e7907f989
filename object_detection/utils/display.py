from loguru import logger


class DisplayWindow:
    """Named OpenCV window that shows frames and watches for the exit key."""

    def __init__(self, name: str = "Object Detection", exit_key: int = 27, wait_ms: int = 1) -> None:
        self.name = name
        self.exit_key = exit_key
        self.wait_ms = wait_ms
        self._opened = False

    def open(self) -> None:
        import cv2

        cv2.namedWindow(self.name, cv2.WINDOW_AUTOSIZE)
        self._opened = True

    def show(self, frame) -> None:
        import cv2

        cv2.imshow(self.name, frame)
        self._opened = True

    def should_close(self) -> bool:
        import cv2

        return (cv2.waitKey(self.wait_ms) & 0xFF) == self.exit_key

    def close(self) -> None:
        if not self._opened:
            return
        import cv2

        try:
            cv2.destroyWindow(self.name)
        except cv2.error as exc:
            # the user may already have closed the window
            logger.debug(f"destroyWindow failed for {self.name}: {exc}")
        self._opened = False

    def __enter__(self) -> "DisplayWindow":
        self.open()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()
