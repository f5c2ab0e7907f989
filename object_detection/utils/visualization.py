from typing import Iterable, Tuple

from ..inference.base import Detection

BOX_COLOR: Tuple[int, int, int] = (0, 255, 0)
LABEL_OFFSET = 5


def draw_detections(frame, detections: Iterable[Detection], color: Tuple[int, int, int] = BOX_COLOR):
    """Draw each box and its class name just above the top-left corner, in place."""
    import cv2

    for det in detections:
        x, y = det.top_left
        cv2.rectangle(frame, (x, y), det.bottom_right, color, 2)
        cv2.putText(
            frame,
            det.class_name,
            (x + LABEL_OFFSET, y - LABEL_OFFSET),
            cv2.FONT_HERSHEY_PLAIN,
            1.0,
            color,
            1,
        )
    return frame


def scale_frame(frame, factor: float):
    if factor == 1.0:
        return frame
    import cv2

    return cv2.resize(frame, (0, 0), fx=factor, fy=factor)
