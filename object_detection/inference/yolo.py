from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, List, Optional, Sequence, Tuple

import numpy as np
from loguru import logger

from .base import Detection

# cx, cy, w, h, objectness, then at least one class score
_MIN_COLUMNS = 6
_OBJECTNESS_COL = 4
_CLASS_SCORES_START = 5


@dataclass
class Candidates:
    """Thresholded detections in scan order, kept as parallel lists for NMS."""

    boxes: List[Tuple[int, int, int, int]] = field(default_factory=list)
    scores: List[float] = field(default_factory=list)
    class_ids: List[int] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.boxes)

    def append(self, box: Tuple[int, int, int, int], score: float, class_id: int) -> None:
        self.boxes.append(box)
        self.scores.append(score)
        self.class_ids.append(class_id)


def load_labels(path) -> List[str]:
    """Read a newline-delimited label file, one class name per line."""
    label_path = Path(path)
    if not label_path.exists():
        raise FileNotFoundError(f"Label file not found: {label_path}")

    labels = [line.strip() for line in label_path.read_text(encoding="utf-8").splitlines()]
    # trailing blank lines carry no class
    while labels and not labels[-1]:
        labels.pop()
    if not labels:
        raise ValueError(f"Label file is empty: {label_path}")
    return labels


def prepare_blob(frame, input_size: Optional[Tuple[int, int]] = None, swap_rb: bool = True) -> np.ndarray:
    """Build a normalized NCHW blob; input_size is (width, height), None keeps the frame size."""
    import cv2

    size = tuple(input_size) if input_size else (frame.shape[1], frame.shape[0])
    return cv2.dnn.blobFromImage(frame, 1 / 255.0, size, swapRB=swap_rb, crop=False)


def _valid_output(preds: np.ndarray) -> bool:
    if preds.ndim != 2:
        logger.debug("Skipping output tensor with shape {}", preds.shape)
        return False
    if preds.shape[0] == 0:
        return False
    if preds.shape[1] < _MIN_COLUMNS:
        logger.debug("Skipping output tensor with {} columns", preds.shape[1])
        return False
    return True


def row_to_box(row: Sequence[float], frame_width: int, frame_height: int) -> Tuple[int, int, int, int]:
    """Convert a normalized (cx, cy, w, h) row into a top-left pixel rectangle."""
    center_x = int(row[0] * frame_width)
    center_y = int(row[1] * frame_height)
    box_width = int(row[2] * frame_width)
    box_height = int(row[3] * frame_height)
    return center_x - box_width // 2, center_y - box_height // 2, box_width, box_height


def collect_candidates(
    outputs: Iterable,
    frame_width: int,
    frame_height: int,
    confidence_threshold: float,
    has_objectness: bool = False,
) -> Candidates:
    candidates = Candidates()
    for output in outputs:
        preds = np.asarray(output)
        if not _valid_output(preds):
            continue

        class_scores = preds[:, _CLASS_SCORES_START:]
        # argmax returns the first maximum, so ties resolve to the lowest class id
        class_ids = np.argmax(class_scores, axis=1)
        confidences = class_scores[np.arange(preds.shape[0]), class_ids]
        if has_objectness:
            confidences = confidences * preds[:, _OBJECTNESS_COL]

        for idx in np.flatnonzero(confidences > confidence_threshold):
            candidates.append(
                row_to_box(preds[idx], frame_width, frame_height),
                float(confidences[idx]),
                int(class_ids[idx]),
            )
    return candidates


def non_max_suppression(candidates: Candidates, score_threshold: float, iou_threshold: float) -> List[int]:
    """Indices of the candidates kept by OpenCV's greedy NMS, best score first."""
    if not len(candidates):
        return []

    import cv2

    boxes = [list(box) for box in candidates.boxes]
    indices = cv2.dnn.NMSBoxes(boxes, candidates.scores, score_threshold, iou_threshold)
    # older OpenCV builds return an (N, 1) array, or an empty tuple
    return [int(i) for i in np.array(indices).flatten()]


def class_name(labels: Sequence[str], class_id: int) -> str:
    if 0 <= class_id < len(labels):
        return labels[class_id]
    logger.warning("Unknown class ID: {}", class_id)
    return f"class_{class_id}"


def decode_yolo_outputs(
    outputs: Iterable,
    frame_shape: Tuple[int, ...],
    labels: Sequence[str],
    confidence_threshold: float,
    nms_score_threshold: float,
    nms_iou_threshold: float,
    has_objectness: bool = False,
) -> List[Detection]:
    """
    Turn raw Darknet YOLO output tensors into suppressed detections.

    Args:
        outputs: One 2-D array per output layer; rows are
            [cx, cy, w, h, objectness, class scores...] normalized to [0, 1]
        frame_shape: Shape of the frame the blob was built from (height first)
        labels: Class names indexed by class id
        confidence_threshold: Rows must score strictly above this to be kept
        nms_score_threshold: Score threshold passed to NMS
        nms_iou_threshold: Overlap above which the weaker box is dropped
        has_objectness: Multiply the class score by the objectness column

    Returns:
        Detections in NMS order; empty when nothing passes the threshold
    """
    frame_height, frame_width = frame_shape[:2]
    candidates = collect_candidates(
        outputs,
        frame_width,
        frame_height,
        confidence_threshold,
        has_objectness=has_objectness,
    )
    keep = non_max_suppression(candidates, nms_score_threshold, nms_iou_threshold)

    detections = []
    for idx in keep:
        class_id = candidates.class_ids[idx]
        detections.append(
            Detection(
                box=candidates.boxes[idx],
                score=candidates.scores[idx],
                class_id=class_id,
                class_name=class_name(labels, class_id),
            )
        )
    return detections
