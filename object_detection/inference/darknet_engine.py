import time
from pathlib import Path
from typing import List, Optional, Sequence, Tuple

import numpy as np
from loguru import logger

from .base import Detection, InferenceEngine
from .yolo import decode_yolo_outputs, load_labels, prepare_blob

_BACKENDS = {
    "default": "DNN_BACKEND_DEFAULT",
    "opencv": "DNN_BACKEND_OPENCV",
    "cuda": "DNN_BACKEND_CUDA",
}

_TARGETS = {
    "cpu": "DNN_TARGET_CPU",
    "cuda": "DNN_TARGET_CUDA",
    "cuda_fp16": "DNN_TARGET_CUDA_FP16",
    "opencl": "DNN_TARGET_OPENCL",
    "opencl_fp16": "DNN_TARGET_OPENCL_FP16",
}


class DarknetYoloEngine(InferenceEngine):
    """Runs a Darknet YOLO network through OpenCV's DNN module."""

    def __init__(
        self,
        cfg_path,
        weights_path,
        labels_path,
        confidence_threshold: float = 0.8,
        nms_score_threshold: float = 0.8,
        nms_iou_threshold: float = 0.8,
        backend: str = "opencv",
        target: str = "cpu",
        input_size: Optional[Tuple[int, int]] = None,
        swap_rb: bool = True,
        has_objectness: bool = False,
        debug_log_raw_output: bool = False,
        debug_log_raw_interval_seconds: float = 2.0,
        debug_log_raw_rows: int = 3,
        debug_log_raw_cols: int = 6,
    ):
        self.cfg_path = Path(cfg_path)
        self.weights_path = Path(weights_path)
        self.labels_path = Path(labels_path)
        self.confidence_threshold = confidence_threshold
        self.nms_score_threshold = nms_score_threshold
        self.nms_iou_threshold = nms_iou_threshold
        self.backend = backend
        self.target = target
        self.input_size = tuple(input_size) if input_size else None
        self.swap_rb = swap_rb
        self.has_objectness = has_objectness
        self.debug_log_raw_output = debug_log_raw_output
        self.debug_log_raw_interval_seconds = debug_log_raw_interval_seconds
        self.debug_log_raw_rows = debug_log_raw_rows
        self.debug_log_raw_cols = debug_log_raw_cols
        self.net = None
        self.labels: List[str] = []
        self.output_names: Sequence[str] = ()
        self._last_raw_log_ts = 0.0

    @classmethod
    def from_settings(cls, settings) -> "DarknetYoloEngine":
        return cls(
            cfg_path=settings.cfg_path,
            weights_path=settings.weights_path,
            labels_path=settings.labels_path,
            confidence_threshold=settings.confidence_threshold,
            nms_score_threshold=settings.nms_score_threshold,
            nms_iou_threshold=settings.nms_iou_threshold,
            backend=settings.backend,
            target=settings.target,
            input_size=settings.input_size,
            swap_rb=settings.swap_rb,
            has_objectness=settings.has_objectness,
            debug_log_raw_output=settings.debug_log_raw_output,
            debug_log_raw_interval_seconds=settings.debug_log_raw_interval_seconds,
            debug_log_raw_rows=settings.debug_log_raw_rows,
            debug_log_raw_cols=settings.debug_log_raw_cols,
        )

    def load(self) -> None:
        import cv2

        for path in (self.cfg_path, self.weights_path, self.labels_path):
            if not path.exists():
                raise FileNotFoundError(f"Model file not found: {path}")

        # OpenCV 5 removed the Darknet importer
        if not hasattr(cv2.dnn, "readNetFromDarknet"):
            raise RuntimeError(
                f"OpenCV {cv2.__version__} cannot read Darknet models; install opencv-python>=4.5,<5"
            )

        self.labels = load_labels(self.labels_path)
        logger.info(f"Loading Darknet model from {self.cfg_path} / {self.weights_path}")
        net = cv2.dnn.readNetFromDarknet(str(self.cfg_path), str(self.weights_path))
        net.setPreferableBackend(self._resolve(cv2, _BACKENDS, self.backend, "backend"))
        net.setPreferableTarget(self._resolve(cv2, _TARGETS, self.target, "target"))
        self.output_names = net.getUnconnectedOutLayersNames()
        self.net = net
        logger.info(
            f"Loaded Darknet model: {len(self.labels)} labels, outputs={list(self.output_names)}, "
            f"backend={self.backend}, target={self.target}"
        )

    def infer(self, frame) -> List[Detection]:
        if self.net is None:
            raise RuntimeError("Darknet engine is not loaded")

        blob = prepare_blob(frame, self.input_size, swap_rb=self.swap_rb)
        self.net.setInput(blob)
        outputs = self.net.forward(self.output_names)

        self._maybe_log_raw_output(outputs)

        return decode_yolo_outputs(
            outputs,
            frame_shape=frame.shape,
            labels=self.labels,
            confidence_threshold=self.confidence_threshold,
            nms_score_threshold=self.nms_score_threshold,
            nms_iou_threshold=self.nms_iou_threshold,
            has_objectness=self.has_objectness,
        )

    def close(self) -> None:
        self.net = None

    @staticmethod
    def _resolve(cv2_module, table: dict, name: str, kind: str) -> int:
        attr = table.get(name.lower())
        if attr is None:
            raise ValueError(f"Unsupported DNN {kind}: {name}")
        return getattr(cv2_module.dnn, attr)

    def _maybe_log_raw_output(self, outputs) -> None:
        if not self.debug_log_raw_output:
            return

        now = time.time()
        if now - self._last_raw_log_ts < self.debug_log_raw_interval_seconds:
            return
        self._last_raw_log_ts = now

        for name, output in zip(self.output_names, outputs):
            data = np.asarray(output)
            if data.size == 0:
                logger.info(f"Raw output {name} shape={data.shape} (empty)")
                continue
            stats = {
                "min": round(float(np.min(data)), 4),
                "max": round(float(np.max(data)), 4),
                "mean": round(float(np.mean(data)), 4),
            }
            logger.info(f"Raw output {name} shape={data.shape} stats={stats} sample={self._sample_rows(data)}")

    def _sample_rows(self, data: np.ndarray):
        if data.ndim == 1:
            return [self._round_list(data[: self.debug_log_raw_cols])]
        if data.ndim != 2:
            return []
        rows = min(self.debug_log_raw_rows, data.shape[0])
        cols = min(self.debug_log_raw_cols, data.shape[1])
        return [self._round_list(row[:cols]) for row in data[:rows]]

    def _round_list(self, values):
        return [round(float(v), 4) for v in values]
