"""
Tests for the Darknet inference engine with the network mocked out.
"""
from unittest.mock import MagicMock

import cv2
import numpy as np
import pytest

from object_detection.config import Settings
from object_detection.inference.darknet_engine import DarknetYoloEngine


@pytest.fixture
def model_dir(tmp_path):
    (tmp_path / "yolov3.cfg").write_text("[net]\n", encoding="utf-8")
    (tmp_path / "yolov3.weights").write_bytes(b"\x00")
    (tmp_path / "coco.names").write_text("person\ncar\n", encoding="utf-8")
    return tmp_path


@pytest.fixture
def fake_net(monkeypatch):
    net = MagicMock()
    net.getUnconnectedOutLayersNames.return_value = ("yolo_82", "yolo_94")
    net.forward.return_value = (
        np.array([[0.5, 0.5, 0.2, 0.2, 1.0, 0.1, 0.9]], dtype=np.float32),
        np.zeros((0, 7), dtype=np.float32),
    )
    reader = MagicMock(return_value=net)
    monkeypatch.setattr(cv2.dnn, "readNetFromDarknet", reader)
    return net


def _engine(model_dir, **kwargs):
    return DarknetYoloEngine(
        model_dir / "yolov3.cfg",
        model_dir / "yolov3.weights",
        model_dir / "coco.names",
        **kwargs,
    )


class TestDarknetYoloEngine:
    """Tests for DarknetYoloEngine."""

    def test_load_configures_backend_and_target(self, model_dir, fake_net):
        engine = _engine(model_dir)
        engine.load()

        fake_net.setPreferableBackend.assert_called_once_with(cv2.dnn.DNN_BACKEND_OPENCV)
        fake_net.setPreferableTarget.assert_called_once_with(cv2.dnn.DNN_TARGET_CPU)
        assert engine.labels == ["person", "car"]
        assert engine.output_names == ("yolo_82", "yolo_94")

    def test_infer_decodes_forward_output(self, model_dir, fake_net):
        engine = _engine(model_dir)
        engine.load()

        detections = engine.infer(np.zeros((100, 100, 3), dtype=np.uint8))

        fake_net.setInput.assert_called_once()
        blob = fake_net.setInput.call_args[0][0]
        assert blob.shape == (1, 3, 100, 100)
        fake_net.forward.assert_called_once_with(("yolo_82", "yolo_94"))
        assert len(detections) == 1
        assert detections[0].class_name == "car"
        assert detections[0].box == (40, 40, 20, 20)

    def test_infer_before_load(self, model_dir):
        with pytest.raises(RuntimeError):
            _engine(model_dir).infer(np.zeros((10, 10, 3), dtype=np.uint8))

    @pytest.mark.parametrize("missing", ["yolov3.cfg", "yolov3.weights", "coco.names"])
    def test_missing_model_file(self, model_dir, fake_net, missing):
        (model_dir / missing).unlink()

        with pytest.raises(FileNotFoundError, match=missing):
            _engine(model_dir).load()

    def test_opencv_without_darknet_reader(self, model_dir, monkeypatch):
        monkeypatch.delattr(cv2.dnn, "readNetFromDarknet", raising=False)

        with pytest.raises(RuntimeError, match="cannot read Darknet models"):
            _engine(model_dir).load()

    def test_unsupported_backend(self, model_dir, fake_net):
        with pytest.raises(ValueError):
            _engine(model_dir, backend="tpu").load()

    def test_close_drops_network(self, model_dir, fake_net):
        engine = _engine(model_dir)
        engine.load()
        engine.close()

        with pytest.raises(RuntimeError):
            engine.infer(np.zeros((10, 10, 3), dtype=np.uint8))

    def test_raw_output_logging_does_not_change_results(self, model_dir, fake_net):
        engine = _engine(model_dir, debug_log_raw_output=True, debug_log_raw_interval_seconds=0.0)
        engine.load()

        detections = engine.infer(np.zeros((100, 100, 3), dtype=np.uint8))

        assert [d.class_name for d in detections] == ["car"]

    def test_from_settings(self, model_dir):
        settings = Settings(model_dir=model_dir, confidence_threshold=0.6, nms_iou_threshold=0.3, target="opencl")

        engine = DarknetYoloEngine.from_settings(settings)

        assert engine.cfg_path == model_dir / "yolov3.cfg"
        assert engine.confidence_threshold == 0.6
        assert engine.nms_score_threshold == 0.8
        assert engine.nms_iou_threshold == 0.3
        assert engine.target == "opencl"
