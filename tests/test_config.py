"""
Tests for settings loading.
"""
import os
from pathlib import Path

import pytest
from pydantic import ValidationError

from object_detection.config import Settings, load_settings


@pytest.fixture(autouse=True)
def clean_env(monkeypatch, tmp_path):
    """Keep the developer's environment and .env file out of the tests."""
    for key in list(os.environ):
        if key.startswith("OBJDET_"):
            monkeypatch.delenv(key)
    monkeypatch.chdir(tmp_path)


def test_defaults_match_observed_configuration():
    settings = Settings()

    assert settings.confidence_threshold == 0.8
    assert settings.nms_score_threshold == 0.8
    assert settings.nms_iou_threshold == 0.8
    assert settings.camera_index == 0
    assert settings.exit_key == 27
    assert settings.window_name == "Object Detection"
    assert settings.cfg_path == Path("detection") / "yolov3.cfg"
    assert settings.weights_path == Path("detection") / "yolov3.weights"
    assert settings.labels_path == Path("detection") / "coco.names"


def test_output_scale_restores_capture_size():
    assert Settings(resize_factor=0.4).output_scale == pytest.approx(2.5)
    assert Settings(resize_factor=0.4, display_scale=4.0).output_scale == 4.0


def test_environment_overrides(monkeypatch):
    monkeypatch.setenv("OBJDET_CONFIDENCE_THRESHOLD", "0.5")
    monkeypatch.setenv("OBJDET_CAMERA_INDEX", "2")

    settings = Settings()

    assert settings.confidence_threshold == 0.5
    assert settings.camera_index == 2
    assert settings.nms_iou_threshold == 0.8


def test_thresholds_are_independent():
    settings = Settings(confidence_threshold=0.6, nms_score_threshold=0.5, nms_iou_threshold=0.4)

    assert (settings.confidence_threshold, settings.nms_score_threshold, settings.nms_iou_threshold) == (
        0.6,
        0.5,
        0.4,
    )


@pytest.mark.parametrize("field", ["confidence_threshold", "nms_score_threshold", "nms_iou_threshold"])
def test_threshold_out_of_range_is_rejected(field):
    with pytest.raises(ValidationError):
        Settings(**{field: 1.5})


def test_non_positive_resize_is_rejected():
    with pytest.raises(ValidationError):
        Settings(resize_factor=0)


def test_yaml_file_and_overrides(tmp_path):
    config = tmp_path / "detection.yaml"
    config.write_text(
        "confidence_threshold: 0.6\nmodel_dir: models\ncamera_api: v4l2\n",
        encoding="utf-8",
    )

    settings = load_settings(str(config), camera_api="dshow", camera_index=None)

    assert settings.confidence_threshold == 0.6
    assert settings.model_dir == Path("models")
    assert settings.camera_api == "dshow"
    assert settings.camera_index == 0


def test_empty_yaml_file_uses_defaults(tmp_path):
    config = tmp_path / "empty.yaml"
    config.write_text("", encoding="utf-8")

    assert load_settings(str(config)).confidence_threshold == 0.8


def test_yaml_must_be_a_mapping(tmp_path):
    config = tmp_path / "list.yaml"
    config.write_text("- 1\n- 2\n", encoding="utf-8")

    with pytest.raises(ValueError):
        load_settings(str(config))


def test_missing_config_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_settings(str(tmp_path / "missing.yaml"))
