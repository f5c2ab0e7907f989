"""
Configuration management for the webcam object detector.
"""
from pathlib import Path
from typing import Any, Optional, Tuple

import yaml
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables, a .env file or YAML."""

    model_config = SettingsConfigDict(
        env_prefix='OBJDET_',
        env_file='.env',
        env_file_encoding='utf-8',
        extra='ignore',
        protected_namespaces=(),
    )

    # Application Settings
    app_name: str = Field(default="Object Detection")
    log_level: str = Field(default="INFO")
    json_logs: bool = Field(default=False)
    log_file: Optional[str] = Field(default=None)
    suppress_cv_warnings: bool = Field(default=False)

    # Model Files
    model_dir: Path = Field(default=Path("detection"))
    model_cfg: str = Field(default="yolov3.cfg")
    model_weights: str = Field(default="yolov3.weights")
    labels_file: str = Field(default="coco.names")

    # Inference
    backend: str = Field(default="opencv")
    target: str = Field(default="cpu")
    input_size: Optional[Tuple[int, int]] = Field(default=None)
    swap_rb: bool = Field(default=True)
    has_objectness: bool = Field(default=False)
    confidence_threshold: float = Field(default=0.8, ge=0.0, le=1.0)
    nms_score_threshold: float = Field(default=0.8, ge=0.0, le=1.0)
    nms_iou_threshold: float = Field(default=0.8, ge=0.0, le=1.0)
    debug_log_raw_output: bool = Field(default=False)
    debug_log_raw_interval_seconds: float = Field(default=2.0, ge=0.0)
    debug_log_raw_rows: int = Field(default=3, ge=1)
    debug_log_raw_cols: int = Field(default=6, ge=1)

    # Camera
    camera_index: int = Field(default=0, ge=0)
    camera_api: str = Field(default="any")
    resize_factor: float = Field(default=0.4, gt=0.0)
    max_frames: Optional[int] = Field(default=None, ge=1)

    # Display
    window_name: str = Field(default="Object Detection")
    display_scale: Optional[float] = Field(default=None, gt=0.0)
    exit_key: int = Field(default=27)
    wait_key_ms: int = Field(default=1, ge=1)

    # Monitoring
    enable_metrics: bool = Field(default=False)
    metrics_port: int = Field(default=8000)

    @property
    def cfg_path(self) -> Path:
        return self.model_dir / self.model_cfg

    @property
    def weights_path(self) -> Path:
        return self.model_dir / self.model_weights

    @property
    def labels_path(self) -> Path:
        return self.model_dir / self.labels_file

    @property
    def output_scale(self) -> float:
        """Scale applied to annotated frames before display."""
        if self.display_scale is not None:
            return self.display_scale
        return 1.0 / self.resize_factor


def _load_yaml(path: Path) -> dict:
    with path.open('r', encoding='utf-8') as handle:
        data = yaml.safe_load(handle)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(f"Config file must contain a mapping: {path}")
    return data


def load_settings(config_path: Optional[str] = None, **overrides: Any) -> Settings:
    """
    Build settings from an optional YAML file plus explicit overrides.

    Explicit overrides take precedence over the file, which takes precedence
    over environment variables. Overrides set to None are ignored.
    """
    data: dict = {}
    if config_path:
        path = Path(config_path)
        if not path.exists():
            raise FileNotFoundError(f"Config not found: {config_path}")
        data.update(_load_yaml(path))

    data.update({key: value for key, value in overrides.items() if value is not None})
    return Settings(**data)
