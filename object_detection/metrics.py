from loguru import logger
from prometheus_client import Counter, Histogram, start_http_server

FRAMES_PROCESSED = Counter('frames_processed_total', 'Total frames run through the detector')
DETECTIONS_DRAWN = Counter('detections_drawn_total', 'Total detections drawn after NMS', ['class_name'])
INFERENCE_SECONDS = Histogram('inference_seconds', 'Forward pass plus decode latency per frame')


def start_metrics_server(port: int) -> None:
    start_http_server(port)
    logger.info(f"Metrics server started on port {port}")
