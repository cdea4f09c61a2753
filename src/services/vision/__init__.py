"""Vision 모듈

사용법:
    from src.services.vision import get_pipeline

    pipeline = get_pipeline()
    result = pipeline.detect(image)  # DetectionResult
    balloon = pipeline.expand_text_to_balloon(image, text_rect)  # NormalizedRect | None

파라미터는 .env / 환경변수 (src.config.Settings)에서 읽음.
탐지 전략 선택 (.env DETECTION_STRATEGY):
    - "edges": Canny 엣지 + 닫힘 기반 (기본값)
    - "brightness": 밝은 영역 + solidity/밝기 필터 (마커 전략)
"""

from src.config import get_settings
from src.services.vision.errors import (
    InvalidInputError,
    InvalidParameterError,
    ProcessingError,
    VisionError,
)
from src.services.vision.pipeline import BalloonPipeline, PipelineParams

__all__ = [
    "BalloonPipeline",
    "InvalidInputError",
    "InvalidParameterError",
    "PipelineParams",
    "ProcessingError",
    "VisionError",
    "get_pipeline",
    "set_pipeline",
]

_pipeline: BalloonPipeline | None = None


def get_pipeline() -> BalloonPipeline:
    """설정으로 만든 파이프라인 반환"""
    global _pipeline
    if _pipeline is None:
        _pipeline = BalloonPipeline(PipelineParams.from_settings(get_settings()))
    return _pipeline


def set_pipeline(pipeline: BalloonPipeline | None) -> None:
    """파이프라인 설정 (테스트용)"""
    global _pipeline
    _pipeline = pipeline
