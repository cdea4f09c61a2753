"""이미지 공통 유틸리티 (검증, 색 공간 변환)"""

from collections.abc import Iterator
from contextlib import contextmanager

import cv2
import numpy as np

from src.services.vision.errors import InvalidInputError, ProcessingError


def validate_image(image: object) -> np.ndarray:
    """파이프라인 입력 이미지 검증

    허용: uint8, (H, W) 또는 (H, W, C) with C ∈ {1, 3, 4}, H > 0, W > 0

    Raises:
        InvalidInputError: 조건을 만족하지 않는 경우
    """
    if image is None:
        raise InvalidInputError("이미지가 없습니다")
    if not isinstance(image, np.ndarray):
        raise InvalidInputError(f"지원하지 않는 이미지 타입: {type(image).__name__}")
    if image.ndim not in (2, 3) or image.size == 0:
        raise InvalidInputError(f"유효하지 않은 이미지 크기: {image.shape}")
    if image.ndim == 3 and image.shape[2] not in (1, 3, 4):
        raise InvalidInputError(f"지원하지 않는 채널 수: {image.shape[2]}")
    if image.dtype != np.uint8:
        raise InvalidInputError(f"지원하지 않는 dtype: {image.dtype} (uint8만 지원)")
    return image


def image_size(image: np.ndarray) -> tuple[int, int]:
    """(width, height)"""
    h, w = image.shape[:2]
    return w, h


def is_single_channel(image: np.ndarray) -> bool:
    return image.ndim == 2 or image.shape[2] == 1


def to_gray(image: np.ndarray) -> np.ndarray:
    """BGR/BGRA/Grayscale 이미지를 (H, W) 그레이스케일로 변환"""
    if image.ndim == 2:
        return image
    if image.shape[2] == 1:
        return image[:, :, 0]
    if image.shape[2] == 4:
        return cv2.cvtColor(image, cv2.COLOR_BGRA2GRAY)
    return cv2.cvtColor(image, cv2.COLOR_BGR2GRAY)


def to_bgr(image: np.ndarray) -> np.ndarray:
    """BGRA/Grayscale 이미지를 BGR로 변환 (항상 새 배열)"""
    if image.ndim == 2:
        return cv2.cvtColor(image, cv2.COLOR_GRAY2BGR)
    if image.shape[2] == 1:
        return cv2.cvtColor(image[:, :, 0], cv2.COLOR_GRAY2BGR)
    if image.shape[2] == 4:
        return cv2.cvtColor(image, cv2.COLOR_BGRA2BGR)
    return image.copy()


@contextmanager
def opencv_errors(stage: str) -> Iterator[None]:
    """cv2.error → ProcessingError 변환"""
    try:
        yield
    except cv2.error as e:
        raise ProcessingError(f"{stage} 실패: {e}") from e
