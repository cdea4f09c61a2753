"""기본 필터 단계

모든 함수는 입력을 변경하지 않고 새 이미지를 반환한다.
"""

import logging
import numbers

import cv2
import numpy as np

from src.services.vision.errors import InvalidParameterError
from src.services.vision.image import opencv_errors, to_gray, validate_image

logger = logging.getLogger(__name__)


def _check_odd_kernel(kernel_size: int, name: str = "kernel_size") -> None:
    if isinstance(kernel_size, bool) or not isinstance(kernel_size, numbers.Integral):
        raise InvalidParameterError(f"{name}는 정수여야 합니다: {kernel_size!r}")
    if kernel_size <= 0 or kernel_size % 2 == 0:
        raise InvalidParameterError(f"{name}는 양의 홀수여야 합니다: {kernel_size}")


def _ellipse_kernel(kernel_size: int) -> np.ndarray:
    return cv2.getStructuringElement(cv2.MORPH_ELLIPSE, (kernel_size, kernel_size))


def gaussian_blur(image: np.ndarray, kernel_size: int) -> np.ndarray:
    validate_image(image)
    _check_odd_kernel(kernel_size)
    with opencv_errors("Gaussian blur"):
        return cv2.GaussianBlur(image, (kernel_size, kernel_size), 0)


def canny_edge(image: np.ndarray, low: float, high: float) -> np.ndarray:
    """Canny 엣지 검출

    컬러 입력은 그레이스케일로 변환 후 처리. low == high도 허용.

    Returns:
        (H, W) 단일 채널 0/255 엣지 맵

    Raises:
        InvalidParameterError: low/high가 양수가 아니거나 low > high
    """
    validate_image(image)
    if not (low > 0 and high > 0):
        raise InvalidParameterError(f"Canny threshold는 양수여야 합니다: low={low}, high={high}")
    if low > high:
        raise InvalidParameterError(f"Canny low > high: low={low}, high={high}")

    with opencv_errors("Canny"):
        return cv2.Canny(to_gray(image), float(low), float(high))


def morph_close(image: np.ndarray, kernel_size: int) -> np.ndarray:
    """모폴로지 닫힘 (팽창 → 침식)

    kernel이 클수록 가까운 엣지 조각을 더 적극적으로 합치지만
    서로 다른 영역까지 합쳐질 수 있음.
    """
    validate_image(image)
    _check_odd_kernel(kernel_size)
    with opencv_errors("Morphological close"):
        return cv2.morphologyEx(image, cv2.MORPH_CLOSE, _ellipse_kernel(kernel_size))


def morph_open(image: np.ndarray, kernel_size: int) -> np.ndarray:
    """모폴로지 열림 (침식 → 팽창) - 작은 노이즈 제거"""
    validate_image(image)
    _check_odd_kernel(kernel_size)
    with opencv_errors("Morphological open"):
        return cv2.morphologyEx(image, cv2.MORPH_OPEN, _ellipse_kernel(kernel_size))


def threshold_bright(image: np.ndarray, threshold: int) -> np.ndarray:
    """threshold보다 밝은 픽셀만 255로 남기는 이진화"""
    validate_image(image)
    if not 0 <= threshold <= 255:
        raise InvalidParameterError(f"threshold는 0~255 범위여야 합니다: {threshold}")
    with opencv_errors("Threshold"):
        _, binary = cv2.threshold(to_gray(image), threshold, 255, cv2.THRESH_BINARY)
    return binary


def preprocess(
    image: np.ndarray,
    *,
    blur_kernel_size: int = 5,
    canny_low: float = 30.0,
    canny_high: float = 90.0,
    close_kernel_size: int = 15,
) -> np.ndarray:
    """탐지용 전처리: 그레이스케일 → Gaussian blur → Canny → 닫힘 (순서 고정)

    Returns:
        (H, W) 단일 채널 이진 이미지
    """
    validate_image(image)
    blurred = gaussian_blur(to_gray(image), blur_kernel_size)
    edges = canny_edge(blurred, canny_low, canny_high)
    closed = morph_close(edges, close_kernel_size)
    logger.debug(
        f"전처리 완료: {image.shape[1]}x{image.shape[0]}, "
        f"엣지 픽셀 {int(np.count_nonzero(closed))}개"
    )
    return closed
