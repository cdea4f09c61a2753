"""윤곽선 추출 단계"""

import logging

import cv2
import numpy as np

from src.schemas.vision import Contour
from src.services.vision.errors import InvalidInputError
from src.services.vision.image import is_single_channel, opencv_errors, validate_image

logger = logging.getLogger(__name__)


def extract_contours(binary_image: np.ndarray, *, nested: bool = False) -> list[Contour]:
    """이진 이미지에서 닫힌 윤곽선 추출

    0이 아닌 픽셀을 전경으로 취급하며 8-연결 기준으로 추적한다.
    반환 순서는 의미가 없지만 같은 입력에 대해서는 항상 같다.

    Args:
        binary_image: (H, W) 또는 (H, W, 1) 이진 이미지
        nested: True면 안쪽 윤곽선까지 전부 (말풍선이 패널 안에 있는 경우),
            False면 가장 바깥 윤곽선만

    Raises:
        InvalidInputError: 다채널 이미지
    """
    validate_image(binary_image)
    if not is_single_channel(binary_image):
        raise InvalidInputError(f"단일 채널 이진 이미지가 필요합니다: {binary_image.shape}")

    binary = binary_image.reshape(binary_image.shape[:2])
    binary = np.where(binary > 0, 255, 0).astype(np.uint8)
    mode = cv2.RETR_TREE if nested else cv2.RETR_EXTERNAL

    with opencv_errors("윤곽선 추출"):
        raw, _ = cv2.findContours(binary, mode, cv2.CHAIN_APPROX_SIMPLE)

    contours = [Contour.from_array(c) for c in raw]
    logger.debug(f"윤곽선 {len(contours)}개 추출 (nested={nested})")
    return contours
