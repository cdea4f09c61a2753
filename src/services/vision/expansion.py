"""텍스트 영역 기반 말풍선 확장 (GrabCut)

OCR 등 외부에서 받은 텍스트 박스를 시드로 전경/배경 분할을 돌려
텍스트를 감싸는 말풍선 영역을 찾는다.

시드 마스크:
- 텍스트 박스 내부: 전경일 가능성 (GC_PR_FGD)
- 텍스트 박스 주변 margin: 배경일 가능성 (GC_PR_BGD)
- 그 외: 확실한 배경 (GC_BGD)

분할이 시드보다 큰 영역으로 수렴하지 못하면 None (에러 아님).
"""

import logging
import math
from typing import NamedTuple

import cv2
import numpy as np
from pydantic import BaseModel, ConfigDict, Field

from src.constants import GrabCut
from src.schemas.vision import Contour, NormalizedRect, Rect
from src.services.vision.errors import InvalidInputError
from src.services.vision.image import image_size, opencv_errors, to_bgr, validate_image

logger = logging.getLogger(__name__)


class GrabCutParams(BaseModel):
    model_config = ConfigDict(frozen=True)

    max_iterations: int = Field(default=5, ge=1)
    convergence_ratio: float = Field(default=0.001, ge=0.0, le=1.0)  # 라벨이 바뀐 픽셀 비율
    margin_ratio: float = Field(default=3.0, gt=0.0)  # 텍스트 박스 크기 대비 margin
    approx_epsilon: float = Field(default=2.0, ge=0.0)  # approxPolyDP epsilon (px, 정규화 전)
    seed: int = 0


class _Region(NamedTuple):
    contour: np.ndarray
    rect: Rect


def _check_text_rect(text_rect: Rect) -> None:
    if not isinstance(text_rect, Rect) or not text_rect.is_valid():
        raise InvalidInputError(f"유효하지 않은 텍스트 영역: {text_rect!r}")


def _pixel_box(rect: Rect, width: int, height: int) -> tuple[int, int, int, int]:
    """Rect → 이미지 안쪽 정수 박스 (x1, y1, x2, y2), 부분 픽셀은 포함"""
    x1 = min(width, max(0, math.floor(rect.x)))
    y1 = min(height, max(0, math.floor(rect.y)))
    x2 = min(width, max(0, math.ceil(rect.x2)))
    y2 = min(height, max(0, math.ceil(rect.y2)))
    return x1, y1, x2, y2


def _seed_mask(
    shape: tuple[int, int], seed: tuple[int, int, int, int], margin_ratio: float
) -> np.ndarray:
    h, w = shape
    x1, y1, x2, y2 = seed
    mx = max(1, round((x2 - x1) * margin_ratio))
    my = max(1, round((y2 - y1) * margin_ratio))

    mask = np.full((h, w), cv2.GC_BGD, dtype=np.uint8)
    mask[max(0, y1 - my) : min(h, y2 + my), max(0, x1 - mx) : min(w, x2 + mx)] = cv2.GC_PR_BGD
    mask[y1:y2, x1:x2] = cv2.GC_PR_FGD
    return mask


def _foreground(mask: np.ndarray) -> np.ndarray:
    return np.where((mask == cv2.GC_FGD) | (mask == cv2.GC_PR_FGD), 255, 0).astype(np.uint8)


def _run_grabcut(bgr: np.ndarray, mask: np.ndarray, params: GrabCutParams) -> np.ndarray:
    """수렴하거나 max_iterations에 도달할 때까지 한 단계씩 반복, 전경 마스크 반환"""
    bgd_model = np.zeros((1, 65), dtype=np.float64)
    fgd_model = np.zeros((1, 65), dtype=np.float64)

    # GMM 초기화(kmeans)가 스레드 로컬 RNG를 쓰므로 호출마다 고정
    cv2.setRNGSeed(params.seed)
    mask, bgd_model, fgd_model = cv2.grabCut(
        bgr, mask, None, bgd_model, fgd_model, 1, cv2.GC_INIT_WITH_MASK
    )
    foreground = _foreground(mask)

    for iteration in range(1, params.max_iterations):
        if not foreground.any():
            break
        mask, bgd_model, fgd_model = cv2.grabCut(
            bgr, mask, None, bgd_model, fgd_model, 1, cv2.GC_EVAL
        )
        updated = _foreground(mask)
        changed = np.count_nonzero(updated != foreground) / updated.size
        foreground = updated
        if changed <= params.convergence_ratio:
            logger.debug(f"GrabCut 수렴: {iteration + 1}회, 변경 비율 {changed:.5f}")
            break

    return foreground


def _segment(image: np.ndarray, text_rect: Rect, params: GrabCutParams) -> _Region | None:
    validate_image(image)
    _check_text_rect(text_rect)

    width, height = image_size(image)
    seed = _pixel_box(text_rect, width, height)
    x1, y1, x2, y2 = seed
    seed_area = (x2 - x1) * (y2 - y1)
    if seed_area < GrabCut.MIN_SAMPLES:
        logger.info(f"텍스트 영역이 이미지 밖이거나 너무 작음: {text_rect.to_tuple()}")
        return None

    mask = _seed_mask((height, width), seed, params.margin_ratio)
    background = int(np.count_nonzero(mask != cv2.GC_PR_FGD))
    if background < GrabCut.MIN_SAMPLES:
        logger.info("텍스트 영역이 이미지 전체를 덮음: 배경 샘플 없음")
        return None

    bgr = np.ascontiguousarray(to_bgr(image))
    with opencv_errors("GrabCut"):
        foreground = _run_grabcut(bgr, mask, params)
        contours, _ = cv2.findContours(foreground, cv2.RETR_EXTERNAL, cv2.CHAIN_APPROX_SIMPLE)

        if not contours:
            logger.info("말풍선을 찾지 못함: 전경 없음")
            return None

        center = ((x1 + x2) / 2, (y1 + y2) / 2)
        containing = [c for c in contours if cv2.pointPolygonTest(c, center, False) >= 0]
        best = max(containing or list(contours), key=cv2.contourArea)
        bx, by, bw, bh = cv2.boundingRect(best)

    rect = Rect(x=bx, y=by, width=bw, height=bh)
    if rect.area <= seed_area:
        logger.info(f"말풍선을 찾지 못함: 전경({rect.area:.0f}) <= 시드({seed_area})")
        return None

    logger.info(f"말풍선 확장: 시드 {seed} → {rect.to_tuple()}")
    return _Region(contour=best, rect=rect)


def expand_text_to_balloon(
    image: np.ndarray, text_rect: Rect, params: GrabCutParams | None = None
) -> NormalizedRect | None:
    """텍스트 박스(px)를 감싸는 말풍선의 바운딩 박스 (정규화 좌표)

    텍스트 박스가 이미지 밖으로 나가면 경계로 잘라서 사용한다.

    Returns:
        말풍선 영역, 찾지 못하면 None

    Raises:
        InvalidInputError: 이미지 또는 텍스트 박스가 유효하지 않음
        ProcessingError: OpenCV 처리 실패
    """
    region = _segment(image, text_rect, params or GrabCutParams())
    if region is None:
        return None
    width, height = image_size(image)
    return region.rect.normalize(width, height)


def refine_contour(
    image: np.ndarray, text_rect: Rect, params: GrabCutParams | None = None
) -> Contour | None:
    """텍스트 박스(px)를 감싸는 말풍선의 외곽선 (정규화 좌표)

    픽셀 공간에서 approxPolyDP로 단순화한 뒤 DetectionResult.contours와
    같은 [0, 1] 좌표로 변환한다.

    Returns:
        말풍선 외곽선, 찾지 못하면 None
    """
    params = params or GrabCutParams()
    region = _segment(image, text_rect, params)
    if region is None:
        return None
    with opencv_errors("외곽선 단순화"):
        approx = cv2.approxPolyDP(region.contour, params.approx_epsilon, True)
    width, height = image_size(image)
    return Contour.from_array(approx).normalize(width, height)
