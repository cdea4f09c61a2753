"""말풍선 후보 필터

윤곽선의 바운딩 박스 면적 비율/종횡비(+ 선택적으로 solidity, 평균 밝기)로
노이즈와 페이지 전체 크기의 오탐을 걸러낸다.
"""

import logging

import cv2
import numpy as np
from pydantic import BaseModel, ConfigDict, Field

from src.schemas.vision import Contour, NormalizedRect, Point, Rect
from src.services.vision.errors import InvalidInputError, InvalidParameterError
from src.services.vision.image import opencv_errors

logger = logging.getLogger(__name__)


class AcceptanceBand(BaseModel):
    """후보 허용 범위

    면적 비율 = 바운딩 박스 면적 / 이미지 면적.
    min_solidity, min_brightness는 0이면 검사하지 않음.
    """

    model_config = ConfigDict(frozen=True)

    min_area_ratio: float = Field(default=0.002, ge=0.0, le=1.0)
    max_area_ratio: float = Field(default=0.5, ge=0.0, le=1.0)
    min_aspect: float = Field(default=0.2, gt=0.0)
    max_aspect: float = Field(default=5.0, gt=0.0)
    min_solidity: float = Field(default=0.0, ge=0.0, le=1.0)
    min_brightness: float = Field(default=0.0, ge=0.0, le=255.0)


class Candidate(BaseModel):
    """필터를 통과한 윤곽선과 픽셀 공간 바운딩 박스 쌍"""

    model_config = ConfigDict(frozen=True)

    contour: Contour
    rect: Rect
    center: Point


def _check_band(band: AcceptanceBand) -> None:
    if band.min_area_ratio > band.max_area_ratio:
        raise InvalidParameterError(
            f"min_area_ratio > max_area_ratio: {band.min_area_ratio} > {band.max_area_ratio}"
        )
    if band.min_aspect > band.max_aspect:
        raise InvalidParameterError(
            f"min_aspect > max_aspect: {band.min_aspect} > {band.max_aspect}"
        )


def _centroid(contour: np.ndarray, rect: Rect) -> Point:
    m = cv2.moments(contour)
    if m["m00"] == 0:
        cx, cy = rect.center
        return Point(x=cx, y=cy)
    return Point(x=m["m10"] / m["m00"], y=m["m01"] / m["m00"])


def _solidity(contour: np.ndarray) -> float:
    """윤곽선 면적 / 볼록 껍질 면적 (구름형 말풍선도 0.75 이상)"""
    hull_area = cv2.contourArea(cv2.convexHull(contour))
    if hull_area <= 0:
        return 0.0
    return float(cv2.contourArea(contour) / hull_area)


def _mean_brightness(gray: np.ndarray, contour: np.ndarray) -> float:
    mask = np.zeros(gray.shape[:2], dtype=np.uint8)
    cv2.drawContours(mask, [contour], -1, 255, cv2.FILLED)
    return float(cv2.mean(gray, mask=mask)[0])


def select_candidates(
    contours: list[Contour],
    image_size: tuple[int, int],
    band: AcceptanceBand,
    *,
    gray: np.ndarray | None = None,
) -> list[Candidate]:
    """허용 범위를 통과한 윤곽선만 (윤곽선, 바운딩 박스) 쌍으로 반환

    Args:
        contours: extract_contours 결과
        image_size: (width, height)
        band: 허용 범위
        gray: min_brightness 검사용 그레이스케일 이미지

    Raises:
        InvalidInputError: 이미지 크기가 0 이하이거나 밝기 검사에 gray가 없음
        InvalidParameterError: band의 min > max
    """
    width, height = image_size
    if width <= 0 or height <= 0:
        raise InvalidInputError(f"유효하지 않은 이미지 크기: {width}x{height}")
    if band.min_brightness > 0 and gray is None:
        raise InvalidInputError("min_brightness 검사에는 그레이스케일 이미지가 필요합니다")
    _check_band(band)

    image_area = width * height
    accepted: list[Candidate] = []

    with opencv_errors("후보 필터"):
        for contour in contours:
            rect = contour.bounding_rect()
            if not rect.is_valid():
                continue

            area_ratio = rect.area / image_area
            if not band.min_area_ratio <= area_ratio <= band.max_area_ratio:
                logger.debug(f"필터링 (면적): ratio={area_ratio:.4f}")
                continue

            aspect = rect.width / rect.height
            if not band.min_aspect <= aspect <= band.max_aspect:
                logger.debug(f"필터링 (종횡비): aspect={aspect:.2f}")
                continue

            points = contour.to_array()
            if band.min_solidity > 0 and _solidity(points) < band.min_solidity:
                logger.debug("필터링 (solidity)")
                continue

            if gray is not None and band.min_brightness > 0:
                brightness = _mean_brightness(gray, points)
                if brightness < band.min_brightness:
                    logger.debug(f"필터링 (밝기): mean={brightness:.0f}")
                    continue

            accepted.append(Candidate(contour=contour, rect=rect, center=_centroid(points, rect)))

    logger.info(f"후보 필터 완료: {len(accepted)}/{len(contours)}개 통과")
    return accepted


def filter_candidates(
    contours: list[Contour],
    image_size: tuple[int, int],
    band: AcceptanceBand,
    *,
    gray: np.ndarray | None = None,
) -> list[NormalizedRect]:
    """통과한 윤곽선마다 정규화된 바운딩 박스 하나씩 (입력 순서 유지)"""
    width, height = image_size
    candidates = select_candidates(contours, image_size, band, gray=gray)
    return [c.rect.normalize(width, height) for c in candidates]


def sort_reading_order(candidates: list[Candidate], row_tolerance: float) -> list[Candidate]:
    """읽는 순서 정렬 (위 → 아래, 같은 줄은 왼쪽 → 오른쪽)

    중심 Y로 정렬한 뒤 각 줄의 첫 후보와 row_tolerance 이내면 같은 줄로 묶는다.
    """
    by_y = sorted(candidates, key=lambda c: c.center.y)
    rows: list[list[Candidate]] = []

    for candidate in by_y:
        if rows and abs(candidate.center.y - rows[-1][0].center.y) < row_tolerance:
            rows[-1].append(candidate)
        else:
            rows.append([candidate])

    return [c for row in rows for c in sorted(row, key=lambda c: c.center.x)]
