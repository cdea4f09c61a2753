"""비전 파이프라인 데이터 모델

좌표 공간은 두 가지:
- 픽셀 공간 (Rect, refine 결과 Contour): 원본 이미지 기준 절대 좌표(px)
- 정규화 공간 (NormalizedRect, DetectionResult): 이미지 너비/높이로 나눈 [0, 1] 좌표

원점은 항상 좌상단.
"""

import math
from typing import Self

import cv2
import numpy as np
from pydantic import BaseModel, ConfigDict, Field, model_validator


class Point(BaseModel):
    model_config = ConfigDict(frozen=True)

    x: float
    y: float


class Rect(BaseModel):
    """축 정렬 사각형 (x, y, width, height) - 픽셀 공간"""

    model_config = ConfigDict(frozen=True)

    x: float
    y: float
    width: float
    height: float

    @property
    def x2(self) -> float:
        return self.x + self.width

    @property
    def y2(self) -> float:
        return self.y + self.height

    @property
    def area(self) -> float:
        return self.width * self.height

    @property
    def center(self) -> tuple[float, float]:
        """중심점 (cx, cy)"""
        return (self.x + self.width / 2, self.y + self.height / 2)

    def is_valid(self) -> bool:
        """유한한 좌표이고 width > 0, height > 0 인지 확인"""
        values = (self.x, self.y, self.width, self.height)
        if any(math.isnan(v) or math.isinf(v) for v in values):
            return False
        return self.width > 0 and self.height > 0

    def contains(self, other: "Rect", tolerance: float = 0.0) -> bool:
        return (
            other.x >= self.x - tolerance
            and other.y >= self.y - tolerance
            and other.x2 <= self.x2 + tolerance
            and other.y2 <= self.y2 + tolerance
        )

    def clamp(self, width: float, height: float) -> "Rect":
        """이미지 경계 [0, width] x [0, height] 내로 클리핑

        완전히 경계 밖이면 zero-area Rect 반환.
        """
        x1 = min(width, max(0.0, self.x))
        y1 = min(height, max(0.0, self.y))
        x2 = min(width, max(0.0, self.x2))
        y2 = min(height, max(0.0, self.y2))
        return Rect(x=x1, y=y1, width=x2 - x1, height=y2 - y1)

    def normalize(self, width: float, height: float) -> "NormalizedRect":
        """픽셀 좌표 → [0, 1] 정규화 좌표 (이미지 밖 부분은 잘라냄)"""
        clamped = self.clamp(width, height)
        return NormalizedRect(
            x=_unit(clamped.x / width),
            y=_unit(clamped.y / height),
            width=_unit(clamped.width / width),
            height=_unit(clamped.height / height),
        )

    def to_tuple(self) -> tuple[int, int, int, int]:
        """정수 튜플 (x, y, width, height) - cv2 호출용"""
        return (round(self.x), round(self.y), round(self.width), round(self.height))


class NormalizedRect(Rect):
    """정규화 공간의 사각형 - 네 필드 모두 [0, 1]"""

    x: float = Field(ge=0.0, le=1.0)
    y: float = Field(ge=0.0, le=1.0)
    width: float = Field(ge=0.0, le=1.0)
    height: float = Field(ge=0.0, le=1.0)

    def to_pixels(self, width: float, height: float) -> Rect:
        return Rect(
            x=self.x * width,
            y=self.y * height,
            width=self.width * width,
            height=self.height * height,
        )


class Contour(BaseModel):
    """닫힌 폴리라인 (점 순서 = 외곽 순회 순서, 시작점은 보장하지 않음)"""

    model_config = ConfigDict(frozen=True)

    points: tuple[Point, ...] = ()

    def __len__(self) -> int:
        return len(self.points)

    @classmethod
    def from_array(cls, array: np.ndarray) -> "Contour":
        """cv2.findContours 결과 (N, 1, 2) 또는 (N, 2) 배열에서 생성"""
        pts = np.asarray(array).reshape(-1, 2)
        return cls(points=tuple(Point(x=float(x), y=float(y)) for x, y in pts))

    def to_array(self) -> np.ndarray:
        """cv2 호출용 (N, 1, 2) int32 배열"""
        if not self.points:
            return np.zeros((0, 1, 2), dtype=np.int32)
        coords = [[round(p.x), round(p.y)] for p in self.points]
        return np.array(coords, dtype=np.int32).reshape(-1, 1, 2)

    def bounding_rect(self) -> Rect:
        if not self.points:
            return Rect(x=0, y=0, width=0, height=0)
        x, y, w, h = cv2.boundingRect(self.to_array())
        return Rect(x=x, y=y, width=w, height=h)

    def area(self) -> float:
        if len(self.points) < 3:
            return 0.0
        return float(cv2.contourArea(self.to_array()))

    def normalize(self, width: float, height: float) -> "Contour":
        return Contour(
            points=tuple(
                Point(x=_unit(p.x / width), y=_unit(p.y / height)) for p in self.points
            )
        )


class DetectionResult(BaseModel):
    """말풍선 탐지 결과

    balloon_rects[i]와 contours[i]는 같은 후보를 가리킨다 (둘 다 정규화 좌표).
    marked_image는 진단용으로 윤곽선/번호를 그린 BGR 이미지 (읽기 전용 배열).
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    marked_image: np.ndarray
    balloon_rects: list[NormalizedRect] = []
    contours: list[Contour] = []

    @model_validator(mode="after")
    def validate_pairing(self) -> Self:
        if len(self.balloon_rects) != len(self.contours):
            raise ValueError(
                f"balloon_rects({len(self.balloon_rects)})와 "
                f"contours({len(self.contours)}) 개수가 다릅니다"
            )
        return self


def _unit(value: float) -> float:
    return min(1.0, max(0.0, value))
