"""말풍선 탐지 파이프라인

전략:
- "edges": 전처리(blur → Canny → 닫힘) → 바깥 윤곽선 → 후보 필터
- "brightness": 밝은 영역 이진화 → 열림/닫힘 → 중첩 윤곽선
  → 후보 필터(solidity, 평균 밝기 포함)

두 전략 모두 읽는 순서로 정렬한 뒤 마킹 이미지와 함께 DetectionResult로 묶는다.
BalloonPipeline은 불변 파라미터만 들고 있으며 호출 간 상태를 공유하지 않는다.
"""

import logging

import numpy as np
from pydantic import BaseModel, ConfigDict, Field

from src.config import Settings
from src.schemas.vision import Contour, DetectionResult, NormalizedRect, Rect
from src.services.vision.annotate import draw_markers
from src.services.vision.candidates import (
    AcceptanceBand,
    Candidate,
    select_candidates,
    sort_reading_order,
)
from src.services.vision.contours import extract_contours
from src.services.vision.enhance import EnhanceParams, enhance_for_ocr
from src.services.vision.errors import InvalidParameterError
from src.services.vision.expansion import (
    GrabCutParams,
    expand_text_to_balloon,
    refine_contour,
)
from src.services.vision.filters import (
    gaussian_blur,
    morph_close,
    morph_open,
    preprocess,
    threshold_bright,
)
from src.services.vision.image import image_size, to_gray, validate_image

logger = logging.getLogger(__name__)

STRATEGIES = ("edges", "brightness")


class PreprocessParams(BaseModel):
    model_config = ConfigDict(frozen=True)

    blur_kernel_size: int = 5
    canny_low: float = 30.0
    canny_high: float = 90.0
    close_kernel_size: int = 15


class BrightRegionParams(BaseModel):
    model_config = ConfigDict(frozen=True)

    blur_kernel_size: int = 5
    threshold: int = Field(default=180, ge=0, le=255)
    kernel_size: int = 5


class PipelineParams(BaseModel):
    model_config = ConfigDict(frozen=True)

    strategy: str = "edges"
    preprocess: PreprocessParams = PreprocessParams()
    bright: BrightRegionParams = BrightRegionParams()
    edge_band: AcceptanceBand = AcceptanceBand()
    bright_band: AcceptanceBand = AcceptanceBand(
        min_area_ratio=0.001,
        max_area_ratio=0.5,
        min_aspect=0.3,
        max_aspect=4.0,
        min_solidity=0.75,
        min_brightness=215.0,
    )
    row_tolerance: float = Field(default=50.0, ge=0.0)
    grabcut: GrabCutParams = GrabCutParams()
    enhance: EnhanceParams = EnhanceParams()

    @classmethod
    def from_settings(cls, settings: Settings) -> "PipelineParams":
        return cls(
            strategy=settings.detection_strategy,
            preprocess=PreprocessParams(
                blur_kernel_size=settings.blur_kernel_size,
                canny_low=settings.canny_low,
                canny_high=settings.canny_high,
                close_kernel_size=settings.close_kernel_size,
            ),
            bright=BrightRegionParams(
                blur_kernel_size=settings.bright_blur_kernel_size,
                threshold=settings.bright_threshold,
                kernel_size=settings.bright_kernel_size,
            ),
            edge_band=AcceptanceBand(
                min_area_ratio=settings.edge_min_area_ratio,
                max_area_ratio=settings.edge_max_area_ratio,
                min_aspect=settings.edge_min_aspect,
                max_aspect=settings.edge_max_aspect,
            ),
            bright_band=AcceptanceBand(
                min_area_ratio=settings.bright_min_area_ratio,
                max_area_ratio=settings.bright_max_area_ratio,
                min_aspect=settings.bright_min_aspect,
                max_aspect=settings.bright_max_aspect,
                min_solidity=settings.bright_min_solidity,
                min_brightness=settings.bright_min_brightness,
            ),
            row_tolerance=settings.reading_row_tolerance,
            grabcut=GrabCutParams(
                max_iterations=settings.grabcut_max_iterations,
                convergence_ratio=settings.grabcut_convergence_ratio,
                margin_ratio=settings.grabcut_margin_ratio,
                approx_epsilon=settings.grabcut_approx_epsilon,
                seed=settings.grabcut_seed,
            ),
            enhance=EnhanceParams(
                clip_limit=settings.ocr_clip_limit,
                tile_size=settings.ocr_tile_size,
                sharpen_sigma=settings.ocr_sharpen_sigma,
                sharpen_amount=settings.ocr_sharpen_amount,
                denoise_strength=settings.ocr_denoise_strength,
            ),
        )


def build_detection_result(image: np.ndarray, candidates: list[Candidate]) -> DetectionResult:
    """후보 → DetectionResult (정규화 좌표 + 마킹 이미지)"""
    width, height = image_size(image)
    marked = draw_markers(image, candidates)
    marked.setflags(write=False)
    return DetectionResult(
        marked_image=marked,
        balloon_rects=[c.rect.normalize(width, height) for c in candidates],
        contours=[c.contour.normalize(width, height) for c in candidates],
    )


class BalloonPipeline:
    def __init__(self, params: PipelineParams | None = None):
        self._params = params or PipelineParams()

    @property
    def params(self) -> PipelineParams:
        return self._params

    def preprocess(self, image: np.ndarray) -> np.ndarray:
        p = self._params.preprocess
        return preprocess(
            image,
            blur_kernel_size=p.blur_kernel_size,
            canny_low=p.canny_low,
            canny_high=p.canny_high,
            close_kernel_size=p.close_kernel_size,
        )

    def detect(self, image: np.ndarray, strategy: str | None = None) -> DetectionResult:
        """설정된 (또는 지정한) 전략으로 말풍선 탐지

        Raises:
            InvalidParameterError: 알 수 없는 전략
        """
        strategy = strategy or self._params.strategy
        if strategy not in STRATEGIES:
            raise InvalidParameterError(f"Unknown detection strategy: {strategy!r}")
        if strategy == "brightness":
            return self.detect_bright_regions(image)
        return self.detect_edges(image)

    def detect_edges(self, image: np.ndarray) -> DetectionResult:
        candidates = self._edge_candidates(image)
        logger.info(f"말풍선 탐지 완료 (edges): {len(candidates)}개")
        return build_detection_result(image, candidates)

    def detect_bright_regions(self, image: np.ndarray) -> DetectionResult:
        validate_image(image)
        p = self._params.bright
        gray = to_gray(image)

        blurred = gaussian_blur(gray, p.blur_kernel_size)
        binary = threshold_bright(blurred, p.threshold)
        binary = morph_open(binary, p.kernel_size)
        binary = morph_close(binary, p.kernel_size)

        contours = extract_contours(binary, nested=True)
        candidates = select_candidates(
            contours, image_size(image), self._params.bright_band, gray=gray
        )
        candidates = sort_reading_order(candidates, self._params.row_tolerance)
        logger.info(f"말풍선 탐지 완료 (brightness): {len(candidates)}개")
        return build_detection_result(image, candidates)

    def detect_balloon_rects(self, image: np.ndarray) -> list[NormalizedRect]:
        """마킹 없이 정규화된 말풍선 박스만 (edges 전략)"""
        width, height = image_size(validate_image(image))
        return [c.rect.normalize(width, height) for c in self._edge_candidates(image)]

    def expand_text_to_balloon(self, image: np.ndarray, text_rect: Rect) -> NormalizedRect | None:
        return expand_text_to_balloon(image, text_rect, self._params.grabcut)

    def refine_contour(self, image: np.ndarray, text_rect: Rect) -> Contour | None:
        return refine_contour(image, text_rect, self._params.grabcut)

    def enhance_for_ocr(self, image: np.ndarray) -> np.ndarray:
        return enhance_for_ocr(image, self._params.enhance)

    def _edge_candidates(self, image: np.ndarray) -> list[Candidate]:
        binary = self.preprocess(image)
        contours = extract_contours(binary)
        candidates = select_candidates(contours, image_size(image), self._params.edge_band)
        return sort_reading_order(candidates, self._params.row_tolerance)
