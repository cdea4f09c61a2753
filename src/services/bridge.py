"""Bridge 서비스: 모바일 앱 ↔ 비전 파이프라인

앱은 이미지를 base64 PNG/JPEG로 보내고, 결과 이미지도 base64 PNG로 받는다.
디코딩된 이미지는 BGR(컬러) 또는 (H, W) 그레이스케일 numpy 배열로 파이프라인에 전달.

텍스트 박스(textRect)는 픽셀 좌표, 응답의 balloonRect/balloonRects/contours와
refine 결과 contour는 정규화 좌표.
"""

import base64
import binascii
import io
import logging

import cv2
import numpy as np
from PIL import Image
from pydantic import Field

from src.config import get_settings
from src.constants import Limits
from src.schemas.base import BaseSchema
from src.schemas.vision import NormalizedRect, Point, Rect
from src.services.vision import get_pipeline
from src.services.vision.errors import InvalidInputError
from src.services.vision.filters import canny_edge, morph_close

logger = logging.getLogger(__name__)


class ImageRequest(BaseSchema):
    image: str = Field(max_length=Limits.MAX_PAYLOAD_CHARS)  # base64 PNG/JPEG (data URL 허용)


class DetectRequest(ImageRequest):
    strategy: str | None = None  # None이면 설정값


class TextRectRequest(ImageRequest):
    text_rect: Rect  # 픽셀 좌표


class CannyRequest(ImageRequest):
    low: float
    high: float


class MorphCloseRequest(ImageRequest):
    kernel_size: int


class ImageResponse(BaseSchema):
    image: str  # base64 PNG


class DetectResponse(BaseSchema):
    marked_image: str  # base64 PNG
    balloon_rects: list[NormalizedRect]
    contours: list[list[Point]]


class ExpandResponse(BaseSchema):
    balloon_rect: NormalizedRect | None


class RefineResponse(BaseSchema):
    contour: list[Point] | None


def decode_image(b64_str: str) -> np.ndarray:
    """base64 이미지 → BGR 또는 그레이스케일 numpy 배열

    Raises:
        InvalidInputError: 디코딩 실패 또는 픽셀 수 초과
    """
    if "," in b64_str[:64]:
        b64_str = b64_str.split(",", 1)[1]

    try:
        data = base64.b64decode(b64_str, validate=True)
    except (binascii.Error, ValueError) as e:
        raise InvalidInputError("이미지 base64 디코딩 실패") from e

    try:
        img = Image.open(io.BytesIO(data))
    except Exception as e:
        raise InvalidInputError("이미지 파싱 실패") from e

    # 헤더만 읽은 상태에서 검사, 픽셀 디코딩은 그 다음
    width, height = img.size
    max_pixels = get_settings().max_image_pixels
    if width * height > max_pixels:
        raise InvalidInputError(
            f"총 픽셀수 초과: {width}x{height} = {width * height} (최대 {max_pixels})"
        )

    try:
        img.load()
    except Exception as e:
        raise InvalidInputError("이미지 파싱 실패") from e

    if img.mode in ("L", "1", "I;16", "I"):
        return np.array(img.convert("L"))
    return cv2.cvtColor(np.array(img.convert("RGB")), cv2.COLOR_RGB2BGR)


def encode_image(arr: np.ndarray) -> str:
    """BGR/그레이스케일 numpy 배열 → base64 PNG"""
    if arr.ndim == 3 and arr.shape[2] == 3:
        arr = cv2.cvtColor(arr, cv2.COLOR_BGR2RGB)
    elif arr.ndim == 3:
        arr = arr[:, :, 0]
    buffer = io.BytesIO()
    Image.fromarray(arr).save(buffer, format="PNG")
    return base64.b64encode(buffer.getvalue()).decode()


def detect_balloons(request: DetectRequest) -> DetectResponse:
    image = decode_image(request.image)
    logger.info(f"탐지 요청: {image.shape[1]}x{image.shape[0]}, strategy={request.strategy}")
    result = get_pipeline().detect(image, request.strategy)
    return DetectResponse(
        marked_image=encode_image(result.marked_image),
        balloon_rects=result.balloon_rects,
        contours=[list(c.points) for c in result.contours],
    )


def expand_balloon(request: TextRectRequest) -> ExpandResponse:
    image = decode_image(request.image)
    rect = get_pipeline().expand_text_to_balloon(image, request.text_rect)
    return ExpandResponse(balloon_rect=rect)


def refine_balloon(request: TextRectRequest) -> RefineResponse:
    image = decode_image(request.image)
    contour = get_pipeline().refine_contour(image, request.text_rect)
    return RefineResponse(contour=list(contour.points) if contour is not None else None)


def preprocess_image(request: ImageRequest) -> ImageResponse:
    image = decode_image(request.image)
    return ImageResponse(image=encode_image(get_pipeline().preprocess(image)))


def canny_image(request: CannyRequest) -> ImageResponse:
    image = decode_image(request.image)
    return ImageResponse(image=encode_image(canny_edge(image, request.low, request.high)))


def morph_close_image(request: MorphCloseRequest) -> ImageResponse:
    image = decode_image(request.image)
    return ImageResponse(image=encode_image(morph_close(image, request.kernel_size)))


def enhance_image(request: ImageRequest) -> ImageResponse:
    image = decode_image(request.image)
    return ImageResponse(image=encode_image(get_pipeline().enhance_for_ocr(image)))
