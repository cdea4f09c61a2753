"""Image API 라우트

전처리 단계 단독 호출 (디버깅/튜닝용) 및 OCR 전처리.
"""

from fastapi import APIRouter

from src.routes.errors import to_http_exception
from src.services import bridge
from src.services.vision.errors import VisionError

router = APIRouter(prefix="/images", tags=["images"])


@router.post("/preprocess", response_model=bridge.ImageResponse)
def preprocess(request: bridge.ImageRequest) -> bridge.ImageResponse:
    try:
        return bridge.preprocess_image(request)
    except VisionError as e:
        raise to_http_exception(e) from None


@router.post("/canny", response_model=bridge.ImageResponse)
def canny(request: bridge.CannyRequest) -> bridge.ImageResponse:
    try:
        return bridge.canny_image(request)
    except VisionError as e:
        raise to_http_exception(e) from None


@router.post("/morph-close", response_model=bridge.ImageResponse)
def morph_close(request: bridge.MorphCloseRequest) -> bridge.ImageResponse:
    try:
        return bridge.morph_close_image(request)
    except VisionError as e:
        raise to_http_exception(e) from None


@router.post("/enhance", response_model=bridge.ImageResponse)
def enhance(request: bridge.ImageRequest) -> bridge.ImageResponse:
    """OCR 전 대비/선명도 보정 (그레이스케일 PNG 반환)"""
    try:
        return bridge.enhance_image(request)
    except VisionError as e:
        raise to_http_exception(e) from None
