"""Balloon API 라우트

말풍선 탐지 / 텍스트 기반 말풍선 확장 / GrabCut 외곽선 엔드포인트.
모두 동기 엔드포인트 - FastAPI가 threadpool에서 실행.
"""

from fastapi import APIRouter, status

from src.routes.errors import to_http_exception
from src.services import bridge
from src.services.vision.errors import VisionError

router = APIRouter(prefix="/balloons", tags=["balloons"])


@router.post(
    "/detect",
    response_model=bridge.DetectResponse,
    status_code=status.HTTP_200_OK,
)
def detect(request: bridge.DetectRequest) -> bridge.DetectResponse:
    """말풍선 탐지 + 번호를 그린 마킹 이미지"""
    try:
        return bridge.detect_balloons(request)
    except VisionError as e:
        raise to_http_exception(e) from None


@router.post("/expand", response_model=bridge.ExpandResponse)
def expand(request: bridge.TextRectRequest) -> bridge.ExpandResponse:
    """텍스트 박스를 감싸는 말풍선 박스 (없으면 balloonRect: null)"""
    try:
        return bridge.expand_balloon(request)
    except VisionError as e:
        raise to_http_exception(e) from None


@router.post("/refine", response_model=bridge.RefineResponse)
def refine(request: bridge.TextRectRequest) -> bridge.RefineResponse:
    """텍스트 박스를 감싸는 말풍선 외곽선 (없으면 contour: null)"""
    try:
        return bridge.refine_balloon(request)
    except VisionError as e:
        raise to_http_exception(e) from None
