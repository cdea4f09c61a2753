import logging

from fastapi import HTTPException

from src.services.vision.errors import ProcessingError, VisionError

logger = logging.getLogger(__name__)


def to_http_exception(error: VisionError) -> HTTPException:
    """VisionError → HTTPException (detail: code, message)"""
    if isinstance(error, ProcessingError):
        logger.error(f"이미지 처리 실패: {error.message}")
    return HTTPException(
        status_code=error.status_code,
        detail={"code": error.code, "message": error.message},
    )
