"""OCR 전처리 (대비 정규화 + 노이즈 제거 + 샤프닝)"""

import cv2
import numpy as np
from pydantic import BaseModel, ConfigDict, Field

from src.services.vision.image import opencv_errors, to_gray, validate_image


class EnhanceParams(BaseModel):
    model_config = ConfigDict(frozen=True)

    clip_limit: float = Field(default=2.0, gt=0.0)
    tile_size: int = Field(default=8, ge=1)
    sharpen_sigma: float = Field(default=3.0, gt=0.0)
    sharpen_amount: float = Field(default=0.5, ge=0.0)
    denoise_strength: float = Field(default=0.0, ge=0.0)


def enhance_for_ocr(image: np.ndarray, params: EnhanceParams | None = None) -> np.ndarray:
    """텍스트 인식률을 높이기 위한 보정

    그레이스케일 → (선택) Non-local means denoise → CLAHE → unsharp mask.
    크기(H, W)는 유지하고 (H, W) 그레이스케일을 반환한다.
    """
    validate_image(image)
    params = params or EnhanceParams()

    with opencv_errors("OCR 보정"):
        gray = to_gray(image)
        if params.denoise_strength > 0:
            gray = cv2.fastNlMeansDenoising(gray, None, params.denoise_strength)

        clahe = cv2.createCLAHE(
            clipLimit=params.clip_limit, tileGridSize=(params.tile_size, params.tile_size)
        )
        enhanced = clahe.apply(gray)

        blurred = cv2.GaussianBlur(enhanced, (0, 0), params.sharpen_sigma)
        return cv2.addWeighted(
            enhanced, 1.0 + params.sharpen_amount, blurred, -params.sharpen_amount, 0
        )
