from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")

    # CORS
    cors_origins: list[str] = ["http://localhost:5173"]

    # Bridge
    max_image_pixels: int = 12_000_000

    # Preprocessing (grayscale → blur → canny → close)
    blur_kernel_size: int = 5
    canny_low: float = 30.0
    canny_high: float = 90.0
    close_kernel_size: int = 15

    # Detection
    detection_strategy: str = "edges"  # "edges" | "brightness"
    reading_row_tolerance: int = 50  # 같은 줄로 묶는 중심 Y 차이 (px)

    # Candidate filter - edges
    edge_min_area_ratio: float = 0.002
    edge_max_area_ratio: float = 0.5
    edge_min_aspect: float = 0.2
    edge_max_aspect: float = 5.0

    # Candidate filter - brightness (marker 전략)
    bright_blur_kernel_size: int = 5
    bright_threshold: int = 180  # 누렇게 바랜 종이까지 흰 영역으로 취급
    bright_kernel_size: int = 5
    bright_min_area_ratio: float = 0.001
    bright_max_area_ratio: float = 0.5
    bright_min_aspect: float = 0.3
    bright_max_aspect: float = 4.0
    bright_min_solidity: float = 0.75
    bright_min_brightness: float = 215.0

    # GrabCut expansion
    grabcut_max_iterations: int = 5
    grabcut_convergence_ratio: float = 0.001
    grabcut_margin_ratio: float = 3.0
    grabcut_approx_epsilon: float = 2.0
    grabcut_seed: int = 0

    # OCR enhancement
    ocr_clip_limit: float = 2.0
    ocr_tile_size: int = 8
    ocr_sharpen_sigma: float = 3.0
    ocr_sharpen_amount: float = 0.5
    ocr_denoise_strength: float = 0.0  # 0이면 denoise 생략


@lru_cache
def get_settings() -> Settings:
    return Settings()
