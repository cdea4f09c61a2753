import base64
from collections.abc import Generator
from io import BytesIO

import cv2
import numpy as np
import pytest
from fastapi.testclient import TestClient
from PIL import Image

from src.main import app
from src.services.vision import set_pipeline

# 300x300 페이지의 말풍선 두 개: (center, axes)
BALLOONS = [((220, 80), (50, 30)), ((80, 210), (45, 35))]


def encode_png(image: np.ndarray) -> str:
    """BGR/그레이스케일 배열 → base64 PNG"""
    if image.ndim == 3:
        image = cv2.cvtColor(image, cv2.COLOR_BGR2RGB)
    buffer = BytesIO()
    Image.fromarray(image).save(buffer, format="PNG")
    return base64.b64encode(buffer.getvalue()).decode()


def decode_png(b64_str: str) -> Image.Image:
    return Image.open(BytesIO(base64.b64decode(b64_str)))


@pytest.fixture
def square_image() -> np.ndarray:
    """100x100 흰 배경 + (40,40)-(60,60) 검은 사각형"""
    image = np.full((100, 100), 255, dtype=np.uint8)
    image[40:60, 40:60] = 0
    return image


@pytest.fixture
def outlined_page() -> np.ndarray:
    """흰 페이지에 검은 테두리 타원 말풍선 두 개 (BGR)"""
    page = np.full((300, 300, 3), 255, dtype=np.uint8)
    for center, axes in BALLOONS:
        cv2.ellipse(page, center, axes, 0, 0, 360, (0, 0, 0), 3)
    return page


@pytest.fixture
def bright_page() -> np.ndarray:
    """회색 배경에 흰 말풍선 두 개 + 어두운 타원 + 흰 점 노이즈 (BGR)"""
    page = np.full((300, 300, 3), 100, dtype=np.uint8)
    for center, axes in BALLOONS:
        cv2.ellipse(page, center, axes, 0, 0, 360, (255, 255, 255), -1)
        cv2.ellipse(page, center, axes, 0, 0, 360, (0, 0, 0), 2)
    cv2.ellipse(page, (80, 70), (40, 30), 0, 0, 360, (150, 150, 150), -1)
    cv2.rectangle(page, (200, 250), (202, 252), (255, 255, 255), -1)
    return page


@pytest.fixture
def balloon_scene() -> np.ndarray:
    """어두운 배경 200x200 중앙에 흰 타원 말풍선 (120x80, 검은 테두리, 약한 노이즈)"""
    rng = np.random.default_rng(0)
    scene = np.full((200, 200, 3), 40, dtype=np.uint8)
    cv2.ellipse(scene, (100, 100), (60, 40), 0, 0, 360, (245, 245, 245), -1)
    cv2.ellipse(scene, (100, 100), (60, 40), 0, 0, 360, (0, 0, 0), 2)
    noise = rng.normal(0, 3, scene.shape)
    return np.clip(scene.astype(np.float64) + noise, 0, 255).astype(np.uint8)


@pytest.fixture
def client() -> Generator[TestClient, None, None]:
    set_pipeline(None)
    yield TestClient(app)
    set_pipeline(None)


@pytest.fixture
def text_balloon_scene() -> np.ndarray:
    """balloon_scene과 같은 말풍선 안에 검은 글자 (글자 박스 약 60x30, (70, 85)부터)"""
    rng = np.random.default_rng(0)
    scene = np.full((200, 200, 3), 40, dtype=np.uint8)
    cv2.ellipse(scene, (100, 100), (60, 40), 0, 0, 360, (245, 245, 245), -1)
    cv2.ellipse(scene, (100, 100), (60, 40), 0, 0, 360, (0, 0, 0), 2)
    cv2.putText(scene, "ABC", (75, 110), cv2.FONT_HERSHEY_SIMPLEX, 0.7, (0, 0, 0), 2)
    noise = rng.normal(0, 3, scene.shape)
    return np.clip(scene.astype(np.float64) + noise, 0, 255).astype(np.uint8)
