"""기본 필터 단계 테스트"""

import numpy as np
import pytest

from src.services.vision.contours import extract_contours
from src.services.vision.errors import InvalidInputError, InvalidParameterError
from src.services.vision.filters import (
    canny_edge,
    gaussian_blur,
    morph_close,
    morph_open,
    preprocess,
    threshold_bright,
)


def _fragments() -> np.ndarray:
    """경계에서 멀리 떨어진 블록 4개 (200x200 이진)"""
    image = np.zeros((200, 200), dtype=np.uint8)
    image[40:60, 30:50] = 255
    image[40:60, 54:74] = 255  # 4px 간격 → 닫힘으로 합쳐짐
    image[120:150, 115:125] = 255
    image[150:160, 30:60] = 255
    return image


class TestCannyEdge:
    def test_returns_binary_single_channel(self, square_image: np.ndarray) -> None:
        edges = canny_edge(square_image, 30, 90)
        assert edges.shape == square_image.shape
        assert edges.dtype == np.uint8
        assert set(np.unique(edges)) <= {0, 255}
        assert edges.any()

    def test_equal_thresholds(self, square_image: np.ndarray) -> None:
        edges = canny_edge(square_image, 50, 50)
        assert edges.shape == (100, 100)
        assert set(np.unique(edges)) <= {0, 255}

    def test_color_input_converted(self) -> None:
        image = np.full((50, 50, 3), 255, dtype=np.uint8)
        image[10:30, 10:30] = (0, 0, 0)
        edges = canny_edge(image, 30, 90)
        assert edges.shape == (50, 50)

    def test_low_greater_than_high_rejected(self, square_image: np.ndarray) -> None:
        with pytest.raises(InvalidParameterError):
            canny_edge(square_image, 100, 50)

    @pytest.mark.parametrize(("low", "high"), [(0, 50), (-1, 50), (10, 0)])
    def test_non_positive_thresholds_rejected(
        self, square_image: np.ndarray, low: float, high: float
    ) -> None:
        with pytest.raises(InvalidParameterError):
            canny_edge(square_image, low, high)

    def test_flat_image_has_no_edges(self) -> None:
        flat = np.full((80, 80), 128, dtype=np.uint8)
        edges = canny_edge(flat, 30, 90)
        assert not edges.any()
        assert extract_contours(edges) == []


class TestMorphClose:
    def test_merges_nearby_fragments(self) -> None:
        image = _fragments()
        before = len(extract_contours(image))
        after = len(extract_contours(morph_close(image, 9)))
        assert before == 4
        assert after == 3

    def test_second_application_keeps_region_count(self) -> None:
        once = morph_close(_fragments(), 9)
        twice = morph_close(once, 9)
        assert len(extract_contours(twice)) == len(extract_contours(once))

    @pytest.mark.parametrize("kernel_size", [0, -3, 4, 2.5, True])
    def test_invalid_kernel_size(self, kernel_size: object) -> None:
        with pytest.raises(InvalidParameterError):
            morph_close(_fragments(), kernel_size)  # type: ignore[arg-type]

    def test_does_not_mutate_input(self) -> None:
        image = _fragments()
        original = image.copy()
        morph_close(image, 9)
        assert np.array_equal(image, original)


class TestOtherFilters:
    def test_gaussian_blur_keeps_shape(self, square_image: np.ndarray) -> None:
        assert gaussian_blur(square_image, 5).shape == square_image.shape

    def test_gaussian_blur_even_kernel_rejected(self, square_image: np.ndarray) -> None:
        with pytest.raises(InvalidParameterError):
            gaussian_blur(square_image, 4)

    def test_morph_open_removes_specks(self) -> None:
        image = np.zeros((50, 50), dtype=np.uint8)
        image[10, 10] = 255
        image[20:40, 20:40] = 255
        opened = morph_open(image, 5)
        assert opened[10, 10] == 0
        assert opened[30, 30] == 255

    def test_threshold_bright(self) -> None:
        image = np.array([[100, 181], [180, 255]], dtype=np.uint8)
        result = threshold_bright(image, 180)
        assert result.tolist() == [[0, 255], [0, 255]]

    def test_threshold_out_of_range(self, square_image: np.ndarray) -> None:
        with pytest.raises(InvalidParameterError):
            threshold_bright(square_image, 300)


class TestPreprocess:
    def test_single_square_end_to_end(self, square_image: np.ndarray) -> None:
        binary = preprocess(square_image)
        contours = extract_contours(binary)

        assert len(contours) == 1
        rect = contours[0].bounding_rect().normalize(100, 100)
        assert rect.x == pytest.approx(0.40, abs=0.02)
        assert rect.y == pytest.approx(0.40, abs=0.02)
        assert rect.width == pytest.approx(0.20, abs=0.02)
        assert rect.height == pytest.approx(0.20, abs=0.02)

    def test_output_is_single_channel(self, outlined_page: np.ndarray) -> None:
        binary = preprocess(outlined_page)
        assert binary.shape == outlined_page.shape[:2]

    def test_deterministic(self, outlined_page: np.ndarray) -> None:
        assert np.array_equal(preprocess(outlined_page), preprocess(outlined_page))

    def test_does_not_mutate_input(self, outlined_page: np.ndarray) -> None:
        original = outlined_page.copy()
        preprocess(outlined_page)
        assert np.array_equal(outlined_page, original)


class TestInvalidImage:
    @pytest.mark.parametrize(
        "image",
        [
            None,
            "not an image",
            np.zeros((0, 10), dtype=np.uint8),
            np.zeros((10, 10, 2), dtype=np.uint8),
            np.zeros((10, 10), dtype=np.float32),
            np.zeros(10, dtype=np.uint8),
        ],
    )
    def test_invalid_input(self, image: object) -> None:
        with pytest.raises(InvalidInputError):
            preprocess(image)  # type: ignore[arg-type]
