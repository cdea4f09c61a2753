"""파이프라인 팩토리 테스트"""

from unittest.mock import patch

from src.config import Settings
from src.services.vision import BalloonPipeline, get_pipeline, set_pipeline


class TestGetPipeline:
    def setup_method(self) -> None:
        set_pipeline(None)

    def teardown_method(self) -> None:
        set_pipeline(None)

    def test_built_from_settings(self) -> None:
        settings = Settings(detection_strategy="brightness", canny_low=10)
        with patch("src.services.vision.get_settings", return_value=settings):
            pipeline = get_pipeline()

        assert pipeline.params.strategy == "brightness"
        assert pipeline.params.preprocess.canny_low == 10

    def test_cached_instance(self) -> None:
        assert get_pipeline() is get_pipeline()

    def test_set_pipeline_overrides(self) -> None:
        custom = BalloonPipeline()
        set_pipeline(custom)
        assert get_pipeline() is custom
