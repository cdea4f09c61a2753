"""탐지 결과 진단용 마킹"""

import cv2
import numpy as np

from src.constants import Colors, Marker
from src.services.vision.candidates import Candidate
from src.services.vision.image import opencv_errors, to_bgr


def draw_markers(image: np.ndarray, candidates: list[Candidate]) -> np.ndarray:
    """원본 복사본(BGR)에 윤곽선과 1부터 시작하는 번호를 그림

    번호는 후보 중심에 빨간 글씨 + 검은 외곽선.
    """
    marked = to_bgr(image)
    font = cv2.FONT_HERSHEY_SIMPLEX

    if not candidates:
        return marked

    with opencv_errors("마커 그리기"):
        cv2.drawContours(marked, [c.contour.to_array() for c in candidates], -1, Colors.CONTOUR, 2)

        for i, candidate in enumerate(candidates, start=1):
            label = str(i)
            (tw, th), _ = cv2.getTextSize(label, font, Marker.FONT_SCALE, Marker.THICKNESS)
            origin = (round(candidate.center.x - tw / 2), round(candidate.center.y + th / 2))

            cv2.putText(
                marked,
                label,
                origin,
                font,
                Marker.FONT_SCALE,
                Colors.MARKER_OUTLINE,
                Marker.THICKNESS + Marker.OUTLINE_EXTRA,
            )
            cv2.putText(
                marked, label, origin, font, Marker.FONT_SCALE, Colors.MARKER_FILL, Marker.THICKNESS
            )

    return marked
