class Colors:
    """BGR 색상 (cv2 형식)"""

    CONTOUR = (0, 200, 0)
    MARKER_FILL = (0, 0, 255)
    MARKER_OUTLINE = (0, 0, 0)


class Marker:
    FONT_SCALE = 2.0
    THICKNESS = 3
    OUTLINE_EXTRA = 2  # 외곽선은 채움보다 2px 두껍게


class GrabCut:
    MIN_SAMPLES = 10  # GMM(5 components) 학습 최소 픽셀 수


class Limits:
    MAX_PAYLOAD_CHARS = 40 * 1024 * 1024  # base64 문자열 기준
