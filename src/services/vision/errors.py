"""비전 파이프라인 에러

- InvalidInputError: None/빈 이미지, 형식이 잘못된 사각형 (400)
- InvalidParameterError: 범위를 벗어난 threshold/kernel 크기 등 (400)
- ProcessingError: OpenCV 내부 실패 등 그 외 모든 실패 (500)

말풍선을 찾지 못한 경우는 에러가 아니라 None 반환.
"""


class VisionError(Exception):
    code = "PROCESSING_FAILED"
    status_code = 500

    def __init__(self, message: str):
        self.message = message
        super().__init__(f"[{self.code}] {message}")


class InvalidInputError(VisionError):
    code = "INVALID_INPUT"
    status_code = 400


class InvalidParameterError(VisionError):
    code = "INVALID_PARAMETER"
    status_code = 400


class ProcessingError(VisionError):
    pass
