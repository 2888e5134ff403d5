# 도메인 오류: 라우터가 status_code 로 HTTPException 변환 (commit 전 rollback)


class VibeError(Exception):
    """모든 도메인 오류의 기반. 어떤 쓰기도 일어나기 전에 발생해야 함."""

    status_code = 400

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class ValidationError(VibeError):
    """입력 누락/형식 오류."""

    status_code = 400


class NotFound(VibeError):
    status_code = 404


class Unauthorized(VibeError):
    """행위자가 대상 엔티티에 대한 권한(관계)이 없음. 인증 실패가 아님."""

    status_code = 403


class InvalidState(VibeError):
    """현재 라이프사이클/승인 상태에서 허용되지 않는 작업."""

    status_code = 409


class Full(VibeError):
    """정원 초과."""

    status_code = 409
