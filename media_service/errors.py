"""서비스 예외 정의 - HTTP 상태 코드와 에러 코드 매핑 포함"""

from __future__ import annotations


class MediaServiceError(Exception):
    """서비스 예외의 기본 클래스"""

    status_code = 500
    code = "INTERNAL_ERROR"

    def __init__(self, message: str = "") -> None:
        super().__init__(message)
        self.message = message


class InvalidUrlError(MediaServiceError):
    """URL 형식 또는 스킴이 허용되지 않음"""

    status_code = 400
    code = "INVALID_URL"


class NotFoundError(MediaServiceError):
    """요청한 미디어가 존재하지 않음"""

    status_code = 404
    code = "NOT_FOUND"


class AuthenticationRequiredError(MediaServiceError):
    """호출자 인증 실패 (사유와 무관하게 동일한 코드)"""

    status_code = 401
    code = "AUTHENTICATION_REQUIRED"

    def __init__(self, message: str = "Authentication required") -> None:
        super().__init__(message)


class StorageConflictError(MediaServiceError):
    """normalized_url 유니크 제약 위반 - 등록기 내부에서만 처리"""

    status_code = 409
    code = "STORAGE_CONFLICT"


class StorageUnavailableError(MediaServiceError):
    """저장소 접근 불가"""

    status_code = 503
    code = "STORAGE_UNAVAILABLE"
