"""커스텀 HTTP 예외 클래스 모듈.

Custom HTTP exception classes module.
Every error carries a machine-readable ``kind`` and ``code`` plus a human
message, so clients can render a user-facing message and branch on the kind.

Response body:
    {"detail": {"kind": "conflict", "code": "shift_already_open",
                "message": "...", ...extra}}

Usage:
    from misekitchen.utils.exceptions import NotFoundError, ConflictError
    raise NotFoundError("Shift not found")
    raise ConflictError("Shift is already closed", code="already_closed")
"""

from typing import Any

from fastapi import HTTPException, status


class AppError(HTTPException):
    """도메인 오류 베이스 클래스.

    Base class for domain errors raised by services.

    Args:
        message: 오류 메시지 (Human-readable message)
        code: 세부 오류 코드 (Machine-readable sub-code, defaults to the kind)
        **extra: 추가 응답 필드 (Extra detail fields, e.g. names/items)
    """

    kind: str = "error"
    status_code_default: int = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str, code: str | None = None, **extra: Any) -> None:
        self.message: str = message
        self.code: str = code or self.kind
        self.extra: dict[str, Any] = extra
        detail: dict[str, Any] = {"kind": self.kind, "code": self.code, "message": message, **extra}
        super().__init__(status_code=self.status_code_default, detail=detail)


class ValidationError(AppError):
    """400 — 필수 필드 누락/잘못된 입력 (Bad or missing required fields)."""

    kind = "validation"
    status_code_default = status.HTTP_400_BAD_REQUEST


class NotFoundError(AppError):
    """404 — 교대/레시피/재료 없음 (Shift, recipe or ingredient absent)."""

    kind = "not_found"
    status_code_default = status.HTTP_404_NOT_FOUND

    def __init__(self, message: str = "Resource not found", code: str | None = None, **extra: Any) -> None:
        super().__init__(message, code, **extra)


class ConflictError(AppError):
    """409 — 상태 충돌 (Shift already open/closed, checklist already signed)."""

    kind = "conflict"
    status_code_default = status.HTTP_409_CONFLICT


class InsufficientResourceError(AppError):
    """400 — 재고 부족 (Missing ingredients for a sale, mise en place too low to close)."""

    kind = "insufficient_resource"
    status_code_default = status.HTTP_400_BAD_REQUEST


class UnauthorizedError(AppError):
    """401 — 서명/승인 자격 증명 오류 (Invalid credentials or wrong role)."""

    kind = "unauthorized"
    status_code_default = status.HTTP_401_UNAUTHORIZED

    def __init__(self, message: str = "Invalid credentials", code: str | None = "invalid_credentials", **extra: Any) -> None:
        super().__init__(message, code, **extra)
