"""요청 로깅 미들웨어 — 로컬 로그와 Axiom 전송.

Request logging middleware.
Every API request is summarised on the local ``misekitchen.request`` logger
and, when AXIOM_API_TOKEN/AXIOM_DATASET are set, shipped to Axiom as a
structured event. Error responses carry the service error's kind and code.
Sensitive fields (password, authorized_password, token, ...) are masked;
the signer's RUT stays visible for auditing.
"""

import json
import re
import time
from typing import Any

from axiom_py import Client as AxiomClient
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from misekitchen.config import settings
from misekitchen.utils.logging import get_logger

logger = get_logger("misekitchen.request")

# 마스킹 대상 필드 패턴 — Fields masked in request bodies and query params
_SENSITIVE_KEYS = re.compile(r"(password|secret|token|authorization|api_key|credential)", re.IGNORECASE)

# 로깅 제외 경로 — Paths excluded from logging
_SKIP_PATHS: set[str] = {"/health", "/docs", "/redoc", "/openapi.json"}

_MAX_ITEMS: int = 20
_MAX_DEPTH: int = 5


def mask_sensitive(data: Any, depth: int = 0) -> Any:
    """민감 필드를 재귀적으로 마스킹합니다 (Recursively mask sensitive keys)."""
    if depth > _MAX_DEPTH:
        return "..."
    if isinstance(data, dict):
        return {
            key: "***" if _SENSITIVE_KEYS.search(key) else mask_sensitive(value, depth + 1)
            for key, value in data.items()
        }
    if isinstance(data, list):
        return [mask_sensitive(item, depth + 1) for item in data[:_MAX_ITEMS]]
    return data


def _error_summary(body: bytes) -> Any:
    """오류 응답 본문에서 detail 추출 (kind/code/message of an error body)."""
    try:
        detail = json.loads(body).get("detail")
    except (json.JSONDecodeError, UnicodeDecodeError, AttributeError):
        return body.decode("utf-8", errors="replace")[:500]
    if isinstance(detail, dict):
        return {key: detail.get(key) for key in ("kind", "code", "message")}
    return detail


class AxiomLoggingMiddleware(BaseHTTPMiddleware):
    """모든 API 요청/응답을 기록하는 미들웨어.

    Logs method, path, params, masked body, status, duration and error detail.
    """

    def __init__(self, app: Any) -> None:
        super().__init__(app)
        self._client: AxiomClient | None = None
        self._dataset: str = settings.AXIOM_DATASET

        if settings.AXIOM_API_TOKEN and settings.AXIOM_DATASET:
            self._client = AxiomClient(token=settings.AXIOM_API_TOKEN)

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        if request.url.path in _SKIP_PATHS:
            return await call_next(request)

        start_time: float = time.perf_counter()
        event: dict[str, Any] = {"method": request.method, "path": request.url.path}
        if request.query_params:
            event["query_params"] = mask_sensitive(dict(request.query_params))

        if request.method in ("POST", "PUT", "PATCH"):
            body_bytes: bytes = await request.body()
            if body_bytes:
                try:
                    event["request_body"] = mask_sensitive(json.loads(body_bytes))
                except (json.JSONDecodeError, UnicodeDecodeError):
                    event["request_body"] = "(non-json body)"

        status_code: int = 500
        try:
            response = await call_next(request)
            status_code = response.status_code

            if status_code >= 400:
                # 응답 본문을 읽은 뒤 다시 감싸서 반환 — re-wrap the consumed body
                body = b"".join([
                    chunk if isinstance(chunk, bytes) else chunk.encode("utf-8")
                    async for chunk in response.body_iterator
                ])
                event["error"] = _error_summary(body)
                response = Response(
                    content=body,
                    status_code=status_code,
                    headers=dict(response.headers),
                    media_type=response.media_type,
                )
        except Exception as exc:
            event["error"] = f"{type(exc).__name__}: {str(exc)[:300]}"
            raise
        finally:
            event["status_code"] = status_code
            event["duration_ms"] = round((time.perf_counter() - start_time) * 1000, 2)
            logger.info(f"{event['method']} {event['path']} {status_code}", extra={"data": event})
            self._ship(event)

        return response

    def _ship(self, event: dict[str, Any]) -> None:
        if self._client is None:
            return
        try:
            self._client.ingest_events(self._dataset, [event])
        except Exception:
            # 전송 실패는 요청에 영향 없음 — shipping failures never fail the request
            logger.warning("Axiom ingest failed", exc_info=True)
