# 요청 단위 로깅: request_id 를 structlog contextvars 에 바인딩하고 처리 시간을 응답 헤더로 돌려줌
import time
import uuid

import structlog
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from vibehub.core.logging import get_logger

logger = get_logger(__name__)


def _elapsed_ms(start: float) -> float:
    return round((time.perf_counter() - start) * 1000, 2)


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """요청마다 짧은 request_id 부여. 이후 같은 요청의 모든 로그에 method/path 와 함께 붙음."""

    async def dispatch(self, request: Request, call_next) -> Response:
        request_id = uuid.uuid4().hex[:8]
        start = time.perf_counter()

        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(request_id=request_id, method=request.method, path=request.url.path)

        try:
            response = await call_next(request)
        except Exception as e:
            logger.error("request_failed", error=str(e), duration_ms=_elapsed_ms(start))
            raise

        duration_ms = _elapsed_ms(start)
        logger.info("request_completed", status_code=response.status_code, duration_ms=duration_ms)
        response.headers["X-Request-ID"] = request_id
        response.headers["X-Response-Time"] = f"{duration_ms}ms"
        return response
