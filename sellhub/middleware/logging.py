"""
模块职责：请求级日志中间件。
- 为每个请求生成 request_id，响应头带 x-request-id；
- 记录 request_start 与 request_end（含耗时、状态码、已认证用户）；
- 未预期的异常输出 request_error，随后抛出让 FastAPI 转成 500。
"""
import time
import uuid
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response
from sellhub.core.context import current_identity
from sellhub.infra.logger import emit, emit_error

class RequestLoggingMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        rid = str(uuid.uuid4())
        start = time.perf_counter()
        emit(
            "request_start",
            request_id=rid,
            method=request.method,
            path=str(request.url.path),
        )
        try:
            response: Response = await call_next(request)
        except Exception as e:
            emit_error(
                "request_error",
                request_id=rid,
                method=request.method,
                path=str(request.url.path),
                error=repr(e),
                duration_ms=round((time.perf_counter() - start) * 1000, 2),
            )
            raise

        ctx = current_identity(request)
        emit(
            "request_end",
            request_id=rid,
            method=request.method,
            path=str(request.url.path),
            status_code=response.status_code,
            user=ctx.username if ctx else None,
            duration_ms=round((time.perf_counter() - start) * 1000, 2),
        )
        response.headers["x-request-id"] = rid
        return response
