"""
模块职责：认证网关中间件，在任何业务逻辑之前运行。
- 非受保护前缀（默认 /api/ 以外）、OPTIONS 预检、白名单路径 → 直接放行，不写身份；
- 受保护路径缺少/格式错误的 Authorization: Bearer <token> → 401 "unauthorized"；
- 令牌校验失败 → 401 "invalid token"（具体原因只记日志）；
- 校验成功 → 把 {uid, role, username} 写入请求上下文后放行。

环境变量：
- AUTH_PROTECTED_PREFIX（默认 /api/）
- AUTH_EXCLUDE_PATHS（逗号分隔；以 /** 结尾表示前缀匹配）
"""
import os
from typing import List

from pydantic import ValidationError
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse

from sellhub.core.context import Context, bind_identity
from sellhub.core.errors import InvalidToken
from sellhub.core.security import verify_token
from sellhub.infra.logger import emit

DEFAULT_EXCLUDES = "/api/auth/login,/api/auth/register"


def _split(raw: str) -> List[str]:
    return [p.strip() for p in raw.split(",") if p.strip()]


def path_matches(pattern: str, path: str) -> bool:
    if pattern.endswith("/**"):
        base = pattern[:-3]
        return path == base or path.startswith(base + "/")
    return path == pattern


def _unauthorized(detail: str) -> JSONResponse:
    return JSONResponse(
        {"detail": detail, "code": "UNAUTHENTICATED"},
        status_code=401,
        headers={"WWW-Authenticate": "Bearer"},
    )


class AuthGateMiddleware(BaseHTTPMiddleware):
    def __init__(self, app, protected_prefix: str = None, exclude_paths: List[str] = None):
        super().__init__(app)
        self.protected_prefix = protected_prefix or os.getenv("AUTH_PROTECTED_PREFIX", "/api/")
        if exclude_paths is None:
            exclude_paths = _split(os.getenv("AUTH_EXCLUDE_PATHS", DEFAULT_EXCLUDES))
        self.exclude_paths = exclude_paths

    def is_excluded(self, request: Request) -> bool:
        if request.method == "OPTIONS":
            return True
        path = request.url.path
        if not path.startswith(self.protected_prefix):
            return True
        return any(path_matches(p, path) for p in self.exclude_paths)

    async def dispatch(self, request: Request, call_next):
        if self.is_excluded(request):
            return await call_next(request)

        path = request.url.path
        auth = request.headers.get("authorization")
        if not auth or not auth.startswith("Bearer ") or not auth[7:].strip():
            emit("auth_missing_header", path=path)
            return _unauthorized("unauthorized")

        try:
            verified = verify_token(auth[7:].strip())
            ctx = Context.from_claims(verified.subject, verified.claims)
        except InvalidToken as e:
            emit(f"auth_token_{e.cause}", level="WARNING", path=path)
            return _unauthorized("invalid token")
        except (KeyError, TypeError, ValueError, ValidationError) as e:
            # 签名有效但声明不完整 / 角色未知
            emit("auth_token_bad_claims", level="WARNING", path=path, error=str(e))
            return _unauthorized("invalid token")

        bind_identity(request, ctx)
        return await call_next(request)
