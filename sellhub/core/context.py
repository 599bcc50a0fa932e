# sellhub/core/context.py
"""
请求级身份上下文（uid、role、username）。
- 只由认证网关（middleware/auth.py）在每个请求里写入一次，写在该请求的 scope 上；
- 之后只读（frozen），请求结束即丢弃，不跨请求共享，也没有全局可变状态；
- 路由通过 Depends(get_context) 取得上下文，再显式传给服务层。
"""
from __future__ import annotations

from typing import Optional

from fastapi import Request
from pydantic import BaseModel, ConfigDict

from sellhub.core.errors import AuthenticationFailure
from sellhub.core.models_user import UserRole

STATE_KEY = "identity"


class Context(BaseModel):
    model_config = ConfigDict(frozen=True)

    uid: int
    role: UserRole
    username: str

    @property
    def is_staff(self) -> bool:
        return self.role == UserRole.STAFF

    def serialize(self) -> dict:
        return {"username": self.username, "uid": self.uid, "role": self.role.value}

    @classmethod
    def from_claims(cls, subject: str, claims: dict) -> "Context":
        return cls(uid=int(claims["uid"]), role=UserRole(claims["role"]), username=subject)


def bind_identity(request: Request, ctx: Context) -> None:
    if getattr(request.state, STATE_KEY, None) is not None:
        raise RuntimeError("identity context already populated for this request")
    setattr(request.state, STATE_KEY, ctx)


def current_identity(request: Request) -> Optional[Context]:
    """未经网关填充（如白名单路径）时返回 None，不抛异常。"""
    return getattr(request.state, STATE_KEY, None)


def get_context(request: Request) -> Context:
    ctx = current_identity(request)
    if ctx is None:
        raise AuthenticationFailure()
    return ctx
