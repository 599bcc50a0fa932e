# sellhub/api/auth.py
"""
登录 / 注册 / 自省

- POST /api/auth/login    颁发 JWT（HS256），白名单路径，不经网关
- POST /api/auth/register 自助注册，一律 STAFF，白名单路径
- GET  /api/auth/me       由网关校验令牌后返回 {username, uid, role}

日志事件（通过 sellhub.infra.logger.emit 发出）：
- auth_login_attempt：收到登录请求（不记录明文密码）
- auth_login_failed：登录失败（services.users 里记内部原因）
- auth_login_success：登录成功（包含 uid、role）
"""
from fastapi import APIRouter, Depends, Request
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from sellhub.core.context import Context, get_context
from sellhub.core.security import create_access_token
from sellhub.infra.db import get_db
from sellhub.infra.logger import emit
from sellhub.services import users as user_svc

router = APIRouter(prefix="/auth", tags=["auth"])


class LoginInput(BaseModel):
    username: str
    password: str


class RegisterInput(BaseModel):
    username: str = Field(min_length=3, max_length=50)
    password: str = Field(min_length=6)


@router.post("/login")
def login(body: LoginInput, request: Request, db: Session = Depends(get_db)):
    emit(
        "auth_login_attempt",
        username=body.username,
        ip=str(request.client.host) if request.client else None,
        ua=request.headers.get("user-agent"),
    )
    user = user_svc.authenticate(db, body.username, body.password)
    token = create_access_token(user)
    # 不记录 token
    emit("auth_login_success", uid=user.id, username=user.username, role=user.role.value)
    return {"token": token, "user": user.to_dict()}


@router.post("/register", status_code=201)
def register(body: RegisterInput, db: Session = Depends(get_db)):
    user = user_svc.register(db, body.username, body.password)
    return user.to_dict()


@router.get("/me")
def me(ctx: Context = Depends(get_context)):
    emit("auth_whoami", uid=ctx.uid, role=ctx.role.value)
    return ctx.serialize()
