# sellhub/api/users.py
"""
用户管理 API
- GET    /api/users            列表（OWNER / AUDITOR）
- POST   /api/users            带角色创建（仅 OWNER）
- GET    /api/users/{id}       本人或 OWNER / AUDITOR
- GET    /api/users/username/{username}  同上，按用户名查
- GET    /api/users/exists/{username}    用户名是否已被占用（任何已登录身份）
- PUT    /api/users/{id}       本人改自己；改别人仅 OWNER
- PUT    /api/users/{id}/role  改角色（仅 OWNER）
- DELETE /api/users/{id}       删除并级联清理归属关系（仅 OWNER）
"""
from typing import Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from sellhub.core.context import Context, get_context
from sellhub.core.models_user import UserRole
from sellhub.infra.db import get_db
from sellhub.services import users as user_svc

router = APIRouter(prefix="/users", tags=["users"])


class CreateUserIn(BaseModel):
    username: str = Field(min_length=3, max_length=50)
    password: str = Field(min_length=6)
    role: UserRole = UserRole.STAFF


class UpdateUserIn(BaseModel):
    username: Optional[str] = Field(default=None, min_length=3, max_length=50)
    password: Optional[str] = Field(default=None, min_length=6)


class RoleIn(BaseModel):
    role: UserRole


@router.get("")
def list_users(db: Session = Depends(get_db), ctx: Context = Depends(get_context)):
    return [u.to_dict() for u in user_svc.list_users(db, ctx)]


@router.post("", status_code=201)
def create_user(inp: CreateUserIn, db: Session = Depends(get_db),
                ctx: Context = Depends(get_context)):
    return user_svc.create_user(db, ctx, inp.username, inp.password, inp.role).to_dict()


@router.get("/exists/{username}")
def username_exists(username: str, db: Session = Depends(get_db),
                    ctx: Context = Depends(get_context)):
    return {"exists": user_svc.username_exists(db, username)}


@router.get("/username/{username}")
def get_user_by_username(username: str, db: Session = Depends(get_db),
                         ctx: Context = Depends(get_context)):
    return user_svc.get_user_by_username(db, ctx, username).to_dict()


@router.get("/{user_id}")
def get_user(user_id: int, db: Session = Depends(get_db), ctx: Context = Depends(get_context)):
    return user_svc.get_user(db, ctx, user_id).to_dict()


@router.put("/{user_id}")
def update_user(user_id: int, inp: UpdateUserIn, db: Session = Depends(get_db),
                ctx: Context = Depends(get_context)):
    return user_svc.update_user(db, ctx, user_id, inp.username, inp.password).to_dict()


@router.put("/{user_id}/role")
def change_role(user_id: int, inp: RoleIn, db: Session = Depends(get_db),
                ctx: Context = Depends(get_context)):
    return user_svc.change_role(db, ctx, user_id, inp.role).to_dict()


@router.delete("/{user_id}")
def delete_user(user_id: int, db: Session = Depends(get_db), ctx: Context = Depends(get_context)):
    user_svc.delete_user(db, ctx, user_id)
    return {"ok": True}
