"""
模块职能：
- 身份（用户）的注册、登录校验、查询、修改、改角色、删除。
- 自助注册一律 STAFF；带角色创建 / 改角色 / 删除只有 OWNER 可以（USER_MANAGE）。
- 删除用户前先级联清理其全部归属关系。

日志：
- user_register / user_create / user_update / user_role_change / user_delete
- auth_login_failed（只记内部原因，不外露）
"""
from typing import List, Optional

from sqlalchemy.orm import Session

from sellhub.core.errors import AuthenticationFailure, Conflict, NotFound
from sellhub.core.models_user import User, UserRole
from sellhub.core.policy import Operation, enforce
from sellhub.core.security import hash_password, verify_password
from sellhub.infra.logger import emit
from sellhub.services import relations

LOGIN_FAILED = "invalid username or password"
# 用户名不存在时也做一次同成本的校验，响应耗时不暴露用户名是否存在
_DUMMY_HASH = hash_password("sellhub-dummy-password")


def get_by_username(db: Session, username: str) -> Optional[User]:
    return db.query(User).filter(User.username == username).first()


def require_by_username(db: Session, username: str) -> User:
    user = get_by_username(db, username)
    if not user:
        raise NotFound(f"user does not exist: {username}")
    return user


def require_user(db: Session, user_id: int) -> User:
    user = db.get(User, user_id)
    if not user:
        raise NotFound("user does not exist")
    return user


def _create(db: Session, username: str, password: str, role: UserRole) -> User:
    if get_by_username(db, username):
        raise Conflict("username already exists")
    user = User(username=username, password_hash=hash_password(password), role=role)
    db.add(user); db.commit(); db.refresh(user)
    return user


def register(db: Session, username: str, password: str) -> User:
    user = _create(db, username, password, UserRole.STAFF)
    emit("user_register", user_id=user.id, username=username)
    return user


def create_user(db: Session, ctx, username: str, password: str, role: UserRole) -> User:
    enforce(ctx, Operation.USER_MANAGE)
    user = _create(db, username, password, role)
    emit("user_create", actor=ctx.username, user_id=user.id, role=user.role.value)
    return user


def authenticate(db: Session, username: str, password: str) -> User:
    """用户名不存在与口令错误返回同一条 401 文案，避免枚举用户名。"""
    user = get_by_username(db, username)
    if user is None:
        verify_password(password, _DUMMY_HASH)
    if not user or not verify_password(password, user.password_hash):
        emit("auth_login_failed", username=username,
             reason="not_found" if not user else "bad_password")
        raise AuthenticationFailure(LOGIN_FAILED)
    return user


def list_users(db: Session, ctx) -> List[User]:
    enforce(ctx, Operation.USER_LIST)
    return db.query(User).order_by(User.id).all()


def get_user(db: Session, ctx, user_id: int) -> User:
    if user_id != ctx.uid:
        enforce(ctx, Operation.USER_LIST)
    return require_user(db, user_id)


def get_user_by_username(db: Session, ctx, username: str) -> User:
    user = get_by_username(db, username)
    if user is None or user.id != ctx.uid:
        enforce(ctx, Operation.USER_LIST)
    if user is None:
        raise NotFound(f"user does not exist: {username}")
    return user


def username_exists(db: Session, username: str) -> bool:
    return get_by_username(db, username) is not None


def update_user(db: Session, ctx, user_id: int, username: Optional[str] = None,
                password: Optional[str] = None) -> User:
    """本人可改自己的用户名/口令；改别人需要 USER_MANAGE。"""
    if user_id != ctx.uid:
        enforce(ctx, Operation.USER_MANAGE)
    user = require_user(db, user_id)
    if username and username != user.username:
        if get_by_username(db, username):
            raise Conflict("username already used by another user")
        user.username = username
    if password:
        user.password_hash = hash_password(password)
    db.commit(); db.refresh(user)
    emit("user_update", actor=ctx.username, user_id=user.id)
    return user


def change_role(db: Session, ctx, user_id: int, role: UserRole) -> User:
    enforce(ctx, Operation.USER_MANAGE)
    user = require_user(db, user_id)
    old = user.role
    user.role = role
    db.commit(); db.refresh(user)
    emit("user_role_change", actor=ctx.username, user_id=user.id,
         old=old.value, new=role.value)
    return user


def delete_user(db: Session, ctx, user_id: int) -> None:
    enforce(ctx, Operation.USER_MANAGE)
    user = require_user(db, user_id)
    relations.purge_identity(db, user.id)
    db.delete(user)
    db.commit()
    emit("user_delete", actor=ctx.username, user_id=user_id)
