"""根据 .env 或默认值创建三名用户：owner / auditor / staff（口令哈希）。

可作为脚本执行，也可被测试直接导入调用（提供 run() 函数）。
已存在的用户会被更新角色与口令，重复执行是安全的。"""
# scripts/seed_users.py
import os
import sys

# 确保脚本在控制台有输出；不影响主服务的日志设置
os.environ.setdefault("LOG_TO_FILE", "false")
os.environ.setdefault("PYTHONUNBUFFERED", "1")

from sqlalchemy.orm import Session  # noqa: E402
from sellhub.infra.db import SessionLocal, init_db  # noqa: E402
from sellhub.infra.logger import emit  # noqa: E402
from sellhub.core.models_user import User, UserRole  # noqa: E402
from sellhub.core.security import hash_password  # noqa: E402

SEED_USERS = (
    ("OWNER", UserRole.OWNER, "owner", "owner123"),
    ("AUDITOR", UserRole.AUDITOR, "auditor", "auditor123"),
    ("STAFF", UserRole.STAFF, "staff", "staff123"),
)


def _get_env(k: str, default: str) -> str:
    v = os.getenv(k)
    return v if v is not None and v != "" else default


def upsert_user(db: Session, username: str, password: str, role: UserRole) -> User:
    u = db.query(User).filter(User.username == username).first()
    if u:
        action = "updated"
        if u.role != role:
            u.role = role
        if password:
            u.password_hash = hash_password(password)
    else:
        action = "created"
        u = User(username=username, password_hash=hash_password(password), role=role)
        db.add(u)

    emit("seed_user_upsert", username=username, role=role.value, action=action)
    print(f"[seed_users] {action} user: {username} ({role.value})", flush=True)
    return u


def run():
    emit("seed_begin", database_url=os.getenv("DATABASE_URL"))
    print("[seed_users] seeding users ...", flush=True)
    init_db()

    with SessionLocal() as db:
        for prefix, role, default_name, default_password in SEED_USERS:
            upsert_user(
                db,
                _get_env(f"{prefix}_USERNAME", default_name),
                _get_env(f"{prefix}_PASSWORD", default_password),
                role,
            )
        db.commit()

    emit("seed_done", status="ok")
    print("[seed_users] done.", flush=True)


if __name__ == "__main__":
    try:
        run()
        sys.exit(0)
    except Exception as e:
        emit("seed_error", error=str(e))
        print(f"[seed_users] ERROR: {e}", file=sys.stderr, flush=True)
        sys.exit(1)
