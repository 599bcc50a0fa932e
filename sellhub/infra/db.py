""""模块职能：

读取 DATABASE_URL，创建 SQLAlchemy 引擎

暴露 SessionLocal、get_db()（FastAPI 依赖，一请求一 Session = 一个事务边界）

init_db() / drop_db()：建表 / 删表"""

import os
from typing import Generator
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session
from sellhub.core.models import Base
# 导入以注册 users 表到 Base.metadata
import sellhub.core.models_user  # noqa: F401

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./sellhub.db")

engine = create_engine(
    DATABASE_URL,
    connect_args={"check_same_thread": False} if DATABASE_URL.startswith("sqlite") else {},
)
SessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False)

def init_db():
    Base.metadata.create_all(bind=engine)


def drop_db():
    Base.metadata.drop_all(bind=engine)


def get_db() -> Generator[Session, None, None]:
    """FastAPI 依赖函数：yield 一个 Session；异常时回滚，用后自动关闭。"""
    db = SessionLocal()
    try:
        yield db
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()
