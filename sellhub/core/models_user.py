""""定义 UserRole（OWNER|AUDITOR|STAFF）与 User ORM 实体：
id/username/password_hash/role/created_at。

自助注册一律是 STAFF；其它角色只能由 OWNER 创建或调整。"""
from datetime import datetime
from enum import Enum

from sqlalchemy import Column, DateTime, Enum as SAEnum, Integer, String
from sellhub.core.models import Base


class UserRole(str, Enum):
    OWNER = "OWNER"
    AUDITOR = "AUDITOR"
    STAFF = "STAFF"


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, autoincrement=True)
    username = Column(String(50), unique=True, nullable=False, index=True)
    password_hash = Column(String(255), nullable=False)
    role = Column(SAEnum(UserRole), nullable=False, default=UserRole.STAFF)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)

    def to_dict(self) -> dict:
        # 不回传口令
        return {"id": self.id, "username": self.username, "role": self.role.value}
