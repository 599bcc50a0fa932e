""""
模块职能：

定义业务表：

customers：客户

products：产品（名称 + 效期 组合唯一，效期为空时不限制）

sells：报单，review_status / is_valid / is_paid 由 state_machine 守卫

ownership_relations：用户 ↔ 客户/产品 的归属关系，(user_id, resource_id, kind) 唯一

主要类型：

ResourceKind：customer | product

Customer / Product / Sell / OwnershipRelation：ORM 实体，各自带 to_dict()"""

# sellhub/core/models.py
from enum import Enum

from sqlalchemy.orm import declarative_base
from sqlalchemy import (
    Boolean, Column, Date, DateTime, Enum as SAEnum, Integer, Numeric, String,
    Text, UniqueConstraint,
)
from sqlalchemy.sql import func
from sellhub.core.state_machine import SellStatus


Base = declarative_base()


class ResourceKind(str, Enum):
    customer = "customer"
    product = "product"


class Customer(Base):
    __tablename__ = "customers"
    id = Column(Integer, primary_key=True, autoincrement=True)
    company = Column(String(200), nullable=True)
    customer_name = Column(String(100), nullable=False, index=True)
    phone = Column(String(20), nullable=False)
    address = Column(String(500), nullable=False)
    province = Column(String(50), nullable=False)

    def to_dict(self) -> dict:
        return {
            "id": self.id, "company": self.company, "customer_name": self.customer_name,
            "phone": self.phone, "address": self.address, "province": self.province,
        }


class Product(Base):
    __tablename__ = "products"
    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(200), nullable=False, index=True)
    manufacturer = Column(String(200), nullable=True)
    description = Column(Text, nullable=True)
    base_price = Column(Numeric(10, 2), nullable=True)
    stock_quantity = Column(Integer, nullable=False, default=0)
    expiry_date = Column(String(7), nullable=True)       # 精确到月：YYYY-MM

    def to_dict(self) -> dict:
        return {
            "id": self.id, "name": self.name, "manufacturer": self.manufacturer,
            "description": self.description, "base_price": self.base_price,
            "stock_quantity": self.stock_quantity, "expiry_date": self.expiry_date,
        }


class Sell(Base):
    __tablename__ = "sells"
    id = Column(Integer, primary_key=True, autoincrement=True)
    creator_id = Column(Integer, index=True, nullable=False)      # 报单归属：创建者 uid
    creator_username = Column(String(50), nullable=False)         # 创建时的用户名快照

    sell_kind = Column(String(50), nullable=False)
    seller_name = Column(String(100), nullable=False)
    sell_date = Column(Date, nullable=False)
    product_name = Column(String(200), nullable=False)
    product_quantity = Column(Integer, nullable=False)
    product_spec = Column(String(10), nullable=False)             # 支 | 盒
    product_price = Column(Numeric(10, 2), nullable=False)
    total_price = Column(Numeric(10, 2), nullable=False)
    customer_company = Column(String(200), nullable=True)
    customer_name = Column(String(100), nullable=False)
    customer_address = Column(String(500), nullable=False)
    customer_phone = Column(String(20), nullable=False)
    customer_province = Column(String(50), nullable=False)
    pay_method = Column(String(100), nullable=True)
    payment_screenshot_url = Column(String(500), nullable=True)

    is_paid = Column(Boolean, nullable=False, default=False)
    is_valid = Column(Boolean, nullable=False, default=False)
    review_status = Column(SAEnum(SellStatus), nullable=False, default=SellStatus.PENDING)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now(), server_default=func.now())

    # 审核后不可改的内容字段（is_paid / is_valid / review_status 不在其中）
    CONTENT_FIELDS = (
        "sell_kind", "seller_name", "sell_date", "product_name", "product_quantity",
        "product_spec", "product_price", "total_price", "customer_company",
        "customer_name", "customer_address", "customer_phone", "customer_province",
        "pay_method", "payment_screenshot_url",
    )

    def to_dict(self) -> dict:
        out = {"id": self.id, "creator_id": self.creator_id, "creator_username": self.creator_username}
        out.update({f: getattr(self, f) for f in self.CONTENT_FIELDS})
        out.update({
            "is_paid": self.is_paid,
            "is_valid": self.is_valid,
            "review_status": self.review_status.value if self.review_status else None,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        })
        return out


class OwnershipRelation(Base):
    __tablename__ = "ownership_relations"
    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, index=True, nullable=False)
    resource_id = Column(Integer, index=True, nullable=False)
    kind = Column(SAEnum(ResourceKind), nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    __table_args__ = (UniqueConstraint("user_id", "resource_id", "kind", name="uq_owner_resource"),)

    def to_dict(self) -> dict:
        return {
            "id": self.id, "user_id": self.user_id,
            "resource_id": self.resource_id, "kind": self.kind.value,
        }
