"""
模块职能：
- 产品 CRUD 与库存调整；增删改仅 OWNER/AUDITOR（PRODUCT_WRITE）。
- 名称 + 效期 组合重复时拒绝登记（效期为空不做该校验）。
- STAFF 只能看到分配给自己的产品。
- 删除产品前先清理其全部归属关系。

日志：
- prod_create / prod_update / prod_stock / prod_delete
"""
from typing import List, Optional

from sqlalchemy.orm import Session

from sellhub.core.errors import Conflict, NotFound, ValidationFailure
from sellhub.core.models import Product, ResourceKind
from sellhub.core.policy import Operation, Scope, enforce
from sellhub.infra.logger import emit
from sellhub.services import relations

KIND = ResourceKind.product


def _require(db: Session, product_id: int) -> Product:
    prod = db.get(Product, product_id)
    if not prod:
        raise NotFound("product does not exist")
    return prod


def _check_duplicate(db: Session, name: str, expiry_date: Optional[str],
                     exclude_id: Optional[int] = None) -> None:
    if not expiry_date:
        return
    q = db.query(Product).filter(Product.name == name, Product.expiry_date == expiry_date)
    if exclude_id is not None:
        q = q.filter(Product.id != exclude_id)
    if q.first():
        raise Conflict("product already registered")


def create_product(db: Session, ctx, **fields) -> Product:
    enforce(ctx, Operation.PRODUCT_WRITE)
    _check_duplicate(db, fields["name"], fields.get("expiry_date"))
    prod = Product(**fields)
    db.add(prod); db.commit(); db.refresh(prod)
    emit("prod_create", actor=ctx.username, product_id=prod.id, name=prod.name)
    return prod


def get_product(db: Session, ctx, product_id: int) -> Product:
    prod = _require(db, product_id)
    decision = enforce(ctx, Operation.PRODUCT_LIST)
    if decision.scope == Scope.OWN and not relations.exists(db, ctx.uid, product_id, KIND):
        raise NotFound("product does not exist")
    return prod


def update_product(db: Session, ctx, product_id: int, **fields) -> Product:
    enforce(ctx, Operation.PRODUCT_WRITE)
    prod = _require(db, product_id)
    _check_duplicate(db, fields.get("name", prod.name),
                     fields.get("expiry_date", prod.expiry_date), exclude_id=product_id)
    for name, value in fields.items():
        setattr(prod, name, value)
    db.commit(); db.refresh(prod)
    emit("prod_update", actor=ctx.username, product_id=product_id, fields=sorted(fields))
    return prod


def update_stock(db: Session, ctx, product_id: int, quantity: int) -> Product:
    enforce(ctx, Operation.PRODUCT_WRITE)
    prod = _require(db, product_id)
    if quantity < 0:
        raise ValidationFailure("stock quantity cannot be negative")
    prod.stock_quantity = quantity
    db.commit(); db.refresh(prod)
    emit("prod_stock", actor=ctx.username, product_id=product_id, quantity=quantity)
    return prod


def delete_product(db: Session, ctx, product_id: int) -> None:
    enforce(ctx, Operation.PRODUCT_WRITE)
    prod = _require(db, product_id)
    relations.purge_resource(db, product_id, KIND)
    db.delete(prod)
    db.commit()
    emit("prod_delete", actor=ctx.username, product_id=product_id)


def _scoped_query(db: Session, ctx):
    decision = enforce(ctx, Operation.PRODUCT_LIST)
    q = db.query(Product)
    if decision.scope == Scope.OWN:
        q = q.filter(Product.id.in_(relations.resource_ids_for(db, ctx.uid, KIND)))
    return q


def list_products(db: Session, ctx, name: Optional[str] = None,
                  manufacturer: Optional[str] = None) -> List[Product]:
    q = _scoped_query(db, ctx)
    if name:
        q = q.filter(Product.name.contains(name))
    if manufacturer:
        q = q.filter(Product.manufacturer == manufacturer)
    return q.order_by(Product.id).all()


def count_products(db: Session, ctx) -> int:
    return _scoped_query(db, ctx).count()
