"""
模块职能：
- 客户 CRUD；STAFF 创建客户后自动与自己建立归属关系；
- STAFF 只能看/改/删归属于自己的客户（不属于自己的按“不存在”处理，隐藏存在性）；
- 删除客户前先清理其全部归属关系。

日志：
- cust_create / cust_update / cust_delete
"""
from typing import List, Optional

from sqlalchemy.orm import Session

from sellhub.core.errors import NotFound
from sellhub.core.models import Customer, ResourceKind
from sellhub.core.policy import Operation, Scope, enforce
from sellhub.infra.logger import emit
from sellhub.services import relations

KIND = ResourceKind.customer


def _owns(db: Session, ctx, customer_id: int):
    return lambda: relations.exists(db, ctx.uid, customer_id, KIND)


def _require(db: Session, customer_id: int) -> Customer:
    cust = db.get(Customer, customer_id)
    if not cust:
        raise NotFound("customer does not exist")
    return cust


def create_customer(db: Session, ctx, **fields) -> Customer:
    enforce(ctx, Operation.CUSTOMER_CREATE)
    cust = Customer(**fields)
    db.add(cust)
    db.flush()
    if ctx.is_staff:
        relations.assign(db, ctx.uid, cust.id, KIND, commit=False)
    db.commit(); db.refresh(cust)
    emit("cust_create", actor=ctx.username, customer_id=cust.id, self_assigned=ctx.is_staff)
    return cust


def get_customer(db: Session, ctx, customer_id: int) -> Customer:
    cust = _require(db, customer_id)
    decision = enforce(ctx, Operation.CUSTOMER_LIST)
    if decision.scope == Scope.OWN and not relations.exists(db, ctx.uid, customer_id, KIND):
        raise NotFound("customer does not exist")
    return cust


def update_customer(db: Session, ctx, customer_id: int, **fields) -> Customer:
    cust = _require(db, customer_id)
    enforce(ctx, Operation.CUSTOMER_MODIFY, owns=_owns(db, ctx, customer_id))
    for name, value in fields.items():
        setattr(cust, name, value)
    db.commit(); db.refresh(cust)
    emit("cust_update", actor=ctx.username, customer_id=customer_id, fields=sorted(fields))
    return cust


def delete_customer(db: Session, ctx, customer_id: int) -> None:
    cust = _require(db, customer_id)
    enforce(ctx, Operation.CUSTOMER_MODIFY, owns=_owns(db, ctx, customer_id))
    relations.purge_resource(db, customer_id, KIND)
    db.delete(cust)
    db.commit()
    emit("cust_delete", actor=ctx.username, customer_id=customer_id)


def _scoped_query(db: Session, ctx):
    decision = enforce(ctx, Operation.CUSTOMER_LIST)
    q = db.query(Customer)
    if decision.scope == Scope.OWN:
        q = q.filter(Customer.id.in_(relations.resource_ids_for(db, ctx.uid, KIND)))
    return q


def list_customers(db: Session, ctx, customer_name: Optional[str] = None,
                   company: Optional[str] = None, province: Optional[str] = None) -> List[Customer]:
    q = _scoped_query(db, ctx)
    if customer_name:
        q = q.filter(Customer.customer_name.contains(customer_name))
    if company:
        q = q.filter(Customer.company.contains(company))
    if province:
        q = q.filter(Customer.province == province)
    return q.order_by(Customer.id).all()


def count_customers(db: Session, ctx) -> int:
    return _scoped_query(db, ctx).count()
