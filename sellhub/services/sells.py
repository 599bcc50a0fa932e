"""
模块职能：
- 报单的创建、查询、修改、删除、审核、打款标记。
- 每个写操作都是：加锁读取 → 生命周期守卫 → 写入 → 一次 commit（同一事务内），
  避免两个并发的 approve/edit 互相覆盖。
- STAFF 只能看到自己创建的报单（不属于自己的按“不存在”处理）。

日志：
- sell_create / sell_update / sell_delete / sell_review / sell_payment
"""
from datetime import date
from decimal import Decimal
from typing import List, Optional

from sqlalchemy.orm import Session

from sellhub.core import lifecycle
from sellhub.core.errors import NotFound
from sellhub.core.models import Sell
from sellhub.core.policy import Operation, Scope, enforce
from sellhub.core.state_machine import SellStatus
from sellhub.infra.logger import emit


def _lock(db: Session, sell_id: int) -> Sell:
    sell = db.get(Sell, sell_id, with_for_update=True)
    if not sell:
        raise NotFound("sell order does not exist")
    return sell


def create_sell(db: Session, ctx, **fields) -> Sell:
    enforce(ctx, Operation.SELL_CREATE)
    if not fields.get("seller_name"):
        fields["seller_name"] = ctx.username
    sell = Sell(creator_id=ctx.uid, creator_username=ctx.username, **fields)
    lifecycle.submit(sell)
    db.add(sell); db.commit(); db.refresh(sell)
    emit("sell_create", actor=ctx.username, sell_id=sell.id)
    return sell


def get_sell(db: Session, ctx, sell_id: int) -> Sell:
    sell = db.get(Sell, sell_id)
    if not sell:
        raise NotFound("sell order does not exist")
    decision = enforce(ctx, Operation.SELL_LIST)
    if decision.scope == Scope.OWN and sell.creator_id != ctx.uid:
        raise NotFound("sell order does not exist")
    return sell


def update_sell(db: Session, ctx, sell_id: int, **fields) -> Sell:
    sell = _lock(db, sell_id)
    if "seller_name" in fields and not fields["seller_name"]:
        fields.pop("seller_name")
    changed = lifecycle.apply_edit(sell, ctx, fields)
    db.commit(); db.refresh(sell)
    emit("sell_update", actor=ctx.username, sell_id=sell_id, fields=changed)
    return sell


def delete_sell(db: Session, ctx, sell_id: int) -> None:
    sell = _lock(db, sell_id)
    lifecycle.guard_delete(sell, ctx)
    db.delete(sell)
    db.commit()
    emit("sell_delete", actor=ctx.username, sell_id=sell_id)


def _review(db: Session, ctx, sell_id: int, transition, *args) -> Sell:
    sell = _lock(db, sell_id)
    before = sell.review_status
    transition(sell, ctx, *args)
    db.commit(); db.refresh(sell)
    emit("sell_review", actor=ctx.username, sell_id=sell_id,
         src=before.value, dst=sell.review_status.value)
    return sell


def approve_sell(db: Session, ctx, sell_id: int) -> Sell:
    return _review(db, ctx, sell_id, lifecycle.approve)


def reject_sell(db: Session, ctx, sell_id: int) -> Sell:
    return _review(db, ctx, sell_id, lifecycle.reject)


def set_validity(db: Session, ctx, sell_id: int, is_valid: bool) -> Sell:
    return _review(db, ctx, sell_id, lifecycle.set_validity, is_valid)


def _payment(db: Session, ctx, sell_id: int, transition, *args) -> Sell:
    sell = _lock(db, sell_id)
    transition(sell, ctx, *args)
    db.commit(); db.refresh(sell)
    emit("sell_payment", actor=ctx.username, sell_id=sell_id, is_paid=sell.is_paid)
    return sell


def set_payment(db: Session, ctx, sell_id: int, is_paid: bool) -> Sell:
    return _payment(db, ctx, sell_id, lifecycle.set_paid, is_paid)


def mark_paid(db: Session, ctx, sell_id: int) -> Sell:
    return _payment(db, ctx, sell_id, lifecycle.mark_paid)


def mark_unpaid(db: Session, ctx, sell_id: int) -> Sell:
    return _payment(db, ctx, sell_id, lifecycle.mark_unpaid)


def _scoped_query(db: Session, ctx):
    decision = enforce(ctx, Operation.SELL_LIST)
    q = db.query(Sell)
    if decision.scope == Scope.OWN:
        q = q.filter(Sell.creator_id == ctx.uid)
    return q


def search_sells(
    db: Session,
    ctx,
    seller_name: Optional[str] = None,
    product_name: Optional[str] = None,
    product_spec: Optional[str] = None,
    customer_name: Optional[str] = None,
    customer_company: Optional[str] = None,
    customer_province: Optional[str] = None,
    sell_kind: Optional[str] = None,
    pay_method: Optional[str] = None,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    min_total_price: Optional[Decimal] = None,
    max_total_price: Optional[Decimal] = None,
    is_paid: Optional[bool] = None,
    is_valid: Optional[bool] = None,
    review_status: Optional[SellStatus] = None,
) -> List[Sell]:
    q = _scoped_query(db, ctx)
    for column, value in (
        (Sell.seller_name, seller_name),
        (Sell.product_name, product_name),
        (Sell.customer_name, customer_name),
        (Sell.customer_company, customer_company),
        (Sell.sell_kind, sell_kind),
        (Sell.pay_method, pay_method),
    ):
        if value:
            q = q.filter(column.contains(value))
    if product_spec:
        q = q.filter(Sell.product_spec == product_spec)
    if customer_province:
        q = q.filter(Sell.customer_province == customer_province)
    if start_date:
        q = q.filter(Sell.sell_date >= start_date)
    if end_date:
        q = q.filter(Sell.sell_date <= end_date)
    if min_total_price is not None:
        q = q.filter(Sell.total_price >= min_total_price)
    if max_total_price is not None:
        q = q.filter(Sell.total_price <= max_total_price)
    if is_paid is not None:
        q = q.filter(Sell.is_paid == is_paid)
    if is_valid is not None:
        q = q.filter(Sell.is_valid == is_valid)
    if review_status is not None:
        q = q.filter(Sell.review_status == review_status)
    return q.order_by(Sell.id).all()


def count_sells(db: Session, ctx) -> int:
    return _scoped_query(db, ctx).count()
