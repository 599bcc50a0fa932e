# sellhub/core/lifecycle.py
"""
报单生命周期守卫：所有改报单的入口都先过这里。

先校验、后写入：守卫失败时报单对象一个字段都不会被改动。

- submit      新报单：PENDING / is_valid=False / is_paid=False
- approve     PENDING|REJECTED → APPROVED，STAFF 禁止
- reject      非 APPROVED → REJECTED，STAFF 禁止
- apply_edit  未审核 + （STAFF 须是创建者）
- guard_delete 同 apply_edit 的守卫
- set_paid    仅 OWNER，与审核状态无关
"""
from sellhub.core.errors import LifecycleViolation, OrderLocked
from sellhub.core.policy import Operation, enforce
from sellhub.core.state_machine import SellStatus, can_transit, is_locked


def submit(sell) -> None:
    sell.review_status = SellStatus.PENDING
    sell.is_valid = False
    sell.is_paid = False


def _guard_content_change(sell, ctx, locked_reason: str) -> None:
    if is_locked(sell.review_status):
        raise OrderLocked(locked_reason)
    enforce(ctx, Operation.SELL_MODIFY, owns=lambda: sell.creator_id == ctx.uid)


def guard_edit(sell, ctx) -> None:
    _guard_content_change(sell, ctx, "approved sell order cannot be modified")


def guard_delete(sell, ctx) -> None:
    _guard_content_change(sell, ctx, "approved sell order cannot be deleted")


def apply_edit(sell, ctx, fields: dict) -> list:
    """只改内容字段；返回实际改动的字段名。"""
    guard_edit(sell, ctx)
    unknown = [k for k in fields if k not in sell.CONTENT_FIELDS]
    if unknown:
        raise ValueError(f"not editable: {unknown}")
    changed = []
    for name, value in fields.items():
        if getattr(sell, name) != value:
            setattr(sell, name, value)
            changed.append(name)
    return changed


def _transit(sell, dst: SellStatus, reason: str) -> None:
    if not can_transit(sell.review_status, dst):
        raise LifecycleViolation(reason)
    sell.review_status = dst
    sell.is_valid = dst == SellStatus.APPROVED


def approve(sell, ctx) -> None:
    enforce(ctx, Operation.SELL_REVIEW)
    _transit(sell, SellStatus.APPROVED, "sell order already approved")


def reject(sell, ctx) -> None:
    enforce(ctx, Operation.SELL_REVIEW)
    _transit(sell, SellStatus.REJECTED, "approved sell order cannot be rejected")


def set_validity(sell, ctx, is_valid: bool) -> None:
    if is_valid:
        approve(sell, ctx)
    else:
        reject(sell, ctx)


def set_paid(sell, ctx, is_paid: bool) -> None:
    enforce(ctx, Operation.SELL_PAYMENT)
    sell.is_paid = bool(is_paid)


def mark_paid(sell, ctx) -> None:
    set_paid(sell, ctx, True)


def mark_unpaid(sell, ctx) -> None:
    set_paid(sell, ctx, False)
