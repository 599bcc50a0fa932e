# sellhub/core/policy.py
"""
RBAC 策略表：所有入口统一调用 authorize()/enforce()，不在服务方法里各自判断角色。

规则取值：
- ALLOW：放行，作用域 = 全量
- DENY ：拒绝
- OWN  ：需要归属校验（owns() 为真才放行）
- SCOPE：放行，但只能看自己的（列表类操作，作用域 = 本人）

已审核报单的修改/删除不在此表：那是状态问题，由 state_machine 抛 OrderLocked。
"""
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional

from sellhub.core.errors import PermissionDenied
from sellhub.core.models_user import UserRole
from sellhub.infra.logger import emit


class Operation(str, Enum):
    PRODUCT_WRITE = "product_write"
    PRODUCT_LIST = "product_list"
    CUSTOMER_CREATE = "customer_create"
    CUSTOMER_MODIFY = "customer_modify"
    CUSTOMER_LIST = "customer_list"
    RELATION_MANAGE = "relation_manage"
    RELATION_READ = "relation_read"
    SELL_CREATE = "sell_create"
    SELL_MODIFY = "sell_modify"
    SELL_REVIEW = "sell_review"
    SELL_PAYMENT = "sell_payment"
    SELL_LIST = "sell_list"
    USER_LIST = "user_list"
    USER_MANAGE = "user_manage"


class Scope(str, Enum):
    ALL = "all"
    OWN = "own"


ALLOW, DENY, OWN, SCOPE = "allow", "deny", "own", "scope"

_O, _A, _S = UserRole.OWNER, UserRole.AUDITOR, UserRole.STAFF

POLICY = {
    Operation.PRODUCT_WRITE:   {_O: ALLOW, _A: ALLOW, _S: DENY},
    Operation.PRODUCT_LIST:    {_O: ALLOW, _A: ALLOW, _S: SCOPE},
    Operation.CUSTOMER_CREATE: {_O: ALLOW, _A: ALLOW, _S: ALLOW},
    Operation.CUSTOMER_MODIFY: {_O: ALLOW, _A: ALLOW, _S: OWN},
    Operation.CUSTOMER_LIST:   {_O: ALLOW, _A: ALLOW, _S: SCOPE},
    Operation.RELATION_MANAGE: {_O: ALLOW, _A: ALLOW, _S: DENY},
    Operation.RELATION_READ:   {_O: ALLOW, _A: ALLOW, _S: OWN},
    Operation.SELL_CREATE:     {_O: ALLOW, _A: ALLOW, _S: ALLOW},
    Operation.SELL_MODIFY:     {_O: ALLOW, _A: ALLOW, _S: OWN},
    Operation.SELL_REVIEW:     {_O: ALLOW, _A: ALLOW, _S: DENY},
    Operation.SELL_PAYMENT:    {_O: ALLOW, _A: DENY,  _S: DENY},
    Operation.SELL_LIST:       {_O: ALLOW, _A: ALLOW, _S: SCOPE},
    Operation.USER_LIST:       {_O: ALLOW, _A: ALLOW, _S: DENY},
    Operation.USER_MANAGE:     {_O: ALLOW, _A: DENY,  _S: DENY},
}

REASONS = {
    Operation.PRODUCT_WRITE: "no permission to modify products",
    Operation.PRODUCT_LIST: "no permission to view this product",
    Operation.CUSTOMER_CREATE: "no permission to create customers",
    Operation.CUSTOMER_MODIFY: "no permission to operate on this customer",
    Operation.CUSTOMER_LIST: "no permission to view this customer",
    Operation.RELATION_MANAGE: "no permission to assign relations",
    Operation.RELATION_READ: "no permission to view relations of other users",
    Operation.SELL_CREATE: "no permission to create sell orders",
    Operation.SELL_MODIFY: "no permission to modify this sell order",
    Operation.SELL_REVIEW: "no permission to review sell orders",
    Operation.SELL_PAYMENT: "no permission to change payment status",
    Operation.SELL_LIST: "no permission to view this sell order",
    Operation.USER_LIST: "no permission to list users",
    Operation.USER_MANAGE: "no permission to manage users",
}


@dataclass(frozen=True)
class Decision:
    allowed: bool
    scope: Optional[Scope] = None
    reason: str = ""


def authorize(role: UserRole, operation: Operation,
              owns: Optional[Callable[[], bool]] = None) -> Decision:
    """
    纯函数：(角色, 操作, 归属校验) → 放行/拒绝。
    owns 只在规则为 OWN 时才会被调用；规则为 OWN 却没给 owns 时按拒绝处理。
    """
    rule = POLICY[operation].get(UserRole(role), DENY)
    if rule == ALLOW:
        return Decision(True, Scope.ALL)
    if rule == SCOPE:
        return Decision(True, Scope.OWN)
    if rule == OWN and owns is not None and owns():
        return Decision(True, Scope.OWN)
    return Decision(False, None, REASONS[operation])


def enforce(ctx, operation: Operation, owns: Optional[Callable[[], bool]] = None) -> Decision:
    """authorize() 的抛异常版本：拒绝时记日志并抛 PermissionDenied。"""
    decision = authorize(ctx.role, operation, owns)
    if not decision.allowed:
        emit("policy_denied", level="WARNING", actor=ctx.username,
             role=ctx.role.value, operation=operation.value)
        raise PermissionDenied(decision.reason)
    return decision
