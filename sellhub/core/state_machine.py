# sellhub/core/state_machine.py
""""模块职能：

定义报单审核状态与合法迁移，保障“PENDING→APPROVED / REJECTED”的有序性

- APPROVED 为终态（内容不可再改，也不能再驳回）
- REJECTED 可再次审核通过，也可重复驳回
- is_paid 与审核状态正交，不在这里管

主要函数/枚举：

SellStatus：状态枚举

can_transit(src, dst)：判断是否允许状态迁移"""

from enum import Enum

class SellStatus(str, Enum):
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"

VALID = {
    "PENDING": {"APPROVED", "REJECTED"},
    "REJECTED": {"APPROVED", "REJECTED"},
    "APPROVED": set(),
}

def can_transit(src: SellStatus, dst: SellStatus) -> bool:
    return SellStatus(dst).value in VALID[SellStatus(src).value]

def is_locked(status: SellStatus) -> bool:
    return not VALID[SellStatus(status).value]
