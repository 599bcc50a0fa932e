# sellhub/api/sells.py
"""
报单 API
------------------------------------
- POST   /api/sells                    创建（任何已登录身份；初始 PENDING、未打款）
- GET    /api/sells                    多条件查询；STAFF 只看自己创建的
- GET    /api/sells/count
- GET    /api/sells/{id}
- PUT    /api/sells/{id}               修改内容（未审核；STAFF 须是创建者）
- DELETE /api/sells/{id}               删除（同上）
- PUT    /api/sells/{id}/approve       审核通过（非 STAFF）
- PUT    /api/sells/{id}/reject        驳回（非 STAFF；已通过的不能驳回）
- PUT    /api/sells/{id}/validity      ?is_valid=true|false，等价于 approve / reject
- PUT    /api/sells/{id}/mark-paid     仅 OWNER
- PUT    /api/sells/{id}/mark-unpaid   仅 OWNER
- PUT    /api/sells/{id}/payment       ?is_paid=true|false，仅 OWNER

守卫失败以业务错误返回（403 / 409），不会改动任何字段。
"""
from datetime import date
from decimal import Decimal
from typing import Optional

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from sellhub.core.context import Context, get_context
from sellhub.core.state_machine import SellStatus
from sellhub.infra.db import get_db
from sellhub.services import sells as sell_svc

router = APIRouter(prefix="/sells", tags=["sells"])

PHONE_PATTERN = r"^1[3-9]\d{9}$"
SPEC_PATTERN = r"^(支|盒)$"


class SellIn(BaseModel):
    sell_kind: str = Field(min_length=1, max_length=50)
    seller_name: Optional[str] = Field(default=None, max_length=100)   # 为空时取当前用户名
    sell_date: date
    product_name: str = Field(min_length=1, max_length=200)
    product_quantity: int = Field(ge=1)
    product_spec: str = Field(pattern=SPEC_PATTERN)
    product_price: Decimal = Field(ge=0)
    total_price: Decimal = Field(ge=0)
    customer_company: Optional[str] = Field(default=None, max_length=200)
    customer_name: str = Field(min_length=1, max_length=100)
    customer_address: str = Field(min_length=1, max_length=500)
    customer_phone: str = Field(pattern=PHONE_PATTERN)
    customer_province: str = Field(min_length=1, max_length=50)
    pay_method: Optional[str] = Field(default=None, max_length=100)
    payment_screenshot_url: Optional[str] = Field(default=None, max_length=500)


@router.post("", status_code=201)
def create_sell(inp: SellIn, db: Session = Depends(get_db), ctx: Context = Depends(get_context)):
    return sell_svc.create_sell(db, ctx, **inp.model_dump()).to_dict()


@router.get("")
def search_sells(
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
    db: Session = Depends(get_db),
    ctx: Context = Depends(get_context),
):
    rows = sell_svc.search_sells(
        db, ctx,
        seller_name=seller_name, product_name=product_name, product_spec=product_spec,
        customer_name=customer_name, customer_company=customer_company,
        customer_province=customer_province, sell_kind=sell_kind, pay_method=pay_method,
        start_date=start_date, end_date=end_date,
        min_total_price=min_total_price, max_total_price=max_total_price,
        is_paid=is_paid, is_valid=is_valid, review_status=review_status,
    )
    return [s.to_dict() for s in rows]


@router.get("/count")
def count_sells(db: Session = Depends(get_db), ctx: Context = Depends(get_context)):
    return {"count": sell_svc.count_sells(db, ctx)}


@router.get("/{sell_id}")
def get_sell(sell_id: int, db: Session = Depends(get_db), ctx: Context = Depends(get_context)):
    return sell_svc.get_sell(db, ctx, sell_id).to_dict()


@router.put("/{sell_id}")
def update_sell(sell_id: int, inp: SellIn, db: Session = Depends(get_db),
                ctx: Context = Depends(get_context)):
    return sell_svc.update_sell(db, ctx, sell_id, **inp.model_dump()).to_dict()


@router.delete("/{sell_id}")
def delete_sell(sell_id: int, db: Session = Depends(get_db), ctx: Context = Depends(get_context)):
    sell_svc.delete_sell(db, ctx, sell_id)
    return {"ok": True}


@router.put("/{sell_id}/approve")
def approve_sell(sell_id: int, db: Session = Depends(get_db), ctx: Context = Depends(get_context)):
    return sell_svc.approve_sell(db, ctx, sell_id).to_dict()


@router.put("/{sell_id}/reject")
def reject_sell(sell_id: int, db: Session = Depends(get_db), ctx: Context = Depends(get_context)):
    return sell_svc.reject_sell(db, ctx, sell_id).to_dict()


@router.put("/{sell_id}/validity")
def set_validity(sell_id: int, is_valid: bool = Query(...), db: Session = Depends(get_db),
                 ctx: Context = Depends(get_context)):
    return sell_svc.set_validity(db, ctx, sell_id, is_valid).to_dict()


@router.put("/{sell_id}/mark-paid")
def mark_paid(sell_id: int, db: Session = Depends(get_db), ctx: Context = Depends(get_context)):
    return sell_svc.mark_paid(db, ctx, sell_id).to_dict()


@router.put("/{sell_id}/mark-unpaid")
def mark_unpaid(sell_id: int, db: Session = Depends(get_db), ctx: Context = Depends(get_context)):
    return sell_svc.mark_unpaid(db, ctx, sell_id).to_dict()


@router.put("/{sell_id}/payment")
def set_payment(sell_id: int, is_paid: bool = Query(...), db: Session = Depends(get_db),
                ctx: Context = Depends(get_context)):
    return sell_svc.set_payment(db, ctx, sell_id, is_paid).to_dict()
