# sellhub/api/customers.py
"""
客户 API（读侧按归属隔离）
- STAFF：创建后自动归属自己；列表 / 详情只含自己名下客户；改、删须是归属人
- OWNER / AUDITOR：全量
"""
from typing import Optional

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from sellhub.core.context import Context, get_context
from sellhub.infra.db import get_db
from sellhub.services import customers as cust_svc

router = APIRouter(prefix="/customers", tags=["customers"])

PHONE_PATTERN = r"^1[3-9]\d{9}$"


class CustomerIn(BaseModel):
    company: Optional[str] = Field(default=None, max_length=200)
    customer_name: str = Field(min_length=1, max_length=100)
    phone: str = Field(pattern=PHONE_PATTERN)
    address: str = Field(min_length=1, max_length=500)
    province: str = Field(min_length=1, max_length=50)


@router.post("", status_code=201)
def create_customer(inp: CustomerIn, db: Session = Depends(get_db),
                    ctx: Context = Depends(get_context)):
    return cust_svc.create_customer(db, ctx, **inp.model_dump()).to_dict()


@router.get("")
def list_customers(
    customer_name: Optional[str] = Query(default=None),
    company: Optional[str] = Query(default=None),
    province: Optional[str] = Query(default=None),
    db: Session = Depends(get_db),
    ctx: Context = Depends(get_context),
):
    rows = cust_svc.list_customers(db, ctx, customer_name=customer_name,
                                   company=company, province=province)
    return [c.to_dict() for c in rows]


@router.get("/count")
def count_customers(db: Session = Depends(get_db), ctx: Context = Depends(get_context)):
    return {"count": cust_svc.count_customers(db, ctx)}


@router.get("/{customer_id}")
def get_customer(customer_id: int, db: Session = Depends(get_db),
                 ctx: Context = Depends(get_context)):
    return cust_svc.get_customer(db, ctx, customer_id).to_dict()


@router.put("/{customer_id}")
def update_customer(customer_id: int, inp: CustomerIn, db: Session = Depends(get_db),
                    ctx: Context = Depends(get_context)):
    return cust_svc.update_customer(db, ctx, customer_id, **inp.model_dump()).to_dict()


@router.delete("/{customer_id}")
def delete_customer(customer_id: int, db: Session = Depends(get_db),
                    ctx: Context = Depends(get_context)):
    cust_svc.delete_customer(db, ctx, customer_id)
    return {"ok": True}
