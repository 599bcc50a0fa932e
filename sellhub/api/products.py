# sellhub/api/products.py
"""
产品 API
- 增删改与库存调整：OWNER / AUDITOR
- 列表 / 详情：OWNER / AUDITOR 全量，STAFF 仅分配给自己的产品
"""
from decimal import Decimal
from typing import Optional

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from sellhub.core.context import Context, get_context
from sellhub.infra.db import get_db
from sellhub.services import products as prod_svc

router = APIRouter(prefix="/products", tags=["products"])

EXPIRY_PATTERN = r"^\d{4}-(0[1-9]|1[0-2])$"


class ProductIn(BaseModel):
    name: str = Field(min_length=1, max_length=200)
    manufacturer: Optional[str] = Field(default=None, max_length=200)
    description: Optional[str] = None
    base_price: Optional[Decimal] = Field(default=None, ge=0)
    stock_quantity: int = Field(ge=0)
    expiry_date: Optional[str] = Field(default=None, pattern=EXPIRY_PATTERN)


@router.post("", status_code=201)
def create_product(inp: ProductIn, db: Session = Depends(get_db),
                   ctx: Context = Depends(get_context)):
    return prod_svc.create_product(db, ctx, **inp.model_dump()).to_dict()


@router.get("")
def list_products(
    name: Optional[str] = Query(default=None),
    manufacturer: Optional[str] = Query(default=None),
    db: Session = Depends(get_db),
    ctx: Context = Depends(get_context),
):
    return [p.to_dict() for p in prod_svc.list_products(db, ctx, name=name, manufacturer=manufacturer)]


@router.get("/count")
def count_products(db: Session = Depends(get_db), ctx: Context = Depends(get_context)):
    return {"count": prod_svc.count_products(db, ctx)}


@router.get("/{product_id}")
def get_product(product_id: int, db: Session = Depends(get_db),
                ctx: Context = Depends(get_context)):
    return prod_svc.get_product(db, ctx, product_id).to_dict()


@router.put("/{product_id}")
def update_product(product_id: int, inp: ProductIn, db: Session = Depends(get_db),
                   ctx: Context = Depends(get_context)):
    return prod_svc.update_product(db, ctx, product_id, **inp.model_dump()).to_dict()


@router.put("/{product_id}/stock")
def update_stock(product_id: int, quantity: int = Query(...), db: Session = Depends(get_db),
                 ctx: Context = Depends(get_context)):
    # 负数库存交给服务层报业务错误，而不是 422
    return prod_svc.update_stock(db, ctx, product_id, quantity).to_dict()


@router.delete("/{product_id}")
def delete_product(product_id: int, db: Session = Depends(get_db),
                   ctx: Context = Depends(get_context)):
    prod_svc.delete_product(db, ctx, product_id)
    return {"ok": True}
