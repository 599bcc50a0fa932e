# sellhub/api/relations.py
# -*- coding: utf-8 -*-
"""
归属关系 API（客户、产品各一套，路由结构相同，由 _build_router 生成）
------------------------------------
- /api/user-customer-relations/...
- /api/user-product-relations/...

权限：
- 分配 / 取消 / 批量 / 级联清理：OWNER、AUDITOR（RELATION_MANAGE），STAFF 拒绝
- 按用户查询：OWNER、AUDITOR 任意用户；STAFF 只能查自己（RELATION_READ，按 uid 判定）
- 按资源查询管理人：OWNER、AUDITOR
"""
from typing import List

from fastapi import APIRouter, Body, Depends, Query
from sqlalchemy.orm import Session

from sellhub.core.context import Context, get_context
from sellhub.core.errors import NotFound
from sellhub.core.models import ResourceKind
from sellhub.core.policy import Operation, enforce
from sellhub.infra.db import get_db
from sellhub.infra.logger import emit
from sellhub.services import relations as rel_svc
from sellhub.services import users as user_svc


def _read_self_or_manage(db: Session, ctx: Context, username: str):
    """先查人再判权；用户名可改、可被别人重新注册，归属只认 uid。"""
    user = user_svc.get_by_username(db, username)
    enforce(ctx, Operation.RELATION_READ, owns=lambda: user is not None and user.id == ctx.uid)
    if user is None:
        raise NotFound(f"user does not exist: {username}")
    return user


def _build_router(kind: ResourceKind, prefix: str, plural: str) -> APIRouter:
    router = APIRouter(prefix=prefix, tags=["relations"])

    @router.post("/assign", status_code=201)
    def assign(username: str = Query(...), resource_id: int = Query(...),
               db: Session = Depends(get_db), ctx: Context = Depends(get_context)):
        enforce(ctx, Operation.RELATION_MANAGE)
        user = user_svc.require_by_username(db, username)
        rel = rel_svc.assign(db, user.id, resource_id, kind)
        emit("api_rel_assign", actor=ctx.username, username=username,
             resource_id=resource_id, kind=kind.value)
        return rel.to_dict()

    @router.delete("/unassign")
    def unassign(username: str = Query(...), resource_id: int = Query(...),
                 db: Session = Depends(get_db), ctx: Context = Depends(get_context)):
        enforce(ctx, Operation.RELATION_MANAGE)
        user = user_svc.require_by_username(db, username)
        rel_svc.unassign(db, user.id, resource_id, kind)
        return {"ok": True}

    @router.post("/batch-assign", status_code=201)
    def batch_assign(username: str = Query(...), resource_ids: List[int] = Body(...),
                     db: Session = Depends(get_db), ctx: Context = Depends(get_context)):
        enforce(ctx, Operation.RELATION_MANAGE)
        user = user_svc.require_by_username(db, username)
        return [r.to_dict() for r in rel_svc.assign_many(db, user.id, resource_ids, kind)]

    @router.delete("/batch-unassign")
    def batch_unassign(username: str = Query(...), resource_ids: List[int] = Body(...),
                       db: Session = Depends(get_db), ctx: Context = Depends(get_context)):
        enforce(ctx, Operation.RELATION_MANAGE)
        user = user_svc.require_by_username(db, username)
        return {"removed": rel_svc.unassign_many(db, user.id, resource_ids, kind)}

    @router.get("/relation")
    def get_relation(username: str = Query(...), resource_id: int = Query(...),
                     db: Session = Depends(get_db), ctx: Context = Depends(get_context)):
        user = _read_self_or_manage(db, ctx, username)
        return rel_svc.get_relation(db, user.id, resource_id, kind).to_dict()

    @router.get(f"/user/{{username}}/{plural}")
    def list_for_user(username: str, db: Session = Depends(get_db),
                      ctx: Context = Depends(get_context)):
        user = _read_self_or_manage(db, ctx, username)
        return [r.to_dict() for r in rel_svc.list_resources_for(db, user.id, kind)]

    @router.get("/user/{username}/relations")
    def relations_for_user(username: str, db: Session = Depends(get_db),
                           ctx: Context = Depends(get_context)):
        user = _read_self_or_manage(db, ctx, username)
        return [r.to_dict() for r in rel_svc.relations_for_identity(db, user.id, kind)]

    @router.get("/user/{username}/count")
    def count_for_user(username: str, db: Session = Depends(get_db),
                       ctx: Context = Depends(get_context)):
        user = _read_self_or_manage(db, ctx, username)
        return {"count": rel_svc.count_resources_for(db, user.id, kind)}

    @router.get("/user/{username}/has-any")
    def has_any(username: str, db: Session = Depends(get_db),
                ctx: Context = Depends(get_context)):
        user = _read_self_or_manage(db, ctx, username)
        return {"has_any": rel_svc.count_resources_for(db, user.id, kind) > 0}

    @router.get("/check-permission")
    def check_permission(username: str = Query(...), resource_id: int = Query(...),
                         db: Session = Depends(get_db), ctx: Context = Depends(get_context)):
        user = _read_self_or_manage(db, ctx, username)
        return {"has_permission": rel_svc.exists(db, user.id, resource_id, kind)}

    @router.get(f"/{kind.value}/{{resource_id}}/users")
    def list_for_resource(resource_id: int, db: Session = Depends(get_db),
                          ctx: Context = Depends(get_context)):
        enforce(ctx, Operation.RELATION_READ)
        return [u.to_dict() for u in rel_svc.list_identities_for(db, resource_id, kind)]

    @router.get(f"/{kind.value}/{{resource_id}}/relations")
    def relations_for_resource(resource_id: int, db: Session = Depends(get_db),
                               ctx: Context = Depends(get_context)):
        enforce(ctx, Operation.RELATION_READ)
        return [r.to_dict() for r in rel_svc.relations_for_resource(db, resource_id, kind)]

    @router.get(f"/{kind.value}/{{resource_id}}/count")
    def count_for_resource(resource_id: int, db: Session = Depends(get_db),
                           ctx: Context = Depends(get_context)):
        enforce(ctx, Operation.RELATION_READ)
        return {"count": rel_svc.count_identities_for(db, resource_id, kind)}

    @router.get(f"/{kind.value}/{{resource_id}}/is-managed")
    def is_managed(resource_id: int, db: Session = Depends(get_db),
                   ctx: Context = Depends(get_context)):
        enforce(ctx, Operation.RELATION_READ)
        return {"is_managed": rel_svc.count_identities_for(db, resource_id, kind) > 0}

    @router.delete("/user/{username}")
    def purge_user(username: str, db: Session = Depends(get_db),
                   ctx: Context = Depends(get_context)):
        enforce(ctx, Operation.RELATION_MANAGE)
        user = user_svc.require_by_username(db, username)
        n = rel_svc.purge_identity(db, user.id, kind)
        db.commit()
        return {"removed": n}

    @router.delete(f"/{kind.value}/{{resource_id}}")
    def purge_resource(resource_id: int, db: Session = Depends(get_db),
                       ctx: Context = Depends(get_context)):
        enforce(ctx, Operation.RELATION_MANAGE)
        rel_svc.require_resource(db, resource_id, kind)
        n = rel_svc.purge_resource(db, resource_id, kind)
        db.commit()
        return {"removed": n}

    return router


customer_router = _build_router(ResourceKind.customer, "/user-customer-relations", "customers")
product_router = _build_router(ResourceKind.product, "/user-product-relations", "products")
