"""
模块职能：
- 归属关系存储：用户 ↔ 客户/产品 多对多，(user_id, resource_id, kind) 至多一条。
- 不自己做权限判断（由调用方先过 policy），只负责存在性与唯一性。
- 删除用户/客户/产品时，由对应服务先调用 purge_identity / purge_resource 做级联清理。

日志：
- rel_assign / rel_unassign / rel_assign_many / rel_unassign_many / rel_purge
"""
from typing import Iterable, List

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from sellhub.core.errors import Conflict, NotFound
from sellhub.core.models import Customer, OwnershipRelation, Product, ResourceKind
from sellhub.core.models_user import User
from sellhub.infra.logger import emit

RESOURCE_MODELS = {
    ResourceKind.customer: Customer,
    ResourceKind.product: Product,
}


def _require_user(db: Session, user_id: int) -> User:
    user = db.get(User, user_id)
    if not user:
        raise NotFound("user does not exist")
    return user


def require_resource(db: Session, resource_id: int, kind: ResourceKind):
    obj = db.get(RESOURCE_MODELS[kind], resource_id)
    if not obj:
        raise NotFound(f"{kind.value} does not exist: {resource_id}")
    return obj


def _query(db: Session, kind: ResourceKind):
    return db.query(OwnershipRelation).filter(OwnershipRelation.kind == kind)


def exists(db: Session, user_id: int, resource_id: int, kind: ResourceKind) -> bool:
    return (_query(db, kind)
            .filter(OwnershipRelation.user_id == user_id,
                    OwnershipRelation.resource_id == resource_id)
            .first()) is not None


def assign(db: Session, user_id: int, resource_id: int, kind: ResourceKind,
           commit: bool = True) -> OwnershipRelation:
    _require_user(db, user_id)
    require_resource(db, resource_id, kind)
    if exists(db, user_id, resource_id, kind):
        raise Conflict(f"user already manages this {kind.value}")

    rel = OwnershipRelation(user_id=user_id, resource_id=resource_id, kind=kind)
    db.add(rel)
    try:
        db.flush()
    except IntegrityError:
        # 并发下唯一键兜底
        db.rollback()
        raise Conflict(f"user already manages this {kind.value}")
    if commit:
        db.commit()
    emit("rel_assign", user_id=user_id, resource_id=resource_id, kind=kind.value)
    return rel


def unassign(db: Session, user_id: int, resource_id: int, kind: ResourceKind) -> None:
    n = (_query(db, kind)
         .filter(OwnershipRelation.user_id == user_id,
                 OwnershipRelation.resource_id == resource_id)
         .delete(synchronize_session=False))
    if not n:
        raise NotFound(f"user does not manage this {kind.value}")
    db.commit()
    emit("rel_unassign", user_id=user_id, resource_id=resource_id, kind=kind.value)


def assign_many(db: Session, user_id: int, resource_ids: Iterable[int],
                kind: ResourceKind) -> List[OwnershipRelation]:
    """先校验全部资源存在（否则一条不写），已存在的关系跳过，返回新建的关系。"""
    _require_user(db, user_id)
    ids = list(dict.fromkeys(resource_ids))
    for rid in ids:
        require_resource(db, rid, kind)

    created = []
    for rid in ids:
        if exists(db, user_id, rid, kind):
            continue
        rel = OwnershipRelation(user_id=user_id, resource_id=rid, kind=kind)
        db.add(rel)
        created.append(rel)
    db.commit()
    emit("rel_assign_many", user_id=user_id, kind=kind.value,
         requested=len(ids), created=len(created))
    return created


def unassign_many(db: Session, user_id: int, resource_ids: Iterable[int],
                  kind: ResourceKind) -> int:
    _require_user(db, user_id)
    ids = list(resource_ids)
    n = 0
    if ids:
        n = (_query(db, kind)
             .filter(OwnershipRelation.user_id == user_id,
                     OwnershipRelation.resource_id.in_(ids))
             .delete(synchronize_session=False))
    db.commit()
    emit("rel_unassign_many", user_id=user_id, kind=kind.value, requested=len(ids), removed=n)
    return n


def get_relation(db: Session, user_id: int, resource_id: int, kind: ResourceKind) -> OwnershipRelation:
    rel = (_query(db, kind)
           .filter(OwnershipRelation.user_id == user_id,
                   OwnershipRelation.resource_id == resource_id)
           .first())
    if rel is None:
        raise NotFound(f"user does not manage this {kind.value}")
    return rel


def relations_for_identity(db: Session, user_id: int, kind: ResourceKind) -> List[OwnershipRelation]:
    _require_user(db, user_id)
    return (_query(db, kind).filter(OwnershipRelation.user_id == user_id)
            .order_by(OwnershipRelation.id).all())


def relations_for_resource(db: Session, resource_id: int, kind: ResourceKind) -> List[OwnershipRelation]:
    require_resource(db, resource_id, kind)
    return (_query(db, kind).filter(OwnershipRelation.resource_id == resource_id)
            .order_by(OwnershipRelation.id).all())


def resource_ids_for(db: Session, user_id: int, kind: ResourceKind) -> List[int]:
    rows = (_query(db, kind)
            .with_entities(OwnershipRelation.resource_id)
            .filter(OwnershipRelation.user_id == user_id)
            .all())
    return [r[0] for r in rows]


def list_resources_for(db: Session, user_id: int, kind: ResourceKind) -> list:
    _require_user(db, user_id)
    model = RESOURCE_MODELS[kind]
    ids = resource_ids_for(db, user_id, kind)
    if not ids:
        return []
    return db.query(model).filter(model.id.in_(ids)).order_by(model.id).all()


def list_identities_for(db: Session, resource_id: int, kind: ResourceKind) -> List[User]:
    require_resource(db, resource_id, kind)
    ids = [r[0] for r in (_query(db, kind)
                          .with_entities(OwnershipRelation.user_id)
                          .filter(OwnershipRelation.resource_id == resource_id)
                          .all())]
    if not ids:
        return []
    return db.query(User).filter(User.id.in_(ids)).order_by(User.id).all()


def count_resources_for(db: Session, user_id: int, kind: ResourceKind) -> int:
    _require_user(db, user_id)
    return _query(db, kind).filter(OwnershipRelation.user_id == user_id).count()


def count_identities_for(db: Session, resource_id: int, kind: ResourceKind) -> int:
    require_resource(db, resource_id, kind)
    return _query(db, kind).filter(OwnershipRelation.resource_id == resource_id).count()


def purge_identity(db: Session, user_id: int, kind: ResourceKind = None) -> int:
    """删除某用户的全部关系（kind 为空时两类都删）；不 commit，由调用方统一提交。"""
    q = db.query(OwnershipRelation).filter(OwnershipRelation.user_id == user_id)
    if kind is not None:
        q = q.filter(OwnershipRelation.kind == kind)
    n = q.delete(synchronize_session=False)
    emit("rel_purge", user_id=user_id, kind=kind.value if kind else "*", removed=n)
    return n


def purge_resource(db: Session, resource_id: int, kind: ResourceKind) -> int:
    """删除某客户/产品的全部关系；不 commit，由调用方统一提交。"""
    n = (_query(db, kind)
         .filter(OwnershipRelation.resource_id == resource_id)
         .delete(synchronize_session=False))
    emit("rel_purge", resource_id=resource_id, kind=kind.value, removed=n)
    return n
