# tests/test_relations.py
# -*- coding: utf-8 -*-
import pytest

BASE = "/api/user-product-relations"


def _product(client, headers, name):
    r = client.post("/api/products", headers=headers, json={
        "name": name, "stock_quantity": 10, "expiry_date": "2026-01",
    })
    assert r.status_code == 201, r.text
    return r.json()["id"]


@pytest.fixture
def products(client, owner):
    return [_product(client, owner, n) for n in ("甲药", "乙药", "丙药")]


def test_assign_and_query_both_directions(client, owner, products):
    pid = products[0]
    r = client.post(f"{BASE}/assign", headers=owner, params={"username": "staff", "resource_id": pid})
    assert r.status_code == 201, r.text
    assert r.json()["kind"] == "product"

    r = client.get(f"{BASE}/user/staff/products", headers=owner)
    assert [p["id"] for p in r.json()] == [pid]
    r = client.get(f"{BASE}/product/{pid}/users", headers=owner)
    assert [u["username"] for u in r.json()] == ["staff"]
    assert client.get(f"{BASE}/product/{pid}/count", headers=owner).json() == {"count": 1}


def test_duplicate_assign_conflicts(client, auditor, products):
    params = {"username": "staff", "resource_id": products[0]}
    assert client.post(f"{BASE}/assign", headers=auditor, params=params).status_code == 201
    r = client.post(f"{BASE}/assign", headers=auditor, params=params)
    assert r.status_code == 409
    assert r.json()["code"] == "CONFLICT"


def test_assign_missing_resource_or_user(client, owner, products):
    r = client.post(f"{BASE}/assign", headers=owner, params={"username": "staff", "resource_id": 9999})
    assert r.status_code == 404
    r = client.post(f"{BASE}/assign", headers=owner, params={"username": "ghost", "resource_id": products[0]})
    assert r.status_code == 404


def test_unassign_missing_relation_is_404(client, owner, products):
    r = client.delete(f"{BASE}/unassign", headers=owner, params={"username": "staff", "resource_id": products[0]})
    assert r.status_code == 404


def test_staff_cannot_manage_relations(client, staff, products):
    r = client.post(f"{BASE}/assign", headers=staff, params={"username": "staff", "resource_id": products[0]})
    assert r.status_code == 403


def test_staff_reads_only_own_relations(client, staff, staff2, products):
    assert client.get(f"{BASE}/user/staff/count", headers=staff).json() == {"count": 0}
    assert client.get(f"{BASE}/user/staff2/count", headers=staff).status_code == 403
    assert client.get(f"{BASE}/product/{products[0]}/users", headers=staff).status_code == 403


def test_batch_assign_skips_existing(client, owner, products):
    client.post(f"{BASE}/assign", headers=owner, params={"username": "staff", "resource_id": products[0]})
    r = client.post(f"{BASE}/batch-assign", headers=owner, params={"username": "staff"}, json=products)
    assert r.status_code == 201, r.text
    assert sorted(x["resource_id"] for x in r.json()) == sorted(products[1:])
    assert client.get(f"{BASE}/user/staff/count", headers=owner).json() == {"count": 3}


def test_batch_assign_with_unknown_id_writes_nothing(client, owner, products):
    r = client.post(f"{BASE}/batch-assign", headers=owner, params={"username": "staff"},
                    json=[products[0], 9999])
    assert r.status_code == 404
    assert client.get(f"{BASE}/user/staff/count", headers=owner).json() == {"count": 0}


def test_batch_unassign(client, owner, products):
    client.post(f"{BASE}/batch-assign", headers=owner, params={"username": "staff"}, json=products)
    r = client.request("DELETE", f"{BASE}/batch-unassign", headers=owner,
                       params={"username": "staff"}, json=products[:2] + [9999])
    assert r.status_code == 200, r.text
    assert r.json() == {"removed": 2}
    assert client.get(f"{BASE}/user/staff/count", headers=owner).json() == {"count": 1}


def test_purge_by_user_and_by_resource(client, owner, staff2, products):
    client.post(f"{BASE}/batch-assign", headers=owner, params={"username": "staff"}, json=products)
    client.post(f"{BASE}/assign", headers=owner, params={"username": "staff2", "resource_id": products[0]})

    r = client.delete(f"{BASE}/product/{products[0]}", headers=owner)
    assert r.json() == {"removed": 2}
    r = client.delete(f"{BASE}/user/staff", headers=owner)
    assert r.json() == {"removed": 2}
    assert client.get(f"{BASE}/user/staff2/count", headers=owner).json() == {"count": 0}


def test_deleting_user_cascades_relations(client, owner, staff2, products):
    client.post(f"{BASE}/assign", headers=owner, params={"username": "staff2", "resource_id": products[1]})
    uid = client.get("/api/auth/me", headers=staff2).json()["uid"]
    assert client.delete(f"/api/users/{uid}", headers=owner).status_code == 200
    assert client.get(f"{BASE}/product/{products[1]}/count", headers=owner).json() == {"count": 0}


def test_customer_and_product_relations_are_separate(client, owner, products):
    client.post(f"{BASE}/assign", headers=owner, params={"username": "staff", "resource_id": products[0]})
    r = client.get("/api/user-customer-relations/user/staff/count", headers=owner)
    assert r.json() == {"count": 0}


def test_relation_reads_follow_uid_after_rename(client, staff, login):
    # staff 改名后，旧用户名被新用户注册；旧令牌不能读新用户的关系，但能读自己的
    uid = client.get("/api/auth/me", headers=staff).json()["uid"]
    r = client.put(f"/api/users/{uid}", headers=staff, json={"username": "renamed"})
    assert r.status_code == 200, r.text
    r = client.post("/api/auth/register", json={"username": "staff", "password": "another1"})
    assert r.status_code == 201, r.text
    newcomer = login("staff", "another1")
    r = client.post("/api/customers", headers=newcomer, json={
        "customer_name": "x", "phone": "13800138000", "address": "a", "province": "p",
    })
    assert r.status_code == 201, r.text
    cid = r.json()["id"]

    C = "/api/user-customer-relations"
    assert client.get(f"{C}/user/staff/customers", headers=staff).status_code == 403
    assert client.get(f"{C}/user/staff/count", headers=staff).status_code == 403
    r = client.get(f"{C}/check-permission", headers=staff,
                   params={"username": "staff", "resource_id": cid})
    assert r.status_code == 403
    r = client.get(f"{C}/user/renamed/count", headers=staff)
    assert r.status_code == 200, r.text
    assert r.json() == {"count": 0}


def test_staff_reading_unknown_user_is_denied(client, staff):
    assert client.get(f"{BASE}/user/nobody/count", headers=staff).status_code == 403


def test_relation_detail_and_listings(client, owner, staff, products):
    pid = products[0]
    r = client.get(f"{BASE}/relation", headers=owner, params={"username": "staff", "resource_id": pid})
    assert r.status_code == 404
    assert client.get(f"{BASE}/user/staff/has-any", headers=staff).json() == {"has_any": False}
    assert client.get(f"{BASE}/product/{pid}/is-managed", headers=owner).json() == {"is_managed": False}

    client.post(f"{BASE}/assign", headers=owner, params={"username": "staff", "resource_id": pid})

    r = client.get(f"{BASE}/relation", headers=staff, params={"username": "staff", "resource_id": pid})
    assert r.status_code == 200, r.text
    assert r.json()["resource_id"] == pid
    r = client.get(f"{BASE}/user/staff/relations", headers=staff)
    assert [x["resource_id"] for x in r.json()] == [pid]
    r = client.get(f"{BASE}/product/{pid}/relations", headers=owner)
    assert len(r.json()) == 1
    assert client.get(f"{BASE}/user/staff/has-any", headers=staff).json() == {"has_any": True}
    assert client.get(f"{BASE}/product/{pid}/is-managed", headers=owner).json() == {"is_managed": True}
    assert client.get(f"{BASE}/product/{pid}/is-managed", headers=staff).status_code == 403
