# tests/test_sells.py
# -*- coding: utf-8 -*-


def _sell(**over):
    body = {
        "sell_kind": "零售",
        "seller_name": "",
        "sell_date": "2025-10-01",
        "product_name": "阿莫西林胶囊",
        "product_quantity": 2,
        "product_spec": "盒",
        "product_price": "10.00",
        "total_price": "20.00",
        "customer_company": None,
        "customer_name": "张三",
        "customer_address": "西湖区文三路 1 号",
        "customer_phone": "13800138000",
        "customer_province": "浙江",
        "pay_method": "微信",
        "payment_screenshot_url": None,
    }
    body.update(over)
    return body


def _create(client, headers, **over):
    r = client.post("/api/sells", headers=headers, json=_sell(**over))
    assert r.status_code == 201, r.text
    return r.json()


def test_new_sell_is_pending_and_unpaid(client, staff):
    s = _create(client, staff)
    assert s["review_status"] == "PENDING"
    assert s["is_valid"] is False
    assert s["is_paid"] is False
    assert s["creator_username"] == "staff"
    # 未填销售员时取当前用户名
    assert s["seller_name"] == "staff"


def test_approve_then_staff_edit_is_locked(client, owner, staff):
    sid = _create(client, staff)["id"]
    r = client.put(f"/api/sells/{sid}/approve", headers=owner)
    assert r.status_code == 200, r.text
    assert r.json()["is_valid"] is True

    r = client.put(f"/api/sells/{sid}", headers=staff, json=_sell(product_quantity=5))
    assert r.status_code == 409
    assert r.json() == {"detail": "approved sell order cannot be modified", "code": "LIFECYCLE_VIOLATION"}
    assert client.get(f"/api/sells/{sid}", headers=staff).json()["product_quantity"] == 2

    r = client.delete(f"/api/sells/{sid}", headers=owner)
    assert r.status_code == 409


def test_auditor_cannot_mark_paid(client, auditor, staff):
    sid = _create(client, staff)["id"]
    r = client.put(f"/api/sells/{sid}/mark-paid", headers=auditor)
    assert r.status_code == 403
    assert r.json()["code"] == "FORBIDDEN"
    assert client.get(f"/api/sells/{sid}", headers=auditor).json()["is_paid"] is False


def test_owner_payment_toggles(client, owner, staff):
    sid = _create(client, staff)["id"]
    assert client.put(f"/api/sells/{sid}/mark-paid", headers=owner).json()["is_paid"] is True
    assert client.put(f"/api/sells/{sid}/mark-unpaid", headers=owner).json()["is_paid"] is False
    r = client.put(f"/api/sells/{sid}/payment", headers=owner, params={"is_paid": True})
    assert r.json()["is_paid"] is True
    assert r.json()["review_status"] == "PENDING"


def test_reject_flow(client, auditor, staff):
    sid = _create(client, staff)["id"]
    r = client.put(f"/api/sells/{sid}/reject", headers=auditor)
    assert r.json()["review_status"] == "REJECTED"

    # 驳回后创建者仍可修改
    r = client.put(f"/api/sells/{sid}", headers=staff, json=_sell(product_quantity=3))
    assert r.status_code == 200, r.text
    assert r.json()["review_status"] == "REJECTED"

    r = client.put(f"/api/sells/{sid}/validity", headers=auditor, params={"is_valid": True})
    assert r.json()["review_status"] == "APPROVED"

    r = client.put(f"/api/sells/{sid}/reject", headers=auditor)
    assert r.status_code == 409


def test_approve_twice_is_violation(client, owner, staff):
    sid = _create(client, staff)["id"]
    client.put(f"/api/sells/{sid}/approve", headers=owner)
    r = client.put(f"/api/sells/{sid}/approve", headers=owner)
    assert r.status_code == 409
    assert r.json()["code"] == "LIFECYCLE_VIOLATION"


def test_staff_cannot_review(client, staff):
    sid = _create(client, staff)["id"]
    assert client.put(f"/api/sells/{sid}/approve", headers=staff).status_code == 403


def test_staff_scoping(client, owner, staff, staff2):
    mine = _create(client, staff)["id"]
    theirs = _create(client, staff2)["id"]

    r = client.get("/api/sells", headers=staff)
    assert [s["id"] for s in r.json()] == [mine]
    assert client.get("/api/sells/count", headers=staff).json() == {"count": 1}
    assert client.get("/api/sells/count", headers=owner).json() == {"count": 2}

    assert client.get(f"/api/sells/{theirs}", headers=staff).status_code == 404
    assert client.put(f"/api/sells/{theirs}", headers=staff, json=_sell()).status_code == 403
    assert client.delete(f"/api/sells/{theirs}", headers=staff).status_code == 403


def test_staff_deletes_own_pending_sell(client, owner, staff):
    sid = _create(client, staff)["id"]
    assert client.delete(f"/api/sells/{sid}", headers=staff).status_code == 200
    assert client.get(f"/api/sells/{sid}", headers=owner).status_code == 404


def test_search_filters(client, owner):
    _create(client, owner, customer_province="江苏", total_price="100.00")
    _create(client, owner, customer_province="浙江", total_price="20.00", product_spec="支")
    a = _create(client, owner, customer_province="浙江", total_price="50.00")
    client.put(f"/api/sells/{a['id']}/approve", headers=owner)

    r = client.get("/api/sells", headers=owner, params={"customer_province": "浙江"})
    assert len(r.json()) == 2
    r = client.get("/api/sells", headers=owner, params={"min_total_price": "40"})
    assert len(r.json()) == 2
    r = client.get("/api/sells", headers=owner, params={"is_valid": True})
    assert [s["id"] for s in r.json()] == [a["id"]]
    r = client.get("/api/sells", headers=owner, params={"product_spec": "支"})
    assert len(r.json()) == 1


def test_invalid_spec_and_phone_rejected(client, staff):
    assert client.post("/api/sells", headers=staff, json=_sell(product_spec="瓶")).status_code == 422
    assert client.post("/api/sells", headers=staff, json=_sell(customer_phone="10000000000")).status_code == 422
