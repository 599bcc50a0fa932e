# tests/conftest.py
# -*- coding: utf-8 -*-
# 先设环境变量，再导入 app（确保 engine 绑定到独立测试库）
import os
import tempfile

_tmpdir = tempfile.mkdtemp(prefix="sellhub_pytest_")
os.environ["DATABASE_URL"] = f"sqlite:///{os.path.join(_tmpdir, 'test.db')}"
os.environ["LOG_TO_FILE"] = "false"
os.environ["SECRET_KEY"] = "test-secret-for-sellhub"
os.environ["OWNER_USERNAME"], os.environ["OWNER_PASSWORD"] = "owner", "owner123"
os.environ["AUDITOR_USERNAME"], os.environ["AUDITOR_PASSWORD"] = "auditor", "auditor123"
os.environ["STAFF_USERNAME"], os.environ["STAFF_PASSWORD"] = "staff", "staff123"

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from sellhub.main import app  # noqa: E402
from sellhub.infra.db import drop_db, init_db  # noqa: E402
from scripts.seed_users import run as seed_users  # noqa: E402

PASSWORDS = {"owner": "owner123", "auditor": "auditor123", "staff": "staff123"}


@pytest.fixture(autouse=True)
def _fresh_db():
    # 每个用例一张干净的库 + 三个种子用户
    drop_db()
    init_db()
    seed_users()
    yield


@pytest.fixture
def client():
    return TestClient(app)


@pytest.fixture
def login(client):
    def _login(username: str, password: str = None) -> dict:
        r = client.post("/api/auth/login",
                        json={"username": username, "password": password or PASSWORDS[username]})
        assert r.status_code == 200, r.text
        return {"Authorization": f"Bearer {r.json()['token']}"}
    return _login


@pytest.fixture
def owner(login):
    return login("owner")


@pytest.fixture
def auditor(login):
    return login("auditor")


@pytest.fixture
def staff(login):
    return login("staff")


@pytest.fixture
def staff2(client, login):
    r = client.post("/api/auth/register", json={"username": "staff2", "password": "staff2pw"})
    assert r.status_code == 201, r.text
    return login("staff2", "staff2pw")
