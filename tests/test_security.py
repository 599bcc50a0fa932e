# tests/test_security.py
from datetime import datetime, timedelta, timezone

import jwt
import pytest

from sellhub.core.errors import InvalidToken
from sellhub.core.security import (
    hash_password, issue_token, verify_password, verify_token, get_secret_key,
)


def _flip_signature_char(token: str) -> str:
    header, payload, sig = token.split(".")
    mid = len(sig) // 2
    repl = "A" if sig[mid] != "A" else "B"
    return ".".join([header, payload, sig[:mid] + repl + sig[mid + 1:]])


def test_round_trip_keeps_subject_and_claims():
    token = issue_token("alice", {"uid": 7, "role": "STAFF"})
    v = verify_token(token)
    assert v.subject == "alice"
    assert v.claims == {"uid": 7, "role": "STAFF"}
    assert v.expires_at > v.issued_at


def test_expired_token_rejected():
    past = datetime.now(timezone.utc) - timedelta(hours=2)
    token = issue_token("alice", {"uid": 1}, ttl=timedelta(minutes=1), now=past)
    with pytest.raises(InvalidToken) as ei:
        verify_token(token)
    assert ei.value.cause == "expired"
    assert ei.value.message == "invalid token"


def test_flipped_signature_rejected():
    token = issue_token("alice", {"uid": 1})
    with pytest.raises(InvalidToken) as ei:
        verify_token(_flip_signature_char(token))
    assert ei.value.cause == "bad_signature"


def test_foreign_key_rejected():
    token = jwt.encode(
        {"sub": "alice", "exp": datetime.now(timezone.utc) + timedelta(minutes=5)},
        "some-other-secret", algorithm="HS256",
    )
    with pytest.raises(InvalidToken) as ei:
        verify_token(token)
    assert ei.value.cause == "bad_signature"


def test_malformed_token_rejected():
    with pytest.raises(InvalidToken) as ei:
        verify_token("not-a-token")
    assert ei.value.cause == "malformed"


def test_missing_subject_rejected():
    token = jwt.encode(
        {"uid": 1, "exp": datetime.now(timezone.utc) + timedelta(minutes=5)},
        get_secret_key(), algorithm="HS256",
    )
    with pytest.raises(InvalidToken) as ei:
        verify_token(token)
    assert ei.value.cause == "invalid"


@pytest.mark.parametrize("name", ["sub", "iat", "exp"])
def test_claims_cannot_override_registered_names(name):
    with pytest.raises(ValueError):
        issue_token("alice", {name: "x"})


def test_password_hash_verifies():
    h = hash_password("s3cret!")
    assert h != "s3cret!"
    assert verify_password("s3cret!", h)
    assert not verify_password("wrong", h)
