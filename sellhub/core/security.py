# sellhub/core/security.py
""""口令哈希/校验（passlib）与 JWT（PyJWT, HS256）的签发与校验。

issue_token(subject, claims, ttl) → 紧凑 JWT：{sub, **claims, iat, exp}
verify_token(token) → VerifiedToken；签名错、结构坏、过期一律抛 InvalidToken，
  具体原因只放在 InvalidToken.cause 里供日志使用，不暴露给客户端。

无吊销：令牌在到期前一直有效；更换 SECRET_KEY 会让所有已签发令牌失效。"""

import os
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Dict, Any, Optional

import jwt  # PyJWT
from passlib.context import CryptContext

from sellhub.core.errors import InvalidToken

ALGORITHM = "HS256"
REGISTERED_CLAIMS = ("sub", "iat", "exp")
pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")


def get_secret_key() -> str:
    key = os.getenv("SECRET_KEY")
    if not key:
        raise RuntimeError("SECRET_KEY is not set in environment")
    return key


def get_access_token_expire_minutes() -> int:
    try:
        return int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", "30"))
    except ValueError:
        return 30


def hash_password(plain: str) -> str:
    return pwd_context.hash(plain)


def verify_password(plain: str, hashed: str) -> bool:
    return pwd_context.verify(plain, hashed)


@dataclass(frozen=True)
class VerifiedToken:
    subject: str
    claims: Dict[str, Any] = field(default_factory=dict)
    issued_at: Optional[datetime] = None
    expires_at: Optional[datetime] = None


def issue_token(
    subject: str,
    claims: Dict[str, Any],
    ttl: Optional[timedelta] = None,
    now: Optional[datetime] = None,
) -> str:
    clash = [k for k in claims if k in REGISTERED_CLAIMS]
    if clash:
        raise ValueError(f"claims may not override registered names: {clash}")
    if ttl is None:
        ttl = timedelta(minutes=get_access_token_expire_minutes())
    issued = now or datetime.now(timezone.utc)
    to_encode = dict(claims)
    to_encode.update({"sub": subject, "iat": issued, "exp": issued + ttl})
    return jwt.encode(to_encode, get_secret_key(), algorithm=ALGORITHM)


def verify_token(token: str) -> VerifiedToken:
    try:
        payload = jwt.decode(
            token,
            get_secret_key(),
            algorithms=[ALGORITHM],
            options={"require": ["exp", "sub"], "verify_aud": False},
        )
    except jwt.ExpiredSignatureError:
        raise InvalidToken("expired")
    except jwt.InvalidSignatureError:
        raise InvalidToken("bad_signature")
    except jwt.DecodeError:
        raise InvalidToken("malformed")
    except jwt.PyJWTError:
        raise InvalidToken("invalid")

    claims = {k: v for k, v in payload.items() if k not in REGISTERED_CLAIMS}
    iat = payload.get("iat")
    return VerifiedToken(
        subject=str(payload["sub"]),
        claims=claims,
        issued_at=datetime.fromtimestamp(iat, tz=timezone.utc) if iat is not None else None,
        expires_at=datetime.fromtimestamp(payload["exp"], tz=timezone.utc),
    )


def create_access_token(user) -> str:
    """登录令牌：sub=用户名，uid/role 作为自定义声明。"""
    return issue_token(user.username, {"uid": user.id, "role": user.role.value})
