from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Sequence

import jwt
from jwt import InvalidTokenError


@dataclass(frozen=True)
class Identity:
    user_id: str
    email: str | None
    email_verified: bool


def create_access_token(
    *,
    user_id: str,
    secret: str,
    algorithm: str = "HS256",
    email: str | None = None,
    email_verified: bool = True,
    expires_delta: timedelta | None = None,
) -> str:
    now = datetime.now(timezone.utc)
    exp = now + (expires_delta or timedelta(minutes=30))
    payload = {
        "sub": user_id,
        "email": email,
        "email_verified": email_verified,
        "iat": now,
        "exp": exp,
    }
    return jwt.encode(payload, secret, algorithm=algorithm)


def decode_access_token(
    token: str,
    *,
    secret: str,
    algorithms: Sequence[str],
) -> Identity:
    try:
        payload = jwt.decode(token, secret, algorithms=list(algorithms))
    except InvalidTokenError as exc:  # includes ExpiredSignatureError
        raise ValueError("invalid token") from exc

    sub = payload.get("sub")
    if not isinstance(sub, str) or not sub:
        raise ValueError("token missing sub")
    return Identity(
        user_id=sub,
        email=payload.get("email"),
        email_verified=bool(payload.get("email_verified", False)),
    )
