"""
Trusted user identity for requests.

Token issuance lives outside this service; here we only verify an HS256
bearer token (or the `token` cookie) and hand the `sub` claim to services.
"""
from __future__ import annotations

from typing import Optional

import jwt
from fastapi import Request

from atelier_api.core.config import get_settings
from atelier_api.core.errors import Unauthenticated


def _token_from_request(request: Request) -> Optional[str]:
    header = request.headers.get("Authorization") or ""
    if header.lower().startswith("bearer "):
        tok = header[len("bearer ") :].strip()
        if tok:
            return tok
    cookie = request.cookies.get("token")
    return cookie or None


def decode_user_id(token: str, secret: str) -> str:
    try:
        claims = jwt.decode(token, secret, algorithms=["HS256"])
    except jwt.PyJWTError as e:
        raise Unauthenticated("UNAUTHENTICATED", "invalid token") from e
    sub = claims.get("sub")
    if sub is None or str(sub).strip() == "":
        raise Unauthenticated("UNAUTHENTICATED", "token has no subject")
    return str(sub)


def get_current_user_id(request: Request) -> str:
    token = _token_from_request(request)
    if not token:
        raise Unauthenticated("UNAUTHENTICATED", "missing bearer token")
    return decode_user_id(token, get_settings().jwt_secret)
