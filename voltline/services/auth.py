from __future__ import annotations

from dataclasses import dataclass
from typing import Any

import jwt
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from voltline.core.config import settings


bearer = HTTPBearer(auto_error=False)


@dataclass(slots=True)
class AuthUser:
    subject: str
    email: str
    display_name: str
    roles: list[str]


def _decode_token(token: str) -> dict[str, Any]:
    kwargs: dict[str, Any] = {
        "algorithms": [settings.jwt_algorithm],
        "leeway": settings.jwt_exp_leeway_seconds,
    }

    if settings.jwt_audience:
        kwargs["audience"] = settings.jwt_audience
    else:
        kwargs["options"] = {"verify_aud": False}

    if settings.jwt_issuer:
        kwargs["issuer"] = settings.jwt_issuer

    try:
        payload = jwt.decode(token, settings.jwt_secret, **kwargs)
    except jwt.PyJWTError as exc:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token") from exc

    return payload


def _parse_payload(payload: dict[str, Any]) -> AuthUser:
    subject = str(payload.get("sub") or payload.get("email") or "").strip()
    if not subject:
        raise HTTPException(status_code=401, detail="Invalid sub claim")

    email = str(payload.get("email") or "").strip().lower()
    display_name = str(payload.get("name") or payload.get("display_name") or email or subject)
    roles = payload.get("roles")
    if roles is None and payload.get("role"):
        roles = [payload["role"]]

    if not isinstance(roles, list):
        roles = []

    return AuthUser(
        subject=subject,
        email=email,
        display_name=display_name,
        roles=[str(r).strip().lower() for r in roles],
    )


def create_access_token(subject: str, *, roles: list[str], email: str = "", name: str = "") -> str:
    claims: dict[str, Any] = {"sub": subject, "roles": roles}
    if email:
        claims["email"] = email
    if name:
        claims["name"] = name
    if settings.jwt_issuer:
        claims["iss"] = settings.jwt_issuer
    if settings.jwt_audience:
        claims["aud"] = settings.jwt_audience
    return jwt.encode(claims, settings.jwt_secret, algorithm=settings.jwt_algorithm)


async def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer),
) -> AuthUser:
    if credentials is None:
        raise HTTPException(status_code=401, detail="Missing bearer token")

    payload = _decode_token(credentials.credentials)
    return _parse_payload(payload)


def require_role(user: AuthUser, allowed: set[str]) -> None:
    if not allowed.intersection(set(user.roles)):
        raise HTTPException(status_code=403, detail="Forbidden")


async def get_current_admin(current_user: AuthUser = Depends(get_current_user)) -> AuthUser:
    require_role(current_user, settings.admin_role_set)
    return current_user
