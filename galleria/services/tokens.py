"""Signed tokens for viewers, admin sessions and subscription links.

Every token is an HS256 JWT signed with ``settings.jwt_secret``. Verification
is stateless: signature, subject and expiry. Nothing is revoked server-side;
a leaked viewer token stays valid until it expires (24h, one gallery).
"""
import logging
from dataclasses import dataclass

from fastapi import Response
from jose import JWTError, jwt

from galleria.config import settings
from galleria.utils.clock import unix_now

logger = logging.getLogger(__name__)

ALGORITHM = "HS256"

VIEWER_COOKIE = "viewer_token"
ADMIN_COOKIE = "admin_session"

VIEWER_SUBJECT = "viewer"
ADMIN_SUBJECT = "admin"
SUBSCRIPTION_SUBJECT = "subscription"

CONFIRM_PURPOSE = "confirm"
UNSUBSCRIBE_PURPOSE = "unsubscribe"
CONFIRM_TOKEN_TTL_SECONDS = 60 * 60 * 24 * 7


@dataclass(frozen=True)
class ViewerClaims:
    gallery_id: str
    expires_at: int


@dataclass(frozen=True)
class AdminClaims:
    user_id: str
    expires_at: int


def _encode(claims: dict) -> str:
    return jwt.encode(claims, settings.jwt_secret, algorithm=ALGORITHM)


def _decode(token: str, subject: str) -> dict | None:
    if not token:
        return None
    try:
        payload = jwt.decode(token, settings.jwt_secret, algorithms=[ALGORITHM])
    except JWTError as e:
        logger.debug("Rejected %s token: %s", subject, e)
        return None
    if payload.get("sub") != subject:
        return None
    exp = payload.get("exp")
    if exp is not None and (not isinstance(exp, int) or exp <= unix_now()):
        return None
    return payload


def issue_viewer_token(gallery_id: str, ttl_seconds: int | None = None) -> str:
    if ttl_seconds is None:
        ttl_seconds = settings.viewer_token_ttl_seconds
    return _encode({
        "sub": VIEWER_SUBJECT,
        "galleryId": gallery_id,
        "exp": unix_now() + ttl_seconds,
    })


def verify_viewer_token(token: str | None) -> ViewerClaims | None:
    """Return the claims of a valid viewer token, ``None`` otherwise."""
    payload = _decode(token or "", VIEWER_SUBJECT)
    if payload is None:
        return None
    gallery_id = payload.get("galleryId")
    exp = payload.get("exp")
    if not isinstance(gallery_id, str) or not gallery_id or not isinstance(exp, int):
        return None
    return ViewerClaims(gallery_id=gallery_id, expires_at=exp)


def issue_admin_token(user_id: str, ttl_seconds: int | None = None) -> str:
    if ttl_seconds is None:
        ttl_seconds = settings.admin_session_ttl_seconds
    return _encode({
        "sub": ADMIN_SUBJECT,
        "userId": user_id,
        "exp": unix_now() + ttl_seconds,
    })


def verify_admin_token(token: str | None) -> AdminClaims | None:
    payload = _decode(token or "", ADMIN_SUBJECT)
    if payload is None:
        return None
    user_id = payload.get("userId")
    exp = payload.get("exp")
    if not isinstance(user_id, str) or not user_id or not isinstance(exp, int):
        return None
    return AdminClaims(user_id=user_id, expires_at=exp)


def issue_subscription_token(confirmation_token: str, purpose: str) -> str:
    claims = {"sub": SUBSCRIPTION_SUBJECT, "purpose": purpose, "token": confirmation_token}
    # unsubscribe links have to keep working for as long as emails are kept
    if purpose == CONFIRM_PURPOSE:
        claims["exp"] = unix_now() + CONFIRM_TOKEN_TTL_SECONDS
    return _encode(claims)


def verify_subscription_token(token: str | None, purpose: str) -> str | None:
    """Return the subscriber's confirmation token carried by a signed link."""
    payload = _decode(token or "", SUBSCRIPTION_SUBJECT)
    if payload is None or payload.get("purpose") != purpose:
        return None
    confirmation_token = payload.get("token")
    if not isinstance(confirmation_token, str) or not confirmation_token:
        return None
    return confirmation_token


def set_viewer_cookie(response: Response, token: str) -> None:
    response.set_cookie(
        VIEWER_COOKIE,
        token,
        max_age=settings.viewer_token_ttl_seconds,
        path="/",
        httponly=True,
        samesite="lax",
        secure=settings.cookie_secure,
    )


def clear_viewer_cookie(response: Response) -> None:
    response.delete_cookie(VIEWER_COOKIE, path="/", httponly=True, samesite="lax", secure=settings.cookie_secure)


def set_admin_cookie(response: Response, token: str) -> None:
    response.set_cookie(
        ADMIN_COOKIE,
        token,
        max_age=settings.admin_session_ttl_seconds,
        path="/",
        httponly=True,
        samesite="lax",
        secure=settings.cookie_secure,
    )


def clear_admin_cookie(response: Response) -> None:
    response.delete_cookie(ADMIN_COOKIE, path="/", httponly=True, samesite="lax", secure=settings.cookie_secure)
