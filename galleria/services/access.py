"""Authorization gate for gallery-protected resources.

Every photo listing, export and image request passes through ``authorize``.
The decision is a tagged value; the HTTP boundary maps it to a status code.
Order of checks:

1. unknown or soft-deleted gallery -> ``NOT_FOUND``
2. expired gallery -> ``EXPIRED`` (before any credential, nobody gets in)
3. public gallery -> ``ALLOW`` without looking at tokens
4. ``VIEWER_OR_ADMIN`` mode and a valid admin session -> ``ALLOW``
5. missing or invalid viewer token -> ``UNAUTHENTICATED``
6. viewer token minted for another gallery -> ``FORBIDDEN``
7. otherwise ``ALLOW``
"""
import enum
import logging
from dataclasses import dataclass, field

from sqlalchemy.ext.asyncio import AsyncSession

from galleria.models.gallery import Gallery
from galleria.models.user import AdminUser
from galleria.services.tokens import ViewerClaims, verify_admin_token, verify_viewer_token

logger = logging.getLogger(__name__)


class GateMode(str, enum.Enum):
    VIEWER = "viewer"
    VIEWER_OR_ADMIN = "viewer_or_admin"


class Outcome(str, enum.Enum):
    ALLOW = "allow"
    NOT_FOUND = "not_found"
    EXPIRED = "expired"
    UNAUTHENTICATED = "unauthenticated"
    FORBIDDEN = "forbidden"


@dataclass(frozen=True)
class AccessDecision:
    outcome: Outcome
    gallery: Gallery | None = None
    reason: str = ""

    @property
    def allowed(self) -> bool:
        return self.outcome is Outcome.ALLOW


_UNSET = object()


@dataclass
class RequestContext:
    """Per-request auth state, built fresh for every request."""

    db: AsyncSession
    now: int
    viewer_token: str | None = None
    admin_token: str | None = None
    _viewer: object = field(default=_UNSET, repr=False)
    _admin: object = field(default=_UNSET, repr=False)

    def viewer_claims(self) -> ViewerClaims | None:
        if self._viewer is _UNSET:
            self._viewer = verify_viewer_token(self.viewer_token)
        return self._viewer

    async def admin_user(self) -> AdminUser | None:
        if self._admin is _UNSET:
            self._admin = None
            claims = verify_admin_token(self.admin_token)
            if claims is not None:
                self._admin = await self.db.get(AdminUser, claims.user_id)
        return self._admin


async def authorize(ctx: RequestContext, gallery: Gallery | None, mode: GateMode) -> AccessDecision:
    if gallery is None or gallery.is_deleted:
        return AccessDecision(Outcome.NOT_FOUND, reason="Gallery not found")

    if gallery.is_expired(ctx.now):
        return AccessDecision(Outcome.EXPIRED, gallery, "This gallery has expired")

    if gallery.is_public:
        return AccessDecision(Outcome.ALLOW, gallery)

    if mode is GateMode.VIEWER_OR_ADMIN and await ctx.admin_user() is not None:
        return AccessDecision(Outcome.ALLOW, gallery)

    if not ctx.viewer_token:
        return AccessDecision(Outcome.UNAUTHENTICATED, gallery, "Unauthorized")

    claims = ctx.viewer_claims()
    if claims is None:
        return AccessDecision(Outcome.UNAUTHENTICATED, gallery, "Invalid or expired token")

    if claims.gallery_id != gallery.id:
        logger.debug("Viewer token for gallery %s used on gallery %s", claims.gallery_id, gallery.id)
        return AccessDecision(Outcome.FORBIDDEN, gallery, "Forbidden")

    return AccessDecision(Outcome.ALLOW, gallery)
