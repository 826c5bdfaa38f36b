import logging
import secrets
import uuid
from urllib.parse import urlencode

from fastapi import APIRouter, Depends
from sqlalchemy import delete, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from galleria.config import settings
from galleria.database import get_db
from galleria.models.subscriber import Subscriber
from galleria.schemas.subscriber import SubscribeRequest
from galleria.services import directory
from galleria.services.mailer import send_subscription_confirmation
from galleria.services.tokens import (
    CONFIRM_PURPOSE,
    UNSUBSCRIBE_PURPOSE,
    issue_subscription_token,
    verify_subscription_token,
)
from galleria.utils.clock import unix_now
from galleria.utils.exceptions import InvalidRequestError, NotFoundError
from galleria.utils.response import success_response

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/subscribe", tags=["subscribe"])


def _link(path: str, token: str) -> str:
    base = settings.public_base_url.rstrip("/")
    return f"{base}{settings.api_prefix}/subscribe/{path}?{urlencode({'token': token})}"


@router.post("/galleries/{slug}")
async def subscribe(slug: str, payload: SubscribeRequest, db: AsyncSession = Depends(get_db)):
    gallery = await directory.get_gallery_by_slug(db, slug)
    if gallery is None or gallery.is_deleted:
        raise NotFoundError("Gallery not found")

    existing = await db.execute(
        select(Subscriber.id).where(Subscriber.gallery_id == gallery.id, Subscriber.email == payload.email)
    )
    if existing.first() is None:
        subscriber = Subscriber(
            id=str(uuid.uuid4()),
            gallery_id=gallery.id,
            email=payload.email,
            confirmation_token=secrets.token_urlsafe(32),
            verified=False,
            created_at=unix_now(),
        )
        db.add(subscriber)
        try:
            await db.commit()
        except IntegrityError:
            # concurrent subscribe for the same address won the insert
            await db.rollback()
        else:
            logger.info("New subscriber for gallery %s", gallery.id)
            await send_subscription_confirmation(
                payload.email,
                gallery.name,
                _link("confirm", issue_subscription_token(subscriber.confirmation_token, CONFIRM_PURPOSE)),
                _link("unsubscribe", issue_subscription_token(subscriber.confirmation_token, UNSUBSCRIBE_PURPOSE)),
            )

    return success_response(message="Check your email to confirm subscription")


@router.get("/confirm")
async def confirm(token: str = "", db: AsyncSession = Depends(get_db)):
    confirmation_token = verify_subscription_token(token, CONFIRM_PURPOSE)
    if confirmation_token is None:
        raise InvalidRequestError("Invalid or expired token")

    result = await db.execute(
        update(Subscriber)
        .where(Subscriber.confirmation_token == confirmation_token, Subscriber.verified.is_(False))
        .values(verified=True)
    )
    await db.commit()
    if result.rowcount == 0:
        raise InvalidRequestError("Invalid or already confirmed token")

    return success_response(message="Subscription confirmed")


@router.get("/unsubscribe")
async def unsubscribe(token: str = "", db: AsyncSession = Depends(get_db)):
    confirmation_token = verify_subscription_token(token, UNSUBSCRIBE_PURPOSE)
    if confirmation_token is None:
        raise InvalidRequestError("Invalid token")

    await db.execute(delete(Subscriber).where(Subscriber.confirmation_token == confirmation_token))
    await db.commit()
    return success_response(message="Unsubscribed successfully")
