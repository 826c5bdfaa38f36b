"""Outbound email. Delivery is not wired up; messages are only logged."""
import logging

from galleria.config import settings

logger = logging.getLogger(__name__)


async def send_subscription_confirmation(
    email: str, gallery_name: str, confirm_url: str, unsubscribe_url: str
) -> None:
    logger.info(
        "Confirmation email from %s to %s for '%s' (not delivered): confirm=%s unsubscribe=%s",
        settings.email_from, email, gallery_name, confirm_url, unsubscribe_url,
    )
