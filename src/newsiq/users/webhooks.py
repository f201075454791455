"""Outbound workflow webhooks for user lifecycle events."""

from __future__ import annotations

import uuid

import httpx
import structlog

from newsiq.config import get_settings

logger = structlog.get_logger()


async def send_login_webhook(user_id: uuid.UUID, client: httpx.AsyncClient | None = None) -> bool:
    """Notify the workflow service that a user signed in.

    The user id travels as a query parameter with an empty JSON body.
    Failures are logged and never raised. Returns True on a 2xx response.
    """
    settings = get_settings()
    if not settings.login_webhook_url:
        logger.debug("login_webhook_disabled")
        return False

    owns_client = client is None
    if client is None:
        client = httpx.AsyncClient(timeout=settings.webhook_timeout_seconds)

    try:
        response = await client.post(
            settings.login_webhook_url,
            params={"userId": str(user_id)},
            json={},
        )
    except httpx.HTTPError as e:
        logger.warning("login_webhook_error", user_id=str(user_id), error=str(e))
        return False
    finally:
        if owns_client:
            await client.aclose()

    if response.is_success:
        logger.info("login_webhook_sent", user_id=str(user_id))
        return True

    logger.warning("login_webhook_failed", user_id=str(user_id), status=response.status_code)
    return False
