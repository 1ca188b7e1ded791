"""Notehook Delivery - Posts notification records into chat.

Uses a Mattermost-compatible incoming webhook: one POST per recipient,
addressed with `"channel": "@username"` for direct messages and
`"channel": "<channel id>"` for channel broadcasts. Every attempt is
written to the delivery log. Failed sends are not retried.
"""

# Standard
import asyncio
import logging

# Remote
import httpx

# Local
from .config import settings
from .database import append_log, make_log_entry
from .models import NotificationRecord

logger = logging.getLogger(__name__)


async def deliver(records: list[NotificationRecord]):
    """Send every record to each of its users and channels."""
    if not settings.CHAT_WEBHOOK_URL:
        for record in records:
            logger.info(
                f"No CHAT_WEBHOOK_URL configured, skipping message from {record.from_user} "
                f"to users={record.to_users} channels={record.to_channels}"
            )
        return

    tasks = []
    for record in records:
        for username in record.to_users:
            tasks.append(_send(record, f"@{username}", username=username))
        for channel_id in record.to_channels:
            tasks.append(_send(record, channel_id, channel_id=channel_id))
    await asyncio.gather(*tasks, return_exceptions=True)


async def _send(
    record: NotificationRecord,
    target: str,
    username: str | None = None,
    channel_id: str | None = None,
):
    success = True
    error_msg = None
    body = {
        "channel": target,
        "username": settings.CHAT_BOT_USERNAME,
        "text": record.message,
    }
    try:
        async with httpx.AsyncClient(timeout=5.0) as http:
            resp = await http.post(settings.CHAT_WEBHOOK_URL, json=body)
            resp.raise_for_status()
        logger.info(f"Delivered message from {record.from_user} to {target}")
    except Exception as e:
        success = False
        error_msg = str(e)
        logger.warning(f"Failed to deliver message to {target}: {repr(e)}")

    await append_log(
        make_log_entry(
            from_user=record.from_user,
            message=record.message,
            success=success,
            error=error_msg,
            channel_id=channel_id,
            username=username,
        ),
    )
