"""
Notehook - Webhook receiver endpoint for GitLab note events.

GitLab sends webhooks as POST requests with JSON bodies and the configured
secret in the X-Gitlab-Token header. Handled events:
  - Note Hook on an issue          -> issue comment notifications
  - Note Hook on a merge request   -> merge request comment notifications
Every other event is accepted and ignored.
"""

import asyncio
import hmac
import logging
from typing import Optional

from fastapi import APIRouter, Header, HTTPException, Request

from ..config import settings
from ..database import JsonSubscriptionStore
from ..delivery import deliver
from ..dispatcher import NoteHandler
from ..events import EventParseError, parse_note_event
from ..gitlab_client import GitLabUserDirectory

logger = logging.getLogger(__name__)
router = APIRouter()

_handler: Optional[NoteHandler] = None

# Strong references to in-flight dispatches; the loop only keeps weak ones
_background_tasks: set[asyncio.Task] = set()


def get_handler() -> NoteHandler:
    global _handler
    if _handler is None:
        _handler = NoteHandler(GitLabUserDirectory(), JsonSubscriptionStore())
    return _handler


def _verify_token(token: Optional[str]) -> bool:
    """Validate the GitLab secret token if configured."""
    if not settings.GITLAB_WEBHOOK_SECRET:
        return True
    if not token:
        return False
    return hmac.compare_digest(settings.GITLAB_WEBHOOK_SECRET, token)


@router.post("/gitlab")
async def receive_webhook(
    request: Request,
    x_gitlab_token: Optional[str] = Header(None),
    x_gitlab_event: Optional[str] = Header(None),
):
    """
    Receive GitLab webhook events.
    Configure the project or group webhook to POST to: {SERVER_URL}/webhooks/gitlab
    """
    if not _verify_token(x_gitlab_token):
        logger.warning("Webhook received with invalid token")
        raise HTTPException(status_code=401, detail="Invalid webhook token")

    payload = await request.json()
    object_kind = payload.get("object_kind", "")

    if not object_kind:
        raise HTTPException(status_code=400, detail="Missing object_kind")

    logger.info(f"Received GitLab webhook: {x_gitlab_event or object_kind}")

    # Dispatch in the background so GitLab gets a fast 200 response
    task = asyncio.create_task(_process(payload))
    _background_tasks.add(task)
    task.add_done_callback(_background_tasks.discard)

    return {"status": "accepted", "event": object_kind}


async def _process(payload: dict):
    try:
        event = parse_note_event(payload)
    except EventParseError as e:
        logger.warning(f"Skipping malformed note event: {e}")
        return
    except Exception:
        logger.exception("Failed to parse note event")
        return

    if event is None:
        logger.debug(f"Event {payload.get('object_kind')} produced no notification")
        return

    try:
        records, warnings = await get_handler().handle(event)
    except Exception:
        logger.exception(
            f"Dispatch failed for {event.path_with_namespace}#{event.iid}"
        )
        return

    for warning in warnings:
        logger.warning(f"{event.path_with_namespace}: {warning}")

    await deliver(records)
