"""
Notehook - Delivery log endpoints.
"""

from typing import Optional

from fastapi import APIRouter

from ..database import get_logs

router = APIRouter()


@router.get("/logs")
async def get_notification_logs(
    limit: int = 50,
    channel_id: Optional[str] = None,
    username: Optional[str] = None,
):
    """View recent notification delivery logs."""
    return await get_logs(limit=limit, channel_id=channel_id, username=username)
