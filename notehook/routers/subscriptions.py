# Standard
import logging

# Remote
from fastapi import APIRouter, HTTPException
from pydantic import BaseModel

# Local
from ..database import (
    delete_subscription,
    get_all_subscriptions,
    make_subscription,
    save_subscription,
)
from ..subscriptions import validate_features

logger = logging.getLogger(__name__)
router = APIRouter()


class SubscribeRequest(BaseModel):
    channel_id: str  # chat channel that receives the broadcasts
    creator_id: str = ""  # chat user who created the subscription
    repository: str  # "group/project" or a whole namespace, e.g. "group"
    features: str = "merges,issues,tag"  # comma-separated, may include label:"name"


class SubscriptionResponse(BaseModel):
    id: str
    channel_id: str
    creator_id: str
    repository: str
    features: str


def _to_response(sub: dict) -> SubscriptionResponse:
    return SubscriptionResponse(
        id=sub["id"],
        channel_id=sub["channel_id"],
        creator_id=sub.get("creator_id", ""),
        repository=sub["repository"],
        features=sub.get("features", ""),
    )


@router.post("/", response_model=SubscriptionResponse)
async def subscribe(body: SubscribeRequest):
    """
    Subscribe a channel to a repository.

    Subscribing the same channel to the same repository again replaces the
    feature descriptor of the existing subscription.
    """
    repository = body.repository.strip("/")
    if not repository:
        raise HTTPException(status_code=400, detail=["repository is required"])

    problems = validate_features(body.features)
    if problems:
        raise HTTPException(status_code=400, detail=problems)

    for existing in await get_all_subscriptions():
        if existing["channel_id"] == body.channel_id and existing["repository"] == repository:
            existing["features"] = body.features
            await save_subscription(existing)
            logger.info(f"Updated subscription: {body.channel_id} -> {repository}")
            return _to_response(existing)

    sub = make_subscription(
        channel_id=body.channel_id,
        creator_id=body.creator_id,
        features=body.features,
        repository=repository,
    )
    await save_subscription(sub)
    logger.info(f"New subscription: {body.channel_id} -> {repository} ({body.features})")
    return _to_response(sub)


@router.get("/", response_model=list[SubscriptionResponse])
async def list_subscriptions(channel_id: str | None = None):
    subs = await get_all_subscriptions()
    if channel_id:
        subs = [s for s in subs if s["channel_id"] == channel_id]
    return [_to_response(s) for s in subs]


@router.delete("/{subscription_id}")
async def unsubscribe(subscription_id: str):
    deleted = await delete_subscription(subscription_id)
    if not deleted:
        raise HTTPException(status_code=404, detail="Subscription not found")
    logger.info(f"Deleted subscription {subscription_id}")
    return {"status": "deleted", "id": subscription_id}
