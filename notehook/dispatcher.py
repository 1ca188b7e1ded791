"""Notehook Dispatcher - Turns a comment event into notification records.

For every issue or merge request comment:
  1. A DM record goes to the assignees and the author of the commented item.
  2. A second DM record goes to users @mentioned in the comment, if any.
  3. One channel record goes to every subscribed channel whose feature
     flags and label filters match the event.
Records are then merged by (sender, message) and cleaned:
  - empty usernames (unknown ids) and the sender themselves are dropped,
  - each user and channel appears once per record,
  - records left without any recipient are dropped.

DM records always precede the channel record. Failures of the user directory
or subscription store propagate unchanged; malformed label filters only
produce warnings.
"""

# Standard
import logging
from typing import Protocol

# Local
from .formatter import format_channel_message, format_dm_message
from .mentions import detect_mention
from .models import CommentEvent, EventKind, NotificationRecord
from .subscriptions import Subscription, filter_channels, normalize_namespaced_project

logger = logging.getLogger(__name__)


class UserDirectory(Protocol):
    async def get_username_by_id(self, user_id: int) -> str:
        ...

    def get_user_url(self, username: str) -> str:
        ...


class SubscriptionStore(Protocol):
    async def get_subscribed_channels_for_project(
        self,
        namespace: str,
        project: str,
        is_public: bool,
    ) -> list[Subscription]:
        ...


def _unique(items: list[str], exclude: str | None = None) -> list[str]:
    seen: list[str] = []
    for item in items:
        if not item or item == exclude or item in seen:
            continue
        seen.append(item)
    return seen


def clean_records(records: list[NotificationRecord]) -> list[NotificationRecord]:
    """Merge records sharing sender and message, then tidy recipient lists.
    The merged record keeps the position of its first occurrence.
    """
    merged: list[NotificationRecord] = []
    for record in records:
        for existing in merged:
            if existing.message == record.message and existing.from_user == record.from_user:
                existing.to_users.extend(record.to_users)
                existing.to_channels.extend(record.to_channels)
                break
        else:
            merged.append(record.model_copy(deep=True))

    res: list[NotificationRecord] = []
    for record in merged:
        record.to_users = _unique(record.to_users, exclude=record.from_user)
        record.to_channels = _unique(record.to_channels)
        if record.to_users or record.to_channels:
            res.append(record)
    return res


class NoteHandler:
    """Builds notification records for comment events.

    The user directory and subscription store are injected so the handler
    holds no other state; one instance can serve concurrent dispatches.
    """

    def __init__(self, directory: UserDirectory, store: SubscriptionStore):
        self.directory = directory
        self.store = store

    async def handle(
        self, event: CommentEvent
    ) -> tuple[list[NotificationRecord], list[str]]:
        if event.kind == EventKind.ISSUE:
            return await self.handle_issue_comment(event)
        return await self.handle_merge_request_comment(event)

    async def handle_issue_comment(
        self, event: CommentEvent
    ) -> tuple[list[NotificationRecord], list[str]]:
        return await self._handle_comment(event)

    async def handle_merge_request_comment(
        self, event: CommentEvent
    ) -> tuple[list[NotificationRecord], list[str]]:
        return await self._handle_comment(event)

    async def _handle_comment(
        self, event: CommentEvent
    ) -> tuple[list[NotificationRecord], list[str]]:
        records = await self._dm_records(event)
        channel_records, warnings = await self._channel_records(event)
        return clean_records(records + channel_records), warnings

    async def resolve_recipients(self, event: CommentEvent) -> list[str]:
        """Assignee usernames in their original order, followed by the author."""
        to_users = [
            await self.directory.get_username_by_id(assignee_id)
            for assignee_id in event.assignee_ids
        ]
        to_users.append(await self.directory.get_username_by_id(event.author_id))
        return to_users

    async def _dm_records(self, event: CommentEvent) -> list[NotificationRecord]:
        sender_url = self.directory.get_user_url(event.sender)
        records = [
            NotificationRecord(
                from_user=event.sender,
                message=format_dm_message(event, sender_url),
                to_users=await self.resolve_recipients(event),
                to_channels=[],
            ),
        ]

        mention = detect_mention(
            self.directory,
            sender=event.sender,
            path_with_namespace=event.path_with_namespace,
            iid=str(event.iid),
            url=event.url,
            body=event.body,
        )
        if mention:
            records.append(mention)
        return records

    async def _channel_records(
        self, event: CommentEvent
    ) -> tuple[list[NotificationRecord], list[str]]:
        namespace, project = normalize_namespaced_project(event.path_with_namespace)
        subs = await self.store.get_subscribed_channels_for_project(
            namespace,
            project,
            event.is_public,
        )
        to_channels, warnings = filter_channels(event, subs)
        if not to_channels:
            return [], warnings

        message = format_channel_message(
            event, self.directory.get_user_url(event.sender)
        )
        record = NotificationRecord(
            from_user=event.sender,
            message=message,
            to_users=[],
            to_channels=to_channels,
        )
        return [record], warnings
