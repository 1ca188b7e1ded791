"""Notehook Events - Converts GitLab "Note Hook" payloads into CommentEvents.

Only comments on issues and merge requests are handled; notes on commits
and snippets produce no event.
"""

# Standard
import logging

# Remote
from pydantic import ValidationError

# Local
from .models import CommentEvent, EventKind, Visibility

logger = logging.getLogger(__name__)

# GitLab's numeric visibility levels, sent by older webhook payloads
_VISIBILITY_LEVELS = {
    0: Visibility.PRIVATE,
    10: Visibility.INTERNAL,
    20: Visibility.PUBLIC,
}

_NOTEABLE_TYPES = {
    "Issue": (EventKind.ISSUE, "issue"),
    "MergeRequest": (EventKind.MERGE_REQUEST, "merge_request"),
}


class EventParseError(ValueError):
    """The payload lacks the fields a comment event needs."""


def _visibility(project: dict) -> Visibility:
    raw = project.get("visibility")
    if raw in {v.value for v in Visibility}:
        return Visibility(raw)
    return _VISIBILITY_LEVELS.get(project.get("visibility_level"), Visibility.PRIVATE)


def _assignee_ids(item: dict, kind: EventKind) -> list[int]:
    # Merge requests have a single assignee
    ids = item.get("assignee_ids") if kind == EventKind.ISSUE else None
    if ids:
        return [i for i in ids if i]
    assignee_id = item.get("assignee_id")
    return [assignee_id] if assignee_id else []


def _labels(item: dict) -> list[str]:
    labels = []
    for label in item.get("labels") or []:
        title = label.get("title") if isinstance(label, dict) else label
        if title:
            labels.append(title)
    return labels


def parse_note_event(payload: dict) -> CommentEvent | None:
    """Parse a note webhook payload. Returns None for notes this service
    does not notify about; raises EventParseError for incomplete payloads.
    """
    if payload.get("object_kind") != "note":
        return None

    attributes = payload.get("object_attributes") or {}
    noteable_type = attributes.get("noteable_type", "")
    if noteable_type not in _NOTEABLE_TYPES:
        logger.debug(f"Ignoring note on {noteable_type or 'unknown'}")
        return None

    kind, item_key = _NOTEABLE_TYPES[noteable_type]
    item = payload.get(item_key) or {}
    project = payload.get("project") or {}
    user = payload.get("user") or {}

    path = project.get("path_with_namespace")
    iid = item.get("iid")
    sender = user.get("username")
    if not path or iid is None or not sender:
        raise EventParseError(
            f"{noteable_type} note is missing project path, iid or user"
        )

    try:
        return CommentEvent(
            kind=kind,
            path_with_namespace=path,
            web_url=project.get("web_url") or "",
            visibility=_visibility(project),
            iid=iid,
            title=item.get("title") or "",
            author_id=item.get("author_id") or 0,
            assignee_ids=_assignee_ids(item, kind),
            labels=_labels(item),
            sender=sender,
            body=attributes.get("note") or attributes.get("description") or "",
            url=attributes.get("url") or "",
        )
    except ValidationError as e:
        raise EventParseError(f"Invalid {noteable_type} note: {e}") from e
