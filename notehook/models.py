"""Notehook data model.

CommentEvent is the read-only input of a dispatch; NotificationRecord is the
unit handed to the delivery layer. Both live only for one dispatch call.
"""

# Standard
from enum import Enum

# Remote
from pydantic import BaseModel


class EventKind(str, Enum):
    ISSUE = "issue"
    MERGE_REQUEST = "merge_request"


class Visibility(str, Enum):
    PUBLIC = "public"
    INTERNAL = "internal"
    PRIVATE = "private"


# Subscription feature that enables fan-out for each event kind
CAPABILITIES = {
    EventKind.ISSUE: "issue_comments",
    EventKind.MERGE_REQUEST: "merge_request_comments",
}

_NOUNS = {
    EventKind.ISSUE: "issue",
    EventKind.MERGE_REQUEST: "merge request",
}


class CommentEvent(BaseModel):
    kind: EventKind
    path_with_namespace: str  # e.g. "group/subgroup/project"
    web_url: str = ""
    visibility: Visibility = Visibility.PRIVATE
    iid: int
    title: str = ""
    author_id: int = 0
    assignee_ids: list[int] = []  # merge requests carry at most one
    labels: list[str] = []
    sender: str  # username of the comment author
    body: str = ""
    url: str = ""  # permalink to the comment

    model_config = {"frozen": True}

    @property
    def is_public(self) -> bool:
        return self.visibility == Visibility.PUBLIC

    @property
    def capability(self) -> str:
        return CAPABILITIES[self.kind]

    @property
    def noun(self) -> str:
        return _NOUNS[self.kind]


class NotificationRecord(BaseModel):
    from_user: str
    message: str
    to_users: list[str] = []
    to_channels: list[str] = []
