"""Notehook Mentions - Detects @username references in comment bodies.

A mention produces one extra DM-shaped record addressed to every mentioned
user. It is independent of the assignee/author DM: a mentioned assignee is
collected by both, and the overlap is resolved later by the dispatcher's
record cleaning.
"""

# Standard
import logging
import re

# Local
from .formatter import format_mention_message
from .models import NotificationRecord

logger = logging.getLogger(__name__)

# `@` must not be glued to a word, path or email local part
_MENTION_RE = re.compile(r"(?<![\w.\-/@])@([A-Za-z0-9_][A-Za-z0-9_.\-]*)")
_FENCED_CODE_RE = re.compile(r"```.*?```", re.DOTALL)
_INLINE_CODE_RE = re.compile(r"`[^`\n]*`")

# GitLab special mentions that do not address a single user
_IGNORED = {"all"}


def parse_usernames(text: str) -> list[str]:
    """Return the usernames mentioned in `text`, in order of first appearance.
    Mentions inside inline code or fenced code blocks are ignored.
    """
    if not text:
        return []

    text = _FENCED_CODE_RE.sub(" ", text)
    text = _INLINE_CODE_RE.sub(" ", text)

    usernames: list[str] = []
    for match in _MENTION_RE.finditer(text):
        username = match.group(1).rstrip(".-")
        if not username or username in _IGNORED or username in usernames:
            continue
        usernames.append(username)
    return usernames


def detect_mention(
    directory,
    sender: str,
    path_with_namespace: str,
    iid: str,
    url: str,
    body: str,
) -> NotificationRecord | None:
    """Build the mention record for a comment, or None if nobody is mentioned.
    The sender mentioning themselves does not count.
    """
    mentioned = [u for u in parse_usernames(body) if u != sender]
    if not mentioned:
        return None

    logger.debug(f"{sender} mentioned {', '.join(mentioned)} on {path_with_namespace}#{iid}")
    message = format_mention_message(
        sender,
        directory.get_user_url(sender),
        path_with_namespace,
        iid,
        url,
        body,
    )
    return NotificationRecord(
        from_user=sender,
        message=message,
        to_users=mentioned,
        to_channels=[],
    )
