"""Notehook Formatter - Renders the chat message text for comment events.

Three messages exist per comment:
  DM       : sent to the assignees and author of the commented item
  mention  : sent to users @mentioned in the comment body
  channel  : broadcast to every subscribed channel, includes the full body

All functions are pure; the caller resolves the sender's profile URL.
Markdown links are rendered in the `[text](url)` form chat clients expect.
"""

# Local
from .models import CommentEvent


def _ref(path_with_namespace: str, iid) -> str:
    return f"{path_with_namespace}#{iid}"


def format_dm_message(event: CommentEvent, sender_url: str) -> str:
    return (
        f"[{event.sender}]({sender_url}) commented on your {event.noun} "
        f"[{_ref(event.path_with_namespace, event.iid)}]({event.url})"
    )


def format_channel_message(event: CommentEvent, sender_url: str) -> str:
    return (
        f"[{event.path_with_namespace}]({event.web_url}) "
        f"New comment by [{event.sender}]({sender_url}) "
        f"on [#{event.iid} {event.title}]({event.url}):\n\n{event.body}"
    )


def format_mention_message(
    sender: str,
    sender_url: str,
    path_with_namespace: str,
    iid: str,
    url: str,
    body: str,
) -> str:
    return (
        f"[{sender}]({sender_url}) mentioned you on "
        f"[{_ref(path_with_namespace, iid)}]({url}):\n>{body}"
    )
