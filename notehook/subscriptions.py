"""Notehook Subscriptions - Feature descriptors and channel fan-out filtering.

A subscription ties a chat channel to a repository (or a whole namespace)
and carries a comma-separated feature descriptor, e.g.

    issue_comments,merge_request_comments,label:"bug",label:"needs review"

A channel receives a comment broadcast when:
  1. The descriptor contains the capability for the event kind
     (issue_comments / merge_request_comments), AND
  2. Either no label filter is given, or at least one filtered label is
     present on the commented item (exact, case-sensitive match).

A `label:` token without a quoted name makes the subscription unusable for
the event; a warning is reported and the subscription is skipped.
"""

# Standard
import logging
import re

# Remote
from pydantic import BaseModel

# Local
from .models import CommentEvent

logger = logging.getLogger(__name__)

LABEL_QUOTE_WARNING = 'each label must be wrapped in quotes, e.g. label:"bug"'

VALID_FEATURES = (
    "issues",
    "merges",
    "pushes",
    "issue_comments",
    "merge_request_comments",
    "pipeline",
    "tag",
    "pull_reviews",
    "jobs",
    "deployments",
)

# A quoted label may itself contain commas, so it is matched before splitting
_TOKEN_RE = re.compile(r'label:"[^"]*"|[^,]+')
_LABEL_RE = re.compile(r'^label:"([^"]+)"$')


def split_features(features: str) -> list[str]:
    return [t.strip() for t in _TOKEN_RE.findall(features or "") if t.strip()]


class Subscription(BaseModel):
    channel_id: str
    creator_id: str = ""
    features: str = ""
    repository: str = ""

    def tokens(self) -> list[str]:
        return split_features(self.features)

    def has_feature(self, feature: str) -> bool:
        return feature in self.tokens()

    def issue_comments(self) -> bool:
        return self.has_feature("issue_comments")

    def merge_request_comments(self) -> bool:
        return self.has_feature("merge_request_comments")

    def labels(self) -> tuple[list[str], bool]:
        """Return (label names, malformed) for the descriptor's label filters."""
        names: list[str] = []
        malformed = False
        for token in self.tokens():
            if not token.startswith("label:"):
                continue
            m = _LABEL_RE.match(token)
            if m:
                names.append(m.group(1))
            else:
                malformed = True
        return names, malformed


def validate_features(features: str) -> list[str]:
    """Return a list of problems with a feature descriptor (empty if valid)."""
    problems: list[str] = []
    tokens = split_features(features)
    if not tokens:
        problems.append("at least one feature is required")

    for token in tokens:
        if token.startswith("label:"):
            if not _LABEL_RE.match(token) and LABEL_QUOTE_WARNING not in problems:
                problems.append(LABEL_QUOTE_WARNING)
        elif token not in VALID_FEATURES:
            problems.append(f"unknown feature: {token}")
    return problems


def normalize_namespaced_project(path_with_namespace: str) -> tuple[str, str]:
    """Split "group/sub/project" into ("group/sub", "project")."""
    namespace, _, project = path_with_namespace.rpartition("/")
    return namespace, project


def any_event_label_in_sub(sub: Subscription, labels: list[str]) -> tuple[bool, str]:
    """Evaluate a subscription's label filter against the event labels.
    Returns (matches, warning); warning is "" unless the filter is malformed.
    """
    names, malformed = sub.labels()
    if malformed:
        return False, LABEL_QUOTE_WARNING
    if not names:
        return True, ""
    return any(name in labels for name in names), ""


def filter_channels(
    event: CommentEvent,
    subs: list[Subscription],
) -> tuple[list[str], list[str]]:
    """Return (channel ids, warnings) for the subscriptions matching an event.
    Channel order follows subscription order; nothing is collapsed here.
    """
    channels: list[str] = []
    warnings: list[str] = []

    for sub in subs:
        if not sub.has_feature(event.capability):
            continue

        ok, warning = any_event_label_in_sub(sub, event.labels)
        if not ok:
            if warning:
                logger.warning(
                    f"Subscription of channel {sub.channel_id} on {sub.repository}: {warning}"
                )
                warnings.append(warning)
            continue

        channels.append(sub.channel_id)

    return channels, warnings
