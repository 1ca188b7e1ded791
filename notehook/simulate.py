"""Fake GitLab note webhook payloads for `notehook simulate`.

Each factory takes the commenting username and a target username; the
target is @mentioned by the `issue-mention` event.
"""

PROJECT = {
    "id": 1,
    "name": "webhook",
    "path_with_namespace": "sim-group/webhook",
    "web_url": "http://localhost/sim-group/webhook",
    "visibility": "public",
    "visibility_level": 20,
}

# Simulated events reference the target by this GitLab user id; a server
# pointed at a real GitLab resolves it to whatever user owns the id.
TARGET_USER_ID = 2
AUTHOR_USER_ID = 3


def _note(noteable_type: str, path: str, iid: int, note: str, note_id: int) -> dict:
    return {
        "id": note_id,
        "note": note,
        "noteable_type": noteable_type,
        "url": f"{PROJECT['web_url']}/{path}/{iid}#note_{note_id}",
    }


def issue_comment(user: str, target: str, note: str = "Simulated comment.", labels=None) -> dict:
    return {
        "object_kind": "note",
        "event_type": "note",
        "user": {"username": user, "name": user},
        "project": PROJECT,
        "object_attributes": _note("Issue", "-/issues", 1, note, 997),
        "issue": {
            "iid": 1,
            "title": "Simulated issue",
            "author_id": AUTHOR_USER_ID,
            "assignee_ids": [TARGET_USER_ID],
            "labels": [{"title": title} for title in (labels or [])],
        },
    }


def issue_mention(user: str, target: str) -> dict:
    return issue_comment(user, target, note=f"@{target} could you have a look?")


def issue_labelled(user: str, target: str) -> dict:
    return issue_comment(user, target, labels=["bug"])


def mr_comment(user: str, target: str) -> dict:
    return {
        "object_kind": "note",
        "event_type": "note",
        "user": {"username": user, "name": user},
        "project": PROJECT,
        "object_attributes": _note(
            "MergeRequest", "-/merge_requests", 6, "Simulated review comment.", 999
        ),
        "merge_request": {
            "iid": 6,
            "title": "Simulated merge request",
            "author_id": AUTHOR_USER_ID,
            "assignee_id": TARGET_USER_ID,
            "labels": [],
        },
    }


EVENTS = {
    "issue-comment": (issue_comment, "Comment on an issue assigned to the target"),
    "issue-mention": (issue_mention, "Issue comment that @mentions the target"),
    "issue-labelled": (issue_labelled, "Comment on an issue labelled 'bug'"),
    "mr-comment": (mr_comment, "Comment on a merge request assigned to the target"),
}
