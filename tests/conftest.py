# Standard
import copy
import logging
import logging.handlers
from pathlib import Path
from unittest.mock import patch

# Remote
import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

import notehook.database as db
from notehook.main import app
from notehook.subscriptions import Subscription

# ---------------------------------------------------------------------------
# Temporary data directory: isolates every test from real files
# ---------------------------------------------------------------------------


@pytest.fixture
def tmp_data_dir(tmp_path):
    """
    Point the database module at a fresh temp directory for each test.
    Resets module-level globals that cache file paths.
    """
    subscriptions_file = str(tmp_path / "subscriptions.json")
    log_file = str(tmp_path / "notifications.log")

    Path(subscriptions_file).write_text("{}", encoding="utf-8")
    Path(log_file).touch()

    nl = logging.getLogger(f"notehook.notifications.{tmp_path.name}")
    nl.propagate = False
    nl.setLevel(logging.INFO)
    handler = logging.handlers.RotatingFileHandler(log_file, encoding="utf-8")
    handler.setFormatter(logging.Formatter("%(message)s"))
    nl.addHandler(handler)

    with (
        patch.object(db, "DATA_DIR", str(tmp_path)),
        patch.object(db, "SUBSCRIPTIONS_FILE", subscriptions_file),
        patch.object(db, "LOG_FILE", log_file),
        patch.object(db, "_notif_logger", nl),
    ):
        yield tmp_path

    nl.handlers.clear()


# ---------------------------------------------------------------------------
# Stub collaborators for the dispatcher
# ---------------------------------------------------------------------------


class FakeDirectory:
    """Resolves ids from a dict; unknown ids resolve to ""."""

    def __init__(self, users):
        self.users = users

    async def get_username_by_id(self, user_id):
        return self.users.get(user_id, "")

    def get_user_url(self, username):
        return f"http://my.gitlab.com/{username}"


class FakeStore:
    """Returns the same subscriptions for any project and records the calls."""

    def __init__(self, subs):
        self.subs = subs
        self.calls = []

    async def get_subscribed_channels_for_project(self, namespace, project, is_public):
        self.calls.append((namespace, project, is_public))
        return list(self.subs)


@pytest.fixture
def make_directory():
    return FakeDirectory


@pytest.fixture
def directory(make_directory):
    return make_directory({1: "root", 2: "alice", 3: "bob"})


@pytest.fixture
def make_store():
    def _make(*subs: Subscription):
        return FakeStore(list(subs))

    return _make


# ---------------------------------------------------------------------------
# Canonical GitLab note payloads
# ---------------------------------------------------------------------------

_PROJECT = {
    "id": 5,
    "name": "webhook",
    "web_url": "http://localhost:3000/manland/webhook",
    "path_with_namespace": "manland/webhook",
    "visibility_level": 20,
}


@pytest.fixture
def issue_comment_payload():
    return copy.deepcopy(
        {
            "object_kind": "note",
            "event_type": "note",
            "user": {"id": 2, "name": "Manland", "username": "manland"},
            "project_id": 5,
            "project": _PROJECT,
            "object_attributes": {
                "id": 997,
                "note": "coucou3",
                "noteable_type": "Issue",
                "author_id": 2,
                "url": "http://localhost:3000/manland/webhook/issues/1#note_997",
            },
            "issue": {
                "id": 7,
                "iid": 1,
                "title": "test new issue",
                "author_id": 1,
                "assignee_ids": [1],
                "labels": [],
            },
        }
    )


@pytest.fixture
def mr_comment_payload():
    return copy.deepcopy(
        {
            "object_kind": "note",
            "event_type": "note",
            "user": {"id": 2, "name": "Manland", "username": "manland"},
            "project_id": 5,
            "project": _PROJECT,
            "object_attributes": {
                "id": 999,
                "note": "coucou",
                "noteable_type": "MergeRequest",
                "author_id": 2,
                "url": "http://localhost:3000/manland/webhook/merge_requests/6#note_999",
            },
            "merge_request": {
                "id": 9,
                "iid": 6,
                "title": "Update README.md",
                "author_id": 1,
                "assignee_id": 1,
                "labels": [],
            },
        }
    )


# ---------------------------------------------------------------------------
# FastAPI test client
# ---------------------------------------------------------------------------


@pytest_asyncio.fixture
async def api_client(tmp_data_dir):
    """Httpx AsyncClient wrapping the FastAPI app with the database
    already pointed at the temp directory.
    """
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as c:
        yield c
