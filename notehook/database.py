"""
Notehook Store - Persistent storage using plain JSON/log files.

Two files are maintained in the data directory:
  subscriptions.json  - channel subscriptions (JSON dict keyed by ID, kept in
                        insertion order, which is the channel fan-out order)
  notifications.log   - delivery log; one JSON object per line (NDJSON),
                        automatically rotated when the file reaches
                        LOG_MAX_BYTES (default 5 MB). Up to LOG_BACKUP_COUNT
                        (default 3) rolled files are kept alongside it.

All reads and writes are protected by an asyncio lock so concurrent
webhook dispatches don't corrupt the files.
"""

# Standard
import asyncio
import json
import logging
import logging.handlers
import os
import uuid
from datetime import datetime, timezone
from typing import Optional

# Local
from .config import settings
from .subscriptions import Subscription

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Paths & tunable constants
# ---------------------------------------------------------------------------


def _storage_settings(cfg, environ=os.environ) -> tuple[str, int, int]:
    """(data dir, log max bytes, log backup count); NOTEHOOK_* env vars win."""
    return (
        environ.get("NOTEHOOK_DATA_DIR", cfg.DATA_DIR),
        int(environ.get("NOTEHOOK_LOG_MAX_BYTES", cfg.LOG_MAX_BYTES)),
        int(environ.get("NOTEHOOK_LOG_BACKUP_COUNT", cfg.LOG_BACKUP_COUNT)),
    )


DATA_DIR, LOG_MAX_BYTES, LOG_BACKUP_COUNT = _storage_settings(settings)
SUBSCRIPTIONS_FILE = os.path.join(DATA_DIR, "subscriptions.json")
LOG_FILE = os.path.join(DATA_DIR, "notifications.log")

_lock = asyncio.Lock()

# Dedicated logger that writes one JSON line per delivery attempt.
# Configured in init_db() once the data directory exists.
_notif_logger: Optional[logging.Logger] = None


# ---------------------------------------------------------------------------
# Initialisation
# ---------------------------------------------------------------------------


def _build_notif_logger() -> logging.Logger:
    """
    Create (or reuse) a Python logger backed by a RotatingFileHandler.
    Each record written to it must already be a single-line JSON string.
    """
    nl = logging.getLogger("notehook.notifications")
    nl.propagate = False
    nl.setLevel(logging.INFO)

    if not nl.handlers:
        handler = logging.handlers.RotatingFileHandler(
            LOG_FILE,
            maxBytes=LOG_MAX_BYTES,
            backupCount=LOG_BACKUP_COUNT,
            encoding="utf-8",
        )
        handler.setFormatter(logging.Formatter("%(message)s"))
        nl.addHandler(handler)

    return nl


async def init_db():
    """Create the data directory and seed missing files."""
    os.makedirs(DATA_DIR, exist_ok=True)

    if not os.path.exists(SUBSCRIPTIONS_FILE):
        _write_json(SUBSCRIPTIONS_FILE, {})
        logger.info(f"Created {SUBSCRIPTIONS_FILE}")

    if not os.path.exists(LOG_FILE):
        open(LOG_FILE, "a", encoding="utf-8").close()
        logger.info(f"Created {LOG_FILE}")

    global _notif_logger
    _notif_logger = _build_notif_logger()
    logger.info(
        f"Notification log: {LOG_FILE} "
        f"(max {LOG_MAX_BYTES // 1024} KB, {LOG_BACKUP_COUNT} backups)"
    )


# ---------------------------------------------------------------------------
# Low-level JSON helpers for subscriptions.json
# ---------------------------------------------------------------------------


def _read_json(path: str):
    with open(path, "r", encoding="utf-8") as f:
        return json.load(f)


def _write_json(path: str, data):
    tmp = path + ".tmp"
    with open(tmp, "w", encoding="utf-8") as f:
        json.dump(data, f, indent=2, default=str)
    os.replace(tmp, path)


# ---------------------------------------------------------------------------
# Subscription helpers
# ---------------------------------------------------------------------------


async def get_all_subscriptions() -> list:
    async with _lock:
        data = _read_json(SUBSCRIPTIONS_FILE)
    return list(data.values())


async def get_subscription(subscription_id: str) -> Optional[dict]:
    async with _lock:
        data = _read_json(SUBSCRIPTIONS_FILE)
    return data.get(subscription_id)


async def save_subscription(subscription: dict) -> dict:
    """Insert or update a subscription record."""
    async with _lock:
        data = _read_json(SUBSCRIPTIONS_FILE)
        data[subscription["id"]] = subscription
        _write_json(SUBSCRIPTIONS_FILE, data)
    return subscription


async def delete_subscription(subscription_id: str) -> bool:
    async with _lock:
        data = _read_json(SUBSCRIPTIONS_FILE)
        if subscription_id not in data:
            return False
        del data[subscription_id]
        _write_json(SUBSCRIPTIONS_FILE, data)
    return True


def _ancestors(namespace: str) -> list[str]:
    # a/b/c -> [a/b/c, a/b, a]
    parts = namespace.split("/") if namespace else []
    return ["/".join(parts[:i]) for i in range(len(parts), 0, -1)]


async def get_subscribed_channels_for_project(
    namespace: str,
    project: str,
    is_public: bool,
) -> list[Subscription]:
    """
    Return the subscriptions covering a project: project-level ones first,
    then namespace-level ones (the namespace or any parent group). Namespace
    subscriptions only cover public projects.
    """
    full_path = f"{namespace}/{project}" if namespace else project
    groups = _ancestors(namespace) if is_public else []

    records = await get_all_subscriptions()
    project_subs = [r for r in records if r.get("repository") == full_path]
    group_subs = [r for r in records if r.get("repository") in groups]

    return [
        Subscription(
            channel_id=r["channel_id"],
            creator_id=r.get("creator_id", ""),
            features=r.get("features", ""),
            repository=r.get("repository", ""),
        )
        for r in project_subs + group_subs
    ]


class JsonSubscriptionStore:
    """SubscriptionStore backed by subscriptions.json."""

    async def get_subscribed_channels_for_project(
        self,
        namespace: str,
        project: str,
        is_public: bool,
    ) -> list[Subscription]:
        return await get_subscribed_channels_for_project(namespace, project, is_public)


# ---------------------------------------------------------------------------
# Notification log helpers
# ---------------------------------------------------------------------------


async def append_log(entry: dict):
    """
    Write one delivery entry to the rotating log file.
    Each line is a compact JSON object (NDJSON format).
    """
    line = json.dumps(entry, default=str)
    async with _lock:
        _notif_logger.info(line)


def _log_files_newest_first() -> list[str]:
    paths = [LOG_FILE] + [f"{LOG_FILE}.{i}" for i in range(1, LOG_BACKUP_COUNT + 1)]
    return [p for p in paths if os.path.exists(p)]


async def get_logs(
    limit: int = 50,
    channel_id: Optional[str] = None,
    username: Optional[str] = None,
) -> list:
    """
    Read log entries across all rolled files, returning the most recent
    entries first. Applies optional filters by channel and DM username.
    """
    entries: list[dict] = []

    async with _lock:
        for path in _log_files_newest_first():
            try:
                with open(path, "r", encoding="utf-8") as f:
                    lines = f.readlines()
            except OSError:
                continue

            for line in reversed(lines):
                line = line.strip()
                if not line:
                    continue
                try:
                    entry = json.loads(line)
                except json.JSONDecodeError:
                    continue

                if channel_id and entry.get("channel_id") != channel_id:
                    continue
                if username and entry.get("username") != username:
                    continue

                entries.append(entry)
                if len(entries) >= limit:
                    return entries

    return entries


# ---------------------------------------------------------------------------
# Convenience constructors
# ---------------------------------------------------------------------------


def make_subscription(channel_id, creator_id, features, repository):
    return {
        "id": str(uuid.uuid4()),
        "channel_id": channel_id,
        "creator_id": creator_id,
        "features": features,
        "repository": repository,
        "created_at": datetime.now(timezone.utc).isoformat(),
    }


def make_log_entry(from_user, message, success, error, channel_id=None, username=None):
    return {
        "id": str(uuid.uuid4()),
        "from_user": from_user,
        "channel_id": channel_id,
        "username": username,
        "message": message,
        "success": success,
        "error": error,
        "sent_at": datetime.now(timezone.utc).isoformat(),
    }
