"""Notehook Configuration"""

# Standard
import os
from pathlib import Path

# Remote
from pydantic_settings import BaseSettings


def _find_env_file() -> str | None:
    """Search for .env.notehook in order:
      1. Current working directory
      2. The directory containing this package (repo root when running from source)
      3. %APPDATA%/Notehook  (Windows)

    Falls back to a plain .env in the current directory.
    """
    candidates = [
        Path.cwd() / ".env.notehook",
        Path(__file__).parent.parent / ".env.notehook",
    ]
    appdata = os.environ.get("APPDATA")
    if appdata:
        candidates.append(Path(appdata) / "Notehook" / ".env.notehook")

    for path in candidates:
        if path.exists():
            return str(path)

    fallback = Path.cwd() / ".env"
    if fallback.exists():
        return str(fallback)

    return None


class Settings(BaseSettings):
    HOST: str = "0.0.0.0"
    PORT: int = 8000

    # GitLab
    GITLAB_URL: str = "https://gitlab.com"
    GITLAB_TOKEN: str = ""
    GITLAB_WEBHOOK_SECRET: str | None = None

    # Chat delivery (Mattermost-compatible incoming webhook)
    CHAT_WEBHOOK_URL: str = ""
    CHAT_BOT_USERNAME: str = "gitlab"

    # Storage (NOTEHOOK_DATA_DIR, NOTEHOOK_LOG_MAX_BYTES and
    # NOTEHOOK_LOG_BACKUP_COUNT override these three)
    DATA_DIR: str = str(Path(__file__).parent.parent / "data")
    LOG_MAX_BYTES: int = (
        5_242_880  # Rotate notifications.log at this size (default: 5 MB)
    )
    LOG_BACKUP_COUNT: int = 3  # Number of rolled log files to keep

    # Public URL GitLab posts to, reported by /health
    SERVER_PUBLIC_URL: str = "http://localhost:8000"

    model_config = {
        "env_file": _find_env_file(),
        "env_file_encoding": "utf-8",
    }


settings = Settings()
