"""GitLab API helpers.
Targets the GitLab REST API v4.

Caches username lookups in-process so repeated webhook events for the same
users don't hammer the GitLab API.
"""

# Standard
import logging

# Remote
import httpx

# Local
from .config import settings

logger = logging.getLogger(__name__)

API_PREFIX = "/api/v4"


def _auth_headers(token: str) -> dict:
    headers = {"Accept": "application/json"}
    if token:
        headers["PRIVATE-TOKEN"] = token
    return headers


class GitLabUserDirectory:
    """Resolves GitLab user ids to usernames and profile URLs.

    Lookups never raise: a failed or unknown id resolves to "" and the
    dispatcher drops empty usernames from recipient lists.
    """

    def __init__(self, base_url: str | None = None, token: str | None = None):
        self.base_url = (base_url or settings.GITLAB_URL).rstrip("/")
        self.token = settings.GITLAB_TOKEN if token is None else token
        self._username_cache: dict[int, str] = {}

    def get_user_url(self, username: str) -> str:
        return f"{self.base_url}/{username}"

    async def get_username_by_id(self, user_id: int) -> str:
        if not user_id:
            return ""

        if user_id in self._username_cache:
            return self._username_cache[user_id]

        username = ""
        try:
            url = f"{self.base_url}{API_PREFIX}/users/{user_id}"
            async with httpx.AsyncClient(timeout=5.0) as client:
                resp = await client.get(url, headers=_auth_headers(self.token))
                if resp.status_code == 200:
                    username = resp.json().get("username", "")
                else:
                    logger.debug(
                        f"User lookup for {user_id} returned {resp.status_code}"
                    )
        except Exception as e:
            logger.debug(f"User lookup failed for {user_id}: {e}")
            # Don't cache transient failures
            return ""

        self._username_cache[user_id] = username
        return username
