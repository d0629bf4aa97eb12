"""GitHub REST issue-tracker adapter.

Implements the core IssueTrackerPort with an httpx.AsyncClient so that
comment posting never blocks the event loop that is reading chat lines.
"""

from __future__ import annotations

import logging
from typing import Any, Optional
from urllib.parse import quote

import httpx

from core.errors import TransportFailure

LOGGER = logging.getLogger(__name__)

DEFAULT_API_URL = "https://api.github.com"


class GitHubIssueTracker:
    """Thin GitHub client that satisfies the IssueTrackerPort contract."""

    def __init__(
        self,
        token: str,
        user_agent: str,
        api_url: str = DEFAULT_API_URL,
        timeout: float = 10.0,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self._client = client or httpx.AsyncClient(base_url=api_url, timeout=timeout)
        self._headers = {
            "Accept": "application/vnd.github+json",
            "Authorization": f"Bearer {token}",
            "User-Agent": user_agent,
            "X-GitHub-Api-Version": "2022-11-28",
        }

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _request(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        try:
            response = await self._client.request(method, path, headers=self._headers, **kwargs)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            body = e.response.text[:200]
            raise TransportFailure(
                f"GitHub API error {e.response.status_code}: {body}",
                {"method": method, "path": path},
            ) from e
        except httpx.HTTPError as e:
            raise TransportFailure(
                f"{type(e).__name__}: {e}",
                {"method": method, "path": path},
            ) from e
        return response

    async def create_comment(self, repo: str, issue_number: int, body: str) -> int:
        response = await self._request(
            "POST", f"/repos/{repo}/issues/{issue_number}/comments", json={"body": body}
        )
        comment_id = int(response.json()["id"])
        LOGGER.debug("Created comment %s on %s#%s", comment_id, repo, issue_number)
        return comment_id

    async def update_comment(self, repo: str, comment_id: int, body: str) -> None:
        await self._request("PATCH", f"/repos/{repo}/issues/comments/{comment_id}", json={"body": body})

    async def list_labels(self, repo: str, issue_number: int) -> list[str]:
        response = await self._request("GET", f"/repos/{repo}/issues/{issue_number}/labels")
        return [label["name"] for label in response.json()]

    async def remove_label(self, repo: str, issue_number: int, label: str) -> None:
        await self._request(
            "DELETE",
            f"/repos/{repo}/issues/{issue_number}/labels/{quote(label, safe='')}",
        )
