"""Async GitHub REST client for repository metadata, trees and file contents."""

from __future__ import annotations

import asyncio
import base64
import logging
from typing import Any, Dict, List, Optional, Tuple
from urllib.parse import urlparse

import httpx

from app.config import settings
from app.dtos.github import FileTreeNode, RateLimitStatus, RepoMetadata
from app.services.github.exceptions import (
    GithubAccessDeniedError,
    GithubError,
    GithubInvalidUrlError,
    GithubNotFoundError,
    GithubRateLimitError,
    GithubRetryableError,
)

logger = logging.getLogger(__name__)

GITHUB_HOSTS = {"github.com", "www.github.com"}


def parse_github_url(url: str) -> Optional[Tuple[str, str]]:
    """
    Extract (owner, repo) from a GitHub repository URL.

    Returns None when the host is not GitHub or the path has fewer than two
    segments. A trailing ``.git`` is stripped from the repo name.
    """
    try:
        parsed = urlparse(url)
    except ValueError:
        return None

    if parsed.hostname not in GITHUB_HOSTS:
        return None

    parts = [part for part in parsed.path.split("/") if part]
    if len(parts) < 2:
        return None

    owner, repo = parts[0], parts[1]
    if repo.endswith(".git"):
        repo = repo[:-4]
    return owner, repo


def get_file_extension(path: str) -> Optional[str]:
    parts = path.split(".")
    if len(parts) > 1:
        return parts[-1].lower()
    return None


class GithubClient:
    """
    Thin wrapper over the GitHub REST API.

    Transient failures (network errors, 5xx) are retried with exponential
    backoff. 404/403/409/429 responses are returned to the caller on the first
    attempt; rate limiting is translated to GithubRateLimitError.
    """

    def __init__(
        self,
        token: Optional[str] = None,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        max_retries: Optional[int] = None,
        retry_delay: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.token = token if token is not None else settings.GITHUB_TOKEN
        self.base_url = base_url or settings.GITHUB_API_URL
        self.timeout = timeout if timeout is not None else settings.GITHUB_TIMEOUT_SECONDS
        self.max_retries = max_retries if max_retries is not None else settings.GITHUB_MAX_RETRIES
        self.retry_delay = (
            retry_delay if retry_delay is not None else settings.GITHUB_RETRY_DELAY_SECONDS
        )
        self._transport = transport

    def _headers(self) -> Dict[str, str]:
        headers = {"Accept": "application/vnd.github.v3+json"}
        if self.token:
            headers["Authorization"] = f"token {self.token}"
        return headers

    @staticmethod
    def _raise_for_rate_limit(response: httpx.Response) -> None:
        remaining = response.headers.get("x-ratelimit-remaining")
        if response.status_code == 429 or (response.status_code == 403 and remaining == "0"):
            reset = response.headers.get("x-ratelimit-reset")
            retry_after = response.headers.get("retry-after")
            logger.error("GitHub API rate limit exceeded. Resets at: %s", reset)
            raise GithubRateLimitError(
                "GitHub API rate limit exceeded. Please try again later.",
                retry_after=float(retry_after) if retry_after and retry_after.isdigit() else None,
            )

    async def _get(self, path: str, params: Optional[Dict[str, Any]] = None) -> httpx.Response:
        delay = self.retry_delay
        last_error: GithubError = GithubRetryableError("GitHub request failed")

        for attempt in range(1, self.max_retries + 1):
            try:
                async with httpx.AsyncClient(
                    base_url=self.base_url,
                    headers=self._headers(),
                    timeout=self.timeout,
                    transport=self._transport,
                ) as client:
                    response = await client.get(path, params=params)
            except httpx.TransportError as exc:
                last_error = GithubRetryableError(f"GitHub request failed: {exc}")
            else:
                if response.status_code < 500:
                    self._raise_for_rate_limit(response)
                    return response
                last_error = GithubRetryableError(
                    f"GitHub returned {response.status_code} for {path}"
                )

            if attempt < self.max_retries:
                logger.warning(
                    "GitHub request %s failed (attempt %d/%d), retrying in %.1fs: %s",
                    path,
                    attempt,
                    self.max_retries,
                    delay,
                    last_error,
                )
                await asyncio.sleep(delay)
                delay *= 2

        raise last_error

    async def fetch_repo_metadata(self, github_url: str) -> RepoMetadata:
        parsed = parse_github_url(github_url)
        if not parsed:
            raise GithubInvalidUrlError("Invalid GitHub URL")

        owner, repo = parsed
        try:
            response = await self._get(f"/repos/{owner}/{repo}")
        except GithubRetryableError as exc:
            logger.error("Error fetching repo metadata for %s/%s: %s", owner, repo, exc)
            raise GithubError("Failed to fetch repository metadata") from exc

        if response.status_code == 404:
            raise GithubNotFoundError("Repository not found")
        if response.status_code == 403:
            raise GithubAccessDeniedError("Repository is private or access denied")
        if response.status_code != 200:
            logger.error(
                "Unexpected status %s fetching repo metadata for %s/%s",
                response.status_code,
                owner,
                repo,
            )
            raise GithubError("Failed to fetch repository metadata")

        data = response.json()
        return RepoMetadata(
            owner=data["owner"]["login"],
            repo=data["name"],
            full_name=data["full_name"],
            description=data.get("description") or None,
            language=data.get("language") or None,
            stars=data.get("stargazers_count") or 0,
            forks=data.get("forks_count") or 0,
            default_branch=data.get("default_branch") or "main",
        )

    async def fetch_repo_tree(
        self, owner: str, repo: str, branch: str = "main"
    ) -> List[FileTreeNode]:
        try:
            response = await self._get(
                f"/repos/{owner}/{repo}/git/trees/{branch}", params={"recursive": 1}
            )
        except GithubRetryableError as exc:
            logger.error("Error fetching repo tree for %s/%s: %s", owner, repo, exc)
            raise GithubError("Failed to fetch repository file tree") from exc

        if response.status_code == 409:
            # Empty repository
            logger.warning("Repository %s/%s is empty", owner, repo)
            return []
        if response.status_code != 200:
            logger.error(
                "Unexpected status %s fetching repo tree for %s/%s",
                response.status_code,
                owner,
                repo,
            )
            raise GithubError("Failed to fetch repository file tree")

        data = response.json()
        if data.get("truncated"):
            logger.warning("Tree for %s/%s was truncated by GitHub", owner, repo)

        nodes: List[FileTreeNode] = []
        for item in data.get("tree", []):
            is_dir = item.get("type") == "tree"
            nodes.append(
                FileTreeNode(
                    path=item["path"],
                    type="dir" if is_dir else "file",
                    size=item.get("size"),
                    extension=get_file_extension(item["path"])
                    if item.get("type") == "blob"
                    else None,
                )
            )
        return nodes

    async def fetch_file_content(
        self, owner: str, repo: str, path: str, branch: str = "main"
    ) -> str:
        try:
            response = await self._get(
                f"/repos/{owner}/{repo}/contents/{path}", params={"ref": branch}
            )
        except GithubRetryableError as exc:
            raise GithubError(f"Failed to fetch file: {path}") from exc

        if response.status_code == 404:
            raise GithubNotFoundError(f"File not found: {path}")
        if response.status_code != 200:
            raise GithubError(f"Failed to fetch file: {path}")

        content = response.json().get("content")
        if not content:
            logger.error("No content in response for %s", path)
            raise GithubError(f"Failed to fetch file: {path}")

        return base64.b64decode(content).decode("utf-8", errors="replace")

    async def clone_repo_structure(
        self, github_url: str
    ) -> Tuple[RepoMetadata, List[FileTreeNode]]:
        """Fetch metadata and the full file tree of the default branch."""
        metadata = await self.fetch_repo_metadata(github_url)
        file_tree = await self.fetch_repo_tree(
            metadata.owner, metadata.repo, metadata.default_branch
        )
        logger.info("Cloned structure for %s: %d items", metadata.full_name, len(file_tree))
        return metadata, file_tree

    async def get_rate_limit_status(self) -> RateLimitStatus:
        try:
            response = await self._get("/rate_limit")
        except GithubRetryableError as exc:
            raise GithubError("Failed to fetch rate limit status") from exc

        if response.status_code != 200:
            raise GithubError("Failed to fetch rate limit status")

        core = response.json().get("resources", {}).get("core", {})
        return RateLimitStatus(
            limit=core.get("limit", 0),
            remaining=core.get("remaining", 0),
            reset=core.get("reset", 0),
        )
