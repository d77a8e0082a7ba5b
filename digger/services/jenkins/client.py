"""
Jenkins API client used by the digger services.
"""

from collections.abc import AsyncIterator
from typing import Any
from urllib.parse import quote

import httpx

from digger.core.exceptions import (
    JenkinsAPIError,
    JenkinsConnectionError,
    JobNotFoundError,
)
from digger.core.logging import get_logger
from .schemas import BuildInfo, JobInfo, LogChunk, QueueItem, QueueReference

logger = get_logger(__name__)


def job_path(job_name: str) -> str:
    """Map ``folder/name`` to ``/job/folder/job/name``."""
    parts = [p for p in job_name.strip("/").split("/") if p]
    if not parts:
        raise ValueError("job name must not be empty")
    return "".join(f"/job/{quote(part, safe='')}" for part in parts)


class JenkinsClient:
    """Authenticated handle on one Jenkins server."""

    def __init__(
        self,
        url: str,
        user: str,
        password: str,
        *,
        crumb_enabled: bool = False,
        timeout: float = 30.0,
    ):
        self._url = url.rstrip("/")
        self._user = user
        self._password = password
        self._crumb_enabled = crumb_enabled
        self._timeout = timeout
        self._headers = {"Accept": "application/json"}

    @property
    def url(self) -> str:
        return self._url

    @property
    def crumb_enabled(self) -> bool:
        return self._crumb_enabled

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            auth=(self._user, self._password),
            headers=self._headers,
            timeout=self._timeout,
            follow_redirects=True,
        )

    def _absolute(self, path_or_url: str) -> str:
        if path_or_url.startswith(("http://", "https://")):
            return path_or_url
        return f"{self._url}{path_or_url}"

    async def _crumb_header(self, client: httpx.AsyncClient) -> dict[str, str]:
        """Fetch a CSRF crumb within the session that will use it."""
        try:
            response = await client.get(f"{self._url}/crumbIssuer/api/json")
        except httpx.RequestError as e:
            raise JenkinsConnectionError(f"Failed to fetch crumb: {e}") from e

        if response.status_code == 404:
            logger.debug("Crumb issuer not available on %s", self._url)
            return {}
        if response.status_code >= 400:
            raise JenkinsConnectionError(
                f"Failed to fetch crumb: HTTP {response.status_code}"
            )

        try:
            data = response.json()
            return {data["crumbRequestField"]: data["crumb"]}
        except (ValueError, KeyError, TypeError) as e:
            raise JenkinsAPIError("Crumb issuer returned unexpected payload") from e

    async def _request(
        self,
        method: str,
        path_or_url: str,
        **kwargs: Any,
    ) -> httpx.Response:
        """
        Send one request, adding a crumb to POSTs when CSRF protection is on.

        Raises:
            JenkinsConnectionError: On network errors and 401/403
            JenkinsAPIError: On any other error status
        """
        url = self._absolute(path_or_url)

        async with self._client() as client:
            if method == "POST" and self._crumb_enabled:
                headers = dict(kwargs.pop("headers", None) or {})
                headers.update(await self._crumb_header(client))
                kwargs["headers"] = headers

            try:
                response = await client.request(method, url, **kwargs)
                response.raise_for_status()
            except httpx.HTTPStatusError as e:
                status = e.response.status_code
                if status in (401, 403):
                    logger.error("Jenkins refused %s %s: HTTP %s", method, url, status)
                    raise JenkinsConnectionError(
                        f"Authentication error accessing '{url}': HTTP {status}"
                    ) from e
                raise JenkinsAPIError(
                    f"{method} '{url}' failed: HTTP {status}", status_code=status
                ) from e
            except httpx.RequestError as e:
                logger.error("Jenkins request %s %s failed: %s", method, url, e)
                raise JenkinsConnectionError(f"Error connecting to '{url}': {e}") from e

        return response

    async def _get_json(self, path_or_url: str, **kwargs: Any) -> dict[str, Any]:
        response = await self._request("GET", path_or_url, **kwargs)
        try:
            data = response.json()
        except ValueError as e:
            raise JenkinsAPIError(f"Jenkins returned invalid JSON for '{path_or_url}'") from e
        if not isinstance(data, dict):
            raise JenkinsAPIError(f"Jenkins returned unexpected payload for '{path_or_url}'")
        return data

    # Queue and builds

    async def enqueue_build(
        self,
        job_name: str,
        params: dict[str, str] | None = None,
    ) -> QueueReference:
        """
        Put a build of ``job_name`` in the queue.

        Returns:
            Reference to the created queue item

        Raises:
            JobNotFoundError: If the job does not exist
            JenkinsAPIError: If Jenkins does not return a queue location
        """
        if params:
            path = f"{job_path(job_name)}/buildWithParameters"
        else:
            path = f"{job_path(job_name)}/build"

        try:
            response = await self._request("POST", path, data=params or None)
        except JenkinsAPIError as e:
            if e.status_code == 404:
                raise JobNotFoundError(f"Job '{job_name}' not found", 404) from e
            raise

        location = response.headers.get("Location")
        if not location:
            raise JenkinsAPIError(f"No queue location returned for job '{job_name}'")
        return QueueReference(location)

    async def get_queue_item(self, queue_reference: QueueReference) -> QueueItem:
        data = await self._get_json(queue_reference.api_url)
        return QueueItem.from_json(data)

    async def cancel_queue_item(self, queue_reference: QueueReference) -> None:
        queue_id = queue_reference.queue_id
        if queue_id is None:
            raise JenkinsAPIError(f"Cannot parse queue id from '{queue_reference.url}'")
        await self._request("POST", "/queue/cancelItem", params={"id": queue_id})

    async def get_build(self, job_name: str, number: int) -> BuildInfo:
        try:
            data = await self._get_json(f"{job_path(job_name)}/{number}/api/json")
        except JenkinsAPIError as e:
            if e.status_code == 404:
                raise JobNotFoundError(f"Build '{job_name}' #{number} not found", 404) from e
            raise
        return BuildInfo.from_json(data)

    async def stop_build(self, job_name: str, number: int) -> None:
        await self._request("POST", f"{job_path(job_name)}/{number}/stop")

    async def get_console_text(self, job_name: str, number: int) -> str:
        response = await self._request("GET", f"{job_path(job_name)}/{number}/consoleText")
        return response.text

    async def get_progressive_text(self, job_name: str, number: int, start: int = 0) -> LogChunk:
        """Fetch console output from byte offset ``start`` onwards."""
        response = await self._request(
            "GET",
            f"{job_path(job_name)}/{number}/logText/progressiveText",
            params={"start": start},
        )
        size = response.headers.get("X-Text-Size")
        more = response.headers.get("X-More-Data", "false")
        return LogChunk(
            text=response.text,
            next_start=int(size) if size is not None else start,
            more_data=str(more).lower() == "true",
        )

    async def iter_artifact(
        self,
        job_name: str,
        number: int,
        relative_path: str,
        chunk_size: int = 64 * 1024,
    ) -> AsyncIterator[bytes]:
        """Yield the bytes of an archived artifact."""
        url = self._absolute(
            f"{job_path(job_name)}/{number}/artifact/{quote(relative_path)}"
        )
        async with self._client() as client:
            try:
                async with client.stream("GET", url) as response:
                    response.raise_for_status()
                    async for chunk in response.aiter_bytes(chunk_size):
                        yield chunk
            except httpx.HTTPStatusError as e:
                status = e.response.status_code
                raise JenkinsAPIError(
                    f"Failed to download artifact '{relative_path}': HTTP {status}",
                    status_code=status,
                ) from e
            except httpx.RequestError as e:
                raise JenkinsConnectionError(f"Error connecting to '{url}': {e}") from e

    # Jobs

    async def get_job(self, job_name: str, tree: str | None = None) -> dict[str, Any] | None:
        """Raw job payload, or None when the job does not exist."""
        params = {"tree": tree} if tree else None
        try:
            return await self._get_json(f"{job_path(job_name)}/api/json", params=params)
        except JenkinsAPIError as e:
            if e.status_code == 404:
                return None
            raise

    async def get_job_info(self, job_name: str) -> JobInfo | None:
        data = await self.get_job(job_name)
        return JobInfo.from_json(data) if data is not None else None

    async def create_job(self, job_name: str, config_xml: str) -> None:
        parent, _, leaf = job_name.strip("/").rpartition("/")
        prefix = job_path(parent) if parent else ""
        await self._request(
            "POST",
            f"{prefix}/createItem",
            params={"name": leaf},
            content=config_xml.encode("utf-8"),
            headers={"Content-Type": "application/xml"},
        )

    async def update_job(self, job_name: str, config_xml: str) -> None:
        await self._request(
            "POST",
            f"{job_path(job_name)}/config.xml",
            content=config_xml.encode("utf-8"),
            headers={"Content-Type": "application/xml"},
        )

    async def delete_job(self, job_name: str) -> None:
        await self._request("POST", f"{job_path(job_name)}/doDelete")
