"""
DiggerClient: one entry point for triggering and tracking Jenkins builds.
"""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from pathlib import Path

from digger.core.clock import Clock
from digger.core.config import DEFAULT_BUILD_TIMEOUT, ClientConfig
from digger.core.exceptions import ConfigurationError, DiggerClientError, ErrorKind
from digger.core.logging import get_logger
from digger.models.status import BuildTriggerStatus
from digger.services.artifacts import ArtifactsService
from digger.services.builds import BuildService, LogStreamingOptions
from digger.services.jenkins.client import JenkinsClient
from digger.services.jenkins.schemas import BuildInfo, JobInfo, QueueReference
from digger.services.jobs import JobService

logger = get_logger(__name__)

_KIND_MESSAGES = {
    ErrorKind.CONNECTION: "Exception while connecting to Jenkins",
    ErrorKind.INTERRUPTED: "Exception while waiting on Jenkins",
}


class DiggerClient:
    """
    Facade over the job, build and artifact services.

    Every failure coming out of a service is re-raised as DiggerClientError
    with the original exception as its cause. TIMED_OUT, CANCELLED_IN_QUEUE
    and STUCK_IN_QUEUE are returned as statuses, not raised.
    """

    def __init__(
        self,
        config: ClientConfig,
        *,
        server: JenkinsClient | None = None,
        job_service: JobService | None = None,
        build_service: BuildService | None = None,
        artifacts_service: ArtifactsService | None = None,
        clock: Clock | None = None,
    ):
        try:
            config.validate()
        except ConfigurationError as e:
            raise DiggerClientError.wrap("Invalid client configuration", e) from e

        self._config = config
        self._server = server or JenkinsClient(
            config.url,
            config.user,
            config.password,
            crumb_enabled=config.crumb_enabled,
            timeout=config.request_timeout,
        )
        self._job_service = job_service or JobService()
        self._build_service = build_service or BuildService(
            config.first_check_delay, config.poll_period, clock
        )
        self._artifacts_service = artifacts_service or ArtifactsService()

    @classmethod
    def create_default_with_auth(
        cls,
        url: str,
        user: str,
        password: str,
        crumb_enabled: bool = False,
    ) -> "DiggerClient":
        """Client with default services for the given server and credentials."""
        return cls(ClientConfig(url=url, user=user, password=password, crumb_enabled=crumb_enabled))

    @property
    def config(self) -> ClientConfig:
        return self._config

    @property
    def jenkins_server(self) -> JenkinsClient:
        """The underlying server handle, for calls this client does not wrap."""
        return self._server

    @asynccontextmanager
    async def _translating(self, operation: str):
        try:
            yield
        except DiggerClientError:
            raise
        except Exception as e:
            kind = DiggerClientError.kind_of(e)
            message = _KIND_MESSAGES.get(kind, f"Exception while {operation}")
            logger.debug(message, exc_info=e)
            raise DiggerClientError.wrap(message, e) from e

    # Jobs

    async def get_job(self, name: str) -> JobInfo | None:
        """Job details, or None if the job does not exist."""
        async with self._translating("getting a job"):
            return await self._job_service.get(self._server, name)

    async def create_job(self, name: str, config_xml: str) -> None:
        async with self._translating("creating a job"):
            await self._job_service.create(self._server, name, config_xml)

    async def update_job(self, name: str, config_xml: str) -> None:
        async with self._translating("updating a job"):
            await self._job_service.update(self._server, name, config_xml)

    async def delete_job(self, name: str) -> None:
        async with self._translating("deleting a job"):
            await self._job_service.delete(self._server, name)

    # Builds

    async def trigger_build(
        self,
        job_name: str,
        params: dict[str, str] | None = None,
    ) -> BuildTriggerStatus:
        """
        Trigger a build and return right away.

        The returned QUEUED status carries the queue reference to pass to
        poll_build.
        """
        async with self._translating("triggering a build"):
            return await self._build_service.trigger_build(self._server, job_name, params)

    async def poll_build(
        self,
        job_name: str,
        queue_reference: QueueReference,
        timeout: float,
        params: dict[str, str] | None = None,
    ) -> BuildTriggerStatus:
        """
        Wait until a queued build starts, is cancelled, gets stuck, or
        ``timeout`` seconds pass.

        Can be called again with the same reference after TIMED_OUT.
        """
        async with self._translating("polling a build"):
            return await self._build_service.poll_build(
                self._server, job_name, queue_reference, timeout, params
            )

    async def build(
        self,
        job_name: str,
        timeout: float = DEFAULT_BUILD_TIMEOUT,
        params: dict[str, str] | None = None,
    ) -> BuildTriggerStatus:
        """
        Trigger a build and block until it leaves the queue.

        Args:
            job_name: Name of the job to build
            timeout: Seconds to wait before returning TIMED_OUT; should be
                larger than the first check delay. Precision is one poll
                period.
            params: Build parameters

        Returns:
            STARTED with the build number, or CANCELLED_IN_QUEUE,
            STUCK_IN_QUEUE or TIMED_OUT

        Raises:
            DiggerClientError: If talking to Jenkins fails
        """
        async with self._translating("triggering a build"):
            return await self._build_service.build(self._server, job_name, timeout, params)

    async def cancel_queue_item(self, queue_reference: QueueReference) -> None:
        async with self._translating("cancelling a queued build"):
            await self._build_service.cancel_queue_item(self._server, queue_reference)

    async def cancel_build(self, job_name: str, build_number: int) -> BuildInfo:
        async with self._translating("cancelling a build"):
            return await self._build_service.cancel_build(self._server, job_name, build_number)

    async def get_build_details(self, job_name: str, build_number: int) -> BuildInfo:
        async with self._translating("getting build details"):
            return await self._build_service.get_build_details(self._server, job_name, build_number)

    async def get_build_history(self, job_name: str) -> list[BuildInfo]:
        """
        Recent builds of a job with their details.

        One request per build, so this is slow for long histories.
        """
        async with self._translating("getting build history"):
            return await self._build_service.get_build_history(self._server, job_name)

    # Logs

    async def get_build_logs(self, job_name: str, build_number: int) -> str:
        async with self._translating("retrieving logs"):
            return await self._build_service.get_build_logs(self._server, job_name, build_number)

    async def stream_logs(self, job_name: str, build_number: int, options: LogStreamingOptions) -> None:
        async with self._translating("streaming logs"):
            await self._build_service.stream_build_logs(self._server, job_name, build_number, options)

    # Artifacts

    async def fetch_artifact(self, job_name: str, build_number: int, artifact_name: str) -> AsyncIterator[bytes]:
        """Yield the bytes of the first artifact matching ``artifact_name``."""
        async with self._translating("fetching an artifact"):
            async for chunk in self._artifacts_service.stream_artifact(
                self._server, job_name, build_number, artifact_name
            ):
                yield chunk

    async def save_artifact(
        self,
        job_name: str,
        build_number: int,
        artifact_name: str,
        output_file: str | Path,
    ) -> Path:
        async with self._translating("saving a file"):
            return await self._artifacts_service.save_artifact(
                self._server, job_name, build_number, artifact_name, output_file
            )
