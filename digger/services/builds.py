"""
Build triggering, queue polling and build log retrieval.
"""

import asyncio
from collections.abc import AsyncIterator
from dataclasses import dataclass
from typing import TextIO

from digger.core.clock import Clock, SystemClock
from digger.core.config import DEFAULT_FIRST_CHECK_DELAY, DEFAULT_POLL_PERIOD
from digger.core.exceptions import WaitInterruptedError
from digger.core.logging import get_logger
from digger.models.status import BuildTriggerStatus, TriggerState
from digger.services.jenkins.client import JenkinsClient
from digger.services.jenkins.schemas import BuildInfo, QueueItemState, QueueReference

logger = get_logger(__name__)

# Slack for float drift when comparing against the deadline
DEADLINE_SLACK = 1e-9


@dataclass
class LogStreamingOptions:
    """How to follow the console output of a running build."""

    output: TextIO
    polling_interval: float = 2.0
    polling_timeout: float = 3600.0


class BuildService:
    """
    Triggers builds and follows them through the Jenkins queue.

    Jenkins does not tell us when a queue item turns into a build, so after
    triggering we wait ``first_check_delay`` and then ask every
    ``poll_period`` until the item is resolved or the caller's timeout runs
    out. No wait extends past the deadline, so the last query is made right
    at it.
    """

    def __init__(
        self,
        first_check_delay: float = DEFAULT_FIRST_CHECK_DELAY,
        poll_period: float = DEFAULT_POLL_PERIOD,
        clock: Clock | None = None,
    ):
        if poll_period <= 0:
            raise ValueError("poll_period must be greater than zero")
        if first_check_delay < 0:
            raise ValueError("first_check_delay must not be negative")
        self._first_check_delay = first_check_delay
        self._poll_period = poll_period
        self._clock = clock or SystemClock()

    @property
    def first_check_delay(self) -> float:
        return self._first_check_delay

    @property
    def poll_period(self) -> float:
        return self._poll_period

    async def _wait(self, seconds: float) -> None:
        if seconds <= DEADLINE_SLACK:
            return
        try:
            await self._clock.sleep(seconds)
        except asyncio.CancelledError as e:
            task = asyncio.current_task()
            if task is not None and task.cancelling():
                # requested through the task (wait_for, timeout, TaskGroup)
                raise
            logger.warning("Wait on the Jenkins queue was interrupted")
            raise WaitInterruptedError("Interrupted while waiting on Jenkins") from e

    async def trigger_build(
        self,
        server: JenkinsClient,
        job_name: str,
        params: dict[str, str] | None = None,
    ) -> BuildTriggerStatus:
        """
        Put a build in the queue and return without waiting for it.

        Returns:
            QUEUED status carrying the new queue reference
        """
        queue_reference = await server.enqueue_build(job_name, params or {})
        logger.info("Triggered build of %s, queue item %s", job_name, queue_reference.url)
        return BuildTriggerStatus.queued(queue_reference)

    async def poll_build(
        self,
        server: JenkinsClient,
        job_name: str,
        queue_reference: QueueReference,
        timeout: float,
        params: dict[str, str] | None = None,
    ) -> BuildTriggerStatus:
        """
        Poll a queue item until the build starts, leaves the queue, or
        ``timeout`` seconds pass.

        The timeout is checked between polls, so its resolution is one
        ``poll_period``. A failed request aborts the whole call.

        Returns:
            STARTED, CANCELLED_IN_QUEUE, STUCK_IN_QUEUE or TIMED_OUT status

        Raises:
            WaitInterruptedError: If a wait between polls is interrupted from
                outside the task; cancelling the task itself propagates
        """
        deadline = self._clock.monotonic() + max(timeout, 0.0)
        logger.debug(
            "Polling %s for job %s with params %s, timeout %.1fs",
            queue_reference.url, job_name, params or {}, timeout,
        )

        await self._wait(min(self._first_check_delay, deadline - self._clock.monotonic()))

        polls = 0
        while True:
            item = await server.get_queue_item(queue_reference)
            polls += 1

            if item.state is QueueItemState.STARTED:
                build = await server.get_build(job_name, item.build_number)
                logger.info("Build %s #%s started after %d polls", job_name, build.number, polls)
                return BuildTriggerStatus.started(queue_reference, build.number)
            elif item.state is QueueItemState.CANCELLED:
                logger.info("Build of %s was cancelled in the queue", job_name)
                return BuildTriggerStatus(TriggerState.CANCELLED_IN_QUEUE, queue_reference)
            elif item.state is QueueItemState.STUCK:
                logger.info("Build of %s is stuck in the queue: %s", job_name, item.why)
                return BuildTriggerStatus(TriggerState.STUCK_IN_QUEUE, queue_reference)
            elif item.state is not QueueItemState.PENDING:
                raise AssertionError(f"Unhandled queue item state {item.state!r}")

            remaining = deadline - self._clock.monotonic()
            if remaining <= DEADLINE_SLACK:
                logger.info("Build of %s still queued after %.1fs", job_name, timeout)
                return BuildTriggerStatus(TriggerState.TIMED_OUT, queue_reference)

            logger.debug("Build of %s still pending: %s", job_name, item.why)
            await self._wait(min(self._poll_period, remaining))

    async def build(
        self,
        server: JenkinsClient,
        job_name: str,
        timeout: float,
        params: dict[str, str] | None = None,
    ) -> BuildTriggerStatus:
        """Trigger a build and poll it until it starts or ``timeout`` passes."""
        status = await self.trigger_build(server, job_name, params)
        return await self.poll_build(server, job_name, status.queue_reference, timeout, params)

    async def cancel_queue_item(self, server: JenkinsClient, queue_reference: QueueReference) -> None:
        await server.cancel_queue_item(queue_reference)
        logger.info("Cancelled queue item %s", queue_reference.url)

    async def get_build_details(self, server: JenkinsClient, job_name: str, build_number: int) -> BuildInfo:
        return await server.get_build(job_name, build_number)

    async def get_build_history(self, server: JenkinsClient, job_name: str) -> list[BuildInfo]:
        """
        Details of the job's recent builds, newest first.

        Jenkins lists at most the 100 most recent builds; each one costs an
        extra request.
        """
        job = await server.get_job(job_name, tree="builds[number]")
        if job is None:
            return []

        history = []
        for entry in job.get("builds") or []:
            history.append(await server.get_build(job_name, int(entry["number"])))
        return history

    async def cancel_build(self, server: JenkinsClient, job_name: str, build_number: int) -> BuildInfo:
        """Stop a running build and return its refreshed details."""
        await server.stop_build(job_name, build_number)
        logger.info("Requested stop of %s #%s", job_name, build_number)
        return await server.get_build(job_name, build_number)

    async def get_build_logs(self, server: JenkinsClient, job_name: str, build_number: int) -> str:
        return await server.get_console_text(job_name, build_number)

    async def iter_build_logs(
        self,
        server: JenkinsClient,
        job_name: str,
        build_number: int,
        polling_interval: float = 2.0,
        polling_timeout: float = 3600.0,
    ) -> AsyncIterator[str]:
        """Yield console output as it is produced."""
        started = self._clock.monotonic()
        start = 0
        while True:
            chunk = await server.get_progressive_text(job_name, build_number, start)
            if chunk.text:
                yield chunk.text
            start = chunk.next_start

            if not chunk.more_data:
                return
            if self._clock.monotonic() - started >= polling_timeout:
                logger.warning(
                    "Stopped following logs of %s #%s after %.0fs",
                    job_name, build_number, polling_timeout,
                )
                return
            await self._wait(polling_interval)

    async def stream_build_logs(
        self,
        server: JenkinsClient,
        job_name: str,
        build_number: int,
        options: LogStreamingOptions,
    ) -> None:
        """Write console output to ``options.output`` until the build ends."""
        async for text in self.iter_build_logs(
            server,
            job_name,
            build_number,
            options.polling_interval,
            options.polling_timeout,
        ):
            options.output.write(text)
            options.output.flush()
