"""
Job lookup and management.
"""

from digger.core.logging import get_logger
from digger.services.jenkins.client import JenkinsClient
from digger.services.jenkins.schemas import JobInfo

logger = get_logger(__name__)


class JobService:
    """
    Create, update, fetch and delete jobs.

    Job definitions are passed through as config XML; building them is up
    to the caller.
    """

    async def get(self, server: JenkinsClient, name: str) -> JobInfo | None:
        """Job details, or None when there is no such job."""
        return await server.get_job_info(name)

    async def create(self, server: JenkinsClient, name: str, config_xml: str) -> None:
        await server.create_job(name, config_xml)
        logger.info("Created job %s", name)

    async def update(self, server: JenkinsClient, name: str, config_xml: str) -> None:
        await server.update_job(name, config_xml)
        logger.info("Updated job %s", name)

    async def delete(self, server: JenkinsClient, name: str) -> None:
        await server.delete_job(name)
        logger.info("Deleted job %s", name)
