"""
Access to files archived by builds.
"""

import fnmatch
from collections.abc import AsyncIterator
from pathlib import Path

from digger.core.exceptions import JenkinsAPIError
from digger.core.logging import get_logger
from digger.services.jenkins.client import JenkinsClient
from digger.services.jenkins.schemas import Artifact

logger = get_logger(__name__)


def find_artifact(artifacts: list[Artifact], name: str) -> Artifact | None:
    """
    First artifact whose file name or relative path matches ``name``.

    ``name`` may be a glob pattern such as ``*.apk``.
    """
    for artifact in artifacts:
        if artifact.file_name == name or artifact.relative_path == name:
            return artifact
    for artifact in artifacts:
        if fnmatch.fnmatch(artifact.file_name, name) or fnmatch.fnmatch(artifact.relative_path, name):
            return artifact
    return None


class ArtifactsService:
    """Streams and saves build artifacts."""

    async def _resolve(
        self, server: JenkinsClient, job_name: str, build_number: int, name: str
    ) -> Artifact:
        build = await server.get_build(job_name, build_number)
        artifact = find_artifact(build.artifacts, name)
        if artifact is None:
            raise JenkinsAPIError(
                f"No artifact matching '{name}' in {job_name} #{build_number}"
            )
        return artifact

    async def stream_artifact(
        self,
        server: JenkinsClient,
        job_name: str,
        build_number: int,
        name: str,
    ) -> AsyncIterator[bytes]:
        """Yield the content of the first artifact matching ``name``."""
        artifact = await self._resolve(server, job_name, build_number, name)
        logger.debug("Streaming artifact %s of %s #%s", artifact.relative_path, job_name, build_number)
        async for chunk in server.iter_artifact(job_name, build_number, artifact.relative_path):
            yield chunk

    async def save_artifact(
        self,
        server: JenkinsClient,
        job_name: str,
        build_number: int,
        name: str,
        output_file: str | Path,
    ) -> Path:
        """
        Download the first artifact matching ``name`` to ``output_file``.

        The content goes to a hidden file beside ``output_file`` that replaces
        it only once the download is complete. A failed save leaves no file.

        Returns:
            Path the artifact was written to
        """
        path = Path(output_file)
        artifact = await self._resolve(server, job_name, build_number, name)

        tmp = path.with_name(f".{path.name}.part")
        size = 0
        try:
            with tmp.open("wb") as fh:
                async for chunk in server.iter_artifact(job_name, build_number, artifact.relative_path):
                    fh.write(chunk)
                    size += len(chunk)
            tmp.replace(path)
        except BaseException:
            tmp.unlink(missing_ok=True)
            raise
        logger.info("Saved %d bytes of %s to %s", size, artifact.relative_path, path)
        return path
