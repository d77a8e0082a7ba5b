# Services module - Jenkins operations used by DiggerClient
from .artifacts import ArtifactsService
from .builds import BuildService, LogStreamingOptions
from .jobs import JobService

__all__ = ["ArtifactsService", "BuildService", "JobService", "LogStreamingOptions"]
