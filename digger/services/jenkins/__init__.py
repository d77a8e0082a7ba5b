# Jenkins services - Jenkins API integration
from .client import JenkinsClient
from .schemas import BuildInfo, JobInfo, QueueItem, QueueItemState, QueueReference

__all__ = [
    "JenkinsClient",
    "BuildInfo",
    "JobInfo",
    "QueueItem",
    "QueueItemState",
    "QueueReference",
]
