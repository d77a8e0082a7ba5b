"""
Client for triggering builds on Jenkins and following them through the queue.
"""

from digger.client import DiggerClient
from digger.core.config import ClientConfig
from digger.core.exceptions import DiggerClientError, ErrorKind
from digger.models.status import BuildTriggerStatus, TriggerState
from digger.services.jenkins.schemas import QueueReference

__all__ = [
    "BuildTriggerStatus",
    "ClientConfig",
    "DiggerClient",
    "DiggerClientError",
    "ErrorKind",
    "QueueReference",
    "TriggerState",
]
