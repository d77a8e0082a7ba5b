"""
Data schemas for Jenkins API payloads.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


@dataclass(frozen=True)
class QueueReference:
    """Queue item handle returned by Jenkins when a build is enqueued."""

    url: str

    @property
    def queue_id(self) -> int | None:
        """Numeric queue item id parsed from the URL, if present."""
        parts = [p for p in self.url.rstrip("/").split("/") if p]
        if len(parts) >= 2 and parts[-2] == "item":
            try:
                return int(parts[-1])
            except ValueError:
                return None
        return None

    @property
    def api_url(self) -> str:
        return f"{self.url.rstrip('/')}/api/json"


class QueueItemState(str, Enum):
    """What a queue item says about its build request."""

    PENDING = "pending"
    CANCELLED = "cancelled"
    STUCK = "stuck"
    STARTED = "started"


@dataclass(frozen=True)
class QueueItem:
    """Classified queue item response."""

    state: QueueItemState
    build_number: int | None = None
    build_url: str | None = None
    why: str | None = None

    @classmethod
    def from_json(cls, data: dict[str, Any]) -> "QueueItem":
        """
        Classify a ``/queue/item/<id>/api/json`` payload.

        Cancellation wins over everything else, then an assigned executable,
        then the stuck flag; whatever is left is still pending.
        """
        why = data.get("why")
        if data.get("cancelled"):
            return cls(QueueItemState.CANCELLED, why=why)

        executable = data.get("executable") or {}
        number = executable.get("number")
        if number is not None:
            return cls(
                QueueItemState.STARTED,
                build_number=int(number),
                build_url=executable.get("url"),
                why=why,
            )

        if data.get("stuck"):
            return cls(QueueItemState.STUCK, why=why)

        return cls(QueueItemState.PENDING, why=why)


@dataclass
class BuildInfo:
    """Build details as reported by ``/job/<name>/<number>/api/json``."""

    number: int
    url: str = ""
    building: bool = False
    result: str | None = None
    duration: int = 0
    timestamp: int = 0
    display_name: str = ""
    queue_id: int | None = None
    artifacts: list["Artifact"] = field(default_factory=list)

    @classmethod
    def from_json(cls, data: dict[str, Any]) -> "BuildInfo":
        return cls(
            number=int(data["number"]),
            url=data.get("url") or "",
            building=bool(data.get("building", False)),
            result=data.get("result"),
            duration=int(data.get("duration") or 0),
            timestamp=int(data.get("timestamp") or 0),
            display_name=data.get("displayName") or f"#{data['number']}",
            queue_id=data.get("queueId"),
            artifacts=[Artifact.from_json(a) for a in data.get("artifacts") or []],
        )


@dataclass
class Artifact:
    """A file archived by a build."""

    file_name: str
    relative_path: str

    @classmethod
    def from_json(cls, data: dict[str, Any]) -> "Artifact":
        return cls(
            file_name=data.get("fileName") or "",
            relative_path=data.get("relativePath") or "",
        )


@dataclass
class JobInfo:
    """Job summary from ``/job/<name>/api/json``."""

    name: str
    url: str = ""
    buildable: bool = True
    in_queue: bool = False
    next_build_number: int | None = None
    last_build_number: int | None = None
    build_numbers: list[int] = field(default_factory=list)

    @classmethod
    def from_json(cls, data: dict[str, Any]) -> "JobInfo":
        last_build = data.get("lastBuild") or {}
        return cls(
            name=data.get("name") or data.get("fullName") or "",
            url=data.get("url") or "",
            buildable=bool(data.get("buildable", True)),
            in_queue=bool(data.get("inQueue", False)),
            next_build_number=data.get("nextBuildNumber"),
            last_build_number=last_build.get("number"),
            build_numbers=[int(b["number"]) for b in data.get("builds") or []],
        )


@dataclass(frozen=True)
class LogChunk:
    """One slice of progressive console output."""

    text: str
    next_start: int
    more_data: bool
