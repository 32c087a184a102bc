"""
Pod snapshots taken from a pod listing
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional, Tuple


class PodPhase:
    """Pod phases as reported in pod.status.phase"""

    PENDING = "Pending"
    RUNNING = "Running"
    SUCCEEDED = "Succeeded"
    FAILED = "Failed"
    UNKNOWN = "Unknown"


class ContainerState:
    RUNNING = "running"
    WAITING = "waiting"
    TERMINATED = "terminated"


@dataclass(frozen=True)
class ContainerStatus:
    """State of a single container: running, waiting or terminated"""

    name: str = ""
    state: Optional[str] = None
    reason: str = ""

    @classmethod
    def running(cls, name: str = "") -> "ContainerStatus":
        return cls(name=name, state=ContainerState.RUNNING)

    @classmethod
    def waiting(cls, reason: str = "", name: str = "") -> "ContainerStatus":
        return cls(name=name, state=ContainerState.WAITING, reason=reason or "")

    @classmethod
    def terminated(cls, reason: str = "", name: str = "") -> "ContainerStatus":
        return cls(name=name, state=ContainerState.TERMINATED, reason=reason or "")

    @classmethod
    def from_kubernetes(cls, status) -> "ContainerStatus":
        """Build from a kubernetes.client.V1ContainerStatus"""
        name = status.name or ""
        state = status.state
        if state is None:
            return cls(name=name)
        # terminated wins over waiting if the API ever reports both
        if state.terminated is not None:
            return cls.terminated(state.terminated.reason, name=name)
        if state.waiting is not None:
            return cls.waiting(state.waiting.reason, name=name)
        if state.running is not None:
            return cls.running(name=name)
        return cls(name=name)


@dataclass(frozen=True)
class PodSnapshot:
    """Read-only view of a pod at list time"""

    namespace: str
    name: str
    creation_timestamp: Optional[datetime]
    phase: str
    container_statuses: Tuple[ContainerStatus, ...] = field(default_factory=tuple)

    def __post_init__(self):
        # naive timestamps are taken as UTC
        created = self.creation_timestamp
        if created is not None and created.tzinfo is None:
            object.__setattr__(self, "creation_timestamp", created.replace(tzinfo=timezone.utc))

    @property
    def key(self) -> str:
        return f"{self.namespace}/{self.name}"

    @classmethod
    def from_kubernetes(cls, pod) -> "PodSnapshot":
        """Build from a kubernetes.client.V1Pod"""
        metadata = pod.metadata
        status = pod.status

        statuses = ()
        phase = PodPhase.UNKNOWN
        if status is not None:
            phase = status.phase or PodPhase.UNKNOWN
            statuses = tuple(
                ContainerStatus.from_kubernetes(s) for s in (status.container_statuses or [])
            )

        return cls(
            namespace=metadata.namespace or "",
            name=metadata.name or "",
            creation_timestamp=metadata.creation_timestamp,
            phase=phase,
            container_statuses=statuses,
        )
