"""
Eligibility rules for deleting a pod

A pod is deleted when it is Running or Failed, older than the grace period,
and at least one of its containers is terminated or waiting with one of the
accepted reasons.
"""

from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import FrozenSet, Optional, Tuple

from .models import ContainerState, ContainerStatus, PodPhase, PodSnapshot

DEFAULT_REASONS = ("CrashLoopBackOff", "Error")
DEFAULT_GRACE = timedelta(minutes=30)
DEFAULT_INTERVAL = timedelta(minutes=10)

CANDIDATE_PHASES = frozenset({PodPhase.RUNNING, PodPhase.FAILED})


class SkipCause(str, Enum):
    PHASE_EXCLUDED = "PhaseExcluded"
    TOO_YOUNG = "TooYoung"
    REASON_NOT_MATCHED = "ReasonNotMatched"


@dataclass(frozen=True)
class Policy:
    """Immutable deletion policy, fixed for the lifetime of a controller"""

    grace: timedelta = DEFAULT_GRACE
    reasons: FrozenSet[str] = frozenset(DEFAULT_REASONS)
    namespace: str = ""
    selector: str = ""
    dry_run: bool = False


@dataclass(frozen=True)
class Decision:
    eligible: bool
    cause: Optional[SkipCause] = None
    reason: str = ""
    unmatched: Tuple[str, ...] = field(default_factory=tuple)

    @classmethod
    def delete(cls, reason: str) -> "Decision":
        return cls(eligible=True, reason=reason)

    @classmethod
    def skip(cls, cause: SkipCause, unmatched: Tuple[str, ...] = ()) -> "Decision":
        return cls(eligible=False, cause=cause, unmatched=unmatched)


def container_reason(status: ContainerStatus) -> str:
    """Reason of a terminated or waiting container, empty otherwise"""
    if status.state is None or status.state == ContainerState.RUNNING:
        return ""
    return status.reason or ""


def evaluate_pod(pod: PodSnapshot, policy: Policy, now: Optional[datetime] = None) -> Decision:
    """Decide whether a pod should be deleted under the given policy"""
    if pod.phase not in CANDIDATE_PHASES:
        return Decision.skip(SkipCause.PHASE_EXCLUDED)

    now = now or datetime.now(timezone.utc)
    if pod.creation_timestamp is None or now < pod.creation_timestamp + policy.grace:
        return Decision.skip(SkipCause.TOO_YOUNG)

    unmatched = []
    for status in pod.container_statuses:
        reason = container_reason(status)
        if reason in policy.reasons:
            return Decision.delete(reason)
        unmatched.append(reason)

    return Decision.skip(SkipCause.REASON_NOT_MATCHED, tuple(unmatched))
