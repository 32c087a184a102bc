"""
Controller that deletes pods stuck in failure states

Controller.once() runs a single reconciliation pass. Controller.loop() runs
a pass immediately and then every interval until Controller.stop() is called
or a pass fails.
"""

import time
import threading
import uuid
from collections import Counter
from dataclasses import dataclass, field
from datetime import timedelta
from enum import Enum
from typing import Dict, Iterable, List, Optional, Union

from . import metrics
from .config import Config, parse_duration
from .errors import ConfigurationError, ControllerStateError, DeleteFailed, ListFailed, PodNotFound
from .evaluator import (
    DEFAULT_GRACE,
    DEFAULT_INTERVAL,
    DEFAULT_REASONS,
    Decision,
    Policy,
    SkipCause,
    evaluate_pod,
)
from .logger import PodDeleterLogger
from .models import PodSnapshot

Duration = Union[timedelta, int, float, str]


class ControllerState(str, Enum):
    IDLE = "idle"
    RUNNING = "running"
    STOPPED = "stopped"


@dataclass
class PassResult:
    """Summary of one reconciliation pass"""

    pass_id: str
    checked: int = 0
    deleted: int = 0
    already_gone: int = 0
    cancelled: bool = False
    skipped: Dict[str, int] = field(default_factory=Counter)
    deleted_pods: List[str] = field(default_factory=list)


class Controller:
    def __init__(self, lister, deleter=None, *,
                 namespace: str = "",
                 selector: str = "",
                 grace: Duration = DEFAULT_GRACE,
                 interval: Duration = DEFAULT_INTERVAL,
                 reasons: Iterable[str] = DEFAULT_REASONS,
                 dry_run: bool = False,
                 logger=None):
        """
        lister must provide list_pods(namespace, selector) and deleter must
        provide delete_pod(namespace, name). When deleter is omitted the
        lister is used for both.
        """
        self.lister = lister
        self.deleter = deleter if deleter is not None else lister

        grace = parse_duration(grace)
        if grace < timedelta(0):
            raise ConfigurationError(f"grace period must not be negative, got {grace}")

        interval = parse_duration(interval)
        if interval <= timedelta(0):
            raise ConfigurationError(f"interval must be positive, got {interval}")
        if interval.total_seconds() > threading.TIMEOUT_MAX:
            raise ConfigurationError(f"interval must not exceed {threading.TIMEOUT_MAX} seconds, got {interval}")
        self.interval = interval

        if isinstance(reasons, str):
            raise ConfigurationError("reasons must be a collection of strings, not a string")
        reasons = frozenset(reasons)
        for reason in reasons:
            if not isinstance(reason, str):
                raise ConfigurationError(f"reason must be a string, got {reason!r}")

        self.policy = Policy(
            grace=grace,
            reasons=reasons,
            namespace=namespace or "",
            selector=selector or "",
            dry_run=bool(dry_run),
        )

        if logger is None:
            logger = PodDeleterLogger()
        elif not isinstance(logger, PodDeleterLogger):
            logger = PodDeleterLogger(logger)
        self.logger = logger

        self._stop = threading.Event()
        self._lock = threading.Lock()
        self._state = ControllerState.IDLE

    @classmethod
    def from_config(cls, client, cfg: Config, logger=None) -> "Controller":
        return cls(
            client,
            namespace=cfg.namespace,
            selector=cfg.selector,
            grace=cfg.grace_period,
            interval=cfg.interval,
            reasons=cfg.reasons,
            dry_run=cfg.dry_run,
            logger=logger,
        )

    @property
    def state(self) -> ControllerState:
        return self._state

    def once(self, cancel: Optional[threading.Event] = None) -> PassResult:
        """Run one reconciliation pass

        The cancel event is checked before each pod. When it is set the pass
        returns early with the pods handled so far; that is not an error.
        """
        if cancel is None:
            cancel = threading.Event()

        result = PassResult(pass_id=uuid.uuid4().hex[:8])
        self.logger.log_pass_start(result.pass_id, self.policy.namespace, self.policy.selector)

        start_time = time.monotonic()
        try:
            self._reconcile(result, cancel)
        except Exception:
            metrics.record_pass("error", time.monotonic() - start_time)
            raise

        metrics.record_pass("cancelled" if result.cancelled else "success",
                            time.monotonic() - start_time)
        self.logger.log_pass_end(
            result.pass_id,
            deleted=result.deleted,
            checked=result.checked,
            already_gone=result.already_gone,
            cancelled=result.cancelled,
        )
        return result

    def _reconcile(self, result: PassResult, cancel: threading.Event) -> None:
        policy = self.policy
        try:
            pods = self.lister.list_pods(policy.namespace, policy.selector)
        except Exception as e:
            raise ListFailed(policy.namespace, policy.selector, e) from e

        for pod in pods:
            # only checked between pods; list and delete calls are not interrupted
            if cancel.is_set():
                result.cancelled = True
                self.logger.log_cancelled(result.pass_id)
                return

            result.checked += 1
            decision = evaluate_pod(pod, policy)
            if not decision.eligible:
                self._skip(result, pod, decision)
                continue

            self.logger.log_pod_deleted(pod.namespace, pod.name, decision.reason, policy.dry_run)
            if not policy.dry_run:
                try:
                    self.deleter.delete_pod(pod.namespace, pod.name)
                except PodNotFound:
                    # the pod may have exited or been removed concurrently
                    self.logger.log_pod_gone(pod.namespace, pod.name)
                    result.already_gone += 1
                    continue
                except Exception as e:
                    raise DeleteFailed(pod.namespace, pod.name, e) from e

            result.deleted += 1
            result.deleted_pods.append(pod.key)
            metrics.record_deleted(pod.namespace, decision.reason, policy.dry_run)

    def _skip(self, result: PassResult, pod: PodSnapshot, decision: Decision) -> None:
        cause = decision.cause
        result.skipped[cause.value] += 1
        metrics.record_skipped(cause.value)

        details = {}
        if cause is SkipCause.PHASE_EXCLUDED:
            details["phase"] = pod.phase
        elif cause is SkipCause.TOO_YOUNG:
            created = pod.creation_timestamp
            details["creation_timestamp"] = created.isoformat() if created else None
        else:
            details["container_reasons"] = list(decision.unmatched)
        self.logger.log_pod_skipped(pod.namespace, pod.name, cause.value, **details)

    def loop(self) -> None:
        """Run passes until stopped

        The first pass runs immediately. Any pass error ends the loop and is
        raised to the caller.
        """
        with self._lock:
            if self._state is not ControllerState.IDLE:
                raise ControllerStateError(f"controller is already {self._state.value}")
            if self._stop.is_set():
                self._state = ControllerState.STOPPED
                return
            self._state = ControllerState.RUNNING

        interval = self.interval.total_seconds()
        try:
            # the stop event is also the cancellation token of the running pass
            self.once(self._stop)
            while not self._stop.wait(interval):
                self.once(self._stop)
        finally:
            with self._lock:
                self._state = ControllerState.STOPPED

    def stop(self) -> None:
        """Request the loop to stop; safe to call any number of times from any thread"""
        self._stop.set()
