"""
Shared pytest fixtures for Pod Deleter tests.

- FakeCluster: in-memory pod lister/deleter standing in for the Kubernetes API
- make_pod: build a pod snapshot of a given age, phase and container state
"""

import os
import sys
from datetime import datetime, timedelta, timezone
from typing import Dict, List, Optional

import pytest

# Add src to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), "src"))

from pod_deleter.models import ContainerStatus, PodPhase, PodSnapshot  # noqa: E402

ENV_VARS = [
    "KUBECONFIG_PATH", "KUBE_CONTEXT", "NAMESPACE", "SELECTOR", "REASONS",
    "GRACE_PERIOD", "INTERVAL", "DRY_RUN", "ONCE", "LOG_LEVEL", "LOG_FORMAT",
    "METRICS_PORT", "PROMETHEUS_PUSHGATEWAY_URL", "PROMETHEUS_JOB_NAME",
]


def make_pod(age: timedelta, namespace: str = "default", name: str = "pod0",
             phase: str = PodPhase.RUNNING, state: str = "Terminated",
             reason: str = "") -> PodSnapshot:
    """Create a test pod with a single container in the given state"""
    if state == "Running":
        statuses = (ContainerStatus.running(name="main"),)
    elif state == "Waiting":
        statuses = (ContainerStatus.waiting(reason, name="main"),)
    elif state == "Terminated":
        statuses = (ContainerStatus.terminated(reason, name="main"),)
    else:
        statuses = (ContainerStatus(name="main"),)

    return PodSnapshot(
        namespace=namespace,
        name=name,
        creation_timestamp=datetime.now(timezone.utc) - age,
        phase=phase,
        container_statuses=statuses,
    )


class FakeCluster:
    """In-memory cluster: list_pods returns the pods, delete_pod removes them"""

    def __init__(self, pods=None, delete_errors: Optional[Dict[str, Exception]] = None,
                 list_error: Optional[Exception] = None):
        self.pods: List[PodSnapshot] = list(pods or [])
        self.delete_errors = dict(delete_errors or {})
        self.list_error = list_error
        self.list_calls = []
        self.delete_calls = []
        self.on_delete = None

    def list_pods(self, namespace, selector):
        self.list_calls.append((namespace, selector))
        if self.list_error is not None:
            raise self.list_error
        return list(self.pods)

    def delete_pod(self, namespace, name):
        key = f"{namespace}/{name}"
        self.delete_calls.append(key)
        if self.on_delete is not None:
            self.on_delete(key)
        error = self.delete_errors.get(key)
        if error is not None:
            raise error
        self.pods = [pod for pod in self.pods if pod.key != key]

    def names(self):
        return [pod.name for pod in self.pods]


@pytest.fixture
def clean_env(monkeypatch):
    """Remove Pod Deleter environment variables for the duration of a test"""
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


@pytest.fixture
def cluster():
    return FakeCluster()
