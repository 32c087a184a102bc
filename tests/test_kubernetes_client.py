"""
Tests for the Kubernetes API client wrapper, using a mocked CoreV1Api
"""

from datetime import datetime, timezone
from types import SimpleNamespace
from unittest.mock import MagicMock, patch

import pytest
from kubernetes import client
from kubernetes.client.exceptions import ApiException
from kubernetes.config.config_exception import ConfigException

from pod_deleter.errors import ConfigurationError, PodNotFound
from pod_deleter.kubernetes_client import KubernetesClient
from pod_deleter.models import ContainerState, PodPhase, PodSnapshot

CREATED = datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)


def container_status(name, state):
    return client.V1ContainerStatus(
        name=name,
        image="busybox",
        image_id="",
        ready=False,
        restart_count=3,
        state=state,
    )


def v1_pod(name, namespace="default", phase="Running", statuses=None, created=CREATED):
    return client.V1Pod(
        metadata=client.V1ObjectMeta(name=name, namespace=namespace, creation_timestamp=created),
        status=client.V1PodStatus(phase=phase, container_statuses=statuses),
    )


def page(pods, token=None):
    return SimpleNamespace(items=pods, metadata=SimpleNamespace(_continue=token))


def test_list_all_namespaces():
    api = MagicMock()
    api.list_pod_for_all_namespaces.return_value = page([v1_pod("pod0"), v1_pod("pod1", namespace="apps")])

    pods = KubernetesClient(api=api).list_pods()

    assert [pod.key for pod in pods] == ["default/pod0", "apps/pod1"]
    api.list_pod_for_all_namespaces.assert_called_once_with(watch=False, limit=500)
    api.list_namespaced_pod.assert_not_called()


def test_list_namespace_with_selector():
    api = MagicMock()
    api.list_namespaced_pod.return_value = page([v1_pod("pod0", namespace="apps")])

    pods = KubernetesClient(api=api).list_pods("apps", "app=web")

    assert len(pods) == 1
    api.list_namespaced_pod.assert_called_once_with("apps", watch=False, limit=500, label_selector="app=web")


def test_list_follows_continue_token():
    api = MagicMock()
    api.list_pod_for_all_namespaces.side_effect = [
        page([v1_pod("pod0"), v1_pod("pod1")], token="next"),
        page([v1_pod("pod2")]),
    ]

    pods = KubernetesClient(api=api, page_size=2).list_pods()

    assert [pod.name for pod in pods] == ["pod0", "pod1", "pod2"]
    second_call = api.list_pod_for_all_namespaces.call_args_list[1]
    assert second_call.kwargs["_continue"] == "next"
    assert second_call.kwargs["limit"] == 2


def test_list_errors_propagate():
    api = MagicMock()
    api.list_pod_for_all_namespaces.side_effect = ApiException(status=403, reason="Forbidden")

    with pytest.raises(ApiException):
        KubernetesClient(api=api).list_pods()


def test_delete_pod():
    api = MagicMock()
    KubernetesClient(api=api).delete_pod("apps", "pod0")

    kwargs = api.delete_namespaced_pod.call_args.kwargs
    assert kwargs["name"] == "pod0"
    assert kwargs["namespace"] == "apps"


def test_delete_missing_pod_raises_not_found():
    api = MagicMock()
    api.delete_namespaced_pod.side_effect = ApiException(status=404, reason="Not Found")

    with pytest.raises(PodNotFound) as excinfo:
        KubernetesClient(api=api).delete_pod("apps", "pod0")

    assert excinfo.value.namespace == "apps"
    assert excinfo.value.name == "pod0"


def test_delete_other_errors_propagate():
    api = MagicMock()
    api.delete_namespaced_pod.side_effect = ApiException(status=500, reason="Internal Server Error")

    with pytest.raises(ApiException) as excinfo:
        KubernetesClient(api=api).delete_pod("apps", "pod0")

    assert excinfo.value.status == 500


def test_config_failure_is_configuration_error():
    with patch("pod_deleter.kubernetes_client.load_config", side_effect=ConfigException("no config")):
        with pytest.raises(ConfigurationError):
            KubernetesClient()


def test_explicit_kubeconfig_and_context():
    with patch("pod_deleter.kubernetes_client.config") as kube_config, \
            patch("pod_deleter.kubernetes_client.client.CoreV1Api") as core_v1:
        k8s = KubernetesClient("/tmp/kubeconfig", "staging")

    kube_config.load_kube_config.assert_called_once_with(config_file="/tmp/kubeconfig", context="staging")
    kube_config.load_incluster_config.assert_not_called()
    assert k8s.v1 is core_v1.return_value


def test_snapshot_from_kubernetes_pod():
    pod = v1_pod("pod0", phase="Failed", statuses=[
        container_status("main", client.V1ContainerState(
            terminated=client.V1ContainerStateTerminated(exit_code=1, reason="Error"))),
        container_status("sidecar", client.V1ContainerState(
            waiting=client.V1ContainerStateWaiting(reason="CrashLoopBackOff"))),
        container_status("proxy", client.V1ContainerState(
            running=client.V1ContainerStateRunning())),
        container_status("new", None),
    ])

    snapshot = PodSnapshot.from_kubernetes(pod)

    assert snapshot.namespace == "default"
    assert snapshot.name == "pod0"
    assert snapshot.phase == PodPhase.FAILED
    assert snapshot.creation_timestamp == CREATED
    assert [(s.name, s.state, s.reason) for s in snapshot.container_statuses] == [
        ("main", ContainerState.TERMINATED, "Error"),
        ("sidecar", ContainerState.WAITING, "CrashLoopBackOff"),
        ("proxy", ContainerState.RUNNING, ""),
        ("new", None, ""),
    ]


def test_snapshot_without_status():
    pod = client.V1Pod(metadata=client.V1ObjectMeta(name="pod0", namespace="default",
                                                    creation_timestamp=datetime(2024, 1, 1)))
    snapshot = PodSnapshot.from_kubernetes(pod)

    assert snapshot.phase == PodPhase.UNKNOWN
    assert snapshot.container_statuses == ()
    assert snapshot.creation_timestamp.tzinfo is timezone.utc
