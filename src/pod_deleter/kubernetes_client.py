import os
import logging
from typing import List, Optional
from kubernetes import client, config
from kubernetes.client.exceptions import ApiException
from kubernetes.config.config_exception import ConfigException

from .errors import ConfigurationError, PodNotFound
from .models import PodSnapshot

logger = logging.getLogger(__name__)

LIST_PAGE_SIZE = 500


class KubernetesClient:
    """Lists and deletes pods through the Kubernetes API"""

    def __init__(self, kubeconfig: Optional[str] = None, context: Optional[str] = None,
                 api: Optional[client.CoreV1Api] = None, page_size: int = LIST_PAGE_SIZE):
        self.page_size = page_size

        if api is not None:
            self.v1 = api
            return

        try:
            load_config(kubeconfig, context)
        except (ConfigException, OSError) as e:
            raise ConfigurationError(f"could not load Kubernetes configuration: {e}") from e

        self.v1 = client.CoreV1Api()
        logger.info("Kubernetes client initialized")

    def list_pods(self, namespace: str = "", selector: str = "") -> List[PodSnapshot]:
        """List pods in a namespace, or all namespaces when namespace is empty"""
        pods = []
        _continue = None
        while True:
            kwargs = {"watch": False, "limit": self.page_size}
            if selector:
                kwargs["label_selector"] = selector
            if _continue:
                kwargs["_continue"] = _continue

            if namespace:
                response = self.v1.list_namespaced_pod(namespace, **kwargs)
            else:
                response = self.v1.list_pod_for_all_namespaces(**kwargs)

            pods.extend(PodSnapshot.from_kubernetes(pod) for pod in response.items)

            _continue = response.metadata._continue if response.metadata else None
            if not _continue:
                break

        logger.debug(f"Listed {len(pods)} pods")
        return pods

    def delete_pod(self, namespace: str, name: str) -> None:
        """Delete a pod, raising PodNotFound if it no longer exists"""
        try:
            self.v1.delete_namespaced_pod(
                name=name,
                namespace=namespace,
                body=client.V1DeleteOptions(propagation_policy='Foreground')
            )
        except ApiException as e:
            if e.status == 404:
                raise PodNotFound(namespace, name) from e
            raise
        logger.debug(f"Deleted pod {namespace}/{name}")


def load_config(kubeconfig: Optional[str] = None, context: Optional[str] = None) -> None:
    """Load Kubernetes configuration

    An explicit kubeconfig wins, then the KUBECONFIG environment variable,
    then the in-cluster service account, then the default kubeconfig location.
    """
    if kubeconfig:
        logger.info(f"Loading kubeconfig from {kubeconfig}")
        config.load_kube_config(config_file=kubeconfig, context=context)
        return

    kubeconfig_path = os.getenv('KUBECONFIG')
    if kubeconfig_path and os.path.exists(kubeconfig_path):
        logger.info(f"Loading kubeconfig from KUBECONFIG environment: {kubeconfig_path}")
        config.load_kube_config(config_file=kubeconfig_path, context=context)
        return

    try:
        config.load_incluster_config()
        logger.info("Loaded in-cluster Kubernetes configuration")
    except ConfigException:
        config.load_kube_config(context=context)
        logger.info("Loaded kubeconfig from default location")
