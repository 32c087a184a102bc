"""
Exceptions raised by Pod Deleter
"""

from typing import Optional


class PodDeleterError(Exception):
    """Base class for all Pod Deleter errors"""


class ConfigurationError(PodDeleterError):
    """Invalid option or configuration, raised at construction time"""


class ControllerStateError(PodDeleterError):
    """The controller loop was started twice or after it stopped"""


class PodNotFound(PodDeleterError):
    """The pod to delete no longer exists"""

    def __init__(self, namespace: str, name: str):
        self.namespace = namespace
        self.name = name
        super().__init__(f"pod {namespace}/{name} not found")


class ListFailed(PodDeleterError):
    """Listing pods failed; nothing was deleted in this pass"""

    def __init__(self, namespace: str, selector: str, cause: Optional[BaseException] = None):
        self.namespace = namespace
        self.selector = selector
        self.cause = cause
        scope = namespace or "all namespaces"
        message = f"failed to list pods in {scope}"
        if selector:
            message += f" with selector {selector!r}"
        if cause is not None:
            message += f": {cause}"
        super().__init__(message)


class DeleteFailed(PodDeleterError):
    """Deleting a pod failed for a reason other than it being gone"""

    def __init__(self, namespace: str, name: str, cause: Optional[BaseException] = None):
        self.namespace = namespace
        self.name = name
        self.cause = cause
        message = f"failed to delete pod {namespace}/{name}"
        if cause is not None:
            message += f": {cause}"
        super().__init__(message)
