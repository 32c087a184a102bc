"""
Logging configuration for Pod Deleter
"""

import logging
import sys
from typing import Any, Dict
import structlog
from colorama import init as colorama_init
from . import __version__

# Initialize colorama for cross-platform colored output
colorama_init()


def setup_logging(log_level: str = "INFO", log_format: str = "json") -> None:
    """Setup structured logging for the application"""
    log_level = log_level.upper()

    # Configure structlog
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            structlog.processors.JSONRenderer() if log_format == "json"
            else structlog.dev.ConsoleRenderer(colors=True)
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    # Configure standard library logging
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, log_level, logging.INFO),
        force=True,
    )

    # Suppress verbose kubernetes client logs
    logging.getLogger("kubernetes").setLevel(logging.WARNING)
    logging.getLogger("urllib3").setLevel(logging.WARNING)


def get_logger(name: str) -> structlog.BoundLogger:
    """Get a structured logger instance"""
    return structlog.get_logger(name)


class PodDeleterLogger:
    """Observer for controller events, backed by structlog"""

    def __init__(self, logger=None):
        self.logger = logger or get_logger("pod-deleter")

    def log_startup(self, config_dict: Dict[str, Any]) -> None:
        """Log application startup"""
        self.logger.info(
            "Pod Deleter starting up",
            version=__version__,
            config=config_dict
        )

    def log_pass_start(self, pass_id: str, namespace: str, selector: str) -> None:
        self.logger.info(
            "Starting reconciliation pass",
            pass_id=pass_id,
            namespace=namespace or "*",
            selector=selector
        )

    def log_pass_end(self, pass_id: str, deleted: int, checked: int,
                     already_gone: int = 0, cancelled: bool = False) -> None:
        self.logger.info(
            "Reconciliation pass completed",
            pass_id=pass_id,
            deleted_pods=deleted,
            already_gone=already_gone,
            total_pods_checked=checked,
            cancelled=cancelled
        )

    def log_pod_deleted(self, namespace: str, pod_name: str,
                        reason: str, dry_run: bool = False) -> None:
        """Log when a pod is deleted, or would be in dry-run mode"""
        self.logger.info(
            "Deleting pod",
            namespace=namespace,
            pod_name=pod_name,
            reason=reason,
            dry_run=dry_run
        )

    def log_pod_gone(self, namespace: str, pod_name: str) -> None:
        self.logger.info(
            "Pod already gone",
            namespace=namespace,
            pod_name=pod_name
        )

    def log_pod_skipped(self, namespace: str, pod_name: str, cause: str, **details) -> None:
        """Log when a pod is skipped"""
        self.logger.debug(
            "Skipping pod",
            namespace=namespace,
            pod_name=pod_name,
            cause=cause,
            **details
        )

    def log_cancelled(self, pass_id: str) -> None:
        self.logger.info("Reconciliation pass cancelled", pass_id=pass_id)

    def log_error(self, error: Exception, context: str = None) -> None:
        """Log errors with context"""
        self.logger.error(
            "Error occurred",
            error=str(error),
            error_type=type(error).__name__,
            context=context,
            exc_info=True
        )

    def log_warning(self, message: str, **kwargs) -> None:
        """Log warnings"""
        self.logger.warning(message, **kwargs)

    def log_debug(self, message: str, **kwargs) -> None:
        """Log debug information"""
        self.logger.debug(message, **kwargs)
