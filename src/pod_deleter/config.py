"""
Configuration management for Pod Deleter
"""

import os
import re
from typing import List, Optional
from dataclasses import dataclass
from datetime import timedelta
from dotenv import load_dotenv

from .errors import ConfigurationError
from .evaluator import DEFAULT_GRACE, DEFAULT_INTERVAL, DEFAULT_REASONS

# Load environment variables
load_dotenv()

_DURATION_PART = re.compile(r"(\d+(?:\.\d*)?|\.\d+)(ns|us|µs|ms|s|m|h)")
_UNIT_SECONDS = {
    "ns": 1e-9,
    "us": 1e-6,
    "µs": 1e-6,
    "ms": 1e-3,
    "s": 1,
    "m": 60,
    "h": 3600,
}


def _timedelta(seconds, value) -> timedelta:
    try:
        return timedelta(seconds=seconds)
    except (ValueError, OverflowError) as e:
        raise ConfigurationError(f"invalid duration {value!r}: {e}") from e


def parse_duration(value) -> timedelta:
    """Parse "90s", "5m", "1h30m" or a bare number of seconds"""
    if isinstance(value, timedelta):
        return value
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return _timedelta(value, value)

    text = str(value).strip()
    if not text:
        raise ConfigurationError("empty duration")

    try:
        seconds = float(text)
    except ValueError:
        pass
    else:
        return _timedelta(seconds, value)

    sign = 1
    if text[0] in "+-":
        sign = -1 if text[0] == "-" else 1
        text = text[1:]

    seconds = 0.0
    pos = 0
    for match in _DURATION_PART.finditer(text):
        if match.start() != pos:
            break
        seconds += float(match.group(1)) * _UNIT_SECONDS[match.group(2)]
        pos = match.end()

    if pos == 0 or pos != len(text):
        raise ConfigurationError(f"invalid duration {value!r}")
    return _timedelta(sign * seconds, value)


def parse_reasons(values) -> List[str]:
    """Flatten repeated and comma separated reason values"""
    if isinstance(values, str):
        values = [values]
    reasons = []
    for value in values:
        for reason in value.split(","):
            reason = reason.strip()
            if reason and reason not in reasons:
                reasons.append(reason)
    return reasons


def _env_bool(name: str, default: bool) -> bool:
    return os.getenv(name, str(default)).lower() in ("true", "1", "yes")


@dataclass
class Config:
    """Configuration class for Pod Deleter"""

    # Kubernetes configuration
    kube_config_path: Optional[str] = None
    kube_context: Optional[str] = None

    # Pod filters
    namespace: str = ""
    selector: str = ""

    # Container reasons that make a pod eligible for deletion
    reasons: List[str] = None

    # Scheduling configuration
    grace_period: timedelta = DEFAULT_GRACE
    interval: timedelta = DEFAULT_INTERVAL

    # Execution control
    dry_run: bool = False
    once: bool = False

    # Logging configuration
    log_level: str = "INFO"
    log_format: str = "json"

    # Metrics
    metrics_port: int = 0
    pushgateway_url: Optional[str] = None
    metrics_job_name: str = "pod_deleter"

    def __post_init__(self):
        """Initialize default values after dataclass creation"""
        if self.reasons is None:
            self.reasons = list(DEFAULT_REASONS)

        # Override with environment variables if present
        self.kube_config_path = os.getenv("KUBECONFIG_PATH", self.kube_config_path)
        self.kube_context = os.getenv("KUBE_CONTEXT", self.kube_context)
        self.namespace = os.getenv("NAMESPACE", self.namespace)
        self.selector = os.getenv("SELECTOR", self.selector)
        self.dry_run = _env_bool("DRY_RUN", self.dry_run)
        self.once = _env_bool("ONCE", self.once)
        self.log_level = os.getenv("LOG_LEVEL", self.log_level)
        self.log_format = os.getenv("LOG_FORMAT", self.log_format)
        self.pushgateway_url = os.getenv("PROMETHEUS_PUSHGATEWAY_URL", self.pushgateway_url)
        self.metrics_job_name = os.getenv("PROMETHEUS_JOB_NAME", self.metrics_job_name)

        try:
            self.metrics_port = int(os.getenv("METRICS_PORT", self.metrics_port))
        except ValueError as e:
            raise ConfigurationError(f"invalid METRICS_PORT: {e}") from e

        self.grace_period = parse_duration(os.getenv("GRACE_PERIOD", self.grace_period))
        self.interval = parse_duration(os.getenv("INTERVAL", self.interval))

        # Parse reasons from environment
        reasons_env = os.getenv("REASONS")
        if reasons_env:
            self.reasons = parse_reasons(reasons_env)

    def as_dict(self) -> dict:
        """Loggable view of the configuration"""
        return {
            "kube_config_path": self.kube_config_path,
            "kube_context": self.kube_context,
            "namespace": self.namespace,
            "selector": self.selector,
            "reasons": list(self.reasons),
            "grace_period_seconds": self.grace_period.total_seconds(),
            "interval_seconds": self.interval.total_seconds(),
            "dry_run": self.dry_run,
            "once": self.once,
            "log_level": self.log_level,
            "log_format": self.log_format,
            "metrics_port": self.metrics_port,
            "pushgateway_url": self.pushgateway_url,
        }
