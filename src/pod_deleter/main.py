#!/usr/bin/env python3
"""
Kubernetes Pod Deleter - Main Application
"""

import argparse
import signal
import sys

from . import metrics
from .config import Config, parse_duration, parse_reasons
from .controller import Controller
from .errors import PodDeleterError
from .kubernetes_client import KubernetesClient
from .logger import PodDeleterLogger, get_logger, setup_logging


def build_parser(defaults: Config) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="pod-deleter",
        description="delete pods in certain states",
    )
    parser.add_argument("--kubeconfig", default=defaults.kube_config_path,
                        help="Kubernetes client config. If not specified, an in-cluster client is tried.")
    parser.add_argument("--context", default=defaults.kube_context,
                        help="Kubernetes client context. Defaults to the current context of the config file.")
    parser.add_argument("--namespace", default=defaults.namespace,
                        help="only consider pods in this namespace. Default is all namespaces")
    parser.add_argument("--selector", default=defaults.selector,
                        help="only consider pods that match this label selector. Default is all pods")
    parser.add_argument("--once", action="store_true", default=defaults.once,
                        help="run controller loop once and exit")
    parser.add_argument("--dry-run", action="store_true", default=defaults.dry_run,
                        help="run controller but do not delete pods")
    parser.add_argument("--reasons", action="append", default=None,
                        help="reasons to delete pod. exact match only. May be passed multiple times "
                             f"or comma separated (default: {','.join(defaults.reasons)})")
    parser.add_argument("--grace-period", type=parse_duration, default=defaults.grace_period,
                        help="pods that were created less than this time ago are not considered for deletion")
    parser.add_argument("--interval", type=parse_duration, default=defaults.interval,
                        help="how often to run controller loop")
    parser.add_argument("--log-level", default=defaults.log_level,
                        choices=["DEBUG", "INFO", "WARNING", "ERROR"], type=str.upper,
                        help="log level")
    parser.add_argument("--log-format", default=defaults.log_format, choices=["json", "console"],
                        help="log output format")
    parser.add_argument("--metrics-port", type=int, default=defaults.metrics_port,
                        help="serve Prometheus metrics on this port. 0 disables the endpoint")
    parser.add_argument("--pushgateway-url", default=defaults.pushgateway_url,
                        help="push metrics to this Pushgateway after a --once run")
    return parser


def load_config(argv=None) -> Config:
    """Merge command line flags over environment configuration"""
    cfg = Config()
    args = build_parser(cfg).parse_args(argv)

    cfg.kube_config_path = args.kubeconfig
    cfg.kube_context = args.context
    cfg.namespace = args.namespace
    cfg.selector = args.selector
    cfg.once = args.once
    cfg.dry_run = args.dry_run
    if args.reasons is not None:
        cfg.reasons = parse_reasons(args.reasons)
    cfg.grace_period = args.grace_period
    cfg.interval = args.interval
    cfg.log_level = args.log_level
    cfg.log_format = args.log_format
    cfg.metrics_port = args.metrics_port
    cfg.pushgateway_url = args.pushgateway_url
    return cfg


def install_signal_handlers(controller: Controller) -> None:
    def handle_signal(signum, frame):
        get_logger("main").info("Received signal, shutting down...", signal=signal.Signals(signum).name)
        controller.stop()

    signal.signal(signal.SIGINT, handle_signal)
    signal.signal(signal.SIGTERM, handle_signal)


def main(argv=None, client=None):
    """Main application entry point"""
    try:
        cfg = load_config(argv)
    except PodDeleterError as e:
        print(f"pod-deleter: {e}", file=sys.stderr)
        return 1

    setup_logging(cfg.log_level, cfg.log_format)
    observer = PodDeleterLogger()
    observer.log_startup(cfg.as_dict())

    try:
        if client is None:
            client = KubernetesClient(cfg.kube_config_path, cfg.kube_context)
        controller = Controller.from_config(client, cfg, logger=observer)
    except PodDeleterError as e:
        observer.log_error(e, context="failed to create controller")
        return 1

    if cfg.metrics_port:
        try:
            metrics.start_metrics_server(cfg.metrics_port)
        except OSError as e:
            observer.log_error(e, context=f"failed to serve metrics on port {cfg.metrics_port}")
            return 1

    if cfg.once:
        return run_once(controller, cfg, observer)

    install_signal_handlers(controller)
    try:
        controller.loop()
    except PodDeleterError as e:
        observer.log_error(e, context="controller loop failed")
        return 1

    observer.log_debug("Controller loop stopped")
    return 0


def run_once(controller: Controller, cfg: Config, observer: PodDeleterLogger) -> int:
    status = 0
    try:
        controller.once()
    except PodDeleterError as e:
        observer.log_error(e, context="reconciliation pass failed")
        status = 1

    if cfg.pushgateway_url:
        try:
            metrics.push_to_gateway(cfg.pushgateway_url, cfg.metrics_job_name)
        except Exception as e:
            observer.log_warning("Failed to push metrics to Pushgateway", error=str(e))

    return status


if __name__ == "__main__":
    sys.exit(main())
