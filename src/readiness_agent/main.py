"""Entry point for the standalone egress readiness agent."""

from __future__ import annotations

import argparse
import logging
import signal
import sys
from pathlib import Path
from threading import Event

import requests
from kubernetes import client
from kubernetes import config as kube_config

from egress_readiness.prober import PredecessorProber
from egress_readiness.reconciler import ReadinessReconciler
from egress_readiness.writer import ConditionWriter
from egress_readiness_kube import ConfigMapResolver, EndpointSliceStore, PodStore

from .config import AgentConfig, load_config
from .watchers import PodWatcher

LOG = logging.getLogger(__name__)


def _setup_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
    )


def _load_kube_config(config: AgentConfig) -> None:
    if config.kubeconfig:
        kube_config.load_kube_config(config_file=str(config.kubeconfig))
    else:
        kube_config.load_incluster_config()


def build_watcher(
    config: AgentConfig,
    core_api: client.CoreV1Api,
    discovery_api: client.DiscoveryV1Api,
    session: requests.Session,
    stop_event: Event,
) -> PodWatcher:
    pods = PodStore(core_api)
    prober = PredecessorProber(
        pods,
        config.namespace,
        session,
        port=config.probe.port,
        path=config.probe.path,
        timeout=config.probe.timeout,
        cluster_domain=config.probe.cluster_domain,
    )
    reconciler = ReadinessReconciler(
        workloads=pods,
        memberships=EndpointSliceStore(discovery_api),
        resolver=ConfigMapResolver(
            core_api,
            name_suffix=config.egress_config.name_suffix,
            key=config.egress_config.key,
        ),
        prober=prober,
        writer=ConditionWriter(pods),
        namespace=config.namespace,
    )
    return PodWatcher(
        reconciler,
        pods,
        config.namespace,
        interval=config.watcher.interval,
        stop_event=stop_event,
        proxy_groups=config.proxy_groups,
        requeue_after=config.watcher.requeue_after,
        backoff_base=config.watcher.backoff_base,
        backoff_max=config.watcher.backoff_max,
    )


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Run the egress readiness agent")
    parser.add_argument(
        "--config",
        type=Path,
        default=Path("/etc/egress-readiness/agent.yaml"),
        help="Path to the agent configuration file",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable debug logging",
    )

    args = parser.parse_args(argv)
    _setup_logging(args.verbose)

    config = load_config(args.config)
    _load_kube_config(config)

    stop_event = Event()
    session = requests.Session()
    watcher = build_watcher(
        config,
        client.CoreV1Api(),
        client.DiscoveryV1Api(),
        session,
        stop_event,
    )

    LOG.info(
        "starting egress readiness agent (namespace=%s, groups=%s)",
        config.namespace,
        ", ".join(config.proxy_groups) or "all",
    )
    # Reconcile once before starting the loop so we react immediately
    try:
        watcher.poll()
    except Exception:  # pragma: no cover - the watcher loop retries
        LOG.exception("initial poll failed")
    watcher.start()

    def _shutdown(signum, frame):  # pragma: no cover - signal handler
        LOG.info("received signal %s, shutting down", signum)
        stop_event.set()

    signal.signal(signal.SIGINT, _shutdown)
    signal.signal(signal.SIGTERM, _shutdown)

    try:
        while not stop_event.is_set():
            stop_event.wait(1.0)
    except KeyboardInterrupt:  # pragma: no cover - fallback if signal not set
        stop_event.set()

    watcher.join()
    session.close()

    LOG.info("egress readiness agent stopped")
    return 0


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
