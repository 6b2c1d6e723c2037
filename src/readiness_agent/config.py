"""YAML configuration loader for the readiness agent."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, List, Optional, Sequence

import yaml

from egress_readiness.prober import HEALTH_PATH, HEALTH_PORT
from egress_readiness_kube.resolver import CONFIGMAP_KEY, CONFIGMAP_SUFFIX


@dataclass
class ProbeConfig:
    port: int = HEALTH_PORT
    path: str = HEALTH_PATH
    timeout: Optional[float] = 5.0
    cluster_domain: str = "cluster.local"


@dataclass
class EgressConfigSource:
    name_suffix: str = CONFIGMAP_SUFFIX
    key: str = CONFIGMAP_KEY


@dataclass
class WatcherConfig:
    interval: float = 10.0
    requeue_after: float = 1.0
    backoff_base: float = 1.0
    backoff_max: float = 60.0


@dataclass
class AgentConfig:
    namespace: str
    kubeconfig: Optional[Path] = None
    proxy_groups: Sequence[str] = field(default_factory=list)
    probe: ProbeConfig = field(default_factory=ProbeConfig)
    egress_config: EgressConfigSource = field(default_factory=EgressConfigSource)
    watcher: WatcherConfig = field(default_factory=WatcherConfig)


def _section(data: dict, name: str) -> dict:
    section = data.get(name) or {}
    if not isinstance(section, dict):
        raise ValueError(f"'{name}' section must be a mapping")
    return section


def _parse_probe(section: dict) -> ProbeConfig:
    timeout = section.get("timeout", 5.0)
    return ProbeConfig(
        port=int(section.get("port", HEALTH_PORT)),
        path=str(section.get("path", HEALTH_PATH)),
        timeout=None if timeout is None else float(timeout),
        cluster_domain=str(section.get("cluster_domain", "cluster.local")),
    )


def _parse_watcher(section: dict) -> WatcherConfig:
    watcher = WatcherConfig(
        interval=float(section.get("interval", 10.0)),
        requeue_after=float(section.get("requeue_after", 1.0)),
        backoff_base=float(section.get("backoff_base", 1.0)),
        backoff_max=float(section.get("backoff_max", 60.0)),
    )
    if watcher.interval <= 0:
        raise ValueError("'watcher.interval' must be positive")
    if watcher.backoff_max < watcher.backoff_base:
        raise ValueError("'watcher.backoff_max' must not be lower than 'backoff_base'")
    return watcher


def _parse_groups(entries: Iterable[str] | None) -> List[str]:
    if entries is None:
        return []
    if not isinstance(entries, list):
        raise ValueError("'proxy_groups' must be a list")
    return [str(entry) for entry in entries]


def load_config(path: Path) -> AgentConfig:
    data = yaml.safe_load(path.read_text())
    if not isinstance(data, dict):
        raise ValueError("Agent configuration must be a mapping")

    namespace = data.get("namespace")
    if not namespace:
        raise ValueError("Configuration missing 'namespace'")

    kubeconfig = data.get("kubeconfig")
    egress_section = _section(data, "egress_config")

    return AgentConfig(
        namespace=str(namespace),
        kubeconfig=Path(kubeconfig) if kubeconfig else None,
        proxy_groups=_parse_groups(data.get("proxy_groups")),
        probe=_parse_probe(_section(data, "probe")),
        egress_config=EgressConfigSource(
            name_suffix=str(egress_section.get("name_suffix", CONFIGMAP_SUFFIX)),
            key=str(egress_section.get("key", CONFIGMAP_KEY)),
        ),
        watcher=_parse_watcher(_section(data, "watcher")),
    )
