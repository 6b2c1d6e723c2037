"""Read a ProxyGroup's egress service configuration from its ConfigMap."""

from __future__ import annotations

import json
import logging
from typing import Any, Dict, Mapping

from kubernetes import client
from kubernetes.client.rest import ApiException

from egress_readiness.errors import ConfigResolutionError
from egress_readiness.model import EgressServiceConfig, PortMap, TailnetTarget
from egress_readiness.stores import ConfigResolver

from .stores import is_not_found

LOG = logging.getLogger(__name__)

CONFIGMAP_SUFFIX = "-egress-config"
CONFIGMAP_KEY = "cfg"


def _parse_ports(entries: Any) -> tuple:
    if entries is None:
        return ()
    if not isinstance(entries, list):
        raise ValueError("'ports' must be a list")
    ports = []
    for entry in entries:
        if not isinstance(entry, dict):
            raise ValueError("port mapping must be a mapping")
        ports.append(
            PortMap(
                protocol=str(entry.get("protocol", "TCP")),
                match_port=int(entry["matchPort"]),
                target_port=int(entry["targetPort"]),
            )
        )
    return tuple(ports)


def _parse_service(entry: Any) -> EgressServiceConfig:
    if not isinstance(entry, dict):
        raise ValueError("service configuration must be a mapping")
    target = entry.get("tailnetTarget") or {}
    if not isinstance(target, dict):
        raise ValueError("'tailnetTarget' must be a mapping")
    return EgressServiceConfig(
        tailnet_target=TailnetTarget(ip=target.get("ip"), fqdn=target.get("fqdn")),
        ports=_parse_ports(entry.get("ports")),
    )


def parse_egress_services(raw: str) -> Dict[str, EgressServiceConfig]:
    """Parse the JSON document stored in the egress ConfigMap."""

    payload = json.loads(raw)
    if payload is None:
        return {}
    if not isinstance(payload, dict):
        raise ValueError("egress services configuration must be a JSON object")
    return {str(name): _parse_service(entry) for name, entry in payload.items()}


class ConfigMapResolver(ConfigResolver):
    """Resolve configured egress services from ``<group>-egress-config``."""

    def __init__(
        self,
        core_api: client.CoreV1Api,
        *,
        name_suffix: str = CONFIGMAP_SUFFIX,
        key: str = CONFIGMAP_KEY,
    ) -> None:
        self._api = core_api
        self._name_suffix = name_suffix
        self._key = key

    def configmap_name(self, group: str) -> str:
        return f"{group}{self._name_suffix}"

    def resolve(self, group: str, namespace: str) -> Mapping[str, EgressServiceConfig]:
        name = self.configmap_name(group)
        try:
            cm = self._api.read_namespaced_config_map(name, namespace)
        except ApiException as exc:
            if is_not_found(exc):
                LOG.debug("ConfigMap %s/%s not found, no egress services", namespace, name)
                return {}
            raise

        raw = (cm.data or {}).get(self._key)
        if not raw:
            return {}
        try:
            return parse_egress_services(raw)
        except (ValueError, KeyError, TypeError) as exc:
            raise ConfigResolutionError(
                f"invalid egress services configuration in ConfigMap {namespace}/{name}: {exc}"
            ) from exc
