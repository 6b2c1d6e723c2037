"""Kubernetes API backed implementations of the gate's stores."""

from __future__ import annotations

import logging
from typing import List, Mapping

from kubernetes import client
from kubernetes.client.rest import ApiException

from egress_readiness.errors import NotFoundError
from egress_readiness.model import (
    MembershipKey,
    NamespacedName,
    RoutingMembership,
    Workload,
)
from egress_readiness.stores import RoutingMembershipStore, WorkloadStore

from .objects import (
    condition_to_kube,
    membership_from_slice,
    membership_labels,
    selector,
    workload_from_pod,
)

LOG = logging.getLogger(__name__)

HTTP_NOT_FOUND = 404


def is_not_found(exc: ApiException) -> bool:
    return exc.status == HTTP_NOT_FOUND


class PodStore(WorkloadStore):
    """Read and update ProxyGroup Pods through ``CoreV1Api``."""

    def __init__(self, core_api: client.CoreV1Api) -> None:
        self._api = core_api

    def get(self, identity: NamespacedName) -> Workload:
        try:
            pod = self._api.read_namespaced_pod(identity.name, identity.namespace)
        except ApiException as exc:
            if is_not_found(exc):
                raise NotFoundError("Pod", identity) from exc
            raise
        return workload_from_pod(pod)

    def list(self, namespace: str, labels: Mapping[str, str]) -> List[Workload]:
        pods = self._api.list_namespaced_pod(namespace, label_selector=selector(labels))
        return [workload_from_pod(pod) for pod in pods.items]

    def update_status(self, workload: Workload) -> None:
        pod = workload.raw
        if pod is None:
            raise ValueError(f"workload {workload.identity} was not read from the API")
        if pod.status is None:
            pod.status = client.V1PodStatus()
        # Conditions read from the API are written back untouched; only the ones
        # appended since ingestion are converted.
        existing = list(pod.status.conditions or [])
        added = workload.conditions[len(existing):]
        pod.status.conditions = existing + [condition_to_kube(c) for c in added]
        # resourceVersion on the read object makes the API server reject stale writes.
        self._api.replace_namespaced_pod_status(workload.name, workload.namespace, pod)


class EndpointSliceStore(RoutingMembershipStore):
    """Find the EndpointSlice tracking a ProxyGroup's egress service."""

    def __init__(self, discovery_api: client.DiscoveryV1Api) -> None:
        self._api = discovery_api

    def get(self, namespace: str, key: MembershipKey) -> RoutingMembership:
        label_selector = selector(membership_labels(key))
        slices = self._api.list_namespaced_endpoint_slice(
            namespace, label_selector=label_selector
        )
        items = slices.items or []
        if not items:
            raise NotFoundError("EndpointSlice", label_selector)
        if len(items) > 1:
            raise RuntimeError(
                f"found {len(items)} EndpointSlices matching {label_selector}, expected 1"
            )
        LOG.debug("using EndpointSlice %s for %s", items[0].metadata.name, key)
        return membership_from_slice(items[0])
