"""Conversions between ``kubernetes.client`` models and the core model."""

from __future__ import annotations

from typing import Dict, List, Mapping

from kubernetes import client

from egress_readiness.model import (
    Condition,
    Endpoint,
    MembershipKey,
    RoutingMembership,
    Workload,
)

from .constants import (
    LABEL_MANAGED,
    LABEL_PARENT_NAME,
    LABEL_PARENT_NAMESPACE,
    LABEL_PARENT_TYPE,
    LABEL_PROXY_GROUP,
    LABEL_SVC_TYPE,
    PARENT_TYPE_SVC,
    SVC_TYPE_EGRESS,
)


def selector(labels: Mapping[str, str]) -> str:
    """Render an equality-based label selector, e.g. ``a=b,c=d``."""

    return ",".join(f"{key}={value}" for key, value in sorted(labels.items()))


def _pod_addresses(status: client.V1PodStatus | None) -> List[str]:
    if status is None:
        return []
    if status.pod_ips:
        return [entry.ip for entry in status.pod_ips if entry.ip]
    if status.pod_ip:
        return [status.pod_ip]
    return []


def condition_from_kube(cond: client.V1PodCondition) -> Condition:
    return Condition(
        type=cond.type,
        status=cond.status,
        last_transition_time=cond.last_transition_time,
        reason=cond.reason,
        message=cond.message,
        last_probe_time=cond.last_probe_time,
    )


def condition_to_kube(cond: Condition) -> client.V1PodCondition:
    return client.V1PodCondition(
        type=cond.type,
        status=cond.status,
        last_transition_time=cond.last_transition_time,
        reason=cond.reason,
        message=cond.message,
        last_probe_time=cond.last_probe_time,
    )


def workload_from_pod(pod: client.V1Pod) -> Workload:
    """Build a :class:`Workload`, parsing its ordinal once here."""

    meta = pod.metadata
    labels = meta.labels or {}
    status = pod.status
    conditions = [
        condition_from_kube(c) for c in ((status.conditions if status else None) or [])
    ]
    return Workload.build(
        name=meta.name,
        namespace=meta.namespace,
        group=labels.get(LABEL_PARENT_NAME),
        addresses=_pod_addresses(status),
        deleting=meta.deletion_timestamp is not None,
        conditions=conditions,
        raw=pod,
    )


def membership_labels(key: MembershipKey) -> Dict[str, str]:
    """Labels the egress EndpointSlice controller puts on a service's slice."""

    return {
        LABEL_MANAGED: "true",
        LABEL_PARENT_TYPE: PARENT_TYPE_SVC,
        LABEL_PARENT_NAME: key.service_name,
        LABEL_PARENT_NAMESPACE: key.service_namespace,
        LABEL_PROXY_GROUP: key.group,
        LABEL_SVC_TYPE: SVC_TYPE_EGRESS,
    }


def membership_from_slice(eps: client.V1EndpointSlice) -> RoutingMembership:
    endpoints = tuple(
        Endpoint(addresses=tuple(ep.addresses or ())) for ep in (eps.endpoints or [])
    )
    return RoutingMembership(name=eps.metadata.name, endpoints=endpoints)
