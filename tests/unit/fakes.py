"""In-memory stand-ins for the stores, resolver and HTTP session."""

from __future__ import annotations

import copy
from typing import Dict, List, Mapping, Optional

from egress_readiness.errors import NotFoundError
from egress_readiness.model import (
    Endpoint,
    MembershipKey,
    NamespacedName,
    RoutingMembership,
    Workload,
)
from egress_readiness.stores import ConfigResolver, RoutingMembershipStore, WorkloadStore

NAMESPACE = "tailscale"


def pod(name: str, ip: Optional[str] = "10.0.0.5", group: str = "eg", **kwargs) -> Workload:
    return Workload.build(
        name=name,
        namespace=NAMESPACE,
        group=group,
        addresses=[ip] if ip else [],
        **kwargs,
    )


def membership(*addresses: str, name: str = "eps") -> RoutingMembership:
    return RoutingMembership(name=name, endpoints=tuple(Endpoint((a,)) for a in addresses))


class FakeWorkloadStore(WorkloadStore):
    def __init__(self, *workloads: Workload) -> None:
        self.workloads: Dict[NamespacedName, Workload] = {w.identity: w for w in workloads}
        self.updates: List[Workload] = []
        self.list_calls: List[Mapping[str, str]] = []
        self.update_error: Optional[Exception] = None

    def add(self, workload: Workload) -> None:
        self.workloads[workload.identity] = workload

    def get(self, identity: NamespacedName) -> Workload:
        if identity not in self.workloads:
            raise NotFoundError("Pod", identity)
        return copy.deepcopy(self.workloads[identity])

    def list(self, namespace: str, labels: Mapping[str, str]) -> List[Workload]:
        self.list_calls.append(dict(labels))
        return [copy.deepcopy(w) for w in self.workloads.values() if w.namespace == namespace]

    def update_status(self, workload: Workload) -> None:
        if self.update_error is not None:
            raise self.update_error
        stored = copy.deepcopy(workload)
        self.workloads[workload.identity] = stored
        self.updates.append(stored)


class FakeMembershipStore(RoutingMembershipStore):
    def __init__(self, records: Optional[Dict[MembershipKey, RoutingMembership]] = None) -> None:
        self.records = dict(records or {})
        self.requests: List[MembershipKey] = []

    def get(self, namespace: str, key: MembershipKey) -> RoutingMembership:
        self.requests.append(key)
        if key not in self.records:
            raise NotFoundError("EndpointSlice", key)
        return self.records[key]


class FakeResolver(ConfigResolver):
    def __init__(self, services=None, error: Optional[Exception] = None) -> None:
        self.services = dict(services or {})
        self.error = error

    def resolve(self, group, namespace):
        if self.error is not None:
            raise self.error
        return self.services


class FakeResponse:
    def __init__(self, status_code: int) -> None:
        self.status_code = status_code


class FakeSession:
    def __init__(self, status_code: int = 200, error: Optional[Exception] = None) -> None:
        self.status_code = status_code
        self.error = error
        self.calls: List[tuple] = []

    def get(self, url, timeout=None):
        self.calls.append((url, timeout))
        if self.error is not None:
            raise self.error
        return FakeResponse(self.status_code)
