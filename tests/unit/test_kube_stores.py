from datetime import datetime, timezone
from types import SimpleNamespace

import pytest
from kubernetes import client
from kubernetes.client.rest import ApiException

from egress_readiness.errors import NotFoundError
from egress_readiness.model import (
    EGRESS_READY_CONDITION,
    Condition,
    MembershipKey,
    NamespacedName,
)
from egress_readiness_kube.constants import LABEL_PARENT_NAME
from egress_readiness_kube.objects import membership_labels, selector, workload_from_pod
from egress_readiness_kube.stores import EndpointSliceStore, PodStore

NOW = datetime(2024, 5, 1, tzinfo=timezone.utc)


def build_pod(name="eg-0", ips=("10.0.0.5",), deleted=False, conditions=None):
    return client.V1Pod(
        metadata=client.V1ObjectMeta(
            name=name,
            namespace="tailscale",
            labels={LABEL_PARENT_NAME: "eg"},
            resource_version="42",
            deletion_timestamp=NOW if deleted else None,
        ),
        status=client.V1PodStatus(
            pod_ips=[client.V1PodIP(ip=ip) for ip in ips],
            conditions=conditions,
        ),
    )


class FakeCoreApi:
    def __init__(self, pods=()):
        self.pods = {p.metadata.name: p for p in pods}
        self.replaced = []
        self.selectors = []

    def read_namespaced_pod(self, name, namespace):
        if name not in self.pods:
            raise ApiException(status=404, reason="Not Found")
        return self.pods[name]

    def list_namespaced_pod(self, namespace, label_selector=None):
        self.selectors.append(label_selector)
        return SimpleNamespace(items=list(self.pods.values()))

    def replace_namespaced_pod_status(self, name, namespace, body):
        self.replaced.append((name, namespace, body))
        return body


class FailingCoreApi(FakeCoreApi):
    def read_namespaced_pod(self, name, namespace):
        raise ApiException(status=500, reason="Internal Server Error")


class FakeDiscoveryApi:
    def __init__(self, slices):
        self.slices = slices
        self.selectors = []

    def list_namespaced_endpoint_slice(self, namespace, label_selector=None):
        self.selectors.append(label_selector)
        return SimpleNamespace(items=self.slices)


def build_slice(name, *addresses):
    return client.V1EndpointSlice(
        address_type="IPv4",
        metadata=client.V1ObjectMeta(name=name),
        endpoints=[client.V1Endpoint(addresses=[a]) for a in addresses],
    )


def test_workload_from_pod():
    pod = build_pod(
        name="eg-2",
        deleted=True,
        conditions=[client.V1PodCondition(type="Ready", status="True", reason="Ok")],
    )

    workload = workload_from_pod(pod)

    assert workload.identity == NamespacedName("tailscale", "eg-2")
    assert workload.group == "eg"
    assert workload.position == 2
    assert workload.addresses == ["10.0.0.5"]
    assert workload.deleting is True
    assert workload.conditions[0].reason == "Ok"
    assert workload.raw is pod


def test_workload_falls_back_to_pod_ip():
    pod = build_pod(ips=())
    pod.status.pod_ip = "10.0.0.8"

    assert workload_from_pod(pod).addresses == ["10.0.0.8"]


def test_selector_is_sorted():
    assert selector({"b": "2", "a": "1"}) == "a=1,b=2"


def test_pod_store_maps_404_to_not_found():
    store = PodStore(FakeCoreApi())

    with pytest.raises(NotFoundError):
        store.get(NamespacedName("tailscale", "eg-0"))


def test_pod_store_propagates_other_api_errors():
    store = PodStore(FailingCoreApi())

    with pytest.raises(ApiException):
        store.get(NamespacedName("tailscale", "eg-0"))


def test_pod_store_updates_status_on_read_object():
    pod = build_pod(conditions=[client.V1PodCondition(type="Ready", status="False")])
    api = FakeCoreApi([pod])
    store = PodStore(api)

    workload = store.get(NamespacedName("tailscale", "eg-0"))
    workload.conditions.append(
        Condition(type=EGRESS_READY_CONDITION, status="True", last_transition_time=NOW)
    )
    store.update_status(workload)

    name, namespace, body = api.replaced[0]
    assert (name, namespace) == ("eg-0", "tailscale")
    assert body.metadata.resource_version == "42"
    assert [c.type for c in body.status.conditions] == ["Ready", EGRESS_READY_CONDITION]
    assert body.status.conditions[1].last_transition_time == NOW


def test_pod_store_list_uses_label_selector():
    api = FakeCoreApi([build_pod("eg-0"), build_pod("eg-1")])

    workloads = PodStore(api).list("tailscale", {"tailscale.com/managed": "true"})

    assert [w.name for w in workloads] == ["eg-0", "eg-1"]
    assert api.selectors == ["tailscale.com/managed=true"]


def test_endpointslice_store_returns_membership():
    key = MembershipKey(group="eg", service_namespace="default", service_name="web")
    api = FakeDiscoveryApi([build_slice("eg-web-abc", "10.0.0.5", "10.0.0.6")])

    record = EndpointSliceStore(api).get("tailscale", key)

    assert record.name == "eg-web-abc"
    assert record.all_addresses() == ["10.0.0.5", "10.0.0.6"]
    assert api.selectors == [selector(membership_labels(key))]
    assert "tailscale.com/proxy-group=eg" in api.selectors[0]
    assert "tailscale.com/parent-resource-ns=default" in api.selectors[0]


def test_endpointslice_store_not_found():
    key = MembershipKey(group="eg", service_namespace="default", service_name="web")

    with pytest.raises(NotFoundError):
        EndpointSliceStore(FakeDiscoveryApi([])).get("tailscale", key)


def test_endpointslice_store_rejects_ambiguous_match():
    key = MembershipKey(group="eg", service_namespace="default", service_name="web")
    api = FakeDiscoveryApi([build_slice("a", "10.0.0.5"), build_slice("b", "10.0.0.6")])

    with pytest.raises(RuntimeError):
        EndpointSliceStore(api).get("tailscale", key)


def test_pod_store_writes_back_existing_conditions_unchanged():
    ready = client.V1PodCondition(
        type="Ready", status="True", reason="Ok", last_probe_time=NOW
    )
    pod = build_pod(conditions=[ready])
    api = FakeCoreApi([pod])
    store = PodStore(api)

    workload = store.get(NamespacedName("tailscale", "eg-0"))
    workload.conditions.append(Condition(type=EGRESS_READY_CONDITION, status="True"))
    store.update_status(workload)

    conditions = api.replaced[0][2].status.conditions
    assert conditions[0] is ready
    assert conditions[1].type == EGRESS_READY_CONDITION
    assert len(conditions) == 2
