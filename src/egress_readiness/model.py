"""Data structures for the egress readiness gate.

These dataclasses describe ProxyGroup Pods, routing membership records and
the egress service configuration without tying the core to a particular
client library.  The Kubernetes integration in :mod:`egress_readiness_kube`
converts API objects into these types at ingestion time.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, List, Optional, Sequence, Tuple

EGRESS_READY_CONDITION = "tailscale.com/egress-services"

CONDITION_TRUE = "True"
CONDITION_FALSE = "False"

_KEY_SEPARATOR = "/"


@dataclass(frozen=True)
class NamespacedName:
    """Identity of a namespaced object."""

    namespace: str
    name: str

    def __str__(self) -> str:
        return f"{self.namespace}/{self.name}"


@dataclass
class Condition:
    """A single status condition as carried on a Pod.

    Attributes
    ----------
    type:
        The condition type, e.g. :data:`EGRESS_READY_CONDITION`.
    status:
        ``"True"``, ``"False"`` or ``"Unknown"``.
    last_transition_time:
        When the condition last changed.
    reason, message, last_probe_time:
        Optional fields kept so conditions written by other controllers
        survive a status update unchanged.
    """

    type: str
    status: str
    last_transition_time: Optional[datetime] = None
    reason: Optional[str] = None
    message: Optional[str] = None
    last_probe_time: Optional[datetime] = None


def parse_position(name: str, group: Optional[str]) -> Optional[int]:
    """Return the ordinal of ``name`` within ``group`` or ``None``.

    ProxyGroup Pods are named ``<group>-<n>``; anything else yields ``None``.
    """

    if not group:
        return None
    prefix = f"{group}-"
    if not name.startswith(prefix):
        return None
    suffix = name[len(prefix):]
    if not suffix or not (suffix.isascii() and suffix.isdigit()):
        return None
    return int(suffix)


@dataclass
class Workload:
    """A ProxyGroup Pod as seen by the readiness gate."""

    name: str
    namespace: str
    addresses: Sequence[str] = ()
    deleting: bool = False
    conditions: List[Condition] = field(default_factory=list)
    group: Optional[str] = None
    position: Optional[int] = None
    raw: Any = field(default=None, repr=False, compare=False)

    @classmethod
    def build(cls, name: str, namespace: str, group: Optional[str], **kwargs: Any) -> "Workload":
        """Construct a workload, deriving ``position`` from ``name``."""

        return cls(
            name=name,
            namespace=namespace,
            group=group,
            position=parse_position(name, group),
            **kwargs,
        )

    @property
    def identity(self) -> NamespacedName:
        return NamespacedName(self.namespace, self.name)

    def condition(self, condition_type: str) -> Optional[Condition]:
        return next((c for c in self.conditions if c.type == condition_type), None)


@dataclass(frozen=True)
class TailnetTarget:
    """Where traffic for an egress service is sent on the tailnet."""

    ip: Optional[str] = None
    fqdn: Optional[str] = None


@dataclass(frozen=True)
class PortMap:
    protocol: str
    match_port: int
    target_port: int


@dataclass(frozen=True)
class EgressServiceConfig:
    """Configuration for one external egress service of a ProxyGroup."""

    tailnet_target: TailnetTarget
    ports: Tuple[PortMap, ...] = ()


@dataclass(frozen=True)
class MembershipKey:
    """Relation from (ProxyGroup, external service) to its routing record."""

    group: str
    service_namespace: str
    service_name: str


@dataclass(frozen=True)
class Endpoint:
    addresses: Sequence[str] = ()


@dataclass(frozen=True)
class RoutingMembership:
    """Endpoints the data plane currently routes an egress service to."""

    name: str
    endpoints: Sequence[Endpoint] = ()

    def all_addresses(self) -> List[str]:
        return [addr for ep in self.endpoints for addr in ep.addresses]


def service_key(namespace: str, name: str) -> str:
    """Encode an external service identity as a configuration key."""

    return f"{namespace}{_KEY_SEPARATOR}{name}"


def split_service_key(key: str) -> Tuple[str, str]:
    """Decode a key produced by :func:`service_key`."""

    parts = key.split(_KEY_SEPARATOR)
    if len(parts) != 2 or not all(parts):
        raise ValueError(f"invalid egress service key {key!r}")
    return parts[0], parts[1]
