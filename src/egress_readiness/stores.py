"""Abstract interfaces for the backing stores consumed by the gate."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import List, Mapping

from .model import (
    EgressServiceConfig,
    MembershipKey,
    NamespacedName,
    RoutingMembership,
    Workload,
)


class WorkloadStore(ABC):
    """Read ProxyGroup Pods and write their status conditions."""

    @abstractmethod
    def get(self, identity: NamespacedName) -> Workload:
        """Return the workload or raise :class:`~egress_readiness.errors.NotFoundError`."""

    @abstractmethod
    def list(self, namespace: str, labels: Mapping[str, str]) -> List[Workload]:
        """Return workloads in ``namespace`` matching every label in ``labels``."""

    @abstractmethod
    def update_status(self, workload: Workload) -> None:
        """Persist ``workload.conditions`` as a status-only update."""


class RoutingMembershipStore(ABC):
    @abstractmethod
    def get(self, namespace: str, key: MembershipKey) -> RoutingMembership:
        """Return the single record for ``key``.

        Raises :class:`~egress_readiness.errors.NotFoundError` when the
        routing control plane has not created it yet.
        """


class ConfigResolver(ABC):
    @abstractmethod
    def resolve(self, group: str, namespace: str) -> Mapping[str, EgressServiceConfig]:
        """Return configured egress services for ``group`` keyed by service key."""
