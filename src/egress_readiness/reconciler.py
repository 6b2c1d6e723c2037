"""Readiness decision engine for egress ProxyGroup Pods.

The reconciler is level-triggered: each call re-reads the Pod, the egress
service configuration and the routing membership records, and only ever
adds the readiness condition once every gate has passed.  It never removes
or flips an existing condition, which makes repeated and out-of-order
invocations for the same Pod safe.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Callable, Optional

from .errors import NotFoundError
from .events import ReconcileRequest, Result
from .membership import address_in_membership
from .model import EGRESS_READY_CONDITION, MembershipKey, Workload, split_service_key
from .prober import PredecessorProber
from .stores import ConfigResolver, RoutingMembershipStore, WorkloadStore
from .writer import ConditionWriter

LOG = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ReadinessReconciler:
    """Decide whether a ProxyGroup Pod may be marked ready for egress traffic."""

    def __init__(
        self,
        workloads: WorkloadStore,
        memberships: RoutingMembershipStore,
        resolver: ConfigResolver,
        prober: PredecessorProber,
        writer: ConditionWriter,
        namespace: str,
        clock: Optional[Callable[[], datetime]] = None,
    ) -> None:
        self._workloads = workloads
        self._memberships = memberships
        self._resolver = resolver
        self._prober = prober
        self._writer = writer
        self._namespace = namespace
        self._clock = clock or _utcnow

    def reconcile(self, request: ReconcileRequest) -> Result:
        identity = request.identity
        LOG.debug("Pod %s: starting reconcile", identity)
        try:
            return self._reconcile(request)
        finally:
            LOG.debug("Pod %s: reconcile finished", identity)

    def _reconcile(self, request: ReconcileRequest) -> Result:
        identity = request.identity
        try:
            workload = self._workloads.get(identity)
        except NotFoundError:
            LOG.debug("Pod %s: not found", identity)
            return Result()

        if workload.deleting:
            LOG.debug("Pod %s: being deleted", identity)
            return Result()

        if not workload.group:
            LOG.info("Pod %s: no ProxyGroup label, skipping", identity)
            return Result()

        if not self._routing_ready(workload):
            return Result()

        if workload.condition(EGRESS_READY_CONDITION) is not None:
            LOG.debug("Pod %s: condition exists", identity)
            return Result()

        if not self._prober.check(workload):
            LOG.info("Pod %s: not yet ready", identity)
            return Result(requeue=True)

        LOG.info("Pod %s: ready", identity)
        self._writer.write(workload, self._clock())
        return Result()

    # ------------------------------------------------------------------
    # Routing gate
    # ------------------------------------------------------------------
    def _routing_ready(self, workload: Workload) -> bool:
        """Return ``True`` if every configured service routes to ``workload``."""

        identity = workload.identity
        configs = self._resolver.resolve(workload.group, self._namespace)
        for name in configs:
            try:
                svc_namespace, svc_name = split_service_key(name)
            except ValueError:
                # Retrying cannot fix a bad key; check the remaining services.
                LOG.error(
                    "Pod %s: [unexpected] unable to determine external Service "
                    "namespace and name from %s",
                    identity,
                    name,
                )
                continue

            key = MembershipKey(
                group=workload.group,
                service_namespace=svc_namespace,
                service_name=svc_name,
            )
            try:
                membership = self._memberships.get(self._namespace, key)
            except NotFoundError:
                LOG.info("Pod %s: EndpointSlice for %s not found, waiting", identity, name)
                return False

            if not address_in_membership(workload.addresses, membership):
                LOG.info("Pod %s: routing not yet set up for %s", identity, name)
                return False
        return True
