"""Egress ProxyGroup readiness gate.

Kubernetes StatefulSet-style ordering is not available for ProxyGroup Pods,
so this package reproduces an ordered start on top of externally observable
signals.  A Pod is only marked with the ``tailscale.com/egress-services``
condition once:

* every configured egress service's EndpointSlice contains the Pod's
  address, i.e. the cluster has actually started routing to it; and
* the replica with the next-higher ordinal, if any, answers its health
  check.

:class:`egress_readiness.reconciler.ReadinessReconciler` is the entry point;
it is driven by an external scheduler such as
:class:`readiness_agent.watchers.PodWatcher`.
"""

from .events import ReconcileRequest, Result  # noqa: F401
from .model import EGRESS_READY_CONDITION, NamespacedName, Workload  # noqa: F401
from .reconciler import ReadinessReconciler  # noqa: F401

__all__ = [
    "EGRESS_READY_CONDITION",
    "NamespacedName",
    "ReadinessReconciler",
    "ReconcileRequest",
    "Result",
    "Workload",
]
