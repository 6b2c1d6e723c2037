"""Polling scheduler that drives the readiness reconciler."""

from __future__ import annotations

import logging
import time
from threading import Event, Thread
from typing import Callable, Dict, Iterable, Set

from egress_readiness.errors import NonRetryableError
from egress_readiness.events import ReconcileRequest
from egress_readiness.model import NamespacedName, Workload
from egress_readiness.reconciler import ReadinessReconciler
from egress_readiness.stores import WorkloadStore
from egress_readiness_kube.constants import (
    LABEL_MANAGED,
    LABEL_PARENT_TYPE,
    PARENT_TYPE_PROXY_GROUP,
)

LOG = logging.getLogger(__name__)

POD_LABELS = {
    LABEL_MANAGED: "true",
    LABEL_PARENT_TYPE: PARENT_TYPE_PROXY_GROUP,
}


class PodWatcher(Thread):
    """Periodically list ProxyGroup Pods and reconcile each of them.

    Every poll is a full resync, so a Pod that was skipped because routing
    was not ready yet is picked up again on the next pass.  Identities are
    reconciled one at a time from this thread only.  A reconcile asking for
    a requeue is retried after ``requeue_after`` seconds; failures back off
    exponentially up to ``backoff_max``; :class:`NonRetryableError` parks the
    identity until it drops out of the listing.
    """

    def __init__(
        self,
        reconciler: ReadinessReconciler,
        store: WorkloadStore,
        namespace: str,
        *,
        interval: float,
        stop_event: Event,
        proxy_groups: Iterable[str] = (),
        requeue_after: float = 1.0,
        backoff_base: float = 1.0,
        backoff_max: float = 60.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        super().__init__(daemon=True)
        self._reconciler = reconciler
        self._store = store
        self._namespace = namespace
        self._interval = interval
        self._stop_event = stop_event
        self._proxy_groups = frozenset(proxy_groups)
        self._requeue_after = requeue_after
        self._backoff_base = backoff_base
        self._backoff_max = backoff_max
        self._clock = clock
        self._retry_at: Dict[NamespacedName, float] = {}
        self._failures: Dict[NamespacedName, int] = {}
        self._parked: Set[NamespacedName] = set()

    @property
    def pending(self) -> Dict[NamespacedName, float]:
        return dict(self._retry_at)

    @property
    def parked(self) -> Set[NamespacedName]:
        return set(self._parked)

    def run(self) -> None:
        while not self._stop_event.is_set():
            try:
                self.poll()
            except Exception:  # pragma: no cover - logged below
                LOG.exception("pod watcher encountered an error")
            self._stop_event.wait(self.next_wait())

    def next_wait(self) -> float:
        if not self._retry_at:
            return self._interval
        soonest = min(self._retry_at.values()) - self._clock()
        return max(0.0, min(self._interval, soonest))

    def poll(self) -> None:
        listed = [
            w.identity
            for w in self._store.list(self._namespace, POD_LABELS)
            if self._wanted(w)
        ]
        self._forget(set(listed))

        now = self._clock()
        for identity in listed:
            if identity in self._parked:
                continue
            due = self._retry_at.get(identity)
            if due is not None and due > now:
                continue
            self.reconcile(identity)

    def reconcile(self, identity: NamespacedName) -> None:
        try:
            result = self._reconciler.reconcile(ReconcileRequest(identity))
        except NonRetryableError as exc:
            LOG.error("Pod %s: %s; not retrying", identity, exc)
            self._parked.add(identity)
            self._retry_at.pop(identity, None)
            self._failures.pop(identity, None)
            return
        except Exception:
            failures = self._failures.get(identity, 0) + 1
            self._failures[identity] = failures
            delay = min(self._backoff_base * 2 ** (failures - 1), self._backoff_max)
            LOG.exception(
                "Pod %s: reconcile failed (attempt %d), retrying in %.1fs",
                identity,
                failures,
                delay,
            )
            self._retry_at[identity] = self._clock() + delay
            return

        self._failures.pop(identity, None)
        if result.requeue:
            self._retry_at[identity] = self._clock() + self._requeue_after
        else:
            self._retry_at.pop(identity, None)

    def _wanted(self, workload: Workload) -> bool:
        if not self._proxy_groups:
            return True
        return workload.group in self._proxy_groups

    def _forget(self, listed: Set[NamespacedName]) -> None:
        for identity in set(self._retry_at) - listed:
            LOG.debug("Pod %s gone, dropping pending retry", identity)
            del self._retry_at[identity]
            self._failures.pop(identity, None)
        self._parked &= listed
