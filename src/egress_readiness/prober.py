"""Positional startup dependency between ProxyGroup replicas.

A replica at ordinal ``i`` only becomes ready once the replica at ordinal
``i + 1`` answers its health check.  Note the direction: the dependency is on
the *next-higher* ordinal, not the previous one.  The highest replica has no
sibling above it and is never blocked, so readiness propagates downwards
from the top of the group.
"""

from __future__ import annotations

import logging
from typing import Optional

import requests

from .errors import MalformedNameError, NotFoundError
from .model import NamespacedName, Workload
from .stores import WorkloadStore

LOG = logging.getLogger(__name__)

HEALTH_PORT = 9002
HEALTH_PATH = "/healthz"


class PredecessorProber:
    """Probe the health endpoint of the sibling a replica depends on."""

    def __init__(
        self,
        store: WorkloadStore,
        namespace: str,
        session: Optional[requests.Session] = None,
        *,
        port: int = HEALTH_PORT,
        path: str = HEALTH_PATH,
        timeout: Optional[float] = 5.0,
        cluster_domain: str = "cluster.local",
    ) -> None:
        self._store = store
        self._namespace = namespace
        self._session = session or requests.Session()
        self._port = port
        self._path = path if path.startswith("/") else f"/{path}"
        self._timeout = timeout
        self._cluster_domain = cluster_domain

    def health_url(self, sibling: str, group: str) -> str:
        return (
            f"http://{sibling}.{group}.{self._namespace}.svc.{self._cluster_domain}"
            f":{self._port}{self._path}"
        )

    def sibling_of(self, workload: Workload) -> NamespacedName:
        if workload.position is None or not workload.group:
            raise MalformedNameError(workload.name, workload.group)
        return NamespacedName(
            workload.namespace, f"{workload.group}-{workload.position + 1}"
        )

    def check(self, workload: Workload) -> bool:
        """Return ``True`` once ``workload`` no longer has to wait on its sibling.

        Raises :class:`MalformedNameError` if the workload's ordinal is
        unknown.  Store errors other than not-found propagate.
        """

        sibling_id = self.sibling_of(workload)
        try:
            sibling = self._store.get(sibling_id)
        except NotFoundError:
            LOG.debug("no Pod %s above %s, not blocking", sibling_id, workload.identity)
            return True

        url = self.health_url(sibling.name, workload.group)
        LOG.info("calling Pod's health check at %s", url)
        try:
            resp = self._session.get(url, timeout=self._timeout)
        except requests.RequestException as exc:
            LOG.info("error calling Pod's health check endpoint: %s", exc)
            return False

        if resp.status_code != requests.codes.ok:
            LOG.info(
                "expected Pod's health check to return 200, got %s", resp.status_code
            )
            return False
        return True
