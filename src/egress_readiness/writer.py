"""Record the egress readiness condition on a Pod."""

from __future__ import annotations

import logging
from datetime import datetime

from .model import CONDITION_TRUE, EGRESS_READY_CONDITION, Condition, Workload
from .stores import WorkloadStore

LOG = logging.getLogger(__name__)


class ConditionWriter:
    def __init__(self, store: WorkloadStore) -> None:
        self._store = store

    def write(self, workload: Workload, now: datetime) -> Condition:
        """Append a true readiness condition and persist it.

        Store failures propagate; a retried reconcile stops at the existing
        condition if the failed-looking write actually landed.
        """

        condition = Condition(
            type=EGRESS_READY_CONDITION,
            status=CONDITION_TRUE,
            last_transition_time=now,
        )
        workload.conditions.append(condition)
        self._store.update_status(workload)
        LOG.debug("wrote %s condition on %s", EGRESS_READY_CONDITION, workload.identity)
        return condition
