from datetime import datetime, timezone

from egress_readiness.model import EGRESS_READY_CONDITION, Condition
from egress_readiness.writer import ConditionWriter

from fakes import FakeWorkloadStore, pod


def test_writer_appends_condition_and_updates_store():
    now = datetime(2024, 5, 1, tzinfo=timezone.utc)
    workload = pod("eg-0", conditions=[Condition(type="Ready", status="False")])
    store = FakeWorkloadStore(workload)

    written = ConditionWriter(store).write(workload, now)

    assert written.type == EGRESS_READY_CONDITION
    assert written.status == "True"
    assert [c.type for c in workload.conditions] == ["Ready", EGRESS_READY_CONDITION]
    assert store.updates[0].conditions[-1].last_transition_time == now
