"""Input and outcome of a single readiness reconcile."""

from __future__ import annotations

from dataclasses import dataclass

from .model import NamespacedName


@dataclass(frozen=True)
class ReconcileRequest:
    """Asks the gate to re-evaluate one Pod.

    Only the identity is carried; everything else is read from the stores
    on each invocation.
    """

    identity: NamespacedName


@dataclass(frozen=True)
class Result:
    """Successful reconcile outcome.

    ``requeue`` asks the scheduler to retry soon without waiting for another
    change.  Failures are raised as exceptions instead.
    """

    requeue: bool = False
