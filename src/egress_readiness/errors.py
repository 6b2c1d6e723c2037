"""Exceptions raised by the readiness gate and its stores."""

from __future__ import annotations


class ReadinessError(Exception):
    pass


class NotFoundError(ReadinessError):
    """The requested object does not exist in the backing store."""

    def __init__(self, kind: str, identity: object) -> None:
        super().__init__(f"{kind} {identity} not found")
        self.kind = kind
        self.identity = identity


class ConfigResolutionError(ReadinessError):
    """Egress service configuration could not be read or parsed."""


class NonRetryableError(ReadinessError):
    """Retrying the same reconcile cannot make this error go away.

    The scheduler parks identities failing with this error instead of
    backing off forever.
    """


class MalformedNameError(NonRetryableError):
    def __init__(self, name: str, group: str | None) -> None:
        super().__init__(
            f"Pod name {name!r} has no numeric ordinal suffix for group {group!r}"
        )
        self.name = name
        self.group = group
