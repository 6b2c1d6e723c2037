"""Kubernetes implementations of the readiness gate's stores."""

from .resolver import ConfigMapResolver  # noqa: F401
from .stores import EndpointSliceStore, PodStore  # noqa: F401

__all__ = [
    "ConfigMapResolver",
    "EndpointSliceStore",
    "PodStore",
]
