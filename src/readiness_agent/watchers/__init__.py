"""Schedulers that drive the readiness reconciler."""

from .pods import PodWatcher  # noqa: F401

__all__ = ["PodWatcher"]
