"""Learner progress persistence boundary."""

from cybertrain.kernel.progress.store import InMemoryProgressStore, ProgressStore

__all__ = ["InMemoryProgressStore", "ProgressStore"]
