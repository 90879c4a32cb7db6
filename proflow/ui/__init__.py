"""Qt integration: background workers for generation and bundling."""

from .workers import (
    BundleRunnable,
    GenerationRunnable,
    WorkerSignals,
    submit,
)

__all__ = [
    "BundleRunnable",
    "GenerationRunnable",
    "WorkerSignals",
    "submit",
]
