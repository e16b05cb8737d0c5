"""Tally state engine: path classification, on-air bookkeeping and reconciliation."""

from .diff import compute_delta
from .path_classifier import MalformedPathError, classify_batch, classify_path
from .reconciler import StartupReconciler, startup_paths
from .tally_state import TallyStateEngine, TransitionState

__all__ = [
    "compute_delta",
    "MalformedPathError",
    "classify_batch",
    "classify_path",
    "StartupReconciler",
    "startup_paths",
    "TallyStateEngine",
    "TransitionState",
]
