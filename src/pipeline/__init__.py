"""Run bookkeeping for the ADE sync pipeline.

The orchestrator itself lives in :mod:`src.pipeline.orchestrator` and is
imported from there; it depends on the services, which in turn depend on
the run context exported here.
"""

from src.pipeline.progress_tracker import ProgressTracker
from src.pipeline.run_context import RunContext, RunStats
from src.pipeline.run_ledger import RunLedger

__all__ = [
    "ProgressTracker",
    "RunContext",
    "RunLedger",
    "RunStats",
]
