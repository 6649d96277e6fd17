"""Child process execution for forksh."""

from .external import run_external
from .pipeline import run_pipeline

__all__ = ["run_external", "run_pipeline"]
