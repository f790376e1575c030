"""Run support services."""

from .scheduler import ScheduleError, plan_batches
from .staging import StagingArea

__all__ = ["ScheduleError", "StagingArea", "plan_batches"]
