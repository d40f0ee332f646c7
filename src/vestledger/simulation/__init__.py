"""Schedule projection and end-to-end replay."""

from .runner import ScheduleSimulator, SimulationResult, SupplySnapshot
from .schedule import ScheduleEntry, project_schedule, schedule_horizon

__all__ = [
    "ScheduleSimulator",
    "SimulationResult",
    "SupplySnapshot",
    "ScheduleEntry",
    "project_schedule",
    "schedule_horizon",
]
