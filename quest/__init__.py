from quest.competitive import CompetitiveSession, complete_competitive_task, scale
from quest.errors import InvalidArgument
from quest.priority import rank, tier_table
from quest.progression import ProgressionLedger, complete_task, threshold_for
from quest.runtime.models import Difficulty, ProgressionState, Reward, Task, Tier
from quest.task_selector import max_effort_for_level, select, select_for_level

__all__ = [
    "CompetitiveSession",
    "Difficulty",
    "InvalidArgument",
    "ProgressionLedger",
    "ProgressionState",
    "Reward",
    "Task",
    "Tier",
    "complete_competitive_task",
    "complete_task",
    "max_effort_for_level",
    "rank",
    "scale",
    "select",
    "select_for_level",
    "threshold_for",
    "tier_table",
]
