from __future__ import annotations

from typing import Iterable, List

from quest.errors import InvalidArgument
from quest.runtime.models import Difficulty, Task
from quest.settings import DEFAULT_CONFIG, EffortConfig


def effort_for(difficulty: Difficulty, config: EffortConfig = DEFAULT_CONFIG.effort) -> int:
    return {
        Difficulty.EASY: config.easy,
        Difficulty.MEDIUM: config.medium,
        Difficulty.HARD: config.hard,
    }[Difficulty(difficulty)]


def max_effort_for_level(level: int, config: EffortConfig = DEFAULT_CONFIG.effort) -> int:
    if level < 1:
        raise InvalidArgument("level must be >= 1")
    return config.base_capacity + (level - 1) * config.capacity_per_level


def select(
    tasks: Iterable[Task],
    capacity: int,
    config: EffortConfig = DEFAULT_CONFIG.effort,
) -> List[Task]:
    """Pick the subset of tasks with the highest total value that fits in capacity.

    Exact 0/1 knapsack over capacity. Each cell keeps (value, hard_count) so that
    among value-optimal subsets the one with more HARD tasks wins. The order of
    the returned tasks follows the input order but callers should not rely on it.
    """
    if capacity < 0:
        raise InvalidArgument("capacity must be >= 0")
    items = list(tasks)
    if not items or capacity == 0:
        return []

    costs = [effort_for(t.difficulty, config) for t in items]
    # Columns past the total effort would repeat the last one.
    capacity = min(capacity, sum(costs))
    table = [[(0, 0)] * (capacity + 1)]
    for task, cost in zip(items, costs):
        prev = table[-1]
        row = list(prev)
        hard = 1 if task.difficulty is Difficulty.HARD else 0
        for cap in range(cost, capacity + 1):
            base_value, base_hard = prev[cap - cost]
            candidate = (base_value + task.value, base_hard + hard)
            if candidate > row[cap]:
                row[cap] = candidate
        table.append(row)

    chosen: List[Task] = []
    cap = capacity
    for idx in range(len(items), 0, -1):
        if table[idx][cap] != table[idx - 1][cap]:
            chosen.append(items[idx - 1])
            cap -= costs[idx - 1]
    chosen.reverse()
    return chosen


def select_for_level(
    tasks: Iterable[Task],
    level: int,
    config: EffortConfig = DEFAULT_CONFIG.effort,
) -> List[Task]:
    return select(tasks, max_effort_for_level(level, config), config)
