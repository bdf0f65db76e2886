from __future__ import annotations

import math
from typing import Dict, Iterable, List, Sequence

from quest.runtime.models import RankedTask, Task, Tier
from quest.settings import DEFAULT_CONFIG, EffortConfig, PriorityConfig
from quest.task_selector import effort_for

TIER_MARKERS = {
    Tier.HIGH: "🔥",
    Tier.MEDIUM: "⚡",
    Tier.LOW: "📌",
}


def tier_marker(tier: Tier) -> str:
    return TIER_MARKERS[tier]


def effective_minutes(
    task: Task,
    config: PriorityConfig = DEFAULT_CONFIG.priority,
    effort: EffortConfig = DEFAULT_CONFIG.effort,
) -> int:
    if task.time_limit_minutes > 0:
        return task.time_limit_minutes
    return effort_for(task.difficulty, effort) * config.minutes_per_effort


def density_score(
    task: Task,
    config: PriorityConfig = DEFAULT_CONFIG.priority,
    effort: EffortConfig = DEFAULT_CONFIG.effort,
) -> float:
    score = task.value / effective_minutes(task, config, effort)
    if 0 < task.time_limit_minutes < config.urgent_under_minutes:
        score *= config.urgency_boost
    return score


def rank(
    open_tasks: Iterable[Task],
    config: PriorityConfig = DEFAULT_CONFIG.priority,
    effort: EffortConfig = DEFAULT_CONFIG.effort,
) -> List[RankedTask]:
    pending = [t for t in open_tasks if not t.completed]
    if not pending:
        return []

    scored = [(density_score(t, config, effort), t) for t in pending]
    # sorted() is stable with reverse=True, equal scores keep input order.
    scored = sorted(scored, key=lambda pair: pair[0], reverse=True)

    tier_size = math.ceil(len(scored) / config.tiers)
    ranked: List[RankedTask] = []
    for idx, (score, task) in enumerate(scored):
        if idx < tier_size:
            tier = Tier.HIGH
        elif idx < 2 * tier_size:
            tier = Tier.MEDIUM
        else:
            tier = Tier.LOW
        ranked.append(RankedTask(task=task, tier=tier, score=score))
    return ranked


def tier_table(ranked: Sequence[RankedTask]) -> Dict[str, Tier]:
    return {item.task.task_id: item.tier for item in ranked}


def display_order(tasks: Sequence[Task]) -> List[tuple[Task, Tier | None]]:
    """Ranked open tasks first, then completed tasks without a tier."""
    ordered: List[tuple[Task, Tier | None]] = [(r.task, r.tier) for r in rank(tasks)]
    ordered.extend((t, None) for t in tasks if t.completed)
    return ordered


def display_label(task: Task, tier: Tier | None) -> str:
    status = "✓" if task.completed else "○"
    prefix = f"{tier_marker(tier)} " if tier is not None else ""
    limit = f" ⏱️{task.time_limit_minutes}min" if task.time_limit_minutes > 0 else ""
    return (
        f"{status} {prefix}{task.description} [{task.difficulty.value}] "
        f"⭐{task.experience_reward} 💰{task.coin_reward}{limit}"
    )
