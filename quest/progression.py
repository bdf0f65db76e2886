from __future__ import annotations

import logging
import math
import threading
from dataclasses import dataclass, replace
from datetime import date
from typing import Optional

from quest.errors import InvalidArgument
from quest.runtime.models import ProgressionState, Reward, Task
from quest.settings import DEFAULT_CONFIG, ProgressionConfig

logger = logging.getLogger(__name__)


def threshold_for(level: int, config: ProgressionConfig = DEFAULT_CONFIG.progression) -> int:
    if level < 1:
        raise InvalidArgument("level must be >= 1")
    return math.floor(config.base_threshold * config.growth ** (level - 1))


def lifetime_experience(state: ProgressionState, config: ProgressionConfig = DEFAULT_CONFIG.progression) -> int:
    """Experience earned since level 1, including what was spent on level-ups."""
    spent = sum(threshold_for(lvl, config) for lvl in range(1, state.level))
    return spent + state.experience


@dataclass(frozen=True)
class CompletionOutcome:
    experience: int
    coins: int
    levels_gained: int
    is_first: bool = True


class ProgressionLedger:
    """Owns one user's ProgressionState. All mutations hold the ledger lock."""

    def __init__(
        self,
        state: Optional[ProgressionState] = None,
        config: ProgressionConfig = DEFAULT_CONFIG.progression,
    ) -> None:
        self.state = state if state is not None else ProgressionState()
        self.config = config
        self.lock = threading.RLock()
        self._snapshot: Optional[ProgressionState] = None

    @property
    def level(self) -> int:
        return self.state.level

    @property
    def experience(self) -> int:
        return self.state.experience

    @property
    def coins(self) -> int:
        return self.state.coins

    @property
    def total_completed(self) -> int:
        return self.state.total_completed

    def threshold(self) -> int:
        return threshold_for(self.state.level, self.config)

    def add_experience(self, gain: int) -> int:
        if gain < 0:
            raise InvalidArgument("experience gain must be >= 0")
        with self.lock:
            state = self.state
            state.experience += gain
            levels_gained = 0
            while state.experience >= threshold_for(state.level, self.config):
                state.experience -= threshold_for(state.level, self.config)
                state.level += 1
                state.coins += self.config.level_up_bonus
                levels_gained += 1
            if levels_gained:
                logger.info("level up: +%d -> level %d", levels_gained, state.level)
            return levels_gained

    def add_coins(self, amount: int) -> None:
        if amount < 0:
            raise InvalidArgument("coin reward must be >= 0")
        with self.lock:
            self.state.coins += amount

    def spend_coins(self, amount: int) -> bool:
        if amount < 0:
            raise InvalidArgument("spend amount must be >= 0")
        with self.lock:
            if self.state.coins < amount:
                return False
            self.state.coins -= amount
            return True

    def redeem(self, reward: Reward) -> bool:
        ok = self.spend_coins(reward.cost)
        if not ok:
            logger.info("cannot redeem %r: %d coins, needs %d", reward.name, self.state.coins, reward.cost)
        return ok

    def increment_completed_counter(self) -> None:
        with self.lock:
            self.state.total_completed += 1

    # Session tracking: snapshot at session start, report deltas at the end.

    def begin_tracking(self) -> None:
        with self.lock:
            self._snapshot = replace(self.state)

    def end_tracking(self) -> None:
        with self.lock:
            self._snapshot = None

    @property
    def is_tracking(self) -> bool:
        return self._snapshot is not None

    def experience_gained_in_session(self) -> int:
        with self.lock:
            if self._snapshot is None:
                return 0
            return lifetime_experience(self.state, self.config) - lifetime_experience(self._snapshot, self.config)

    def coins_gained_in_session(self) -> int:
        with self.lock:
            if self._snapshot is None:
                return 0
            return self.state.coins - self._snapshot.coins


_claim_lock = threading.Lock()


def claim_task(task: Task, on: Optional[date] = None) -> None:
    """Mark a task completed, failing if someone already did."""
    with _claim_lock:
        if not task.mark_completed(on):
            raise InvalidArgument(f"task {task.task_id} is already completed")


def pay_completion(task: Task, ledger: ProgressionLedger, experience: int) -> CompletionOutcome:
    with ledger.lock:
        levels = ledger.add_experience(experience)
        ledger.add_coins(task.coin_reward)
        ledger.increment_completed_counter()
    return CompletionOutcome(experience=experience, coins=task.coin_reward, levels_gained=levels)


def complete_task(
    task: Task,
    ledger: ProgressionLedger,
    experience: Optional[int] = None,
    on: Optional[date] = None,
) -> CompletionOutcome:
    """Mark a task done and pay its rewards into the ledger.

    `experience` overrides the task's stored reward, which is how competitive
    sessions pay a scaled amount.
    """
    gained_xp = task.experience_reward if experience is None else experience
    if gained_xp < 0:
        raise InvalidArgument("experience gain must be >= 0")
    claim_task(task, on)
    return pay_completion(task, ledger, gained_xp)
