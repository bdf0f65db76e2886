from __future__ import annotations

import logging
import math
import threading
import uuid
from dataclasses import replace
from datetime import datetime, timezone
from typing import Dict, Optional

from quest.errors import InvalidArgument
from quest.progression import CompletionOutcome, ProgressionLedger, claim_task, pay_completion
from quest.runtime.models import ScaledReward, Task
from quest.settings import DEFAULT_CONFIG, CompetitiveConfig

logger = logging.getLogger(__name__)


def _require_aware(ts: datetime, name: str) -> None:
    if ts.tzinfo is None or ts.utcoffset() is None:
        raise InvalidArgument(f"{name} must be timezone-aware")


def _round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


def scale(
    original_reward: int,
    timer_minutes: int,
    first_completion_ts: Optional[datetime],
    completion_ts: datetime,
    config: CompetitiveConfig = DEFAULT_CONFIG.competitive,
) -> ScaledReward:
    """Scale a reward by how long after the first finisher it was earned.

    The reduction grows linearly with the delay, capped at `max_reduction`
    once the whole timer has elapsed, and the result never drops below
    `original_reward // floor_divisor`. Session state is not touched here.
    """
    if timer_minutes <= 0:
        raise InvalidArgument("timer_minutes must be > 0")
    if original_reward < 0:
        raise InvalidArgument("original_reward must be >= 0")
    if first_completion_ts is None:
        return ScaledReward(reward=original_reward, is_first=True)

    _require_aware(first_completion_ts, "first_completion_ts")
    _require_aware(completion_ts, "completion_ts")
    elapsed_sec = max(0, int((completion_ts - first_completion_ts).total_seconds()))
    reduction = min(config.max_reduction, elapsed_sec / (timer_minutes * 60) * config.max_reduction)
    scaled = _round_half_up(original_reward * (1 - reduction))
    return ScaledReward(reward=max(scaled, original_reward // config.floor_divisor), is_first=False)


def reduction_percent(original_reward: int, scaled_reward: int) -> float:
    if original_reward <= 0:
        return 0.0
    return 100.0 * (1 - scaled_reward / original_reward)


class CompetitiveSession:
    def __init__(self, timer_minutes: int, session_id: Optional[str] = None) -> None:
        if timer_minutes <= 0:
            raise InvalidArgument("timer_minutes must be > 0")
        self.session_id = session_id or uuid.uuid4().hex
        self.timer_minutes = timer_minutes
        self.first_completion_ts: Optional[datetime] = None
        self.completion_timestamps: Dict[str, datetime] = {}
        self._lock = threading.Lock()

    def record_completion(self, participant: str, completion_ts: datetime) -> Optional[datetime]:
        """Record a completion and return the anchor it must be scaled against.

        Returns None when this call set the anchor, i.e. it is the first
        completion of the session. First write wins, per participant and for
        the anchor.
        """
        _require_aware(completion_ts, "completion_ts")
        with self._lock:
            self.completion_timestamps.setdefault(participant, completion_ts)
            anchor = self.first_completion_ts
            if anchor is None:
                self.first_completion_ts = completion_ts
            return anchor

    def first_finisher(self) -> Optional[str]:
        with self._lock:
            if self.first_completion_ts is None:
                return None
            for participant, ts in self.completion_timestamps.items():
                if ts == self.first_completion_ts:
                    return participant
            return None


def complete_competitive_task(
    session: CompetitiveSession,
    participant: str,
    task: Task,
    ledger: ProgressionLedger,
    completion_ts: Optional[datetime] = None,
    config: CompetitiveConfig = DEFAULT_CONFIG.competitive,
) -> CompletionOutcome:
    """Scale the task's experience against the session anchor and pay it out.

    Coins are paid in full; only experience decays with lateness.
    """
    completion_ts = completion_ts or datetime.now(timezone.utc)
    _require_aware(completion_ts, "completion_ts")
    # Claim the task before the session sees the completion, so a rejected
    # call leaves session state untouched.
    claim_task(task, completion_ts.date())
    anchor = session.record_completion(participant, completion_ts)
    scaled = scale(task.experience_reward, session.timer_minutes, anchor, completion_ts, config)
    outcome = pay_completion(task, ledger, scaled.reward)
    if scaled.is_first:
        logger.info("session %s: %s finished first, full reward %d", session.session_id, participant, scaled.reward)
    else:
        logger.info(
            "session %s: %s earned %d of %d xp (-%.0f%%)",
            session.session_id,
            participant,
            scaled.reward,
            task.experience_reward,
            reduction_percent(task.experience_reward, scaled.reward),
        )
    return replace(outcome, is_first=scaled.is_first)
