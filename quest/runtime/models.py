from __future__ import annotations

import uuid
from dataclasses import asdict, dataclass, field
from datetime import date
from enum import Enum
from typing import Any, Optional

from quest.errors import InvalidArgument


class Difficulty(str, Enum):
    EASY = "EASY"
    MEDIUM = "MEDIUM"
    HARD = "HARD"

    @property
    def base_experience(self) -> int:
        return _BASE_REWARDS[self][0]

    @property
    def base_coins(self) -> int:
        return _BASE_REWARDS[self][1]


_BASE_REWARDS = {
    Difficulty.EASY: (50, 20),
    Difficulty.MEDIUM: (100, 40),
    Difficulty.HARD: (200, 80),
}


class Tier(str, Enum):
    HIGH = "HIGH"
    MEDIUM = "MEDIUM"
    LOW = "LOW"


def _new_task_id() -> str:
    return uuid.uuid4().hex


@dataclass
class Task:
    description: str
    difficulty: Difficulty = Difficulty.EASY
    experience_reward: Optional[int] = None
    coin_reward: Optional[int] = None
    time_limit_minutes: int = 0
    completed: bool = False
    completion_date: Optional[date] = None
    task_id: str = field(default_factory=_new_task_id)

    def __post_init__(self) -> None:
        try:
            self.difficulty = Difficulty(self.difficulty)
        except ValueError as exc:
            raise InvalidArgument(f"unknown difficulty: {self.difficulty!r}") from exc
        # Rewards default to the difficulty table but stay overridable.
        if self.experience_reward is None:
            self.experience_reward = self.difficulty.base_experience
        if self.coin_reward is None:
            self.coin_reward = self.difficulty.base_coins
        for name in ("experience_reward", "coin_reward", "time_limit_minutes"):
            try:
                value = int(getattr(self, name))
            except (TypeError, ValueError) as exc:
                raise InvalidArgument(f"{name} must be an integer") from exc
            if value < 0:
                raise InvalidArgument(f"{name} must be >= 0")
            setattr(self, name, value)
        if self.completed and self.completion_date is None:
            self.completion_date = date.today()

    @property
    def value(self) -> int:
        return int(self.experience_reward) + int(self.coin_reward)

    def mark_completed(self, on: Optional[date] = None) -> bool:
        """Flip the task to completed. Returns False if it already was."""
        if self.completed:
            return False
        self.completed = True
        if self.completion_date is None:
            self.completion_date = on or date.today()
        return True

    def to_dict(self) -> dict[str, Any]:
        return {
            "task_id": self.task_id,
            "description": self.description,
            "difficulty": self.difficulty.value,
            "experience_reward": self.experience_reward,
            "coin_reward": self.coin_reward,
            "time_limit_minutes": self.time_limit_minutes,
            "completed": self.completed,
            "completion_date": self.completion_date.isoformat() if self.completion_date else None,
        }

    @classmethod
    def from_dict(cls, payload: dict[str, Any]) -> "Task":
        try:
            difficulty = Difficulty(str(payload.get("difficulty", "EASY")).upper())
        except ValueError as exc:
            raise InvalidArgument(f"unknown difficulty: {payload.get('difficulty')!r}") from exc
        raw_date = payload.get("completion_date")
        try:
            completion_date = date.fromisoformat(raw_date) if raw_date else None
        except (TypeError, ValueError) as exc:
            raise InvalidArgument(f"bad completion_date: {raw_date!r}") from exc
        kwargs: dict[str, Any] = {
            "description": str(payload.get("description", "")),
            "difficulty": difficulty,
            "experience_reward": payload.get("experience_reward"),
            "coin_reward": payload.get("coin_reward"),
            "time_limit_minutes": payload.get("time_limit_minutes", 0) or 0,
            "completed": bool(payload.get("completed", False)),
            "completion_date": completion_date,
        }
        if payload.get("task_id"):
            kwargs["task_id"] = str(payload["task_id"])
        return cls(**kwargs)


@dataclass
class ProgressionState:
    experience: int = 0
    level: int = 1
    coins: int = 0
    total_completed: int = 0

    def to_dict(self) -> dict[str, int]:
        return asdict(self)

    @classmethod
    def from_dict(cls, payload: dict[str, Any]) -> "ProgressionState":
        try:
            state = cls(
                experience=int(payload.get("experience", 0)),
                level=int(payload.get("level", 1)),
                coins=int(payload.get("coins", 0)),
                total_completed=int(payload.get("total_completed", 0)),
            )
        except (TypeError, ValueError) as exc:
            raise InvalidArgument(f"malformed stats payload: {exc}") from exc
        if state.level < 1:
            raise InvalidArgument("level must be >= 1")
        if min(state.experience, state.coins, state.total_completed) < 0:
            raise InvalidArgument("experience, coins and total_completed must be >= 0")
        return state


@dataclass(frozen=True)
class Reward:
    name: str
    cost: int

    def __post_init__(self) -> None:
        if self.cost < 0:
            raise InvalidArgument("reward cost must be >= 0")


@dataclass(frozen=True)
class RankedTask:
    task: Task
    tier: Tier
    score: float


@dataclass(frozen=True)
class ScaledReward:
    reward: int
    is_first: bool
