from dataclasses import dataclass


@dataclass(frozen=True)
class EffortConfig:
    easy: int = 2
    medium: int = 5
    hard: int = 8
    base_capacity: int = 10
    capacity_per_level: int = 5


@dataclass(frozen=True)
class PriorityConfig:
    minutes_per_effort: int = 15  # estimate used when a task has no time limit
    urgent_under_minutes: int = 60
    urgency_boost: float = 1.5
    tiers: int = 3


@dataclass(frozen=True)
class ProgressionConfig:
    base_threshold: int = 100
    growth: float = 1.5
    level_up_bonus: int = 50


@dataclass(frozen=True)
class CompetitiveConfig:
    max_reduction: float = 0.75
    floor_divisor: int = 4  # nobody gets less than original // floor_divisor


@dataclass(frozen=True)
class SyncConfig:
    endpoint_url: str = ""
    api_key: str = ""
    client_version: str = "studyquest-dev"
    timeout_sec: float = 2.5
    flush_interval_sec: float = 5.0


@dataclass(frozen=True)
class QuestConfig:
    effort: EffortConfig = EffortConfig()
    priority: PriorityConfig = PriorityConfig()
    progression: ProgressionConfig = ProgressionConfig()
    competitive: CompetitiveConfig = CompetitiveConfig()
    sync: SyncConfig = SyncConfig()


DEFAULT_CONFIG = QuestConfig()
