from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, List

from quest.runtime.models import Difficulty, Task


@dataclass(frozen=True)
class Suggestion:
    description: str
    difficulty: Difficulty
    experience: int
    coins: int
    time_limit_minutes: int = 0
    min_level: int = 1


SUGGESTIONS = (
    Suggestion("Read a chapter", Difficulty.EASY, 50, 20, 30),
    Suggestion("Create study notes", Difficulty.MEDIUM, 80, 30, 45),
    Suggestion("Practice problems", Difficulty.MEDIUM, 100, 40, 60),
    Suggestion("Create flashcards", Difficulty.MEDIUM, 120, 50, 45, min_level=2),
    Suggestion("Teach a concept to someone", Difficulty.HARD, 150, 70, 60, min_level=2),
    Suggestion("Complete a practice exam", Difficulty.HARD, 200, 100, 120, min_level=3),
    Suggestion("Create a study group", Difficulty.HARD, 250, 120, 60, min_level=3),
    Suggestion("Write a research summary", Difficulty.HARD, 300, 150, 180, min_level=5),
)


def recommend_tasks(level: int, existing: Iterable[Task] = ()) -> List[Task]:
    known = {t.description.strip().lower() for t in existing}
    return [
        Task(
            description=s.description,
            difficulty=s.difficulty,
            experience_reward=s.experience,
            coin_reward=s.coins,
            time_limit_minutes=s.time_limit_minutes,
        )
        for s in SUGGESTIONS
        if level >= s.min_level and s.description.lower() not in known
    ]
