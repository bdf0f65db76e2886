import argparse
import json
import logging
import sys
from pathlib import Path
from typing import List, Optional

from quest.errors import InvalidArgument
from quest.priority import display_label, display_order
from quest.recommendations import recommend_tasks
from quest.runtime.models import Task
from quest.task_selector import effort_for, max_effort_for_level, select


def load_tasks(path: Path) -> List[Task]:
    payload = json.loads(path.read_text(encoding="utf-8"))
    if isinstance(payload, dict):
        payload = payload.get("tasks", [])
    if not isinstance(payload, list):
        raise InvalidArgument("task file must hold a list of tasks")
    tasks = []
    for idx, item in enumerate(payload):
        if not isinstance(item, dict):
            raise InvalidArgument(f"task entry {idx} must be an object")
        tasks.append(Task.from_dict(item))
    return tasks


def _cmd_rank(args: argparse.Namespace) -> int:
    for task, tier in display_order(load_tasks(Path(args.tasks))):
        print(display_label(task, tier))
    return 0


def _cmd_select(args: argparse.Namespace) -> int:
    tasks = load_tasks(Path(args.tasks))
    capacity = args.capacity if args.capacity is not None else max_effort_for_level(args.level)
    chosen = select([t for t in tasks if not t.completed], capacity)
    for task in chosen:
        print(display_label(task, None))
    total_effort = sum(effort_for(t.difficulty) for t in chosen)
    total_value = sum(t.value for t in chosen)
    print(f"effort {total_effort}/{capacity}, value {total_value}")
    return 0


def _cmd_recommend(args: argparse.Namespace) -> int:
    existing = load_tasks(Path(args.tasks)) if args.tasks else []
    for task in recommend_tasks(args.level, existing):
        print(display_label(task, None))
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="studyquest", description="Study task planner")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    sub = parser.add_subparsers(dest="command", required=True)

    rank_p = sub.add_parser("rank", help="Show tasks in priority order")
    rank_p.add_argument("--tasks", required=True, help="Path to a JSON task list")
    rank_p.set_defaults(func=_cmd_rank)

    select_p = sub.add_parser("select", help="Pick the best set of open tasks for an effort budget")
    select_p.add_argument("--tasks", required=True, help="Path to a JSON task list")
    budget = select_p.add_mutually_exclusive_group()
    budget.add_argument("--level", type=int, default=1, help="Derive the budget from this level")
    budget.add_argument("--capacity", type=int, help="Explicit effort budget")
    select_p.set_defaults(func=_cmd_select)

    rec_p = sub.add_parser("recommend", help="Suggest study tasks for a level")
    rec_p.add_argument("--level", type=int, default=1)
    rec_p.add_argument("--tasks", help="Existing tasks to skip")
    rec_p.set_defaults(func=_cmd_recommend)
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
    )
    try:
        return args.func(args)
    except (InvalidArgument, OSError, json.JSONDecodeError) as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 2


if __name__ == "__main__":
    sys.exit(main())
