"""Read-only views over a parsed task list for calendar and dashboard consumers."""

from __future__ import annotations

from collections import defaultdict
from typing import Dict, Iterable, List

from .schemas import Task, TimelineProgress


def tasks_for_day(tasks: Iterable[Task], day: int) -> List[Task]:
    """Return the tasks scheduled on *day*, in their original order."""

    return [task for task in tasks if task.day == day]


def tasks_by_week(tasks: Iterable[Task]) -> Dict[int, List[Task]]:
    """Group tasks by week number, weeks in ascending order."""

    grouped: Dict[int, List[Task]] = defaultdict(list)
    for task in tasks:
        grouped[task.week].append(task)
    return {week: grouped[week] for week in sorted(grouped)}


def progress(tasks: Iterable[Task]) -> TimelineProgress:
    """Summarise how many tasks are done."""

    task_list = list(tasks)
    total = len(task_list)
    completed = sum(1 for task in task_list if task.completed)
    percent = round(completed * 100 / total) if total else 0
    return TimelineProgress(total=total, completed=completed, percent=percent)
