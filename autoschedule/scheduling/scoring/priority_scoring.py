"""
Batch ordering policy: which task gets to pick its slot first.
"""

from typing import Dict, List

from ..core.constants import PRIORITY_ORDER, UNSET_PRIORITY_ORDER


def priority_rank(task) -> int:
    """0 for high, 1 for medium, 2 for low, 3 when unset."""
    return PRIORITY_ORDER.get(task.priority, UNSET_PRIORITY_ORDER)


def task_sort_key(task) -> tuple:
    """
    Priority high to low, then due date ascending with undated tasks last, then
    shorter tasks first so small items fill gaps before long ones fragment the day.
    The id makes the order independent of how the caller listed the tasks.
    """
    return (
        priority_rank(task),
        task.due_date is None,
        task.due_date,
        task.duration,
        str(task.id),
    )


def order_tasks(tasks: List, group_by_project: bool = False) -> List:
    """
    Sort tasks into placement order. With project grouping, every task of a project
    moves up next to that project's first-ranked task so the finder lays them out
    back to back; tasks without a project keep their own position.
    """
    ordered = sorted(tasks, key=task_sort_key)
    if not group_by_project:
        return ordered

    first_position: Dict[str, int] = {}
    for position, task in enumerate(ordered):
        if task.project_id:
            first_position.setdefault(task.project_id, position)

    def group_key(item):
        position, task = item
        anchor = first_position[task.project_id] if task.project_id else position
        return (anchor, position)

    return [task for _, task in sorted(enumerate(ordered), key=group_key)]


def placement_signature(task) -> tuple:
    """
    Everything except priority and id that decides where a task may go and which
    slots it prefers. Tasks with equal signatures compete for exactly the same slots.
    """
    return (
        task.duration,
        task.due_date,
        task.not_before,
        task.energy_level,
        task.preferred_time,
        task.project_id,
    )
