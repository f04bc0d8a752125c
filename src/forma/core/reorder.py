"""Manual reordering of the open (not done) tasks."""

from typing import Iterable

from .tasks import Task


def open_indices(tasks: list[Task]) -> list[int]:
    """Global indices of open tasks, in display order."""
    return [i for i, t in enumerate(tasks) if not t.is_done]


def move_items(items: list, source_positions: Iterable[int], destination: int) -> list:
    """
    Array move: lift the sources out as a block and drop them before the
    item originally at `destination`.

    Sources keep their relative order. `destination == len(items)` moves to
    the end. Out-of-range sources are ignored, destination is clamped.
    """
    sources = sorted({p for p in source_positions if 0 <= p < len(items)})
    if not sources:
        return list(items)

    destination = max(0, min(destination, len(items)))
    moving = [items[p] for p in sources]
    remaining = [item for p, item in enumerate(items) if p not in sources]
    insert_at = destination - sum(1 for p in sources if p < destination)

    return remaining[:insert_at] + moving + remaining[insert_at:]


def move_open_tasks(tasks: list[Task], source_positions: Iterable[int], destination: int) -> list[Task]:
    """
    Move open tasks within the open subsequence.

    Positions are offsets into the open subsequence. The reordered open tasks
    are written back into the same global slots, so done tasks never move.

    Pure function - returns a new list.
    """
    slots = open_indices(tasks)
    reordered = move_items([tasks[i] for i in slots], source_positions, destination)

    result = list(tasks)
    for slot, task in zip(slots, reordered):
        result[slot] = task
    return result
