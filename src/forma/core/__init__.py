"""Functional core - pure business logic with no I/O."""

from .tasks import Importance, SortMode, Task, sort_tasks, partition_done
from .tags import merge_tags, normalize_tags, remove_tag, split_tag_input, tag_key
from .parsing import ParsedInput, parse, dateparser_recognizer
from .filters import FilterCriteria, filter_indices, tasks_on_day
from .reorder import move_open_tasks, open_indices
from .trash import DeletedEntry, split_expired

__all__ = [
    # Tasks
    "Importance",
    "SortMode",
    "Task",
    "sort_tasks",
    "partition_done",
    # Tags
    "merge_tags",
    "normalize_tags",
    "remove_tag",
    "split_tag_input",
    "tag_key",
    # Parsing
    "ParsedInput",
    "parse",
    "dateparser_recognizer",
    # Filters
    "FilterCriteria",
    "filter_indices",
    "tasks_on_day",
    # Reorder
    "move_open_tasks",
    "open_indices",
    # Trash
    "DeletedEntry",
    "split_expired",
]
