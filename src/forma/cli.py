"""Forma CLI - daily task list."""

import json
import logging
import shlex
from dataclasses import replace
from datetime import date, datetime

import click

from .config import Config, load_config
from .core.filters import FilterCriteria
from .core.tasks import Importance, SortMode, Task
from .engine import TaskEngine, open_engine

IMPORTANCE_CHOICES = click.Choice([i.value for i in Importance], case_sensitive=False)
SORT_CHOICES = click.Choice([m.value for m in SortMode], case_sensitive=False)


class CliState:
    """Per-session state shared by commands (and by every line of `shell`)."""

    def __init__(self):
        self.config: Config | None = None
        self._engine: TaskEngine | None = None

    @property
    def engine(self) -> TaskEngine:
        if self._engine is None:
            self._engine = open_engine(self.config)
        return self._engine


pass_state = click.make_pass_decorator(CliState, ensure=True)


def _resolve(engine: TaskEngine, ref: str) -> Task:
    """Find a task by 1-based list position or id prefix."""
    tasks = engine.tasks
    if ref.isdigit():
        position = int(ref)
        if 1 <= position <= len(tasks):
            return tasks[position - 1]
        raise click.BadParameter(f"no task at position {position}", param_hint="REF")

    found = [t for t in tasks if t.id.startswith(ref)]
    if len(found) == 1:
        return found[0]
    if not found:
        raise click.BadParameter(f"no task with id {ref!r}", param_hint="REF")
    raise click.BadParameter(f"id prefix {ref!r} is ambiguous", param_hint="REF")


def _format_when(when: datetime) -> str:
    if when.hour == 0 and when.minute == 0:
        return when.strftime("%a %b %d")
    return when.strftime("%a %b %d %H:%M")


def _format_task(position: int, task: Task) -> str:
    box = "[x]" if task.is_done else "[ ]"
    parts = [f"{position:>3}. {box} {task.title}"]
    if task.scheduled_at:
        parts.append(f"({_format_when(task.scheduled_at)})")
    if task.importance != Importance.NORMAL:
        parts.append(f"!{task.importance.value}")
    parts.extend(f"#{tag}" for tag in task.tags)
    parts.append(f"[{task.id[:8]}]")
    return " ".join(parts)


@click.group()
@click.option("--debug", is_flag=True, help="Enable debug logging")
@click.option("--data-dir", envvar="FORMA_DATA_DIR", default=None, help="Override the data directory")
@click.version_option(package_name="forma")
@pass_state
def main(state: CliState, debug: bool, data_dir: str | None):
    """Forma - daily task list."""
    if debug:
        logging.basicConfig(
            format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            level=logging.DEBUG,
        )
    if state.config is None:
        state.config = load_config()
    if data_dir:
        state.config = replace(state.config, data_dir=data_dir)


@main.command()
@click.argument("text", nargs=-1, required=True)
@click.option("--notes", default="", help="Task notes")
@click.option("--tag", "tags", multiple=True, help="Tag (repeatable, or comma-separated)")
@click.option("--end", is_flag=True, help="Append instead of adding to the top")
@pass_state
def add(state: CliState, text: tuple[str, ...], notes: str, tags: tuple[str, ...], end: bool):
    """Add a task from free text, e.g. "Call mom tomorrow !high"."""
    task = state.engine.add(" ".join(text), notes=notes, tags=",".join(tags), at_front=not end)
    if task is None:
        raise click.ClickException("Task title cannot be empty")
    when = f" ({_format_when(task.scheduled_at)})" if task.scheduled_at else ""
    click.echo(f"Added: {task.title}{when} [{task.id[:8]}]")


@main.command("list")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@click.option("--importance", type=IMPORTANCE_CHOICES, default=None, help="Only this importance")
@click.option("--tag", "tags", multiple=True, help="Any of these tags")
@click.option("--overdue", is_flag=True, help="Only overdue tasks")
@click.option("--search", default="", help="Text in title, notes or tags")
@click.option("--day", default=None, help="Only tasks scheduled on this date (YYYY-MM-DD)")
@pass_state
def list_tasks(
    state: CliState,
    as_json: bool,
    importance: str | None,
    tags: tuple[str, ...],
    overdue: bool,
    search: str,
    day: str | None,
):
    """List tasks in display order."""
    engine = state.engine
    criteria = FilterCriteria(
        importance=Importance.coerce(importance) if importance else None,
        tags=frozenset(tags),
        overdue_only=overdue,
        search_text=search,
    )
    indices = engine.filter(criteria)
    if day:
        try:
            target = date.fromisoformat(day)
        except ValueError:
            raise click.BadParameter(f"expected YYYY-MM-DD, got {day!r}", param_hint="--day")
        on_day = {t.id for t in engine.tasks_on(target)}
        indices = [i for i in indices if engine.tasks[i].id in on_day]

    tasks = engine.tasks
    if as_json:
        click.echo(json.dumps([tasks[i].to_dict() for i in indices], indent=2))
        return

    if not indices:
        click.echo("No tasks." if criteria.is_empty and not day else "No matching tasks.")
        return

    for i in indices:
        click.echo(_format_task(i + 1, tasks[i]))


@main.command()
@click.argument("ref")
@pass_state
def done(state: CliState, ref: str):
    """Toggle a task's completed state."""
    engine = state.engine
    task = _resolve(engine, ref)
    engine.toggle(task.id)
    task = engine.store.get(task.id)
    click.echo(f"{'Completed' if task.is_done else 'Reopened'}: {task.title}")


@main.command()
@click.argument("ref")
@click.option("--title", default=None)
@click.option("--notes", default=None)
@click.option("--when", default=None, help="Free-text schedule, e.g. 'friday 9am'")
@click.option("--clear-when", is_flag=True, help="Remove the schedule")
@click.option("--importance", type=IMPORTANCE_CHOICES, default=None)
@pass_state
def edit(
    state: CliState,
    ref: str,
    title: str | None,
    notes: str | None,
    when: str | None,
    clear_when: bool,
    importance: str | None,
):
    """Edit a task's fields."""
    engine = state.engine
    task = _resolve(engine, ref)

    scheduled_at = None
    if when:
        scheduled_at = engine.parse(when).when
        if scheduled_at is None:
            raise click.BadParameter(f"could not understand {when!r}", param_hint="--when")

    changed = engine.edit(
        task.id,
        title=title,
        notes=notes,
        scheduled_at=scheduled_at,
        clear_schedule=clear_when,
        importance=Importance.coerce(importance) if importance else None,
    )
    if not changed:
        raise click.ClickException("Task title cannot be empty")
    click.echo(f"Updated: {engine.store.get(task.id).title}")


@main.command()
@click.argument("ref")
@click.argument("tags", nargs=-1, required=True)
@pass_state
def tag(state: CliState, ref: str, tags: tuple[str, ...]):
    """Add tags to a task."""
    engine = state.engine
    task = _resolve(engine, ref)
    engine.add_tags(task.id, " ".join(tags))
    click.echo(f"Tags: {', '.join(engine.store.get(task.id).tags)}")


@main.command()
@click.argument("ref")
@click.argument("name")
@pass_state
def untag(state: CliState, ref: str, name: str):
    """Remove a tag from a task."""
    engine = state.engine
    task = _resolve(engine, ref)
    engine.remove_tag(task.id, name)
    click.echo(f"Tags: {', '.join(engine.store.get(task.id).tags) or '(none)'}")


@main.command()
@click.argument("positions", nargs=-1, type=int, required=True)
@pass_state
def move(state: CliState, positions: tuple[int, ...]):
    """Move open tasks: SOURCE... DEST (1-based positions among open tasks).

    The moved tasks land before the task currently at DEST; use one past the
    last open position to move to the end.
    """
    if len(positions) < 2:
        raise click.UsageError("need at least one source and a destination")
    engine = state.engine
    if engine.store.sort_mode != SortMode.MANUAL:
        raise click.ClickException(
            f"Manual moves need manual sort mode (current: {engine.store.sort_mode.value})"
        )
    *sources, destination = positions
    if engine.move([p - 1 for p in sources], destination - 1):
        click.echo("Moved.")
    else:
        click.echo("Nothing to move.")


@main.command()
@click.argument("mode", type=SORT_CHOICES)
@pass_state
def sort(state: CliState, mode: str):
    """Resort the list by MODE (manual keeps the current order)."""
    state.engine.set_sort_mode(mode)
    click.echo(f"Sorted by {mode.lower()}.")


@main.command()
@click.argument("ref")
@pass_state
def rm(state: CliState, ref: str):
    """Delete a task (kept in the trash)."""
    engine = state.engine
    task = _resolve(engine, ref)
    engine.delete(task.id)
    window = engine.deletions.undo_window.total_seconds()
    click.echo(f"Deleted: {task.title} (undo within {window:g}s, or restore from trash)")


@main.command()
@pass_state
def undo(state: CliState):
    """Undo the most recent delete while its window is open."""
    engine = state.engine
    slot = engine.deletions.pending_undo
    if slot is None or not engine.undo():
        click.echo("Nothing to undo.")
        return
    click.echo(f"Restored: {slot.task.title}")


@main.group(invoke_without_command=True)
@click.pass_context
def trash(ctx):
    """Show or manage deleted tasks."""
    if ctx.invoked_subcommand is None:
        ctx.invoke(trash_list)


@trash.command("list")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@pass_state
def trash_list(state: CliState, as_json: bool = False):
    """List deleted tasks, newest first."""
    entries = state.engine.trash
    if as_json:
        click.echo(json.dumps([e.to_dict() for e in entries], indent=2))
        return

    if not entries:
        click.echo("Trash is empty.")
        return

    for position, entry in enumerate(entries, start=1):
        deleted = entry.deleted_at.strftime("%b %d %H:%M")
        click.echo(f"{position:>3}. {entry.task.title} (deleted {deleted}) [{entry.id[:8]}]")


@trash.command("restore")
@click.argument("ref")
@pass_state
def trash_restore(state: CliState, ref: str):
    """Restore a trash entry by position or id prefix."""
    engine = state.engine
    entries = engine.trash
    if ref.isdigit() and 1 <= int(ref) <= len(entries):
        entry = entries[int(ref) - 1]
    else:
        found = [e for e in entries if e.id.startswith(ref)]
        if len(found) != 1:
            raise click.BadParameter(f"no single trash entry matches {ref!r}", param_hint="REF")
        entry = found[0]

    if not engine.restore_from_trash(entry.id):
        raise click.ClickException(f"Could not restore {entry.task.title!r}")
    click.echo(f"Restored: {entry.task.title}")


@trash.command("empty")
@click.confirmation_option(prompt="Permanently delete everything in the trash?")
@pass_state
def trash_empty(state: CliState):
    """Permanently delete everything in the trash."""
    state.engine.empty_trash()
    click.echo("Trash emptied.")


@trash.command("purge")
@click.option("--days", type=int, default=None, help="Maximum age in days")
@pass_state
def trash_purge(state: CliState, days: int | None):
    """Drop trash entries older than the retention period."""
    max_age = days if days is not None else state.config.trash_retention_days
    removed = state.engine.purge_expired(max_age)
    click.echo(f"Purged {removed} entr{'y' if removed == 1 else 'ies'}.")


@main.command()
@click.pass_context
def shell(ctx):
    """Interactive session; `undo` works here within the undo window."""
    state = ctx.find_object(CliState)
    click.echo("Forma shell. Commands as on the command line, 'quit' to leave.")

    while True:
        try:
            line = click.prompt("forma", prompt_suffix="> ", default="", show_default=False)
        except click.Abort:
            click.echo()
            break

        line = line.strip()
        if not line:
            continue
        if line in ("quit", "exit"):
            break

        try:
            args = shlex.split(line)
        except ValueError as e:
            click.echo(f"Error: {e}", err=True)
            continue

        if args[0] == "shell":
            continue

        try:
            main.main(args=args, prog_name="forma", standalone_mode=False, obj=state)
        except click.ClickException as e:
            e.show()
        except click.Abort:
            click.echo("Aborted.")


if __name__ == "__main__":
    main()
