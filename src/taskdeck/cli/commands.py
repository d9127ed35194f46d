# src/taskdeck/cli/commands.py

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, replace

from ..core.errors import ValidationError
from ..core.ports import ConfirmFn
from ..core.state import AppState
from ..prefs.store import COMMANDS_VISIBILITY_KEY, toggle_visibility
from ..tasks.status_table import StatusAction, action_label, next_status, previous_status
from ..tasks.task_filter import (
    ProjectFilter,
    StatusFilter,
    apply_task_filters,
    create_filter_predicates,
)
from ..tasks.task_models import ItemKind, Task, TaskFormData, TaskPriority, TaskStatus
from ..tasks.task_operations import OperationResult, OperationState
from ..tasks.task_sorter import SortDirection, SortOption
from ..tasks.task_stats import recent_completed_threshold_seconds

CommandEmitter = Callable[[str], None]

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class CommandIO:
    """Connector callbacks available to handlers."""

    emit: CommandEmitter | None = None
    confirm: ConfirmFn | None = None


CommandHandler = Callable[[AppState, list[str], CommandIO], Awaitable[str]]


class CommandRegistry:
    """Slash-command registry used by connectors (/help, /list, ...)."""

    def __init__(self) -> None:
        self._handlers: dict[str, CommandHandler] = {}
        self._help: dict[str, str] = {}

    def register(
        self,
        name: str,
        handler: CommandHandler,
        help_text: str,
        aliases: list[str] | None = None,
    ) -> None:
        aliases = aliases or []
        key = name.lower()
        self._handlers[key] = handler
        self._help[key] = help_text
        for alias in aliases:
            self._handlers[alias.lower()] = handler

    async def handle(self, state: AppState, line: str, io: CommandIO | None = None) -> str | None:
        """
        Handle a string like "/command args".
        Returns a reply string or None if not a command.
        """
        if not line.startswith("/"):
            return None

        parts = line[1:].split()
        if not parts:
            return "Empty command. Use /help to list available commands."

        name = parts[0].lower()
        args = parts[1:]

        handler = self._handlers.get(name)
        if not handler:
            return f"Unknown command: /{name}. Use /help to list available commands."

        try:
            return await handler(state, args, io or CommandIO())
        except ValidationError as e:
            logger.debug("Validation error in /%s: %s", name, e)
            return f"Invalid input: {e}"

    def build_help(self) -> str:
        lines = ["Available commands:"]
        for name, help_text in self._help.items():
            lines.append(f"  /{name} - {help_text}")
        return "\n".join(lines)


registry = CommandRegistry()


# ---- formatting helpers ----


def _short_id(task_id: str) -> str:
    return task_id[:8]


def format_task_line(task: Task) -> str:
    star = "*" if task.starred else " "
    project = f" ({task.project})" if task.project else ""
    return f"{star} {_short_id(task.id):<8} [{task.status.value}] {task.title}{project}"


def format_task_detail(task: Task) -> str:
    lines = [
        f"{task.title}  [{task.status.value}, {task.priority.value}]",
        f"  id: {task.id}",
        f"  project: {task.project or '-'}   initiative: {task.initiative or '-'}",
        f"  created: {task.created_at}   updated: {task.updated_at}",
    ]
    if task.completed_at:
        lines.append(f"  completed: {task.completed_at}")
    if task.tags:
        lines.append(f"  tags: {', '.join(task.tags)}")
    if task.description:
        lines.append(f"  {task.description}")
    for kind in ItemKind:
        items = task.items(kind)
        if not items:
            continue
        lines.append(f"  {kind.value}:")
        for item in items:
            lines.append(f"    {item.id} [{item.status.value}] {item.content}")
    label = action_label(task.status)
    if label:
        lines.append(f"  next: {label} (/next {_short_id(task.id)})")
    back = previous_status(task.status)
    if back is not None:
        lines.append(f"  back: /status {_short_id(task.id)} {back.value}")
    return "\n".join(lines)


def _format_result(result: OperationResult, ok_text: str) -> str:
    if result.state == OperationState.COMMITTED:
        return ok_text
    if result.declined:
        return "Cancelled."
    return f"[WARN] {result.error or 'operation failed'}"


def _resolve_task(state: AppState, ref: str) -> Task | str:
    """Full id or unique id prefix; returns an error string otherwise."""
    exact = state.ops.get(ref)
    if exact is not None:
        return exact
    matches = [t for t in state.ops.tasks if t.id.startswith(ref)]
    if len(matches) == 1:
        return matches[0]
    if not matches:
        return f"No {state.terms.get('item', 'task').lower()} matches id {ref!r}."
    return f"Id prefix {ref!r} is ambiguous ({len(matches)} matches)."


def _render_view(state: AppState) -> str:
    days = getattr(state.settings, "recent_completed_days", 2)
    predicates = create_filter_predicates(recent_completed_threshold_seconds(days))
    visible = apply_task_filters(state.ops.tasks, state.view, predicates)
    v = state.view
    header = (
        f"{state.terms.get('items', 'Tasks')}: {len(visible)} shown"
        f" (filter={v.status_filter}, project={_project_label(v.project_filter)},"
        f" sort={v.sort_by}/{v.sort_direction}"
        + (f", search={v.search_term!r}" if v.search_term else "")
        + ")"
    )
    if state.ops.error:
        header += f"\n[WARN] {state.ops.error}"
    if not visible:
        return header + "\n  (nothing to show)"
    return "\n".join([header, *(format_task_line(t) for t in visible)])


_STATUS_FILTERS = {f.value for f in StatusFilter} | {s.value for s in TaskStatus}


def _parse_project_filter(raw: str) -> ProjectFilter:
    """Comma-separated names ("a,b") select any of several projects."""
    if "," not in raw:
        return raw
    return tuple(p for p in (part.strip() for part in raw.split(",")) if p)


def _project_label(project_filter: ProjectFilter) -> str:
    if isinstance(project_filter, str):
        return project_filter
    return ",".join(project_filter) or "(none)"


# ---- handlers ----


async def cmd_help(state: AppState, args: list[str], io: CommandIO) -> str:
    if not state.commands_visible:
        return "Command list is hidden. Use /commands to show it."
    return registry.build_help()


async def cmd_commands(state: AppState, args: list[str], io: CommandIO) -> str:
    stored = toggle_visibility(state.commands_visible)
    state.prefs.set(COMMANDS_VISIBILITY_KEY, stored)
    state.commands_visible = stored == "true"
    return f"Command list {'shown' if state.commands_visible else 'hidden'}."


async def cmd_refresh(state: AppState, args: list[str], io: CommandIO) -> str:
    if io.emit:
        io.emit("Loading...")
    await state.ops.refresh_tasks()
    return _render_view(state)


async def cmd_list(state: AppState, args: list[str], io: CommandIO) -> str:
    """
    /list [filter] [project|p1,p2] [sort] [direction]
    """
    view = state.view
    if len(args) >= 1:
        if args[0] not in _STATUS_FILTERS:
            return f"Unknown filter: {args[0]}. Use one of: {', '.join(sorted(_STATUS_FILTERS))}."
        view = replace(view, status_filter=args[0])
    if len(args) >= 2:
        view = replace(view, project_filter=_parse_project_filter(args[1]))
    if len(args) >= 3:
        try:
            view = replace(view, sort_by=SortOption(args[2]))
        except ValueError:
            return f"Unknown sort: {args[2]}. Use one of: {', '.join(o.value for o in SortOption)}."
    if len(args) >= 4:
        try:
            view = replace(view, sort_direction=SortDirection(args[3]))
        except ValueError:
            return "Direction must be asc or desc."
    state.view = view
    return _render_view(state)


async def cmd_search(state: AppState, args: list[str], io: CommandIO) -> str:
    state.view = replace(state.view, search_term=" ".join(args))
    return _render_view(state)


async def cmd_show(state: AppState, args: list[str], io: CommandIO) -> str:
    if not args:
        return "Usage: /show <id>"
    task = _resolve_task(state, args[0])
    if isinstance(task, str):
        return task
    return format_task_detail(task)


async def cmd_add(state: AppState, args: list[str], io: CommandIO) -> str:
    """
    /add <title words> [project=X] [priority=low|medium|high] [tags=a,b] [status=S]
    """
    words: list[str] = []
    opts: dict[str, str] = {}
    for arg in args:
        key, sep, value = arg.partition("=")
        if sep and key in {"project", "priority", "tags", "status", "initiative"}:
            opts[key] = value
        else:
            words.append(arg)

    try:
        priority = TaskPriority(opts.get("priority", "medium"))
        status = TaskStatus(opts.get("status", "todo"))
    except ValueError as e:
        raise ValidationError(str(e)) from e

    form = TaskFormData(
        title=" ".join(words),
        priority=priority,
        project=opts.get("project", ""),
        status=status,
        initiative=opts.get("initiative", ""),
        tags=opts.get("tags", ""),
    )
    result = await state.ops.add_task(form)
    created = result.task
    ok_text = f"Created {state.terms.get('item', 'Task').lower()}: {format_task_line(created)}" if created else ""
    return _format_result(result, ok_text)


async def cmd_next(state: AppState, args: list[str], io: CommandIO) -> str:
    if not args:
        return "Usage: /next <id>"
    task = _resolve_task(state, args[0])
    if isinstance(task, str):
        return task
    label = action_label(task.status)
    if next_status(task.status) is None:
        hint = f" Use /status {_short_id(task.id)} archive." if label else ""
        return f"No forward action for status {task.status.value}.{hint}"
    result = await state.ops.advance_task(task.id)
    after = state.ops.get(task.id)
    return _format_result(result, f"{label}: {format_task_line(after)}" if after else label)


async def cmd_status(state: AppState, args: list[str], io: CommandIO) -> str:
    """
    /status <id> <status|action>
    """
    if len(args) < 2:
        return "Usage: /status <id> <status|action>"
    task = _resolve_task(state, args[0])
    if isinstance(task, str):
        return task

    target = args[1].lower()
    if target in {a.value for a in StatusAction}:
        result = await state.ops.apply_action(task.id, target)
    else:
        result = await state.ops.update_task_status(task.id, task.project, target)
    after = state.ops.get(task.id)
    return _format_result(result, format_task_line(after) if after else "OK")


async def cmd_star(state: AppState, args: list[str], io: CommandIO) -> str:
    if not args:
        return "Usage: /star <id>"
    task = _resolve_task(state, args[0])
    if isinstance(task, str):
        return task
    result = await state.ops.toggle_star(task.id)
    starred = result.task.starred if result.task else task.starred
    return _format_result(result, "Starred." if starred else "Unstarred.")


async def cmd_date(state: AppState, args: list[str], io: CommandIO) -> str:
    if len(args) < 2:
        return "Usage: /date <id> <ISO-8601 date>"
    task = _resolve_task(state, args[0])
    if isinstance(task, str):
        return task
    result = await state.ops.update_task_date(task.id, args[1])
    return _format_result(result, f"Created date set to {args[1]}.")


async def cmd_delete(state: AppState, args: list[str], io: CommandIO) -> str:
    if not args:
        return "Usage: /delete <id>"
    task = _resolve_task(state, args[0])
    if isinstance(task, str):
        return task
    if io.confirm is None:
        return "Delete needs an interactive confirmation."
    result = await state.ops.delete_task(task.id, task.project, io.confirm)
    return _format_result(result, f"Deleted: {task.title}")


async def _item_command(state: AppState, args: list[str], approve: bool) -> str:
    verb = "approve" if approve else "veto"
    if len(args) < 3:
        return f"Usage: /{verb} <id> <req|plan|next> <item_id>"
    task = _resolve_task(state, args[0])
    if isinstance(task, str):
        return task
    try:
        kind = ItemKind.parse(args[1])
    except ValueError as e:
        raise ValidationError(str(e), field="kind") from e

    if approve:
        result = await state.ops.approve_item(task.id, kind, args[2])
    else:
        result = await state.ops.veto_item(task.id, kind, args[2])
    return _format_result(result, f"Item {args[2]} {'approved' if approve else 'vetoed'}.")


async def cmd_approve(state: AppState, args: list[str], io: CommandIO) -> str:
    return await _item_command(state, args, approve=True)


async def cmd_veto(state: AppState, args: list[str], io: CommandIO) -> str:
    return await _item_command(state, args, approve=False)


async def cmd_counts(state: AppState, args: list[str], io: CommandIO) -> str:
    counts = state.ops.status_counts
    lines = [f"{state.terms.get('items', 'Tasks')} by status ({len(state.ops.tasks)} total):"]
    for status in TaskStatus:
        lines.append(f"  {status.value:<12} {counts.get(status.value, 0)}")
    return "\n".join(lines)


async def cmd_history(state: AppState, args: list[str], io: CommandIO) -> str:
    """
    /history [n] -> last n operation outcomes, newest first
    """
    try:
        limit = int(args[0]) if args else 10
    except ValueError as e:
        raise ValidationError(f"Not a number: {args[0]}", field="n") from e

    results = state.ops.recent_results(limit)
    if not results:
        return "No operations yet."
    lines = [f"Last {len(results)} operations:"]
    for r in results:
        target = _short_id(r.task_id) if r.task_id else "-"
        if r.declined:
            detail = " (declined)"
        else:
            detail = f" ({r.error})" if r.error else ""
        lines.append(f"  {r.op:<18} {target:<8} {r.state.value}{detail}")
    return "\n".join(lines)


async def cmd_initiatives(state: AppState, args: list[str], io: CommandIO) -> str:
    """
    /initiatives            -> list
    /initiatives new <name> -> create
    """
    label = state.terms.get("initiative", "Initiative")
    if args and args[0].lower() == "new":
        created = await state.initiatives.create(" ".join(args[1:]))
        if created is None:
            return f"[WARN] {state.initiatives.error or 'create failed'}"
        return f"{label} created: {created.name} ({created.id})"

    if not state.initiatives.loaded:
        await state.initiatives.refresh()
    items = state.initiatives.initiatives()
    lines = [f"{label}s: {len(items)}"]
    if state.initiatives.error:
        lines.append(f"[WARN] {state.initiatives.error}")
    for ini in items:
        lines.append(f"  {ini.id:<10} [{ini.status}] {ini.name}")
    return "\n".join(lines)


async def cmd_projects(state: AppState, args: list[str], io: CommandIO) -> str:
    if not state.projects.loaded:
        await state.projects.refresh()
    names = [str(p.get("name") or p.get("id") or "") for p in state.projects.items]
    if not names:
        # Fall back to the projects present on loaded tasks.
        names = sorted({t.project for t in state.ops.tasks if t.project})
    label = state.terms.get("project", "Project")
    return f"{label}s: " + (", ".join(names) if names else "(none)")


async def cmd_kpis(state: AppState, args: list[str], io: CommandIO) -> str:
    if not state.kpis.loaded:
        await state.kpis.refresh()
    lines = [f"KPIs: {len(state.kpis.items)}"]
    if state.kpis.error:
        lines.append(f"[WARN] {state.kpis.error}")
    for kpi in state.kpis.items:
        name = kpi.get("name") or kpi.get("id") or "?"
        value = kpi.get("value", kpi.get("current", "-"))
        lines.append(f"  {name}: {value}")
    return "\n".join(lines)


registry.register("help", cmd_help, help_text="Show available commands.", aliases=["h", "?"])
registry.register("refresh", cmd_refresh, help_text="Reload tasks from the API.", aliases=["r"])
registry.register(
    "list",
    cmd_list,
    help_text="List tasks: /list [filter] [project|p1,p2] [sort] [direction].",
    aliases=["ls"],
)
registry.register(
    "search",
    cmd_search,
    help_text="Search title, description, id, initiative, project and tags: /search <term>.",
)
registry.register("show", cmd_show, help_text="Show task details: /show <id>.")
registry.register("add", cmd_add, help_text="Create a task: /add <title> [project=X] [priority=P].")
registry.register("next", cmd_next, help_text="Advance a task to its next status: /next <id>.")
registry.register("status", cmd_status, help_text="Set status or apply action: /status <id> <status|action>.")
registry.register("star", cmd_star, help_text="Toggle star: /star <id>.")
registry.register("date", cmd_date, help_text="Change created date: /date <id> <iso-date>.")
registry.register("delete", cmd_delete, help_text="Delete a task (asks first): /delete <id>.", aliases=["rm"])
registry.register("approve", cmd_approve, help_text="Approve an item: /approve <id> <kind> <item_id>.")
registry.register("veto", cmd_veto, help_text="Veto an item: /veto <id> <kind> <item_id>.")
registry.register("counts", cmd_counts, help_text="Show task counts per status.")
registry.register("history", cmd_history, help_text="Show recent operation outcomes: /history [n].")
registry.register("initiatives", cmd_initiatives, help_text="List initiatives or /initiatives new <name>.")
registry.register("projects", cmd_projects, help_text="List projects.")
registry.register("kpis", cmd_kpis, help_text="Show KPIs.")
registry.register("commands", cmd_commands, help_text="Toggle visibility of the command list.")
