# src/taskvim/core/state.py

"""
The dispatcher: owns the task view, the selection and the mode, and turns
key combinations and actions into store mutations.

Key handling is two-tier. A key is first looked up in the keymap for the
current mode; if it resolves, the action runs and the pending prefix is
reset (unless the key is itself a prefix key). Otherwise the key goes to
the mode's raw handler, which interprets the pending prefix (gg, gt, gT,
za, zR, yy, q<reg>, @<reg>) or edits the insert / command buffers.
"""

from __future__ import annotations

import logging
import uuid
from bisect import bisect_left
from collections.abc import Callable
from typing import assert_never

from ..cli.commands import CommandRegistry
from ..cli.commands import registry as default_commands
from ..tasks.query import Operator, compile_filter, parse
from ..tasks.task_models import Task, clamp_priority, utc_now
from .actions import PREFIX_KEYS, Action, InsertAction, Mode, PendingPrefix, SortKey
from .history import UndoHistory
from .keymap import KeyCombination
from .macros import MacroRecorder
from .options import Options
from .ports import (
    HOOK_STATUS_CHANGE,
    HOOK_TASK_CREATE,
    HOOK_TASK_UPDATE,
    NullScriptHost,
    ScriptHost,
    TaskRepo,
)
from .stats import TaskStats, compute_stats

logger = logging.getLogger(__name__)

KEY_ESC = KeyCombination.named("esc")
KEY_ENTER = KeyCombination.named("enter")
KEY_BACKSPACE = KeyCombination.named("backspace")
KEY_Q = KeyCombination.char("q")


class AppState:
    def __init__(
        self,
        store: TaskRepo,
        *,
        options: Options | None = None,
        script_host: ScriptHost | None = None,
        commands: CommandRegistry | None = None,
    ) -> None:
        self.store = store
        self.options = options or Options()
        self.script_host: ScriptHost = script_host or NullScriptHost()
        self.commands = commands or default_commands
        self.history = UndoHistory(store)
        self.macros = MacroRecorder(max_depth=self.options.macro_depth)

        self.tasks: list[Task] = []
        self.projects: list[str] = []
        self.selected_index = 0
        self.mode = Mode.NORMAL
        self.insert_action = InsertAction.ADD_END
        self.command_buffer = ""
        self.sort_key = SortKey.POSITION
        self.filter_string: str | None = None
        self.search_query: str | None = None
        self.selection_anchor: int | None = None
        self.editing_task_id: uuid.UUID | None = None
        self.collapsed_projects: set[str] = set()
        self.yanked_task: Task | None = None
        self.pending = PendingPrefix.NONE
        self.running = True
        self.message: str | None = None

        self.reload_tasks()

    # ---- view ----

    @property
    def selected_task(self) -> Task | None:
        if 0 <= self.selected_index < len(self.tasks):
            return self.tasks[self.selected_index]
        return None

    @property
    def visual_range(self) -> tuple[int, int] | None:
        if self.mode is not Mode.VISUAL or self.selection_anchor is None:
            return None
        start, end = sorted((self.selection_anchor, self.selected_index))
        return start, end

    def reload_tasks(self) -> None:
        compiled = compile_filter(self.filter_string) if self.filter_string else None
        tasks = self._sorted(self.store.get_tasks(compiled))

        if self.collapsed_projects:
            tasks = [t for t in tasks if t.project not in self.collapsed_projects]

        if self.search_query:
            q = self.search_query.lower()
            tasks = [
                t
                for t in tasks
                if q in t.title.lower() or (t.description is not None and q in t.description.lower())
            ]

        self.tasks = tasks
        self.projects = self.store.list_projects()
        self._clamp_selection()

    def _sorted(self, tasks: list[Task]) -> list[Task]:
        match self.sort_key:
            case SortKey.POSITION:
                return sorted(tasks, key=lambda t: t.position)
            case SortKey.PRIORITY:
                return sorted(tasks, key=lambda t: -t.priority)
            case SortKey.CREATED_AT:
                return sorted(tasks, key=lambda t: t.created_at)
            case _:
                assert_never(self.sort_key)

    def _clamp_selection(self) -> None:
        if not self.tasks:
            self.selected_index = 0
        elif self.selected_index >= len(self.tasks):
            self.selected_index = len(self.tasks) - 1

    def _select_task(self, task_id: uuid.UUID) -> None:
        for i, t in enumerate(self.tasks):
            if t.id == task_id:
                self.selected_index = i
                return

    def stats(self) -> TaskStats:
        return compute_stats(self.tasks)

    # ---- navigation ----

    def move_selection_down(self) -> None:
        if self.tasks and self.selected_index < len(self.tasks) - 1:
            self.selected_index += 1

    def move_selection_up(self) -> None:
        if self.selected_index > 0:
            self.selected_index -= 1

    def move_to_top(self) -> None:
        self.selected_index = 0

    def move_to_bottom(self) -> None:
        self.selected_index = max(0, len(self.tasks) - 1)

    def page_down(self) -> None:
        if self.tasks:
            self.selected_index = min(len(self.tasks) - 1, self.selected_index + self.options.page_size)

    def page_up(self) -> None:
        self.selected_index = max(0, self.selected_index - self.options.page_size)

    # ---- creation ----

    def _new_task(self, title: str) -> Task:
        return Task(
            title=title,
            priority=self.options.default_priority,
            project=self._filter_project(),
        )

    def _filter_project(self) -> str | None:
        """A task created under `project=<name>` joins that project so it stays visible."""
        if not self.filter_string:
            return None
        for p in parse(self.filter_string):
            if p.field == "project" and p.operator is Operator.EQ and p.value:
                return p.value
        return None

    def _created(self, task: Task) -> None:
        self._fire_hook(HOOK_TASK_CREATE, task)
        logger.info("Task created id=%s position=%s", task.id, task.position)

    def add_task(self, title: str) -> Task | None:
        title = title.strip()
        if not title:
            return None
        existing = self.store.get_tasks(None)
        task = self._new_task(title)
        task.position = max((t.position for t in existing), default=-1) + 1
        self.store.save_task(task)
        self._created(task)
        self.reload_tasks()
        return task

    def add_task_below(self, title: str) -> Task | None:
        title = title.strip()
        if not title:
            return None
        return self._insert_relative(self._new_task(title), below=True)

    def add_task_above(self, title: str) -> Task | None:
        title = title.strip()
        if not title:
            return None
        return self._insert_relative(self._new_task(title), below=False)

    def _insert_relative(self, task: Task, *, below: bool) -> Task:
        current = self.selected_task
        if current is None:
            existing = self.store.get_tasks(None)
            task.position = max((t.position for t in existing), default=-1) + 1
        else:
            anchor = current.position
            # Highest first, so no two stored rows share a position mid-shift.
            for other in sorted(self.store.get_tasks(None), key=lambda t: -t.position):
                if other.position > anchor or (not below and other.position == anchor):
                    other.position += 1
                    self.store.save_task(other)
            task.position = anchor + 1 if below else anchor

        self.store.save_task(task)
        self._created(task)
        self.reload_tasks()
        self._select_task(task.id)
        return task

    def paste(self) -> Task | None:
        if self.yanked_task is None:
            return None
        now = utc_now()
        task = self.yanked_task.copy()
        task.id = uuid.uuid4()
        task.created_at = now
        task.updated_at = now
        return self._insert_relative(task, below=True)

    def yank(self) -> None:
        task = self.selected_task
        if task is None:
            return
        self.yanked_task = task.copy()
        self.message = f"yanked: {task.title}"

    # ---- deletion ----

    def delete_selected_task(self) -> None:
        if self.mode is Mode.VISUAL and self.selection_anchor is not None:
            start, end = sorted((self.selection_anchor, self.selected_index))
            victims = self.tasks[start : end + 1]
            self.mode = Mode.NORMAL
            self.selection_anchor = None
        else:
            task = self.selected_task
            victims = [task] if task is not None else []

        for task in victims:
            self.store.delete_task(task.id)
        if victims:
            logger.info("Deleted %d task(s)", len(victims))
        self.reload_tasks()

    # ---- in-place mutations (recorded in the undo log) ----

    def start_editing(self) -> None:
        task = self.selected_task
        if task is None:
            return
        self.mode = Mode.INSERT
        self.insert_action = InsertAction.EDIT
        self.command_buffer = task.title
        self.editing_task_id = task.id

    def commit_edit(self, title: str) -> None:
        task_id = self.editing_task_id
        title = title.strip()
        self.editing_task_id = None
        if task_id is None or not title:
            return
        task = self.store.get_task(task_id)
        if task is None or task.title == title:
            return

        self.history.record(task)
        task.title = title
        task.touch()
        self.store.save_task(task)
        self._fire_hook(HOOK_TASK_UPDATE, task)
        self.reload_tasks()

    def cycle_status(self) -> None:
        current = self.selected_task
        if current is None:
            return
        self.history.record(current)
        task = current.copy()
        task.status = task.status.next()
        task.touch()
        self.store.save_task(task)
        self._fire_hook(HOOK_STATUS_CHANGE, task)
        self.reload_tasks()

    def increase_priority(self) -> None:
        self._change_priority(+1)

    def decrease_priority(self) -> None:
        self._change_priority(-1)

    def _change_priority(self, delta: int) -> None:
        current = self.selected_task
        if current is None:
            return
        new_priority = clamp_priority(current.priority + delta)
        if new_priority == current.priority:
            return
        self.history.record(current)
        task = current.copy()
        task.priority = new_priority
        task.touch()
        self.store.save_task(task)
        self._fire_hook(HOOK_TASK_UPDATE, task)
        self.reload_tasks()

    def undo(self) -> None:
        restored = self.history.undo()
        if restored is None:
            self.message = "already at oldest change"
            return
        self.reload_tasks()
        self._select_task(restored.id)

    def redo(self) -> None:
        restored = self.history.redo()
        if restored is None:
            self.message = "already at newest change"
            return
        self.reload_tasks()
        self._select_task(restored.id)

    # ---- view shaping ----

    def toggle_collapse(self) -> None:
        task = self.selected_task
        if task is None or not task.project:
            return
        self.collapsed_projects ^= {task.project}
        self.reload_tasks()

    def expand_all(self) -> None:
        self.collapsed_projects.clear()
        self.reload_tasks()

    def next_project(self) -> None:
        self._step_project(+1)

    def prev_project(self) -> None:
        self._step_project(-1)

    def _step_project(self, step: int) -> None:
        projects = self.store.list_projects()
        if not projects:
            return

        task = self.selected_task
        current = task.project if task is not None else None
        if current is None:
            target = projects[0] if step > 0 else projects[-1]
        else:
            i = bisect_left(projects, current)
            if i < len(projects) and projects[i] == current:
                target = projects[(i + step) % len(projects)]
            else:
                # i is the insertion point: the next name is already at i.
                target = projects[i % len(projects)] if step > 0 else projects[(i - 1) % len(projects)]

        self.filter_string = f"project={target}"
        self.selected_index = 0
        self.reload_tasks()

    def apply_filter(self, expression: str) -> None:
        """
        Replace the active filter.

        The expression is compiled before anything changes: on ValidationError
        the previous filter stays active and the error propagates.
        """
        expression = (expression or "").strip()
        if expression:
            compile_filter(expression)
        self.filter_string = expression or None
        self.selected_index = 0
        self.reload_tasks()

    def set_search(self, query: str) -> None:
        self.search_query = query.strip() or None
        self.selected_index = 0
        self.reload_tasks()

    def set_sort(self, key: SortKey) -> None:
        self.sort_key = key
        self.reload_tasks()

    def execute_command(self, text: str) -> None:
        reply = self.commands.handle(self, text)
        if reply is not None:
            self.message = reply

    # ---- modes ----

    def enter_insert(self, action: InsertAction) -> None:
        self.mode = Mode.INSERT
        self.insert_action = action
        self.command_buffer = ""
        self.editing_task_id = None

    def _enter_line_mode(self, mode: Mode, initial: str = "") -> None:
        self.mode = mode
        self.command_buffer = initial

    def cancel(self) -> None:
        self.mode = Mode.NORMAL
        self.selection_anchor = None
        self.editing_task_id = None
        self.command_buffer = ""

    # ---- hooks ----

    def _fire_hook(self, name: str, task: Task) -> None:
        # The mutation is already stored; a failing hook must not undo or block it.
        try:
            self.script_host.invoke_hook(name, task)
        except Exception as e:
            logger.warning("Hook %s failed for task %s: %s", name, task.id, e, exc_info=True)

    # ---- actions ----

    def handle_action(self, action: Action) -> None:
        match action:
            case Action.QUIT:
                self.running = False
            case Action.MOVE_DOWN:
                self.move_selection_down()
            case Action.MOVE_UP:
                self.move_selection_up()
            case Action.MOVE_TO_TOP:
                self.move_to_top()
            case Action.MOVE_TO_BOTTOM:
                self.move_to_bottom()
            case Action.PAGE_DOWN:
                self.page_down()
            case Action.PAGE_UP:
                self.page_up()
            case Action.DELETE:
                self.delete_selected_task()
            case Action.CYCLE_STATUS:
                self.cycle_status()
            case Action.INCREASE_PRIORITY:
                self.increase_priority()
            case Action.DECREASE_PRIORITY:
                self.decrease_priority()
            case Action.ENTER_INSERT:
                self.enter_insert(InsertAction.ADD_END)
            case Action.ENTER_INSERT_BELOW:
                self.enter_insert(InsertAction.ADD_BELOW)
            case Action.ENTER_INSERT_ABOVE:
                self.enter_insert(InsertAction.ADD_ABOVE)
            case Action.EDIT_TASK:
                self.start_editing()
            case Action.ENTER_VISUAL:
                self.mode = Mode.VISUAL
                self.selection_anchor = self.selected_index
            case Action.ENTER_COMMAND:
                self._enter_line_mode(Mode.COMMAND)
            case Action.ENTER_FILTER:
                self._enter_line_mode(Mode.FILTER, self.filter_string or "")
            case Action.ENTER_SEARCH:
                self._enter_line_mode(Mode.SEARCH)
            case Action.CANCEL:
                self.cancel()
            case Action.UNDO:
                self.undo()
            case Action.REDO:
                self.redo()
            case Action.TOGGLE_COLLAPSE:
                self.toggle_collapse()
            case Action.NEXT_PROJECT:
                self.next_project()
            case Action.PREV_PROJECT:
                self.prev_project()
            case Action.YANK:
                self.yank()
            case Action.PASTE:
                self.paste()
            case _:
                assert_never(action)

    # ---- keys ----

    def handle_key(self, combo: KeyCombination) -> None:
        live = not self.macros.is_replaying
        if live:
            self.message = None

        if live and self.macros.is_recording:
            if self.mode is Mode.NORMAL and self.pending is PendingPrefix.NONE and combo == KEY_Q:
                self.macros.stop()
                return
            self.macros.record(combo)

        action = self.options.keymap.resolve(self.mode, combo)
        if action is not None:
            self.handle_action(action)
            self._after_resolved(combo)
            return

        match self.mode:
            case Mode.NORMAL:
                self._raw_normal(combo)
            case Mode.VISUAL:
                self._raw_visual(combo)
            case Mode.INSERT:
                self._raw_insert(combo)
            case Mode.COMMAND:
                self._raw_line(combo, self.execute_command)
            case Mode.FILTER:
                self._raw_line(combo, self.apply_filter)
            case Mode.SEARCH:
                self._raw_line(combo, self.set_search)
            case Mode.STATS:
                pass
            case _:
                assert_never(self.mode)

    def _after_resolved(self, combo: KeyCombination) -> None:
        # A resolved action ends any pending sequence, unless the key is itself a prefix key.
        if not (combo.is_plain_char and combo.code in PREFIX_KEYS):
            self.pending = PendingPrefix.NONE

    def _raw_normal(self, combo: KeyCombination) -> None:
        pending = self.pending
        self.pending = PendingPrefix.NONE
        if not combo.is_plain_char:
            return
        c = combo.code

        match pending:
            case PendingPrefix.G:
                if c == "g":
                    self.move_to_top()
                elif c == "t":
                    self.next_project()
                elif c == "T":
                    self.prev_project()
            case PendingPrefix.Z:
                if c == "a":
                    self.toggle_collapse()
                elif c == "R":
                    self.expand_all()
            case PendingPrefix.Y:
                if c == "y":
                    self.yank()
            case PendingPrefix.Q:
                if c.isalnum():
                    self.macros.start(c)
                    self.message = f"recording @{c}"
            case PendingPrefix.AT:
                if c == "@" or c.isalnum():
                    self.play_macro(c)
            case PendingPrefix.NONE:
                if c in PREFIX_KEYS:
                    self.pending = PendingPrefix(c)
            case _:
                assert_never(pending)

    def _raw_visual(self, combo: KeyCombination) -> None:
        pending = self.pending
        self.pending = PendingPrefix.NONE
        if combo == KeyCombination.char("g"):
            if pending is PendingPrefix.G:
                self.move_to_top()
            else:
                self.pending = PendingPrefix.G

    def _raw_insert(self, combo: KeyCombination) -> None:
        if combo == KEY_ESC:
            self.cancel()
        elif combo == KEY_ENTER:
            self._submit_insert()
        elif combo == KEY_BACKSPACE:
            self.command_buffer = self.command_buffer[:-1]
        elif combo.is_plain_char:
            self.command_buffer += combo.code

    def _submit_insert(self) -> None:
        text = self.command_buffer
        self.command_buffer = ""
        self.mode = Mode.NORMAL
        if not text.strip():
            self.editing_task_id = None
            return
        match self.insert_action:
            case InsertAction.ADD_END:
                self.add_task(text)
            case InsertAction.ADD_BELOW:
                self.add_task_below(text)
            case InsertAction.ADD_ABOVE:
                self.add_task_above(text)
            case InsertAction.EDIT:
                self.commit_edit(text)
            case _:
                assert_never(self.insert_action)

    def _raw_line(self, combo: KeyCombination, submit: Callable[[str], None]) -> None:
        if combo == KEY_ESC:
            self.mode = Mode.NORMAL
            self.command_buffer = ""
        elif combo == KEY_ENTER:
            text = self.command_buffer
            self.command_buffer = ""
            self.mode = Mode.NORMAL
            submit(text)
        elif combo == KEY_BACKSPACE:
            if self.command_buffer:
                self.command_buffer = self.command_buffer[:-1]
            else:
                self.mode = Mode.NORMAL
        elif combo.is_plain_char:
            self.command_buffer += combo.code

    # ---- macros ----

    def play_macro(self, register: str) -> None:
        """Replay a register through handle_key; "@" replays the last played register."""
        if register == "@":
            if self.macros.last_played is None:
                return
            register = self.macros.last_played
        self.macros.max_depth = self.options.macro_depth
        with self.macros.playback(register) as events:
            for combo in events:
                if not self.running:
                    break
                self.handle_key(combo)
