"""
Timeline Manager

In-memory authority over the active list and the completed-by-day map.
Decides which items show under which day and writes every change back
through the TodoStore.
"""

from dataclasses import replace
from datetime import date, datetime, timedelta
from typing import Callable, Optional
import logging

from .errors import TodoStorageError
from .models import TodoItem, DayTodos
from .todo_store import TodoStore
from . import config


# Configure logging
logging.basicConfig(
    level=getattr(logging, config.LOG_LEVEL, logging.INFO),
    format="%(asctime)s [%(levelname)s] %(message)s"
)
logger = logging.getLogger(__name__)

# Listener signature: (event name, payload)
Listener = Callable[[str, dict], None]


def as_day(value) -> date:
    """Reduce a date or datetime to its calendar day."""
    if isinstance(value, datetime):
        return value.date()
    return value


class TimelineManager:
    """
    Day-by-day view over the todo data.

    Visibility rule for active items:
    - today: every item scheduled for today or earlier (past items roll forward)
    - a future day: items scheduled for exactly that day
    - a past day: nothing

    Every mutation updates memory first, then saves. A failed save is
    recorded in `error` / `show_error_alert` and re-raised; the in-memory
    change is kept.
    """

    def __init__(
        self,
        store: TodoStore,
        clock: Optional[Callable[[], date]] = None,
        window_days: Optional[int] = None,
    ):
        """
        Initialize the manager and load all data.

        Args:
            store: TodoStore the manager reads from and writes to
            clock: Returns today's date (defaults to date.today)
            window_days: Days shown before and after today (env: TIMELINE_WINDOW_DAYS)
        """
        self.store = store
        self.clock = clock or date.today
        self.window_days = config.WINDOW_DAYS if window_days is None else window_days

        self.active_todos: list[TodoItem] = []
        self.completed_todos_by_date: dict[date, list[TodoItem]] = {}
        self.all_dates: list[date] = []

        self.error: Optional[Exception] = None
        self.show_error_alert = False

        self._listeners: list[Listener] = []

        self.load_data()

    def today(self) -> date:
        return as_day(self.clock())

    # =========================================================================
    # Change notification
    # =========================================================================

    def subscribe(self, listener: Listener) -> Listener:
        """Register a listener called as listener(event, payload) after each change."""
        self._listeners.append(listener)
        return listener

    def unsubscribe(self, listener: Listener):
        if listener in self._listeners:
            self._listeners.remove(listener)

    def _emit(self, event: str, **payload):
        for listener in list(self._listeners):
            listener(event, payload)

    # =========================================================================
    # Errors
    # =========================================================================

    def _record_error(self, error: Exception):
        self.error = error
        self.show_error_alert = True
        self._emit("error", error=error)

    def clear_error(self):
        """Dismiss the current error."""
        self.error = None
        self.show_error_alert = False

    def _save(self, active: bool = True, day: Optional[date] = None):
        """
        Write the active file and, if `day` is given, that day's completed file.

        Raises:
            TodoStorageError: after recording it as the current error.
        """
        try:
            if active:
                self.store.save_active(self.active_todos)
            if day is not None:
                self.store.replace_completed(self.completed_todos_by_date.get(day, []), day)
        except TodoStorageError as e:
            logger.error(f"Error saving changes: {e}")
            self._record_error(e)
            raise

    # =========================================================================
    # Loading and queries
    # =========================================================================

    def load_data(self):
        """Reload everything from the store and rebuild the visible date range."""
        self.clear_error()
        today = self.today()

        self.active_todos = self.store.load_active(today)
        days = self.store.list_completed_days()

        all_dates = set(days)
        all_dates.add(today)
        for offset in range(-self.window_days, self.window_days + 1):
            all_dates.add(today + timedelta(days=offset))
        self.all_dates = sorted(all_dates)

        self.completed_todos_by_date = {}
        for day in days:
            completed = self.store.load_completed(day)
            if completed:
                self.completed_todos_by_date[day] = completed

        logger.info(
            f"Loaded {len(self.active_todos)} active todos and "
            f"{sum(len(v) for v in self.completed_todos_by_date.values())} completed todos "
            f"from {self.store.data_dir}"
        )

        if self.store.fallback_error is not None:
            self._record_error(self.store.fallback_error)

        self._emit("loaded", dates=len(self.all_dates))

    def get_todos_for_date(self, day) -> DayTodos:
        """Get the active and completed items shown under `day`."""
        day = as_day(day)
        today = self.today()

        if day == today:
            active = [t for t in self.active_todos if as_day(t.date) <= today]
        elif day > today:
            active = [t for t in self.active_todos if as_day(t.date) == day]
        else:
            active = []

        completed = list(self.completed_todos_by_date.get(day, []))
        return DayTodos(active=active, completed=completed)

    def _find(self, items: list[TodoItem], item: TodoItem) -> Optional[int]:
        for index, candidate in enumerate(items):
            if candidate.id == item.id:
                return index
        return None

    @staticmethod
    def _validate_title(title: str):
        if not title or not title.strip():
            raise ValueError("Todo title cannot be empty")
        if "\n" in title or "\r" in title:
            raise ValueError("Todo title cannot span multiple lines")

    # =========================================================================
    # Mutations
    # =========================================================================

    def add_todo(self, title: str, day) -> TodoItem:
        """Add an active item scheduled for `day`."""
        self._validate_title(title)
        day = as_day(day)

        todo = TodoItem(title=title, date=day)
        self.active_todos.append(todo)
        logger.info(f"Added '{title}' for {day}")

        self._save(active=True)
        self._emit("added", item=todo, day=day)
        return todo

    def complete_todo(self, todo: TodoItem, day) -> Optional[TodoItem]:
        """
        Move an active item to the completed list of `day`.

        Returns the new completed item, or None if `todo` is not active.
        """
        day = as_day(day)

        index = self._find(self.active_todos, todo)
        if index is None:
            return None
        del self.active_todos[index]

        completed = TodoItem(title=todo.title, is_completed=True, date=day)
        self.completed_todos_by_date.setdefault(day, []).append(completed)
        logger.info(f"Completed '{todo.title}' on {day}")

        self._save(active=True, day=day)
        self._emit("completed", item=completed, day=day)
        return completed

    def undo_completed_todo(self, todo: TodoItem, day) -> Optional[TodoItem]:
        """
        Move a completed item back to the active list, scheduled for `day`.

        Returns the new active item, or None if `todo` is not completed on `day`.
        """
        day = as_day(day)

        completed = self.completed_todos_by_date.get(day, [])
        index = self._find(completed, todo)
        if index is None:
            return None
        del completed[index]
        if not completed:
            del self.completed_todos_by_date[day]

        active = TodoItem(title=todo.title, is_completed=False, date=day)
        self.active_todos.append(active)
        logger.info(f"Reopened '{todo.title}' from {day}")

        self._save(active=True, day=day)
        self._emit("undone", item=active, day=day)
        return active

    def delete_todo(self, todo: TodoItem, day) -> bool:
        """
        Remove an item from the active list and/or the completed list of `day`.

        Returns True if anything was removed.
        """
        day = as_day(day)

        in_active = self._find(self.active_todos, todo)
        if in_active is not None:
            del self.active_todos[in_active]

        completed = self.completed_todos_by_date.get(day, [])
        in_completed = self._find(completed, todo)
        if in_completed is not None:
            del completed[in_completed]
            if not completed:
                del self.completed_todos_by_date[day]

        if in_active is None and in_completed is None:
            return False

        logger.info(f"Deleted '{todo.title}' from {day}")
        self._save(
            active=in_active is not None,
            day=day if in_completed is not None else None,
        )
        self._emit("deleted", item=todo, day=day)
        return True

    def update_todo(self, todo: TodoItem, title: str, day) -> Optional[TodoItem]:
        """
        Rename an active item, or an item completed on `day`, keeping its identity.

        Returns the updated item, or None if it was not found.
        """
        self._validate_title(title)
        day = as_day(day)

        index = self._find(self.active_todos, todo)
        if index is not None:
            updated = replace(self.active_todos[index], title=title)
            self.active_todos[index] = updated
            self._save(active=True)
        else:
            completed = self.completed_todos_by_date.get(day, [])
            index = self._find(completed, todo)
            if index is None:
                return None
            updated = replace(completed[index], title=title)
            completed[index] = updated
            self._save(active=False, day=day)

        logger.info(f"Renamed '{todo.title}' to '{title}'")
        self._emit("updated", item=updated, day=day)
        return updated
