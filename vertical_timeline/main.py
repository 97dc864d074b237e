#!/usr/bin/env python3
"""
Vertical Timeline CLI

Command-line front end for the day-by-day todo timeline. This is where the
store and the timeline manager are constructed and wired together.
"""

import argparse
import sys
from datetime import date, timedelta
from pathlib import Path

from .errors import TodoStorageError
from .folder_settings import FolderSettings
from .timeline import TimelineManager
from .todo_store import TodoStore
from . import config

RELATIVE_DAYS = {"today": 0, "tomorrow": 1, "yesterday": -1}


def parse_day(value: str) -> date:
    """Parse YYYY-MM-DD, 'today', 'tomorrow' or 'yesterday'."""
    offset = RELATIVE_DAYS.get(value.lower())
    if offset is not None:
        return date.today() + timedelta(days=offset)
    try:
        return date.fromisoformat(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid date: {value!r} (expected YYYY-MM-DD)")


def build_store(args) -> TodoStore:
    """Create the store from command-line overrides and configuration."""
    settings = FolderSettings(Path(args.settings_db) if args.settings_db else None)
    data_dir = Path(args.data_dir).expanduser() if args.data_dir else None
    return TodoStore(data_dir=data_dir, settings=settings)


def build_manager(args) -> TimelineManager:
    manager = TimelineManager(build_store(args))
    if manager.show_error_alert and manager.error is not None:
        print(f"Warning: {manager.error}", file=sys.stderr)
        print("The default data folder is used instead.", file=sys.stderr)
    return manager


def _pick(items, index: int, kind: str, day: date):
    if index < 1 or index > len(items):
        raise ValueError(f"No {kind} todo #{index} on {day.isoformat()}")
    return items[index - 1]


def _day_or_today(args) -> date:
    return args.date or date.today()


def print_day(manager: TimelineManager, day: date):
    """Print one day of the timeline with numbered items."""
    active, completed = manager.get_todos_for_date(day)
    label = " (today)" if day == manager.today() else ""
    print(f"=== {day.strftime('%A')}, {day.isoformat()}{label} ===")
    if not active and not completed:
        print("  (nothing)")
    for i, todo in enumerate(active, 1):
        print(f"  {i}. [ ] {todo.title}")
    for i, todo in enumerate(completed, 1):
        print(f"  {i}. [x] {todo.title}")


def cmd_show(args):
    """Show one or more days."""
    manager = build_manager(args)
    start = _day_or_today(args)
    for offset in range(max(args.days, 1)):
        if offset:
            print()
        print_day(manager, start + timedelta(days=offset))
    return 0


def cmd_add(args):
    """Add a todo."""
    manager = build_manager(args)
    day = _day_or_today(args)
    todo = manager.add_todo(args.title, day)
    print(f"Added '{todo.title}' for {day.isoformat()}")
    return 0


def cmd_complete(args):
    """Complete an active todo."""
    manager = build_manager(args)
    day = _day_or_today(args)
    active, _ = manager.get_todos_for_date(day)
    todo = _pick(active, args.index, "active", day)
    manager.complete_todo(todo, day)
    print(f"Completed '{todo.title}'")
    return 0


def cmd_undo(args):
    """Reopen a completed todo."""
    manager = build_manager(args)
    day = _day_or_today(args)
    _, completed = manager.get_todos_for_date(day)
    todo = _pick(completed, args.index, "completed", day)
    manager.undo_completed_todo(todo, day)
    print(f"Reopened '{todo.title}'")
    return 0


def cmd_delete(args):
    """Delete a todo."""
    manager = build_manager(args)
    day = _day_or_today(args)
    active, completed = manager.get_todos_for_date(day)
    if args.completed:
        todo = _pick(completed, args.index, "completed", day)
    else:
        todo = _pick(active, args.index, "active", day)
    manager.delete_todo(todo, day)
    print(f"Deleted '{todo.title}'")
    return 0


def cmd_edit(args):
    """Rename a todo."""
    manager = build_manager(args)
    day = _day_or_today(args)
    active, completed = manager.get_todos_for_date(day)
    if args.completed:
        todo = _pick(completed, args.index, "completed", day)
    else:
        todo = _pick(active, args.index, "active", day)
    manager.update_todo(todo, args.title, day)
    print(f"Renamed '{todo.title}' to '{args.title}'")
    return 0


def cmd_days(args):
    """List days with completed todos."""
    store = build_store(args)
    days = store.list_completed_days()
    if not days:
        print("No completed todos yet.")
        return 0
    for day in days:
        print(f"  {day.isoformat()}: {len(store.load_completed(day))} completed")
    return 0


def cmd_folder(args):
    """Show or change the data folder."""
    store = build_store(args)

    if args.action == "show":
        print(f"Data folder: {store.current_folder_path()}")
        if store.is_using_default_folder:
            print("  (default folder)")
        if store.fallback_error is not None:
            print(f"  Fallback: {store.fallback_error}")
    elif args.action == "set":
        if not args.path:
            print("Error: 'folder set' needs a path", file=sys.stderr)
            return 1
        path = store.change_data_folder(args.path)
        print(f"Data folder changed to: {path}")
    elif args.action == "reset":
        path = store.reset_to_default_folder()
        print(f"Data folder reset to default: {path}")
    elif args.action == "log":
        logs = store.settings.get_recent_logs()
        if not logs:
            print("No folder changes recorded.")
        for log in logs:
            print(f"  [{log['timestamp']}] {log['action']} {log['path'] or ''}")
    return 0


def cmd_config(args):
    """Show current configuration."""
    config.print_config()
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Vertical Timeline - day-by-day todo lists in markdown files",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Show today
  python -m vertical_timeline.main show

  # Show the coming week
  python -m vertical_timeline.main show --days 7

  # Add a todo for tomorrow
  python -m vertical_timeline.main add "Call the bank" --date tomorrow

  # Complete the first todo shown for today
  python -m vertical_timeline.main complete 1

  # Store data in another folder from now on
  python -m vertical_timeline.main folder set ~/Dropbox/Todos
"""
    )
    parser.add_argument("--data-dir", help="Use this data folder for this run only")
    parser.add_argument("--settings-db", help="Settings database (env: TIMELINE_SETTINGS_DB)")

    subparsers = parser.add_subparsers(dest="command", required=True)

    def add_date_option(sub):
        sub.add_argument(
            "--date", "-d",
            type=parse_day,
            help="Day (YYYY-MM-DD, today, tomorrow, yesterday; default today)"
        )

    # show command
    show_parser = subparsers.add_parser("show", help="Show the todos of a day")
    add_date_option(show_parser)
    show_parser.add_argument("--days", "-n", type=int, default=1, help="Number of days to show")

    # add command
    add_parser = subparsers.add_parser("add", help="Add a todo")
    add_parser.add_argument("title", help="Todo title")
    add_date_option(add_parser)

    # complete command
    complete_parser = subparsers.add_parser("complete", help="Complete an active todo")
    complete_parser.add_argument("index", type=int, help="Number shown by 'show'")
    add_date_option(complete_parser)

    # undo command
    undo_parser = subparsers.add_parser("undo", help="Reopen a completed todo")
    undo_parser.add_argument("index", type=int, help="Number shown by 'show'")
    add_date_option(undo_parser)

    # delete command
    delete_parser = subparsers.add_parser("delete", help="Delete a todo")
    delete_parser.add_argument("index", type=int, help="Number shown by 'show'")
    delete_parser.add_argument("--completed", "-c", action="store_true", help="Pick from completed todos")
    add_date_option(delete_parser)

    # edit command
    edit_parser = subparsers.add_parser("edit", help="Rename a todo")
    edit_parser.add_argument("index", type=int, help="Number shown by 'show'")
    edit_parser.add_argument("title", help="New title")
    edit_parser.add_argument("--completed", "-c", action="store_true", help="Pick from completed todos")
    add_date_option(edit_parser)

    # days command
    subparsers.add_parser("days", help="List days with completed todos")

    # folder command
    folder_parser = subparsers.add_parser("folder", help="Show or change the data folder")
    folder_parser.add_argument(
        "action",
        choices=["show", "set", "reset", "log"],
        help="Folder action"
    )
    folder_parser.add_argument(
        "path",
        nargs="?",
        help="New data folder (for 'set' action)"
    )

    # config command
    subparsers.add_parser("config", help="Show current configuration")

    return parser


def main(argv=None):
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    # Dispatch to command handler
    commands = {
        "show": cmd_show,
        "add": cmd_add,
        "complete": cmd_complete,
        "undo": cmd_undo,
        "delete": cmd_delete,
        "edit": cmd_edit,
        "days": cmd_days,
        "folder": cmd_folder,
        "config": cmd_config,
    }

    handler = commands.get(args.command)
    if not handler:
        parser.print_help()
        sys.exit(1)

    try:
        code = handler(args)
    except (TodoStorageError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        code = 1
    sys.exit(code)


if __name__ == "__main__":
    main()
