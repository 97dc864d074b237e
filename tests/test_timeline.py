import os
import tempfile
import unittest
from datetime import date, timedelta
from pathlib import Path

from vertical_timeline.errors import FileAccessError, InvalidFolder
from vertical_timeline.folder_settings import FolderSettings
from vertical_timeline.models import TodoItem
from vertical_timeline.timeline import TimelineManager
from vertical_timeline.todo_store import TodoStore


TODAY = date(2025, 6, 15)


class TimelineTestCase(unittest.TestCase):
    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.root = Path(self._tmp.name)
        self.settings = FolderSettings(self.root / "settings.db")
        self.store = TodoStore(
            settings=self.settings,
            default_dir=self.root / "TodoData",
        )

    def tearDown(self):
        self._tmp.cleanup()

    def make_manager(self) -> TimelineManager:
        return TimelineManager(self.store, clock=lambda: TODAY, window_days=30)

    def file_lines(self, name):
        return (self.store.data_dir / name).read_text(encoding="utf-8").splitlines()


class TestVisibility(TimelineTestCase):
    def test_past_due_item_rolls_forward_to_today_only(self):
        manager = self.make_manager()
        todo = manager.add_todo("Overdue", date(2025, 6, 10))

        self.assertIn(todo, manager.get_todos_for_date(TODAY).active)
        self.assertNotIn(todo, manager.get_todos_for_date(date(2025, 6, 16)).active)
        self.assertNotIn(todo, manager.get_todos_for_date(date(2025, 6, 14)).active)
        self.assertNotIn(todo, manager.get_todos_for_date(date(2025, 6, 10)).active)

    def test_future_item_shows_only_on_its_day(self):
        manager = self.make_manager()
        todo = manager.add_todo("Dentist", date(2025, 6, 20))

        self.assertEqual(manager.get_todos_for_date(date(2025, 6, 20)).active, [todo])
        for day in [TODAY, date(2025, 6, 19), date(2025, 6, 21), date(2025, 6, 1)]:
            self.assertEqual(manager.get_todos_for_date(day).active, [])

    def test_result_unpacks_as_pair(self):
        manager = self.make_manager()
        manager.add_todo("a", TODAY)

        active, completed = manager.get_todos_for_date(TODAY)

        self.assertEqual([t.title for t in active], ["a"])
        self.assertEqual(completed, [])

    def test_visible_dates_cover_window_and_completed_days(self):
        self.store.save_completed([TodoItem("New year", True)], date(2025, 1, 1))

        manager = self.make_manager()

        window = [date(2025, 5, 16) + timedelta(days=i) for i in range(61)]
        self.assertEqual(window[-1], date(2025, 7, 15))
        self.assertEqual(manager.all_dates, [date(2025, 1, 1)] + window)
        self.assertEqual(
            [t.title for t in manager.get_todos_for_date(date(2025, 1, 1)).completed],
            ["New year"],
        )

    def test_reloaded_active_items_are_scheduled_today(self):
        manager = self.make_manager()
        manager.add_todo("Later", date(2025, 6, 20))

        manager.load_data()

        self.assertEqual([t.title for t in manager.get_todos_for_date(TODAY).active], ["Later"])


class TestMutations(TimelineTestCase):
    def test_add_persists_active_file(self):
        manager = self.make_manager()
        manager.add_todo("Buy milk", TODAY)
        manager.add_todo("Walk", TODAY + timedelta(days=2))

        self.assertEqual(self.file_lines("todo.md"), ["- [ ] Buy milk", "- [ ] Walk"])

    def test_add_rejects_blank_title(self):
        manager = self.make_manager()

        for title in ["", "   ", "\t"]:
            with self.assertRaises(ValueError):
                manager.add_todo(title, TODAY)
        with self.assertRaises(ValueError):
            manager.add_todo("two\nlines", TODAY)
        self.assertEqual(manager.active_todos, [])
        self.assertFalse(self.store.active_path.exists())

    def test_complete_moves_item_to_day(self):
        manager = self.make_manager()
        todo = manager.add_todo("Ship", date(2025, 6, 12))

        done = manager.complete_todo(todo, TODAY)

        self.assertEqual(manager.active_todos, [])
        self.assertTrue(done.is_completed)
        self.assertEqual(done.date, TODAY)
        self.assertEqual(manager.completed_todos_by_date[TODAY], [done])
        self.assertEqual(self.file_lines("todo.md"), [])
        self.assertEqual(self.file_lines("2025-06-15.md"), ["- [x] Ship"])

    def test_completing_twice_writes_no_duplicates(self):
        manager = self.make_manager()
        first = manager.add_todo("one", TODAY)
        second = manager.add_todo("two", TODAY)

        manager.complete_todo(first, TODAY)
        manager.complete_todo(second, TODAY)

        self.assertEqual(self.file_lines("2025-06-15.md"), ["- [x] one", "- [x] two"])

    def test_completing_twice_is_noop(self):
        manager = self.make_manager()
        todo = manager.add_todo("once", TODAY)

        self.assertIsNotNone(manager.complete_todo(todo, TODAY))
        self.assertIsNone(manager.complete_todo(todo, TODAY))

        self.assertEqual([t.title for t in manager.completed_todos_by_date[TODAY]], ["once"])
        self.assertEqual(self.file_lines("2025-06-15.md"), ["- [x] once"])

    def test_complete_unknown_item_does_not_save(self):
        manager = self.make_manager()

        self.assertIsNone(manager.complete_todo(TodoItem("ghost"), TODAY))

        self.assertEqual(manager.completed_todos_by_date, {})
        self.assertFalse(self.store.completed_path(TODAY).exists())

    def test_unreadable_day_file_survives_mutations(self):
        bad = b"- [x] caf\xe9\n- [x] one\n- [x] two\n"
        self.store.completed_path(TODAY).write_bytes(bad)
        manager = self.make_manager()

        todo = manager.add_todo("new", TODAY)
        with self.assertRaises(FileAccessError):
            manager.complete_todo(todo, TODAY)

        self.assertEqual(self.store.completed_path(TODAY).read_bytes(), bad)
        self.assertIsInstance(manager.error, FileAccessError)

    def test_unreadable_active_file_survives_add(self):
        bad = b"- [ ] caf\xe9\n- [ ] one\n"
        self.store.active_path.write_bytes(bad)
        manager = self.make_manager()

        with self.assertRaises(FileAccessError):
            manager.add_todo("new", TODAY)

        self.assertEqual(self.store.active_path.read_bytes(), bad)

    def test_complete_then_undo(self):
        manager = self.make_manager()
        todo = manager.add_todo("Review", TODAY)
        done = manager.complete_todo(todo, TODAY)

        reopened = manager.undo_completed_todo(done, TODAY)

        self.assertEqual(reopened.title, "Review")
        self.assertEqual(reopened.date, TODAY)
        self.assertFalse(reopened.is_completed)
        self.assertIn(reopened, manager.active_todos)
        self.assertNotIn(done.id, [t.id for t in manager.get_todos_for_date(TODAY).completed])
        self.assertEqual(self.file_lines("todo.md"), ["- [ ] Review"])
        self.assertEqual(self.file_lines("2025-06-15.md"), [])

    def test_undo_unknown_item_is_noop(self):
        manager = self.make_manager()

        self.assertIsNone(manager.undo_completed_todo(TodoItem("ghost", True, TODAY), TODAY))
        self.assertEqual(manager.active_todos, [])

    def test_delete_active(self):
        manager = self.make_manager()
        keep = manager.add_todo("keep", TODAY)
        drop = manager.add_todo("drop", TODAY)

        self.assertTrue(manager.delete_todo(drop, TODAY))

        self.assertEqual(manager.active_todos, [keep])
        self.assertEqual(self.file_lines("todo.md"), ["- [ ] keep"])

    def test_delete_completed(self):
        manager = self.make_manager()
        done = manager.complete_todo(manager.add_todo("old", TODAY), TODAY)

        self.assertTrue(manager.delete_todo(done, TODAY))

        self.assertEqual(manager.get_todos_for_date(TODAY).completed, [])
        self.assertEqual(self.file_lines("2025-06-15.md"), [])

    def test_delete_unknown_returns_false(self):
        manager = self.make_manager()
        self.assertFalse(manager.delete_todo(TodoItem("ghost"), TODAY))

    def test_update_active_keeps_identity(self):
        manager = self.make_manager()
        todo = manager.add_todo("draft", TODAY)

        updated = manager.update_todo(todo, "final", TODAY)

        self.assertEqual(updated.id, todo.id)
        self.assertEqual(manager.active_todos, [updated])
        self.assertEqual(self.file_lines("todo.md"), ["- [ ] final"])

    def test_update_completed(self):
        manager = self.make_manager()
        done = manager.complete_todo(manager.add_todo("typo", TODAY), TODAY)

        updated = manager.update_todo(done, "fixed", TODAY)

        self.assertEqual(manager.get_todos_for_date(TODAY).completed, [updated])
        self.assertEqual(self.file_lines("2025-06-15.md"), ["- [x] fixed"])

    def test_update_rejects_blank_title(self):
        manager = self.make_manager()
        todo = manager.add_todo("x", TODAY)

        with self.assertRaises(ValueError):
            manager.update_todo(todo, " ", TODAY)


class TestErrorsAndEvents(TimelineTestCase):
    def test_failed_save_is_reported_and_not_rolled_back(self):
        manager = self.make_manager()
        os.rmdir(self.store.data_dir)

        with self.assertRaises(FileAccessError):
            manager.add_todo("unsaved", TODAY)

        self.assertEqual([t.title for t in manager.active_todos], ["unsaved"])
        self.assertIsInstance(manager.error, FileAccessError)
        self.assertTrue(manager.show_error_alert)

        manager.clear_error()
        self.assertIsNone(manager.error)
        self.assertFalse(manager.show_error_alert)

    def test_folder_fallback_is_surfaced_on_load(self):
        chosen = self.root / "chosen"
        self.store.change_data_folder(chosen)
        chosen.rmdir()
        self.store = TodoStore(settings=self.settings, default_dir=self.root / "TodoData")

        manager = self.make_manager()

        self.assertIsInstance(manager.error, InvalidFolder)
        self.assertTrue(manager.show_error_alert)

    def test_listeners_receive_events(self):
        manager = self.make_manager()
        events = []
        listener = manager.subscribe(lambda event, payload: events.append((event, payload)))

        todo = manager.add_todo("a", TODAY)
        done = manager.complete_todo(todo, TODAY)
        manager.undo_completed_todo(done, TODAY)
        manager.load_data()
        manager.unsubscribe(listener)
        manager.add_todo("b", TODAY)

        self.assertEqual([e for e, _ in events], ["added", "completed", "undone", "loaded"])
        self.assertIs(events[0][1]["item"], todo)
        self.assertEqual(events[1][1]["day"], TODAY)

    def test_failed_save_emits_error(self):
        manager = self.make_manager()
        events = []
        manager.subscribe(lambda event, payload: events.append(event))
        os.rmdir(self.store.data_dir)

        with self.assertRaises(FileAccessError):
            manager.add_todo("x", TODAY)
        self.assertEqual(events, ["error"])


if __name__ == "__main__":
    unittest.main()
