import io
import tempfile
import unittest
from contextlib import redirect_stderr, redirect_stdout
from datetime import date
from pathlib import Path
from unittest.mock import patch

from vertical_timeline.main import main


class TestCli(unittest.TestCase):
    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.root = Path(self._tmp.name)
        self.data_dir = self.root / "data"

    def tearDown(self):
        self._tmp.cleanup()

    def run_cli(self, *argv, data_dir=True):
        args = ["--settings-db", str(self.root / "settings.db")]
        if data_dir:
            args += ["--data-dir", str(self.data_dir)]
        out, err = io.StringIO(), io.StringIO()
        with patch("vertical_timeline.config.DEFAULT_DATA_DIR", self.root / "default"), \
                redirect_stdout(out), redirect_stderr(err):
            with self.assertRaises(SystemExit) as ctx:
                main(args + list(argv))
        return ctx.exception.code, out.getvalue(), err.getvalue()

    def today_file(self):
        return self.data_dir / f"{date.today().isoformat()}.md"

    def test_add_show_complete_undo(self):
        code, out, _ = self.run_cli("add", "Buy milk")
        self.assertEqual(code, 0)

        code, out, _ = self.run_cli("show")
        self.assertEqual(code, 0)
        self.assertIn("(today)", out)
        self.assertIn("1. [ ] Buy milk", out)

        code, _, _ = self.run_cli("complete", "1")
        self.assertEqual(code, 0)
        self.assertEqual(self.today_file().read_text(encoding="utf-8"), "- [x] Buy milk")

        code, out, _ = self.run_cli("show")
        self.assertIn("1. [x] Buy milk", out)

        code, _, _ = self.run_cli("undo", "1")
        self.assertEqual(code, 0)
        self.assertEqual((self.data_dir / "todo.md").read_text(encoding="utf-8"), "- [ ] Buy milk")

    def test_edit_and_delete(self):
        self.run_cli("add", "draft")

        code, _, _ = self.run_cli("edit", "1", "final")
        self.assertEqual(code, 0)
        self.assertEqual((self.data_dir / "todo.md").read_text(encoding="utf-8"), "- [ ] final")

        code, _, _ = self.run_cli("delete", "1")
        self.assertEqual(code, 0)
        self.assertEqual((self.data_dir / "todo.md").read_text(encoding="utf-8"), "")

    def test_show_several_days(self):
        _, out, _ = self.run_cli("show", "--date", "2999-01-01", "--days", "3")
        self.assertEqual(out.count("==="), 6)
        self.assertIn("2999-01-03", out)
        self.assertNotIn("(today)", out)

    def test_bad_index_fails(self):
        code, _, err = self.run_cli("complete", "3")
        self.assertEqual(code, 1)
        self.assertIn("No active todo #3", err)

    def test_blank_title_fails(self):
        code, _, err = self.run_cli("add", "   ")
        self.assertEqual(code, 1)
        self.assertIn("cannot be empty", err)

    def test_days(self):
        self.data_dir.mkdir()
        (self.data_dir / "2025-01-01.md").write_text("- [x] a\n- [x] b", encoding="utf-8")

        _, out, _ = self.run_cli("days")
        self.assertIn("2025-01-01: 2 completed", out)

    def test_folder_set_and_show(self):
        chosen = self.root / "chosen"

        code, out, _ = self.run_cli("folder", "set", str(chosen), data_dir=False)
        self.assertEqual(code, 0)
        self.assertTrue(chosen.is_dir())

        _, out, _ = self.run_cli("folder", "show", data_dir=False)
        self.assertIn(f"Data folder: {chosen}", out)
        self.assertNotIn("(default folder)", out)

        _, out, _ = self.run_cli("folder", "log", data_dir=False)
        self.assertIn("change", out)

    def test_folder_set_needs_path(self):
        code, _, err = self.run_cli("folder", "set")
        self.assertEqual(code, 1)
        self.assertIn("needs a path", err)


if __name__ == "__main__":
    unittest.main()
