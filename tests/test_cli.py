from __future__ import annotations

from contextlib import redirect_stderr, redirect_stdout
import io
import json
from pathlib import Path
from tempfile import TemporaryDirectory
import unittest

from quest.cli import load_tasks, main
from quest.errors import InvalidArgument


TASKS = [
    {"description": "Read a chapter", "difficulty": "EASY", "time_limit_minutes": 30},
    {"description": "Practice exam", "difficulty": "HARD"},
    {"description": "Notes", "difficulty": "MEDIUM", "completed": True, "completion_date": "2026-01-05"},
]


class TestCli(unittest.TestCase):
    def _write(self, tmp: str, payload) -> Path:
        path = Path(tmp) / "tasks.json"
        path.write_text(json.dumps(payload), encoding="utf-8")
        return path

    def _run(self, argv: list[str]) -> tuple[int, str, str]:
        out, err = io.StringIO(), io.StringIO()
        with redirect_stdout(out), redirect_stderr(err):
            code = main(argv)
        return code, out.getvalue(), err.getvalue()

    def test_load_tasks_accepts_wrapped_list(self) -> None:
        with TemporaryDirectory() as tmp:
            path = self._write(tmp, {"tasks": TASKS})
            self.assertEqual(3, len(load_tasks(path)))

    def test_rank_lists_completed_last(self) -> None:
        with TemporaryDirectory() as tmp:
            path = self._write(tmp, TASKS)
            code, out, _ = self._run(["rank", "--tasks", str(path)])
        lines = out.strip().splitlines()
        self.assertEqual(0, code)
        self.assertEqual(3, len(lines))
        self.assertIn("🔥 Read a chapter", lines[0])
        self.assertTrue(lines[-1].startswith("✓ Notes"))

    def test_select_skips_completed_tasks(self) -> None:
        with TemporaryDirectory() as tmp:
            path = self._write(tmp, TASKS)
            code, out, _ = self._run(["select", "--tasks", str(path), "--capacity", "10"])
        self.assertEqual(0, code)
        self.assertIn("Practice exam", out)
        self.assertNotIn("Notes", out)
        self.assertIn("Read a chapter", out)
        self.assertIn("effort 10/10, value 350", out)

    def test_recommend(self) -> None:
        code, out, _ = self._run(["recommend", "--level", "5"])
        self.assertEqual(0, code)
        self.assertIn("Write a research summary", out)

    def test_bad_input_returns_error_code(self) -> None:
        with TemporaryDirectory() as tmp:
            path = self._write(tmp, [{"description": "x", "difficulty": "EPIC"}])
            code, _, err = self._run(["rank", "--tasks", str(path)])
        self.assertEqual(2, code)
        self.assertIn("unknown difficulty", err)

    def test_non_object_entry_is_rejected(self) -> None:
        with TemporaryDirectory() as tmp:
            path = self._write(tmp, [{"description": "x"}, 42])
            with self.assertRaises(InvalidArgument):
                load_tasks(path)
            code, _, err = self._run(["rank", "--tasks", str(path)])
        self.assertEqual(2, code)
        self.assertIn("task entry 1", err)


if __name__ == "__main__":
    unittest.main()
