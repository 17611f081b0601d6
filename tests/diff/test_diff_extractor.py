import unittest

from commit_wizard.diff.diff_extractor import (
    FILE_DIFF_LIMIT,
    TOTAL_DIFF_LIMIT,
    reconstruct_group_diff,
    synthesize_new_file_diff,
    synthesize_recreated_file_diff,
)
from commit_wizard.grouping.group_model import FileGroup
from commit_wizard.vcs.git_client import GitError


class DummyGitClient:
    def __init__(self, diffs=None, statuses=None, contents=None, staged=None, failing=()):
        self.diffs = diffs or {}
        self.statuses = statuses or {}
        self.contents = contents or {}
        self.staged = staged or []
        self.failing = set(failing)
        self.staged_calls = 0

    def get_file_diff(self, path):
        if path in self.failing:
            raise GitError(f"cannot diff {path}")
        return self.diffs.get(path, "")

    def get_file_status(self, path):
        return self.statuses.get(path, "")

    def read_working_file(self, path):
        return self.contents.get(path)

    def get_staged_files(self):
        self.staged_calls += 1
        return list(self.staged)


class TestSynthesizedDiffs(unittest.TestCase):
    def test_new_file_diff(self) -> None:
        diff = synthesize_new_file_diff("src/new.py", "a\nb")
        lines = diff.splitlines()
        self.assertEqual(lines[0], "diff --git a/src/new.py b/src/new.py")
        self.assertIn("new file mode 100644", lines)
        self.assertIn("--- /dev/null", lines)
        self.assertIn("+++ b/src/new.py", lines)
        self.assertIn("@@ -0,0 +1,2 @@", lines)
        self.assertEqual(lines[-2:], ["+a", "+b"])

    def test_recreated_file_diff(self) -> None:
        diff = synthesize_recreated_file_diff("app.py", "x = 1")
        self.assertIn("--- a/app.py", diff)
        self.assertIn("+++ b/app.py", diff)
        self.assertIn("@@ -1 +1,1 @@", diff)
        self.assertNotIn("/dev/null", diff)

    def test_synthetic_content_is_capped(self) -> None:
        diff = synthesize_new_file_diff("big.txt", "y" * 5000)
        self.assertIn("... (content truncated)", diff)
        self.assertNotIn("y" * 2001, diff)


class TestReconstructGroupDiff(unittest.TestCase):
    def test_only_group_files_are_included(self) -> None:
        git = DummyGitClient(
            diffs={"a.py": "diff --git a/a.py b/a.py\n+a", "b.py": "diff --git a/b.py b/b.py\n+b"},
        )
        diff = reconstruct_group_diff(git, FileGroup(files=["a.py"]), staged_files=["a.py", "b.py"])
        self.assertIn("a/a.py", diff)
        self.assertNotIn("b.py", diff)

    def test_untracked_file_is_synthesized(self) -> None:
        git = DummyGitClient(statuses={"new.ts": "?? new.ts"}, contents={"new.ts": "export const x = 1;\n"})
        diff = reconstruct_group_diff(git, FileGroup(files=["new.ts"]), staged_files=[])
        self.assertIn("new.ts", diff)
        self.assertIn("new file mode", diff)
        self.assertIn("+export const x = 1;", diff)

    def test_staged_file_with_empty_diff_is_rewritten(self) -> None:
        git = DummyGitClient(statuses={"app.py": "A  app.py"}, contents={"app.py": "print('hi')"})
        diff = reconstruct_group_diff(git, FileGroup(files=["app.py"]), staged_files=["app.py"])
        self.assertIn("--- a/app.py", diff)
        self.assertIn("+print('hi')", diff)

    def test_staged_files_read_lazily(self) -> None:
        git = DummyGitClient(statuses={"app.py": "M  app.py"}, contents={"app.py": "x"}, staged=["app.py"])
        diff = reconstruct_group_diff(git, FileGroup(files=["app.py"]))
        self.assertIn("app.py", diff)
        self.assertEqual(git.staged_calls, 1)

    def test_nothing_available_returns_empty(self) -> None:
        git = DummyGitClient()
        self.assertEqual(reconstruct_group_diff(git, FileGroup(files=["gone.py"]), staged_files=[]), "")

    def test_git_failures_are_skipped(self) -> None:
        git = DummyGitClient(diffs={"ok.py": "diff --git a/ok.py b/ok.py\n+ok"}, failing={"bad.py"})
        diff = reconstruct_group_diff(git, FileGroup(files=["bad.py", "ok.py"]), staged_files=["ok.py"])
        self.assertIn("ok.py", diff)
        self.assertNotIn("bad.py", diff)

    def test_per_file_and_total_caps(self) -> None:
        big = "+" + "z" * (FILE_DIFF_LIMIT * 2)
        files = [f"f{i}.py" for i in range(4)]
        git = DummyGitClient(diffs={path: big for path in files})
        diff = reconstruct_group_diff(git, FileGroup(files=files), staged_files=files)
        self.assertIn("... (diff truncated)", diff)
        self.assertTrue(diff.endswith("... (total diff truncated)"))
        self.assertLessEqual(len(diff), TOTAL_DIFF_LIMIT + len("\n... (total diff truncated)"))

    def test_group_diff_is_not_modified(self) -> None:
        group = FileGroup(files=["a.py"], diff="previous")
        reconstruct_group_diff(DummyGitClient(diffs={"a.py": "+a"}), group, staged_files=["a.py"])
        self.assertEqual(group.diff, "previous")


if __name__ == "__main__":
    unittest.main()
