import unittest

from commit_wizard.grouping.group_editor import EditorState, GroupEditError, GroupEditor
from commit_wizard.grouping.group_model import FileGroup


def make_groups():
    return [
        FileGroup(id="auth", name="Auth", files=["auth.py", "session.py"], confidence=0.9),
        FileGroup(id="user", name="User", files=["user.py"], confidence=0.8),
        FileGroup(id="docs", name="Docs", files=["README.md"], confidence=0.6),
    ]


def all_files(editor):
    return sorted(path for group in editor.groups for path in group.files)


class TestGroupEditor(unittest.TestCase):
    def setUp(self) -> None:
        self.original = make_groups()
        self.editor = GroupEditor(self.original)
        self.files = sorted(path for group in self.original for path in group.files)

    def test_starts_idle_and_works_on_copies(self) -> None:
        self.assertIs(self.editor.state, EditorState.IDLE)
        self.editor.begin_edit("auth")
        self.editor.rename("Authentication")
        self.assertEqual(self.original[0].name, "Auth")

    def test_rename_keeps_description_when_blank(self) -> None:
        self.editor.begin_edit("user")
        self.editor.rename("Users", "  ")
        self.editor.done()
        group = self.editor.groups[1]
        self.assertEqual(group.name, "Users")
        self.assertEqual(group.description, "No description")
        self.assertIs(self.editor.state, EditorState.IDLE)

    def test_rename_rejects_empty_name(self) -> None:
        self.editor.begin_edit("user")
        with self.assertRaises(GroupEditError):
            self.editor.rename("   ")

    def test_move_file_keeps_partition(self) -> None:
        self.editor.begin_edit("auth")
        self.editor.move_file("session.py", "user")
        self.assertIs(self.editor.state, EditorState.EDITING)
        self.assertEqual(all_files(self.editor), self.files)
        self.assertIn("session.py", self.editor.groups[1].files)

    def test_moving_last_file_drops_group(self) -> None:
        self.editor.begin_edit("docs")
        self.editor.move_file("README.md", "auth")
        self.assertIs(self.editor.state, EditorState.IDLE)
        self.assertEqual([g.id for g in self.editor.groups], ["auth", "user"])
        self.assertEqual(all_files(self.editor), self.files)

    def test_remove_group_moves_files_to_first_other_group(self) -> None:
        self.editor.begin_edit("user")
        self.editor.remove_group()
        self.assertEqual([g.id for g in self.editor.groups], ["auth", "docs"])
        self.assertIn("user.py", self.editor.groups[0].files)
        self.assertEqual(all_files(self.editor), self.files)

    def test_cannot_remove_only_group(self) -> None:
        editor = GroupEditor([FileGroup(id="only", files=["a.py"])])
        editor.begin_edit("only")
        with self.assertRaises(GroupEditError):
            editor.remove_group()

    def test_merge(self) -> None:
        self.editor.begin_merge()
        merged = self.editor.merge("docs", "user")
        self.assertEqual(merged.files, ["user.py", "README.md"])
        self.assertEqual(merged.confidence, 0.6)
        self.assertEqual(len(self.editor.groups), 2)
        self.assertIs(self.editor.state, EditorState.IDLE)

    def test_merge_into_itself_rejected(self) -> None:
        self.editor.begin_merge()
        with self.assertRaises(GroupEditError):
            self.editor.merge("user", "user")

    def test_merge_needs_two_groups(self) -> None:
        editor = GroupEditor([FileGroup(files=["a.py"])])
        with self.assertRaises(GroupEditError):
            editor.begin_merge()

    def test_create_takes_files_from_existing_groups(self) -> None:
        self.editor.begin_create()
        created = self.editor.create("Single", ["user.py", "session.py"])
        self.assertEqual(created.confidence, 1.0)
        self.assertEqual(created.files, ["user.py", "session.py"])
        self.assertNotIn("user", [g.id for g in self.editor.groups])
        self.assertEqual(all_files(self.editor), self.files)

    def test_create_rejects_unknown_file(self) -> None:
        self.editor.begin_create()
        with self.assertRaises(GroupEditError):
            self.editor.create("Bad", ["ghost.py"])
        self.assertEqual(all_files(self.editor), self.files)

    def test_cancel_returns_to_idle(self) -> None:
        self.editor.begin_create()
        self.editor.cancel()
        self.assertIs(self.editor.state, EditorState.IDLE)

    def test_invalid_transitions(self) -> None:
        with self.assertRaises(GroupEditError):
            self.editor.rename("x")
        with self.assertRaises(GroupEditError):
            self.editor.merge("auth", "user")
        self.editor.begin_edit("auth")
        with self.assertRaises(GroupEditError):
            self.editor.finish()

    def test_finish(self) -> None:
        groups = self.editor.finish()
        self.assertIs(self.editor.state, EditorState.FINISHED)
        self.assertEqual(len(groups), 3)
        self.assertEqual(self.editor.allowed_actions(), [])


if __name__ == "__main__":
    unittest.main()
