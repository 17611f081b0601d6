"""
Terminal presentation for commit_wizard.

:class:`ClickPresenter` renders groups and commit messages with
:mod:`click` and asks the user for decisions. It is the presenter used
by :class:`commit_wizard.orchestration.CommitOrchestrator` when running
from the command line.
"""

from __future__ import annotations

import logging
from typing import List, Optional, Sequence

import click
import pyperclip

from commit_wizard.grouping.group_editor import EditorState, GroupEditError, GroupEditor
from commit_wizard.grouping.group_model import FileGroup
from commit_wizard.llm.commit_message_generator import CommitSuggestion
from commit_wizard.orchestration.actions import MessageAction, SplitAction
from commit_wizard.orchestration.commit_orchestrator import validate_message
from commit_wizard.vcs.git_client import CommitResult


logger = logging.getLogger(__name__)
if not logger.handlers:
    logger.addHandler(logging.NullHandler())


BOX_WIDTH = 56


# ---------------------------------------------------------------------------
# Status display utilities
# ---------------------------------------------------------------------------

def print_step(message: str):
    """Print a section header."""
    click.echo(f"\n{'='*60}")
    click.echo(message)
    click.echo(f"{'='*60}")


def print_info(message: str, indent: int = 0):
    """Print an info message."""
    prefix = "  " * indent
    click.echo(f"{prefix}ℹ {message}", err=False)


def print_success(message: str, indent: int = 0):
    """Print a success message."""
    prefix = "  " * indent
    click.echo(f"{prefix}✓ {message}", err=False)


def print_warning(message: str, indent: int = 0):
    """Print a warning message."""
    prefix = "  " * indent
    click.echo(f"{prefix}⚠ {message}", err=False)


def print_error(message: str, indent: int = 0):
    """Print an error message."""
    prefix = "  " * indent
    click.echo(f"{prefix}✗ {message}", err=True)


def print_message_box(message: str):
    click.echo("   ┌" + "─" * BOX_WIDTH + "┐")
    for line in message.splitlines() or [""]:
        display_line = line[: BOX_WIDTH - 2]
        click.echo(f"   │ {display_line.ljust(BOX_WIDTH - 2)} │")
    click.echo("   └" + "─" * BOX_WIDTH + "┘")


def parse_selection(text: str, count: int) -> List[int]:
    """Parse ``"1,3-4"`` style input into zero based indexes.

    Parameters
    ----------
    text : str
        Comma separated numbers and ranges, 1 based.
    count : int
        Number of selectable items.

    Returns
    -------
    List[int]
        Sorted unique indexes.

    Raises
    ------
    ValueError
        If a part is not a number or out of range.
    """
    indexes = set()
    for part in text.replace(" ", "").split(","):
        if not part:
            continue
        if "-" in part:
            start_text, end_text = part.split("-", 1)
            start, end = int(start_text), int(end_text)
            if start > end:
                start, end = end, start
            numbers = range(start, end + 1)
        else:
            numbers = [int(part)]
        for number in numbers:
            if number < 1 or number > count:
                raise ValueError(f"{number} is not between 1 and {count}")
            indexes.add(number - 1)
    return sorted(indexes)


class ClickPresenter:
    """Interactive presenter backed by click prompts.

    Parameters
    ----------
    silent : bool
        Suppress informational output. Warnings, errors and prompts are
        still shown.
    """

    def __init__(self, silent: bool = False) -> None:
        self.silent = silent

    # ------------------------------------------------------------------
    # Plain output
    # ------------------------------------------------------------------
    def info(self, message: str) -> None:
        if not self.silent:
            print_info(message)

    def warn(self, message: str) -> None:
        print_warning(message)

    def error(self, message: str) -> None:
        print_error(message)

    # ------------------------------------------------------------------
    # Groups
    # ------------------------------------------------------------------
    def show_groups(self, groups: Sequence[FileGroup], low_confidence: Sequence[FileGroup] = ()) -> None:
        if self.silent:
            return
        print_step(f"🧠 Smart split: {len(groups)} group{'s' if len(groups) != 1 else ''}")
        for index, group in enumerate(groups, 1):
            confidence = f"{group.confidence * 100:.0f}%"
            click.echo(f"\n📦 {index}. {click.style(group.name, fg='cyan', bold=True)} ({confidence})")
            click.echo(f"   {group.description}")
            for path in group.files:
                click.echo(f"   • {path}")
        if low_confidence:
            names = ", ".join(group.name for group in low_confidence)
            click.echo("")
            print_warning(f"Low confidence grouping for: {names}. Review the groups before committing.")

    def review_groups(self, groups: Sequence[FileGroup]) -> SplitAction:
        click.echo("")
        choice = click.prompt(
            "   What do you want to do?",
            type=click.Choice([action.value for action in SplitAction], case_sensitive=False),
            default=SplitAction.PROCEED.value,
            show_choices=True,
        )
        return SplitAction(choice.lower())

    def edit_groups(self, groups: Sequence[FileGroup]) -> List[FileGroup]:
        """Let the user rename, move, merge, delete and create groups."""
        editor = GroupEditor(groups)
        while True:
            self.show_groups(editor.groups)
            click.echo("")
            choice = click.prompt(
                "   Edit groups",
                type=click.Choice(["edit", "merge", "create", "done"], case_sensitive=False),
                default="done",
                show_choices=True,
            ).lower()
            try:
                if choice == "done":
                    return editor.finish()
                if choice == "edit":
                    self._edit_single_group(editor)
                elif choice == "merge":
                    self._merge_groups(editor)
                else:
                    self._create_group(editor)
            except GroupEditError as exc:
                print_error(str(exc))
                if editor.state is EditorState.EDITING:
                    editor.done()
                elif editor.state in (EditorState.MERGING, EditorState.CREATING):
                    editor.cancel()

    def _pick_group(self, groups: Sequence[FileGroup], label: str) -> FileGroup:
        for index, group in enumerate(groups, 1):
            click.echo(f"   {index}. {group.name} ({len(group.files)} file(s))")
        number = click.prompt(f"   {label}", type=click.IntRange(1, len(groups)))
        return groups[number - 1]

    def _edit_single_group(self, editor: GroupEditor) -> None:
        group = editor.begin_edit(self._pick_group(editor.groups, "Group to edit").id)
        while editor.state is EditorState.EDITING:
            action = click.prompt(
                f"   Editing '{group.name}'",
                type=click.Choice(["rename", "move", "delete", "back"], case_sensitive=False),
                default="back",
                show_choices=True,
            ).lower()
            if action == "back":
                editor.done()
            elif action == "rename":
                name = click.prompt("   New name", default=group.name)
                description = click.prompt("   New description", default=group.description)
                editor.rename(name, description)
            elif action == "delete":
                editor.remove_group()
                print_success(f"Deleted '{group.name}'; its files moved to the first group")
            else:
                path = group.files[self._pick_file(group.files)]
                others = [other for other in editor.groups if other.id != group.id]
                if not others:
                    print_warning("There is no other group to move the file to")
                    continue
                target = self._pick_group(others, "Move to group")
                editor.move_file(path, target.id)

    def _pick_file(self, files: Sequence[str]) -> int:
        for index, path in enumerate(files, 1):
            click.echo(f"   {index}. {path}")
        return click.prompt("   File", type=click.IntRange(1, len(files))) - 1

    def _merge_groups(self, editor: GroupEditor) -> None:
        editor.begin_merge()
        source = self._pick_group(editor.groups, "Merge group")
        target = self._pick_group([group for group in editor.groups if group.id != source.id], "Into group")
        merged = editor.merge(source.id, target.id)
        print_success(f"Merged '{source.name}' into '{merged.name}'")

    def _create_group(self, editor: GroupEditor) -> None:
        editor.begin_create()
        files = [path for group in editor.groups for path in group.files]
        name = click.prompt("   Name of the new group")
        for index, path in enumerate(files, 1):
            click.echo(f"   {index}. {path}")
        selection = click.prompt("   Files to include (e.g. 1,3-4)")
        try:
            indexes = parse_selection(selection, len(files))
        except ValueError as exc:
            raise GroupEditError(str(exc)) from exc
        created = editor.create(name, [files[index] for index in indexes])
        print_success(f"Created '{created.name}' with {len(created.files)} file(s)")

    # ------------------------------------------------------------------
    # Manual split
    # ------------------------------------------------------------------
    def select_files(self, files: Sequence[str]) -> List[str]:
        click.echo(f"\n📄 Staged files not yet committed ({len(files)}):")
        for index, path in enumerate(files, 1):
            click.echo(f"   {index}. {path}")
        while True:
            text = click.prompt(
                "   Files for the next commit (e.g. 1,3-4; empty to stop)",
                default="",
                show_default=False,
            )
            if not text.strip():
                return []
            try:
                return [files[index] for index in parse_selection(text, len(files))]
            except ValueError as exc:
                print_error(f"Invalid selection: {exc}")

    def ask_continue(self, remaining: Sequence[str]) -> bool:
        click.echo("")
        return click.confirm(f"   Continue with the remaining {len(remaining)} item(s)?", default=True)

    # ------------------------------------------------------------------
    # Messages
    # ------------------------------------------------------------------
    def review_message(self, suggestion: CommitSuggestion, scope: FileGroup) -> MessageAction:
        click.echo(f"\n{'─'*60}")
        click.echo(f"📦 {scope.name}")
        click.echo(f"{'─'*60}")
        if suggestion.type:
            click.echo(f"\n🏷️  Type: {click.style(suggestion.type, fg='cyan', bold=True)}")
        click.echo(f"\n📄 Affected files ({len(scope.files)}):")
        for path in scope.files:
            click.echo(f"   • {path}")
        click.echo("\n💬 Proposed commit message:")
        print_message_box(suggestion.message)
        click.echo("")
        choice = click.prompt(
            "   Choose action",
            type=click.Choice([action.value for action in MessageAction], case_sensitive=False),
            default=MessageAction.COMMIT.value,
            show_choices=True,
        )
        return MessageAction(choice.lower())

    def edit_message(self, current: str) -> Optional[str]:
        """Prompt for a replacement message pre-filled with ``current``.

        Keeping the message unchanged or clearing it cancels the edit.
        """
        click.echo("\n   Current message:")
        print_message_box(current)
        while True:
            edited = click.prompt("   New commit message (unchanged to cancel)", default=current, show_default=False)
            if not edited.strip() or edited.strip() == current.strip():
                return None
            problem = validate_message(edited)
            if problem is None:
                print_success("Message edited successfully")
                return edited.strip()
            print_error(problem)

    def copy_to_clipboard(self, message: str) -> None:
        try:
            pyperclip.copy(message)
        except pyperclip.PyperclipException as exc:
            logger.debug("Clipboard unavailable: %s", exc)
            print_warning("Could not access the clipboard; here is the message:")
            print_message_box(message)
            return
        print_success("Commit message copied to the clipboard")

    def show_dry_run(self, scope: FileGroup, suggestion: CommitSuggestion) -> None:
        click.echo(f"\n🔍 Dry run: {scope.name}")
        for path in scope.files:
            click.echo(f"   • {path}")
        print_message_box(suggestion.message)
        print_info("No commit was created (dry run)", indent=1)

    def show_commit_result(self, result: CommitResult) -> None:
        if result.success:
            short = (result.hash or "")[:7]
            print_success(f"Commit created {short}".rstrip())
        else:
            print_error(f"Commit failed: {result.error}")
