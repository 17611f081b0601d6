"""
Editing of smart split groups.

:class:`GroupEditor` holds a working copy of a group list and exposes
the edits a user can make before committing: renaming a group, moving a
file to another group, merging two groups, deleting a group and
creating a new one. The editor is a small state machine::

    IDLE --begin_edit--> EDITING --rename/move_file/remove_group/done--> IDLE
    IDLE --begin_merge--> MERGING --merge/cancel--> IDLE
    IDLE --begin_create--> CREATING --create/cancel--> IDLE
    IDLE --finish--> FINISHED

Every operation keeps the partition intact: no file is ever dropped or
assigned to two groups. Deleting a group moves its files to the first
remaining group, and a group emptied by a move disappears.
"""

from __future__ import annotations

import enum
from typing import Dict, FrozenSet, List, Optional, Sequence, Tuple

from commit_wizard.grouping.group_model import FileGroup, copy_groups, new_group_id, unique_paths


class EditorState(enum.Enum):
    IDLE = "idle"
    EDITING = "editing"
    MERGING = "merging"
    CREATING = "creating"
    FINISHED = "finished"


class GroupEditError(Exception):
    """Raised for invalid edits or transitions."""

    pass


_TRANSITIONS: Dict[Tuple[EditorState, str], FrozenSet[EditorState]] = {
    (EditorState.IDLE, "begin_edit"): frozenset({EditorState.EDITING}),
    (EditorState.IDLE, "begin_merge"): frozenset({EditorState.MERGING}),
    (EditorState.IDLE, "begin_create"): frozenset({EditorState.CREATING}),
    (EditorState.IDLE, "finish"): frozenset({EditorState.FINISHED}),
    (EditorState.EDITING, "rename"): frozenset({EditorState.EDITING}),
    (EditorState.EDITING, "move_file"): frozenset({EditorState.EDITING, EditorState.IDLE}),
    (EditorState.EDITING, "remove_group"): frozenset({EditorState.IDLE}),
    (EditorState.EDITING, "done"): frozenset({EditorState.IDLE}),
    (EditorState.MERGING, "merge"): frozenset({EditorState.IDLE}),
    (EditorState.MERGING, "cancel"): frozenset({EditorState.IDLE}),
    (EditorState.CREATING, "create"): frozenset({EditorState.IDLE}),
    (EditorState.CREATING, "cancel"): frozenset({EditorState.IDLE}),
}


class GroupEditor:
    """State machine for user edits of a group list.

    The editor works on copies; the groups passed in are not modified.
    Read the result from :attr:`groups` once :meth:`finish` was called.
    """

    def __init__(self, groups: Sequence[FileGroup]) -> None:
        self._groups: List[FileGroup] = copy_groups(groups)
        self.state = EditorState.IDLE
        self._current_id: Optional[str] = None

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------
    @property
    def groups(self) -> List[FileGroup]:
        return list(self._groups)

    @property
    def current(self) -> Optional[FileGroup]:
        if self._current_id is None:
            return None
        return self._find(self._current_id)

    def allowed_actions(self) -> List[str]:
        return [action for (state, action) in _TRANSITIONS if state is self.state]

    def _transition(self, action: str, target: EditorState) -> None:
        allowed = _TRANSITIONS.get((self.state, action))
        if allowed is None or target not in allowed:
            raise GroupEditError(f"Cannot {action.replace('_', ' ')} while {self.state.value}")
        self.state = target
        if target is not EditorState.EDITING:
            self._current_id = None

    def _check(self, action: str) -> None:
        if (self.state, action) not in _TRANSITIONS:
            raise GroupEditError(f"Cannot {action.replace('_', ' ')} while {self.state.value}")

    def _find(self, group_id: str) -> FileGroup:
        for group in self._groups:
            if group.id == group_id:
                return group
        raise GroupEditError(f"Unknown group: {group_id}")

    def _owner(self, path: str) -> FileGroup:
        for group in self._groups:
            if path in group.files:
                return group
        raise GroupEditError(f"File is not part of any group: {path}")

    def _drop_empty(self) -> None:
        self._groups = [group for group in self._groups if group.files]

    # ------------------------------------------------------------------
    # IDLE
    # ------------------------------------------------------------------
    def begin_edit(self, group_id: str) -> FileGroup:
        self._check("begin_edit")
        group = self._find(group_id)
        self._transition("begin_edit", EditorState.EDITING)
        self._current_id = group.id
        return group

    def begin_merge(self) -> None:
        self._check("begin_merge")
        if len(self._groups) < 2:
            raise GroupEditError("At least two groups are needed to merge")
        self._transition("begin_merge", EditorState.MERGING)

    def begin_create(self) -> None:
        self._transition("begin_create", EditorState.CREATING)

    def finish(self) -> List[FileGroup]:
        self._transition("finish", EditorState.FINISHED)
        return self.groups

    # ------------------------------------------------------------------
    # EDITING
    # ------------------------------------------------------------------
    def rename(self, name: str, description: Optional[str] = None) -> None:
        self._check("rename")
        if not name or not name.strip():
            raise GroupEditError("Group name cannot be empty")
        group = self.current
        group.name = name.strip()
        if description is not None and description.strip():
            group.description = description.strip()
        self._transition("rename", EditorState.EDITING)

    def move_file(self, path: str, target_id: str) -> None:
        """Move ``path`` from the group being edited to ``target_id``."""
        self._check("move_file")
        group = self.current
        if path not in group.files:
            raise GroupEditError(f"{path} is not in group '{group.name}'")
        target = self._find(target_id)
        if target is group:
            raise GroupEditError("Source and target group are the same")
        group.files.remove(path)
        target.files.append(path)
        if group.files:
            self._transition("move_file", EditorState.EDITING)
        else:
            self._drop_empty()
            self._transition("move_file", EditorState.IDLE)

    def remove_group(self) -> None:
        """Delete the group being edited; its files join the first other group."""
        self._check("remove_group")
        group = self.current
        others = [other for other in self._groups if other is not group]
        if not others:
            raise GroupEditError("Cannot delete the only group")
        others[0].files.extend(group.files)
        group.files = []
        self._drop_empty()
        self._transition("remove_group", EditorState.IDLE)

    def done(self) -> None:
        self._transition("done", EditorState.IDLE)

    # ------------------------------------------------------------------
    # MERGING
    # ------------------------------------------------------------------
    def merge(self, source_id: str, target_id: str) -> FileGroup:
        """Append ``source_id``'s files to ``target_id`` and drop the source."""
        self._check("merge")
        source = self._find(source_id)
        target = self._find(target_id)
        if source is target:
            raise GroupEditError("Cannot merge a group into itself")
        target.files.extend(source.files)
        target.confidence = min(target.confidence, source.confidence)
        source.files = []
        self._drop_empty()
        self._transition("merge", EditorState.IDLE)
        return target

    def cancel(self) -> None:
        self._transition("cancel", EditorState.IDLE)

    # ------------------------------------------------------------------
    # CREATING
    # ------------------------------------------------------------------
    def create(self, name: str, files: Sequence[str], description: str = "Created manually") -> FileGroup:
        """Create a group from files taken out of their current groups."""
        self._check("create")
        if not name or not name.strip():
            raise GroupEditError("Group name cannot be empty")
        paths = unique_paths(files)
        if not paths:
            raise GroupEditError("A new group needs at least one file")
        for path in paths:
            self._owner(path)
        for path in paths:
            self._owner(path).files.remove(path)
        group = FileGroup(
            id=new_group_id(),
            name=name.strip(),
            description=description,
            files=paths,
            confidence=1.0,
        )
        self._groups.append(group)
        self._drop_empty()
        self._transition("create", EditorState.IDLE)
        return group
