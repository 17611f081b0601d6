"""
Commit orchestration.

The :class:`CommitOrchestrator` drives one run of the wizard: it reads
the staging area, optionally splits the staged files into scopes
(manually or with the smart split engine), generates a message for each
scope and commits it, asking the user between steps unless running in
automatic mode.

Run states::

    IDLE -> COLLECTING -> [GROUPING] -> (GENERATING -> PRESENTING -> COMMITTING)* -> DONE | ABORTED

Every commit is limited to the files of its scope, so unrelated staged
files are never swept into the wrong commit. Commits that were made are
never rolled back, even when the user cancels later.

The presenter is any object providing the methods used here
(``info``, ``warn``, ``error``, ``show_groups``, ``review_groups``,
``edit_groups``, ``review_message``, ``edit_message``, ``select_files``,
``ask_continue``, ``copy_to_clipboard``, ``show_dry_run`` and
``show_commit_result``); :class:`commit_wizard.ui.prompts.ClickPresenter`
is the terminal implementation.
"""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass, field
from typing import List, Optional

from commit_wizard.diff.diff_extractor import reconstruct_group_diff
from commit_wizard.grouping.group_model import FileGroup
from commit_wizard.grouping.smart_split import GroupingEngine, GroupingError, low_confidence_groups
from commit_wizard.llm.commit_message_generator import CommitMessageGenerator
from commit_wizard.orchestration.actions import MessageAction, SplitAction
from commit_wizard.vcs.git_client import CommitResult, GitClient, GitStatus


logger = logging.getLogger(__name__)
if not logger.handlers:
    logger.addHandler(logging.NullHandler())


MAX_SUBJECT_LENGTH = 72


class RunState(enum.Enum):
    IDLE = "idle"
    COLLECTING = "collecting"
    GROUPING = "grouping"
    GENERATING = "generating"
    PRESENTING = "presenting"
    COMMITTING = "committing"
    DONE = "done"
    ABORTED = "aborted"


class ScopeOutcome(enum.Enum):
    COMMITTED = "committed"
    SKIPPED = "skipped"
    FAILED = "failed"
    DRY_RUN = "dry_run"
    COPIED = "copied"
    CANCELLED = "cancelled"


@dataclass(frozen=True)
class RunMode:
    """How the run interacts with the user.

    ``automatic`` commits without prompting, ``silent`` suppresses
    informational output and the group review, ``dry_run`` never
    commits.
    """

    automatic: bool = False
    silent: bool = False
    dry_run: bool = False
    split: bool = False
    smart_split: bool = False


@dataclass
class CommitRecord:
    files: List[str]
    message: str
    hash: Optional[str]


@dataclass
class SessionOutcome:
    """Summary of a run, used by the CLI to pick an exit code."""

    state: RunState = RunState.IDLE
    commits: List[CommitRecord] = field(default_factory=list)
    skipped: List[str] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)
    nothing_to_do: bool = False
    cancelled: bool = False
    grouping_failed: bool = False
    failed_generations: int = 0
    failed_commits: int = 0
    copied_message: Optional[str] = None


def validate_message(message: Optional[str]) -> Optional[str]:
    """Return a problem description for ``message`` or None if it is usable."""
    if message is None or not message.strip():
        return "The commit message cannot be empty"
    subject = message.strip().splitlines()[0]
    if len(subject) > MAX_SUBJECT_LENGTH:
        return f"The first line is too long (maximum {MAX_SUBJECT_LENGTH} characters)"
    return None


class CommitOrchestrator:
    """Sequence message generation and commits for one run.

    Parameters
    ----------
    git : GitClient
        Repository access.
    generator : CommitMessageGenerator
        Message generator (with retry).
    presenter : object
        Presentation layer, see the module docstring.
    config : WizardConfig
        Run configuration snapshot.
    mode : RunMode, optional
        Interaction mode. ``dry_run`` is also enabled by ``config.dry_run``.
    engine : GroupingEngine, optional
        Required for smart split runs.
    """

    def __init__(
        self,
        git: GitClient,
        generator: CommitMessageGenerator,
        presenter,
        config,
        mode: Optional[RunMode] = None,
        engine: Optional[GroupingEngine] = None,
    ) -> None:
        self.git = git
        self.generator = generator
        self.presenter = presenter
        self.config = config
        self.mode = mode or RunMode()
        self.engine = engine
        self.state = RunState.IDLE
        self.dry_run = self.mode.dry_run or bool(config.dry_run)

    # ------------------------------------------------------------------
    # Entry points
    # ------------------------------------------------------------------
    def run(self) -> SessionOutcome:
        """Run the flow selected by :attr:`mode`."""
        outcome = SessionOutcome()
        status = self._collect(outcome)
        if status is None:
            return outcome
        if self.mode.smart_split:
            return self._smart_split(status, outcome)
        if self.mode.split or self.config.split_commits:
            return self._manual_split(status, outcome)
        return self._single(status, outcome)

    def run_single(self) -> SessionOutcome:
        outcome = SessionOutcome()
        status = self._collect(outcome)
        return outcome if status is None else self._single(status, outcome)

    def run_manual_split(self) -> SessionOutcome:
        outcome = SessionOutcome()
        status = self._collect(outcome)
        return outcome if status is None else self._manual_split(status, outcome)

    def run_smart_split(self) -> SessionOutcome:
        outcome = SessionOutcome()
        status = self._collect(outcome)
        return outcome if status is None else self._smart_split(status, outcome)

    # ------------------------------------------------------------------
    # Flows
    # ------------------------------------------------------------------
    def _collect(self, outcome: SessionOutcome) -> Optional[GitStatus]:
        """Read the staging area; None means there is nothing to do.

        Raises
        ------
        GitError
            If git cannot be queried.
        """
        self._set_state(outcome, RunState.COLLECTING)
        status = self.git.get_status()
        if not status.has_staged:
            self.presenter.warn("No staged files found.")
            self.presenter.info("Stage files with `git add <file>` before generating a commit.")
            outcome.nothing_to_do = True
            self._set_state(outcome, RunState.DONE)
            return None
        logger.debug("Collected %d staged file(s)", len(status.staged_files))
        return status

    def _single(self, status: GitStatus, outcome: SessionOutcome) -> SessionOutcome:
        scope = FileGroup(name="All staged changes", description="Every staged file", files=list(status.staged_files))
        result = self._process_scope(scope, status, outcome, whole_index=True)
        return self._finish(outcome, result)

    def _manual_split(self, status: GitStatus, outcome: SessionOutcome) -> SessionOutcome:
        remaining = list(status.staged_files)
        iteration = 0
        result: Optional[ScopeOutcome] = None
        while remaining:
            if self.mode.automatic:
                selection = [remaining[0]]
            else:
                selection = [path for path in self.presenter.select_files(remaining) if path in remaining]
            if not selection:
                self.presenter.info("No files selected; stopping.")
                break
            iteration += 1
            scope = FileGroup(name=f"Selection {iteration}", description="Files selected manually", files=selection)
            result = self._process_scope(scope, status, outcome)
            remaining = [path for path in remaining if path not in selection]
            if result in (ScopeOutcome.COPIED, ScopeOutcome.CANCELLED):
                break
            if remaining and not self.mode.automatic and not self.presenter.ask_continue(remaining):
                break
        return self._finish(outcome, result)

    def _smart_split(self, status: GitStatus, outcome: SessionOutcome) -> SessionOutcome:
        if self.engine is None:
            raise ValueError("Smart split requires a grouping engine")
        self._set_state(outcome, RunState.GROUPING)
        self.presenter.info("Analysing the context of the staged changes...")
        try:
            groups = self.engine.group(status.staged_files, status.diff)
        except GroupingError as exc:
            self.presenter.error(exc.cause)
            outcome.errors.append(exc.cause)
            outcome.grouping_failed = True
            self._set_state(outcome, RunState.ABORTED)
            return outcome
        if not groups:
            self.presenter.error("The analysis produced no groups.")
            outcome.grouping_failed = True
            self._set_state(outcome, RunState.ABORTED)
            return outcome

        threshold = self.config.smart_split.confidence_threshold
        self.presenter.show_groups(groups, low_confidence_groups(groups, threshold))

        if not self.mode.automatic and not self.mode.silent:
            if self.config.smart_split.auto_edit:
                groups = self.presenter.edit_groups(groups)
            action = self.presenter.review_groups(groups)
            if action is SplitAction.CANCEL:
                self.presenter.info("Operation cancelled.")
                outcome.cancelled = True
                self._set_state(outcome, RunState.ABORTED)
                return outcome
            if action is SplitAction.MANUAL:
                return self._manual_split(status, outcome)

        result: Optional[ScopeOutcome] = None
        for index, group in enumerate(groups):
            self.presenter.info(f"Processing group {index + 1}/{len(groups)}: {group.name}")
            result = self._process_scope(group, status, outcome)
            if result in (ScopeOutcome.COPIED, ScopeOutcome.CANCELLED):
                break
            remaining = groups[index + 1 :]
            if remaining and not self.mode.automatic:
                if not self.presenter.ask_continue([group.name for group in remaining]):
                    break
        return self._finish(outcome, result)

    # ------------------------------------------------------------------
    # Per scope
    # ------------------------------------------------------------------
    def _process_scope(
        self,
        scope: FileGroup,
        status: GitStatus,
        outcome: SessionOutcome,
        whole_index: bool = False,
    ) -> ScopeOutcome:
        self._set_state(outcome, RunState.GENERATING)
        scope.diff = reconstruct_group_diff(self.git, scope, status.staged_files)
        if not scope.diff:
            self.presenter.warn(
                f"No diff found for '{scope.name}' ({', '.join(scope.files)}); "
                "the files may be new, deleted and recreated, or unchanged. Skipping."
            )
            outcome.skipped.append(scope.name)
            return ScopeOutcome.SKIPPED

        self.presenter.info(f"Generating commit message for: {scope.name}")
        result = self.generator.generate_with_retry(
            scope.diff, scope.files, max_attempts=self.config.openai.retries
        )
        if not result.success or result.suggestion is None:
            error = result.error or "No suggestion was generated"
            self.presenter.error(f"Could not generate a commit message for {scope.name}: {error}")
            outcome.errors.append(error)
            outcome.failed_generations += 1
            return ScopeOutcome.FAILED
        suggestion = result.suggestion

        if self.dry_run:
            self.presenter.show_dry_run(scope, suggestion)
            return ScopeOutcome.DRY_RUN

        if self.mode.automatic:
            return self._commit(scope, suggestion.message, outcome, whole_index)

        self._set_state(outcome, RunState.PRESENTING)
        action = self.presenter.review_message(suggestion, scope)
        if action is MessageAction.COMMIT:
            return self._commit(scope, suggestion.message, outcome, whole_index)
        if action is MessageAction.EDIT:
            edited = self.presenter.edit_message(suggestion.message)
            if edited is None:
                self.presenter.info(f"Edit cancelled; '{scope.name}' was not committed.")
                outcome.skipped.append(scope.name)
                return ScopeOutcome.SKIPPED
            problem = validate_message(edited)
            if problem:
                self.presenter.error(problem)
                outcome.skipped.append(scope.name)
                return ScopeOutcome.SKIPPED
            return self._commit(scope, edited.strip(), outcome, whole_index)
        if action is MessageAction.COPY:
            self.presenter.copy_to_clipboard(suggestion.message)
            outcome.copied_message = suggestion.message
            return ScopeOutcome.COPIED
        self.presenter.info("Operation cancelled.")
        return ScopeOutcome.CANCELLED

    def _commit(self, scope: FileGroup, message: str, outcome: SessionOutcome, whole_index: bool) -> ScopeOutcome:
        self._set_state(outcome, RunState.COMMITTING)
        if whole_index:
            result: CommitResult = self.git.execute_commit(message)
        elif len(scope.files) == 1:
            result = self.git.execute_file_commit(scope.files[0], message)
        else:
            result = self.git.execute_scoped_commit(list(scope.files), message)
        self.presenter.show_commit_result(result)
        if not result.success:
            outcome.errors.append(result.error or "Commit failed")
            outcome.failed_commits += 1
            return ScopeOutcome.FAILED
        outcome.commits.append(CommitRecord(files=list(scope.files), message=message, hash=result.hash))
        return ScopeOutcome.COMMITTED

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------
    def _set_state(self, outcome: SessionOutcome, state: RunState) -> None:
        logger.debug("Orchestrator state: %s -> %s", self.state.value, state.value)
        self.state = state
        outcome.state = state

    def _finish(self, outcome: SessionOutcome, last: Optional[ScopeOutcome]) -> SessionOutcome:
        if last is ScopeOutcome.CANCELLED:
            outcome.cancelled = True
            self._set_state(outcome, RunState.ABORTED)
        else:
            self._set_state(outcome, RunState.DONE)
        return outcome
