"""
Command line interface for the commit_wizard tool.

This module defines the ``main`` function which is used as the entry
point when executing the ``commit-wizard`` command. It detects the
repository, loads and validates the configuration, wires the Git
client, the OpenAI client, the grouping engine and the presenter
together and hands control to the :class:`CommitOrchestrator`. The
outcome of the run is mapped to one of the exit codes below.
"""

from __future__ import annotations

import logging
from pathlib import Path

import click

from commit_wizard import __version__
from commit_wizard.config.loader import CONFIG_FILE_NAME, ConfigError, ensure_valid, load_config, write_example_config
from commit_wizard.grouping.cache import AnalysisCache
from commit_wizard.grouping.smart_split import GroupingEngine
from commit_wizard.llm.commit_message_generator import CommitMessageGenerator
from commit_wizard.llm.openai_client import OpenAIClient
from commit_wizard.orchestration.commit_orchestrator import CommitOrchestrator, RunMode, SessionOutcome
from commit_wizard.ui.prompts import ClickPresenter, print_error, print_info, print_step, print_success, print_warning
from commit_wizard.vcs.git_client import GitClient, GitError

# Module-level logger. Records reach the root handler set up by
# configure_logging.
logger = logging.getLogger(__name__)
if not logger.handlers:
    logger.addHandler(logging.NullHandler())


# ---------------------------------------------------------------------------
# Exit codes
# ---------------------------------------------------------------------------
EXIT_SUCCESS = 0
EXIT_GENERIC_ERROR = 1
EXIT_INVALID_USAGE = 2
EXIT_NO_REPO = 3
EXIT_CONFIG_ERROR = 5
EXIT_VCS_FAILURE = 6
EXIT_LLM_FAILURE = 7
EXIT_CANCELLED = 8

_LOG_LEVELS = {
    "error": logging.ERROR,
    "warn": logging.WARNING,
    "info": logging.INFO,
    "debug": logging.DEBUG,
}


def configure_logging(level: int) -> None:
    """Send log records from every module to stderr at ``level``.

    ``force=True`` replaces handlers left over from an earlier invocation
    in the same process.
    """
    logging.basicConfig(level=level, format="%(levelname)s: %(message)s", force=True)


def exit_code_for(outcome: SessionOutcome) -> int:
    """Map the outcome of a run to a process exit code."""
    if outcome.nothing_to_do:
        return EXIT_SUCCESS
    if outcome.cancelled:
        return EXIT_CANCELLED
    if outcome.grouping_failed:
        return EXIT_LLM_FAILURE
    if outcome.commits:
        return EXIT_SUCCESS
    if outcome.failed_commits:
        return EXIT_VCS_FAILURE
    if outcome.failed_generations:
        return EXIT_LLM_FAILURE
    return EXIT_SUCCESS


def show_staged_summary(git: GitClient, presenter: ClickPresenter) -> None:
    """Print the staged files and added/removed line counts."""
    files = git.get_staged_files()
    if not files or presenter.silent:
        return
    print_success(f"Found {len(files)} staged file{'s' if len(files) != 1 else ''}")
    for path in files[:10]:
        print_info(path, indent=1)
    if len(files) > 10:
        print_info(f"... and {len(files) - 10} more", indent=1)
    stats = git.get_diff_stats()
    print_info(f"+{stats.added} / -{stats.removed} lines", indent=1)


@click.command()
@click.option("-s", "--silent", is_flag=True, help="Only show warnings, errors and prompts.")
@click.option("-y", "--yes", is_flag=True, help="Commit without asking for confirmation.")
@click.option("-a", "--auto", "auto", is_flag=True, help="Automatic mode, same as --yes --silent.")
@click.option("--split", is_flag=True, help="Split the staged files into several commits by hand.")
@click.option("--smart-split", "smart_split", is_flag=True, help="Let the model group the staged files into commits.")
@click.option("-n", "--dry-run", "dry_run", is_flag=True, help="Generate messages without committing.")
@click.option("--init-config", "init_config", is_flag=True, help=f"Write an example {CONFIG_FILE_NAME} and exit.")
@click.option("--verbose", is_flag=True, help="Enable verbose (debug) output.")
@click.version_option(version=__version__, prog_name="commit-wizard")
def main(
    silent: bool,
    yes: bool,
    auto: bool,
    split: bool,
    smart_split: bool,
    dry_run: bool,
    init_config: bool,
    verbose: bool,
) -> None:
    """🧙 Generate commit messages for your staged changes with AI.

    Analyses the staged diff, proposes a Conventional Commits message and
    commits it. With --split or --smart-split the staged files are
    committed in several focused commits.
    """
    ctx = click.get_current_context(silent=True)
    cwd = Path.cwd()

    if init_config:
        target = cwd / CONFIG_FILE_NAME
        if target.exists():
            print_error(f"{CONFIG_FILE_NAME} already exists in {cwd}")
            raise click.exceptions.Exit(EXIT_GENERIC_ERROR)
        write_example_config(target)
        print_success(f"Created {target}")
        raise click.exceptions.Exit(EXIT_SUCCESS)

    if split and smart_split:
        print_error("Use either --split or --smart-split, not both.")
        raise click.exceptions.Exit(EXIT_INVALID_USAGE)

    if auto:
        yes = True
        silent = True

    configure_logging(logging.DEBUG if verbose else logging.WARNING)

    try:
        repo_root = GitClient.find_repo_root(cwd)
        if repo_root is None:
            print_error("This directory is not inside a Git repository.")
            raise click.exceptions.Exit(EXIT_NO_REPO)

        try:
            config = ensure_valid(load_config(repo_root / CONFIG_FILE_NAME))
        except ConfigError as exc:
            for error in exc.errors:
                print_error(f"Configuration error: {error}")
            if any("OPENAI_API_KEY" in error for error in exc.errors):
                print_info("Set it with: export OPENAI_API_KEY=\"your-key\"", indent=1)
            raise click.exceptions.Exit(EXIT_CONFIG_ERROR)

        if not verbose:
            configure_logging(_LOG_LEVELS.get(config.advanced.log_level, logging.INFO))
        logger.debug("Repository root: %s", repo_root)

        presenter = ClickPresenter(silent=silent)
        if not silent:
            print_step("🧙 Commit Wizard")

        git = GitClient(repo_root)
        show_staged_summary(git, presenter)

        client = OpenAIClient.from_config(config)
        generator = CommitMessageGenerator(client, config)
        use_smart_split = smart_split
        if use_smart_split and not config.smart_split.enabled:
            print_warning("Smart split is disabled in the configuration; committing everything at once.")
            use_smart_split = False
        engine = GroupingEngine(client, config, cache=AnalysisCache.from_config(config)) if use_smart_split else None

        mode = RunMode(
            automatic=yes,
            silent=silent,
            dry_run=dry_run or config.dry_run,
            split=split,
            smart_split=use_smart_split,
        )
        orchestrator = CommitOrchestrator(git, generator, presenter, config, mode=mode, engine=engine)
        outcome = orchestrator.run()

        if outcome.commits and not silent:
            print_success(
                f"{len(outcome.commits)} commit{'s' if len(outcome.commits) != 1 else ''} created"
            )
        raise click.exceptions.Exit(exit_code_for(outcome))

    except click.exceptions.Exit:
        raise
    except GitError as exc:
        print_error(f"Git error: {exc}")
        raise click.exceptions.Exit(EXIT_VCS_FAILURE)
    except Exception as exc:
        logging.exception("Unhandled error: %s", exc)
        print_error(f"Unexpected error: {exc}")
        ctx.exit(EXIT_GENERIC_ERROR)


if __name__ == "__main__":  # pragma: no cover
    main()
