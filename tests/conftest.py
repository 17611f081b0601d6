import logging

import pytest


@pytest.fixture(autouse=True)
def isolate_environment(monkeypatch, tmp_path_factory):
    """Point HOME at an empty directory and clear the wizard's variables.

    Some tests expect no user-level ``.commit-wizardrc`` to exist and no
    API key to leak in from the developer's shell.
    """
    home = tmp_path_factory.mktemp("home")
    monkeypatch.setenv("HOME", str(home))
    for name in ("OPENAI_API_KEY", "COMMIT_WIZARD_DEBUG", "COMMIT_WIZARD_DRY_RUN"):
        monkeypatch.delenv(name, raising=False)
    yield home


@pytest.fixture(autouse=True)
def restore_root_logger():
    """Undo the handlers the CLI installs on the root logger.

    Those handlers write to the stream of a finished ``CliRunner`` call.
    """
    root = logging.getLogger()
    before = root.handlers[:]
    level = root.level
    yield
    for handler in root.handlers[:]:
        if type(handler) is logging.StreamHandler and handler not in before:
            root.removeHandler(handler)
    root.setLevel(level)
