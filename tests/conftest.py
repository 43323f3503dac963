"""Pytest configuration and fixtures."""

import shlex
from pathlib import Path

import pytest

from n8n_manager.core import command_runner
from n8n_manager.core.command_runner import CommandResult
from n8n_manager.core.config_loader import ConfigLoader
from n8n_manager.stacks.definitions import N8NEnterpriseStack


class FakeRunner:
    """Records commands instead of running them.

    Every command succeeds with empty output unless a response was
    registered for a fragment of its command line. Shell redirections are
    honoured: ``< file`` is read into ``stdin`` and ``> file`` receives the
    registered stdout.
    """

    def __init__(self):
        self.commands: list[str] = []
        self.stdin: list[str] = []
        self._responses: list[tuple[str, int, str, str]] = []

    def respond(self, fragment: str, return_code: int = 0, stdout: str = "", stderr: str = ""):
        self._responses.append((fragment, return_code, stdout, stderr))

    def run(self, command, hide=True, warn=True):
        self.commands.append(command)
        return_code, stdout, stderr = 0, "", ""
        for fragment, code, out, err in reversed(self._responses):
            if fragment in command:
                return_code, stdout, stderr = code, out, err
                break

        tokens = shlex.split(command)
        if "<" in tokens:
            self.stdin.append(Path(tokens[tokens.index("<") + 1]).read_text())
        if ">" in tokens:
            Path(tokens[tokens.index(">") + 1]).write_text(stdout)
            stdout = ""

        return CommandResult(
            command=command,
            stdout=stdout,
            stderr=stderr,
            return_code=return_code,
            success=return_code == 0,
        )

    def ran(self, fragment: str) -> bool:
        return any(fragment in command for command in self.commands)

    def index_of(self, fragment: str) -> int:
        for index, command in enumerate(self.commands):
            if fragment in command:
                return index
        raise AssertionError(f"No command containing {fragment!r}: {self.commands}")


@pytest.fixture
def fake_runner(monkeypatch):
    """Replace the global command runner with a recording fake."""
    runner = FakeRunner()
    monkeypatch.setattr(command_runner, "_command_runner", runner)
    return runner


@pytest.fixture
def project_dir(tmp_path) -> Path:
    """An empty deployment directory."""
    return tmp_path


@pytest.fixture
def stack(project_dir, fake_runner) -> N8NEnterpriseStack:
    return N8NEnterpriseStack(ConfigLoader(project_dir))


@pytest.fixture
def env_ready(stack):
    """A deployment directory with template, topology and .env in place."""
    stack.write_missing_files()
    stack.config_loader.copy_template()
    return stack
