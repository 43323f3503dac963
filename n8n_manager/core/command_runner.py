"""Local command execution built on Invoke."""

import logging
from dataclasses import dataclass
from typing import Optional, Union

from invoke import Context


logger = logging.getLogger(__name__)


@dataclass
class CommandResult:
    """Result of a local command execution."""
    command: str
    stdout: str
    stderr: str
    return_code: int
    success: bool

    @classmethod
    def from_invoke_result(cls, command: str, result) -> "CommandResult":
        """Create from an Invoke result object."""
        return cls(
            command=command,
            stdout=result.stdout.strip() if result.stdout else "",
            stderr=result.stderr.strip() if result.stderr else "",
            return_code=result.return_code,
            success=result.return_code == 0
        )


class CommandRunner:
    """Runs shell commands on the local host."""

    def __init__(self, context: Optional[Context] = None):
        """Initialize command runner."""
        self.context = context or Context()

    def run(
        self,
        command: str,
        hide: Union[bool, str] = True,
        warn: bool = True,
    ) -> CommandResult:
        """
        Execute a command and wait for it to finish.

        The command never reads the controller's own stdin; files are
        attached with shell redirection in the command line.

        Args:
            command: Shell command line
            hide: Invoke hide setting; False mirrors output to the terminal
            warn: Return failed results instead of raising

        Returns:
            CommandResult for the finished process
        """
        logger.debug("Running: %s", command)
        result = self.context.run(command, hide=hide, warn=warn, in_stream=False)
        command_result = CommandResult.from_invoke_result(command, result)
        logger.debug("Exit code %d: %s", command_result.return_code, command)
        return command_result


# Global command runner instance
_command_runner: Optional[CommandRunner] = None


def get_command_runner() -> CommandRunner:
    """Get or create the global command runner instance."""
    global _command_runner
    if _command_runner is None:
        _command_runner = CommandRunner()
    return _command_runner
