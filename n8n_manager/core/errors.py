"""Exceptions raised by the deployment controller."""


class ManagerError(Exception):
    """Base exception for all controller errors."""

    def __init__(self, message: str, hint: str = ""):
        self.message = message
        self.hint = hint
        super().__init__(self.message)


class PrerequisiteError(ManagerError):
    """A required host tool is missing or not running."""


class PreconditionError(ManagerError):
    """A command was invoked without the state or arguments it needs."""


class CommandError(ManagerError):
    """A delegated command exited with a non-zero status."""

    def __init__(self, command: str, return_code: int, stderr: str = ""):
        self.command = command
        self.return_code = return_code
        self.stderr = stderr
        message = f"Command failed ({return_code}): {command}"
        if stderr:
            message += f"\n{stderr}"
        super().__init__(message)
