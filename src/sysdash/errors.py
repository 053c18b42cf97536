"""Exceptions raised by sysdash."""


class SysdashError(Exception):
    """Base class for sysdash errors."""


class ExecutionError(SysdashError):
    """An external command could not be run or did not succeed."""

    def __init__(self, command: str, message: str, returncode: int | None = None, stderr: str = "") -> None:
        self.command = command
        self.returncode = returncode
        self.stderr = stderr
        super().__init__(f"{command!r}: {message}")


class ParseError(SysdashError):
    """A line of command output does not have the expected shape."""

    def __init__(self, line: str, reason: str) -> None:
        self.line = line
        self.reason = reason
        super().__init__(f"{reason}: {line!r}")


class UnsupportedPlatformError(SysdashError):
    """The host OS family has no bound command strategy."""

    def __init__(self, os_name: str) -> None:
        self.os_name = os_name
        super().__init__(f"unsupported platform: {os_name!r}")
