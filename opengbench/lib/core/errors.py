"""
Error taxonomy for the OpenG platform driver.

Every failure the adapter can report derives from ``OpengError``:

    ConfigurationError      missing/unusable directory or property
      UnsupportedGraphError graph properties OpenG cannot represent
    ParseError              malformed vertex/edge line, unmapped vertex id
    ProcessLaunchError      engine executable could not be started
    ProcessExecutionError   engine started but exited non-zero
      ProcessTimeoutError   engine killed after exceeding the timeout
    OutputTranslationError  engine result cannot be mapped back
"""

from typing import List, Optional


class OpengError(Exception):
    """Base class for all errors raised by the OpenG driver."""


class ConfigurationError(OpengError):
    """A required property or directory is missing or unusable."""


class UnsupportedGraphError(ConfigurationError):
    """The graph carries properties the OpenG input format cannot hold."""


class ParseError(OpengError):
    """Malformed input graph data.

    Attributes:
        line: Raw content of the offending line (without newline)
        line_number: 1-based line number in ``path``, if known
        path: File the line was read from, if known
        reason: Message without location details
    """

    def __init__(self, message: str, line: Optional[str] = None,
                 line_number: Optional[int] = None, path: Optional[str] = None):
        self.reason = message
        self.line = line
        self.line_number = line_number
        self.path = path
        location = ""
        if path is not None:
            location = f" ({path}"
            if line_number is not None:
                location += f":{line_number}"
            location += ")"
        if line is not None:
            message = f'{message}{location}: "{line}"'
        else:
            message = f"{message}{location}"
        super().__init__(message)


class ProcessLaunchError(OpengError):
    """The engine process could not be started (missing binary, permissions)."""

    def __init__(self, command: List[str], cause: OSError):
        self.command = list(command)
        self.cause = cause
        super().__init__(f"Failed to launch OpenG ({command[0]}): {cause}")


class ProcessExecutionError(OpengError):
    """The engine process exited with a non-zero exit code."""

    def __init__(self, exit_code: int, command: List[str], detail: str = ""):
        self.exit_code = exit_code
        self.command = list(command)
        message = f"OpenG completed with a non-zero exit code: {exit_code}"
        if detail:
            message += f"\n{detail}"
        super().__init__(message)


class ProcessTimeoutError(ProcessExecutionError):
    """The engine process was killed after running longer than allowed."""

    def __init__(self, timeout: float, command: List[str], exit_code: int = -9):
        self.timeout = timeout
        self.exit_code = exit_code
        self.command = list(command)
        OpengError.__init__(self, f"OpenG did not finish within {timeout}s and was killed")


class OutputTranslationError(OpengError):
    """An engine result line cannot be translated to the native id space."""
