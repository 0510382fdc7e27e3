#
# src/vstestctl/exceptions.py
#
"""
Exception hierarchy for vstestctl.
"""


class VstestCtlError(Exception):
    """Base class for all vstestctl errors."""

    pass


class ConfigurationError(VstestCtlError):
    """Raised when the configuration file or environment is invalid."""

    pass


class ProjectNotFoundError(VstestCtlError):
    """Raised when no project manifest encloses a source file."""

    def __init__(self, path: str):
        self.path = path
        super().__init__(f"No project file found for '{path}'")


class ToolchainError(VstestCtlError):
    """Raised when the dotnet executable cannot be started at all."""

    def __init__(self, message: str, command: list[str] | None = None, details: Exception | None = None):
        self.command = command
        self.details = details
        full_message = f"[Toolchain] {message}"
        if command:
            full_message += f" (Command: '{' '.join(command)}')"
        super().__init__(full_message)
        if details and hasattr(self, "add_note"):
            self.add_note(f"Original error: {type(details).__name__}: {details}")


class RunnerError(VstestCtlError):
    """Raised when the test runner process cannot be located or spawned."""

    pass

# 🔼⚙️
