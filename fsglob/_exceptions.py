import errno


class GlobPatternError(ValueError):
    """Raised when an extended glob pattern cannot be compiled. Subclass of ValueError."""
    def __init__(self, pattern: str, reason: str) -> None:
        self.pattern = pattern
        self.reason = reason
        super().__init__(f"error translating glob pattern '{pattern}': {reason}")


class RecursiveSymlinkError(OSError):
    """Reported to walk visitors when a symlink points back into its own ancestry.

    Subclass of OSError with ``errno.ELOOP``. The walker never raises it; it is
    delivered as the ``error`` argument of the visitor.
    """
    def __init__(self, filename: str, target: str) -> None:
        super().__init__(errno.ELOOP, "Recursive symlink detected", filename)
        self.target = target


class CommandError(OSError):
    """Raised when a command cannot be started or its output cannot be routed."""


class CommandTimeoutError(CommandError):
    """Raised when a command does not complete within its timeout. Subclass of CommandError."""
    def __init__(self, command: str, timeout: float, stdout: str = "", stderr: str = "") -> None:
        self.command = command
        self.timeout = timeout
        self.stdout = stdout
        self.stderr = stderr
        super().__init__(
            errno.ETIMEDOUT,
            f"Command '{command}' timed out after {timeout} seconds",
        )
