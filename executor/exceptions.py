"""
executor/exceptions.py
Errors raised by the executor itself. Remote and I/O errors are never
wrapped; they reach the caller as raised by python-jenkins or the filesystem.
"""
import asyncio

NO_BUILD_MESSAGE = "No build has been started yet, try later"


class ExecutorError(Exception):
    """Base class for executor errors."""


class ValidationError(ExecutorError):
    """A required build config field is missing."""

    def __init__(self, operation: str, missing: list):
        self.operation = operation
        self.missing = list(missing)
        super().__init__(
            f"Invalid config for {operation}: missing {', '.join(self.missing)}"
        )


class NoBuildStartedError(ExecutorError):
    """Stop was requested for a job that has never been built."""

    def __init__(self, message: str = NO_BUILD_MESSAGE):
        super().__init__(message)


class CommandTimeoutError(ExecutorError, asyncio.TimeoutError):
    """An attempt ran past the breaker's deadline. The remote call may still land."""

    def __init__(self, command: str, timeout: float):
        self.command = command
        self.timeout = timeout
        super().__init__(f"{command} timed out after {timeout:.1f}s")


class CircuitOpenError(ExecutorError):
    """The breaker is open and the call was rejected without reaching Jenkins."""

    def __init__(self, retry_in: float = 0.0):
        self.retry_in = retry_in
        super().__init__(f"Circuit is open, retry in {retry_in:.1f}s")
