"""
executor/base.py
Interface every build executor implements.

The orchestration layer only calls `start` and `stop`. Both are coroutines,
so every failure (bad config included) surfaces when the call is awaited.
"""
from abc import ABC, abstractmethod

from executor.exceptions import ValidationError

START_FIELDS = ("buildId", "container", "token")
STOP_FIELDS = ("buildId",)


def _validate(operation: str, config: dict, required: tuple):
    missing = [key for key in required if config.get(key) in (None, "")]
    if missing:
        raise ValidationError(operation, missing)


class Executor(ABC):

    async def start(self, config: dict) -> None:
        """Start a build. config: buildId, container, token."""
        _validate("start", config, START_FIELDS)
        return await self._start(config)

    async def stop(self, config: dict) -> None:
        """Stop a build. config: buildId."""
        _validate("stop", config, STOP_FIELDS)
        return await self._stop(config)

    @abstractmethod
    async def _start(self, config: dict) -> None:
        ...

    @abstractmethod
    async def _stop(self, config: dict) -> None:
        ...
