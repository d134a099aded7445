"""
executor/breaker.py
Circuit breaker wrapping every remote Jenkins call.

States:
  CLOSED    - calls go through; each call is retried with exponential backoff
  OPEN      - too many failed calls in a row, calls fail fast
  HALF_OPEN - reset timeout elapsed, the next call decides open vs closed

One breaker instance is shared by all in-flight operations. State only
changes on the event loop between awaits, so no lock is taken.
"""
import asyncio
import logging
import time
from dataclasses import dataclass, asdict
from enum import Enum
from typing import Any, Awaitable, Callable, Optional

from tenacity import AsyncRetrying, retry_if_exception, stop_after_attempt, wait_exponential

from executor.exceptions import CircuitOpenError, CommandTimeoutError

logger = logging.getLogger(__name__)


class CircuitState(str, Enum):
    CLOSED = "closed"
    OPEN = "open"
    HALF_OPEN = "half_open"


@dataclass
class BreakerStats:
    total_requests: int = 0
    successes: int = 0
    failures: int = 0
    timeouts: int = 0
    retries: int = 0
    rejected: int = 0
    consecutive_failures: int = 0
    state: str = CircuitState.CLOSED.value

    def to_dict(self) -> dict:
        return asdict(self)


class CircuitBreaker:

    def __init__(
        self,
        command: Callable[..., Awaitable[Any]],
        *,
        max_failures: int = 5,
        timeout: Optional[float] = 10.0,
        reset_timeout: float = 50.0,
        retries: int = 5,
        factor: float = 2.0,
        min_timeout: float = 1.0,
        max_timeout: Optional[float] = None,
        should_retry: Optional[Callable[..., bool]] = None,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        """
        should_retry(err, *args) decides whether a failed attempt of
        command(*args) may be repeated. Retries stop after `retries` extra
        attempts either way.
        """
        if max_failures < 1:
            raise ValueError("max_failures must be at least 1")
        if retries < 0:
            raise ValueError("retries must not be negative")
        self._command = command
        self.max_failures = max_failures
        self.timeout = timeout
        self.reset_timeout = reset_timeout
        self.retries = retries
        self.factor = factor
        self.min_timeout = min_timeout
        self.max_timeout = max_timeout
        self._should_retry = should_retry or (lambda err, *args: True)
        self._clock = clock
        self._sleep = sleep

        self._state = CircuitState.CLOSED
        self._opened_at = 0.0
        self._trial_in_flight = False
        self._stats = BreakerStats()

    # ── State ─────────────────────────────────────────────────────
    @property
    def state(self) -> CircuitState:
        if (
            self._state is CircuitState.OPEN
            and self._clock() - self._opened_at >= self.reset_timeout
        ):
            self._transition(CircuitState.HALF_OPEN)
        return self._state

    def is_closed(self) -> bool:
        return self.state is CircuitState.CLOSED

    def stats(self) -> BreakerStats:
        self._stats.state = self.state.value
        return BreakerStats(**asdict(self._stats))

    def _transition(self, new_state: CircuitState):
        if new_state is self._state:
            return
        logger.warning("Circuit %s -> %s", self._state.value, new_state.value)
        self._state = new_state
        self._stats.state = new_state.value
        if new_state is CircuitState.OPEN:
            self._opened_at = self._clock()

    # ── Execution ─────────────────────────────────────────────────
    async def run_command(self, *args, **kwargs) -> Any:
        """
        Run the wrapped command. Raises CircuitOpenError without calling it
        when the circuit is open, otherwise the command's own last error.
        """
        self._stats.total_requests += 1
        state = self.state

        if state is CircuitState.OPEN or (
            state is CircuitState.HALF_OPEN and self._trial_in_flight
        ):
            self._stats.rejected += 1
            retry_in = max(0.0, self.reset_timeout - (self._clock() - self._opened_at))
            raise CircuitOpenError(retry_in)

        trial = state is CircuitState.HALF_OPEN
        if trial:
            self._trial_in_flight = True
        try:
            result = await self._attempt(*args, **kwargs)
        except Exception:
            self._on_failure(trial)
            raise
        finally:
            if trial:
                self._trial_in_flight = False

        self._on_success()
        return result

    def _retrying(self, args) -> AsyncRetrying:
        wait_options = {"multiplier": self.min_timeout, "exp_base": self.factor}
        if self.max_timeout is not None:
            wait_options["max"] = self.max_timeout

        def before_sleep(retry_state):
            self._stats.retries += 1
            logger.warning(
                "Retrying %s in %.1fs (attempt %d of %d): %s",
                _describe(args), retry_state.next_action.sleep,
                retry_state.attempt_number, self.retries,
                retry_state.outcome.exception(),
            )

        return AsyncRetrying(
            stop=stop_after_attempt(self.retries + 1),
            wait=wait_exponential(**wait_options),
            retry=retry_if_exception(lambda err: self._should_retry(err, *args)),
            before_sleep=before_sleep,
            sleep=self._sleep,
            reraise=True,
        )

    async def _attempt(self, *args, **kwargs) -> Any:
        async for attempt in self._retrying(args):
            with attempt:
                result = await self._call(*args, **kwargs)
        return result

    async def _call(self, *args, **kwargs) -> Any:
        """
        One attempt. Only the breaker's own deadline raises CommandTimeoutError;
        a timeout raised by the command itself propagates as is.
        """
        if self.timeout is None:
            return await self._command(*args, **kwargs)

        task = asyncio.ensure_future(self._command(*args, **kwargs))
        try:
            done, _ = await asyncio.wait({task}, timeout=self.timeout)
        except asyncio.CancelledError:
            task.cancel()
            raise
        if not done:
            # a worker thread behind the task keeps running
            task.cancel()
            self._stats.timeouts += 1
            raise CommandTimeoutError(_describe(args), self.timeout)
        return task.result()

    def _on_success(self):
        self._stats.successes += 1
        self._stats.consecutive_failures = 0
        self._transition(CircuitState.CLOSED)

    def _on_failure(self, trial: bool):
        self._stats.failures += 1
        self._stats.consecutive_failures += 1
        if trial or self._stats.consecutive_failures >= self.max_failures:
            self._transition(CircuitState.OPEN)
            # a re-open restarts the reset window
            self._opened_at = self._clock()


def _describe(args) -> str:
    return str(args[0]) if args else "command"
