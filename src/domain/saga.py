"""
Saga coordinator - ordered actions with compensating actions.

A Saga records a compensation for every action that completed. If the
enclosing block fails, compensations run in reverse order before the
original exception propagates:

    with Saga("attach listings.example.com") as saga:
        saga.step("add host", lambda: registrar.add_domain(host),
                  compensation=lambda: registrar.remove_domain(host))
        saga.step("persist", save)

Compensation failures are logged and never replace the original error.
Compensations also run when the block is interrupted by a BaseException
(KeyboardInterrupt, task cancellation), so completed external mutations are
still unwound.
"""

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from types import TracebackType
from typing import TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class _Compensation:
    name: str
    action: Callable[[], object]


@dataclass
class Saga:
    """In-process saga: tracks completed steps and unwinds them on failure."""

    name: str
    _compensations: list[_Compensation] = field(default_factory=list)
    compensated: list[str] = field(default_factory=list)

    def step(
        self,
        name: str,
        action: Callable[[], T],
        compensation: Callable[[], object] | None = None,
        compensate_on_own_failure: bool = False,
    ) -> T:
        """
        Run one action and record its compensation.

        Args:
            name: Step name used in logs
            action: Callable performing the step; its return value is passed through
            compensation: Callable undoing the step, or None for read-only steps
            compensate_on_own_failure: Register the compensation before running
                the action, for steps that may leave partial state when they fail

        Returns:
            Whatever ``action`` returned
        """
        if compensation is not None and compensate_on_own_failure:
            self._compensations.append(_Compensation(name, compensation))
            return action()

        result = action()
        if compensation is not None:
            self._compensations.append(_Compensation(name, compensation))
        return result

    def add_compensation(self, name: str, compensation: Callable[[], object]) -> None:
        """Record a compensation for a mutation performed outside step()."""
        self._compensations.append(_Compensation(name, compensation))

    @property
    def pending_compensations(self) -> list[str]:
        return [c.name for c in self._compensations]

    def compensate(self) -> None:
        """Run recorded compensations newest-first. Each runs at most once."""
        while self._compensations:
            compensation = self._compensations.pop()
            try:
                compensation.action()
                self.compensated.append(compensation.name)
                logger.info(f"[{self.name}] Compensated step: {compensation.name}")
            except Exception:
                logger.exception(f"[{self.name}] Compensation failed for step: {compensation.name}")

    def __enter__(self) -> "Saga":
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        if exc is not None:
            logger.warning(f"[{self.name}] Aborted ({exc_type.__name__}), rolling back")
            self.compensate()
        else:
            self._compensations.clear()
