"""Ordered write steps with compensations.

Steps run in order and share a context dict; each action's return value is
stored under the step name. When a step raises, the compensations of the
steps that already completed run in reverse order, then ``SagaFailed`` is
raised naming the failed step. A failing compensation is logged and does
not stop the remaining ones.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass
from typing import Any

import structlog

logger = structlog.get_logger(__name__)

Action = Callable[[dict[str, Any]], Awaitable[Any]]
Compensation = Callable[[dict[str, Any]], Awaitable[None]]


@dataclass(frozen=True)
class SagaStep:
    name: str
    action: Action
    compensation: Compensation | None = None


class SagaFailed(Exception):
    def __init__(self, step: str, cause: BaseException, compensated: list[str]) -> None:
        super().__init__(f"step {step!r} failed: {cause}")
        self.step = step
        self.cause = cause
        self.compensated = compensated


class Saga:
    def __init__(self, steps: Sequence[SagaStep]) -> None:
        names = [s.name for s in steps]
        if len(set(names)) != len(names):
            raise ValueError("saga step names must be unique")
        self.steps = list(steps)

    async def run(self, context: dict[str, Any] | None = None) -> dict[str, Any]:
        ctx: dict[str, Any] = {} if context is None else context
        done: list[SagaStep] = []
        for step in self.steps:
            try:
                ctx[step.name] = await step.action(ctx)
            except Exception as exc:
                compensated = await self._compensate(done, ctx)
                raise SagaFailed(step.name, exc, compensated) from exc
            done.append(step)
        return ctx

    async def _compensate(self, done: list[SagaStep], ctx: dict[str, Any]) -> list[str]:
        compensated: list[str] = []
        for step in reversed(done):
            if step.compensation is None:
                continue
            try:
                await step.compensation(ctx)
            except Exception:
                logger.error("saga_compensation_failed", step=step.name, exc_info=True)
                continue
            compensated.append(step.name)
        return compensated
