from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Protocol, Sequence

from .context import InstallCtx
from .state_store import mark_step_completed

logger = logging.getLogger(__name__)


class Step(Protocol):
    """A single provisioning step; raising aborts the run."""

    step_id: str

    def run(self, ctx: InstallCtx) -> None:
        ...


@dataclass(frozen=True)
class PipelineResult:
    ran_steps: List[str]


def run_pipeline(*, ctx: InstallCtx, steps: Sequence[Step]) -> PipelineResult:
    """Run steps strictly in order, stopping at the first failure.

    There is no retry and no cleanup: on error, execution.current_step is
    left pointing at the failed step for the run journal.
    """

    ran: List[str] = []
    exe = ctx.state.setdefault("execution", {})

    for step in steps:
        exe["current_step"] = step.step_id
        logger.info("Running step %s", step.step_id)
        step.run(ctx)
        mark_step_completed(ctx.state, step.step_id)
        ran.append(step.step_id)

    exe["current_step"] = None
    return PipelineResult(ran_steps=ran)
