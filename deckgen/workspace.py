"""Sequential progress state machine for the generation workspace."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import AsyncIterator, Callable, Dict, List, Optional, Sequence, Tuple

from .errors import StepError

LOGGER = logging.getLogger(__name__)


class StepStatus(str, Enum):
    PENDING = "pending"
    IN_PROGRESS = "in-progress"
    COMPLETED = "completed"
    ERROR = "error"


# (id, title, description) in execution order.
DEFAULT_STEPS: Tuple[Tuple[str, str, str], ...] = (
    ("analyze", "Analyzing the request", "Checking the topic and settings"),
    ("research", "Researching the topic", "Collecting the key points to cover"),
    ("structure", "Planning the structure", "Choosing the narrative arc and layouts"),
    ("generate-content", "Writing slide content", "Asking the AI for the slides"),
    ("enrich-images", "Finding images", "Resolving images for visual slides"),
    ("style", "Applying the theme", "Applying colors and typography"),
    ("finalize", "Finalizing", "Assembling the presentation"),
)

StepListener = Callable[["WorkspaceStep"], None]


@dataclass
class WorkspaceStep:
    id: str
    title: str
    description: str = ""
    status: StepStatus = StepStatus.PENDING
    details: List[str] = field(default_factory=list)
    started_at: Optional[datetime] = None
    finished_at: Optional[datetime] = None
    error: Optional[str] = None

    @property
    def is_terminal(self) -> bool:
        return self.status in (StepStatus.COMPLETED, StepStatus.ERROR)

    def to_dict(self) -> Dict[str, object]:
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "status": self.status.value,
            "details": list(self.details),
            "error": self.error,
        }


class InvalidTransition(RuntimeError):
    """A step was moved out of the documented order."""


class WorkspaceProgress:
    """Ordered steps with strictly sequential transitions.

    Step ``i + 1`` may start only once step ``i`` completed. A failed step
    halts the run; the remaining steps stay pending.
    """

    def __init__(self, steps: Sequence[Tuple[str, str, str]] = DEFAULT_STEPS) -> None:
        self.steps: List[WorkspaceStep] = [
            WorkspaceStep(id=step_id, title=title, description=description)
            for step_id, title, description in steps
        ]
        self._listeners: List[StepListener] = []

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------
    def get(self, step_id: str) -> WorkspaceStep:
        for step in self.steps:
            if step.id == step_id:
                return step
        raise KeyError(f"Unknown workspace step: {step_id}")

    def index_of(self, step_id: str) -> int:
        return self.steps.index(self.get(step_id))

    @property
    def current(self) -> Optional[WorkspaceStep]:
        return next((s for s in self.steps if s.status is StepStatus.IN_PROGRESS), None)

    @property
    def failed_step(self) -> Optional[WorkspaceStep]:
        return next((s for s in self.steps if s.status is StepStatus.ERROR), None)

    @property
    def overall_status(self) -> StepStatus:
        if self.failed_step is not None:
            return StepStatus.ERROR
        if all(step.status is StepStatus.COMPLETED for step in self.steps):
            return StepStatus.COMPLETED
        if all(step.status is StepStatus.PENDING for step in self.steps):
            return StepStatus.PENDING
        return StepStatus.IN_PROGRESS

    @property
    def succeeded(self) -> bool:
        return self.overall_status is StepStatus.COMPLETED

    def not_attempted(self) -> List[str]:
        """Steps left pending after a failure."""

        if self.failed_step is None:
            return []
        return [step.id for step in self.steps if step.status is StepStatus.PENDING]

    def subscribe(self, listener: StepListener) -> None:
        self._listeners.append(listener)

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------
    def start(self, step_id: str) -> WorkspaceStep:
        step = self.get(step_id)
        if self.failed_step is not None:
            raise InvalidTransition(
                f"cannot start '{step_id}': step '{self.failed_step.id}' failed"
            )
        if step.status is not StepStatus.PENDING:
            raise InvalidTransition(f"step '{step_id}' is already {step.status.value}")
        index = self.steps.index(step)
        if index > 0 and self.steps[index - 1].status is not StepStatus.COMPLETED:
            raise InvalidTransition(
                f"cannot start '{step_id}' before '{self.steps[index - 1].id}' completed"
            )
        step.status = StepStatus.IN_PROGRESS
        step.started_at = datetime.now(timezone.utc)
        LOGGER.info("Step %s started", step_id)
        self._notify(step)
        return step

    def log(self, step_id: str, line: str) -> None:
        """Append a detail line to the running step without changing status."""

        step = self.get(step_id)
        if step.status is not StepStatus.IN_PROGRESS:
            raise InvalidTransition(f"step '{step_id}' is not running")
        step.details.append(line)
        LOGGER.debug("Step %s: %s", step_id, line)
        self._notify(step)

    def complete(self, step_id: str) -> WorkspaceStep:
        step = self._running(step_id)
        step.status = StepStatus.COMPLETED
        step.finished_at = datetime.now(timezone.utc)
        LOGGER.info("Step %s completed", step_id)
        self._notify(step)
        return step

    def fail(self, step_id: str, error: BaseException) -> WorkspaceStep:
        step = self._running(step_id)
        step.status = StepStatus.ERROR
        step.error = str(error)
        step.finished_at = datetime.now(timezone.utc)
        LOGGER.error("Step %s failed: %s", step_id, error)
        self._notify(step)
        return step

    @asynccontextmanager
    async def step(self, step_id: str) -> AsyncIterator[WorkspaceStep]:
        """Run a block as ``step_id``.

        Any exception raised in the block marks the step as failed and is
        re-raised as :class:`StepError`.
        """

        running = self.start(step_id)
        try:
            yield running
        except Exception as exc:
            self.fail(step_id, exc)
            raise StepError(step_id, exc) from exc
        self.complete(step_id)

    def to_dict(self) -> Dict[str, object]:
        return {
            "status": self.overall_status.value,
            "steps": [step.to_dict() for step in self.steps],
        }

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------
    def _running(self, step_id: str) -> WorkspaceStep:
        step = self.get(step_id)
        if step.status is not StepStatus.IN_PROGRESS:
            raise InvalidTransition(f"step '{step_id}' is not running")
        return step

    def _notify(self, step: WorkspaceStep) -> None:
        for listener in self._listeners:
            listener(step)
