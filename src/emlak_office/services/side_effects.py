"""Best-effort follow-up tasks that run after a primary write succeeds.

A service enqueues tasks only once its own write has gone through, then
drains the queue before returning. Task failures are logged and handed to
subscribers; they never change the primary result.
"""
from __future__ import annotations

import threading
import uuid
from collections import deque
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable, Deque, Dict, List, Optional, Tuple

from emlak_office.core.logging_config import get_logger
from emlak_office.core.utils import utcnow

LOGGER = get_logger(__name__)

Task = Callable[[], Any]


@dataclass
class TaskOutcome:
    """Track the result of one follow-up task."""

    task_id: str
    name: str
    status: str = "pending"
    result: Any = None
    error: Optional[str] = None
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None

    @property
    def succeeded(self) -> bool:
        return self.status == "completed"

    def to_dict(self) -> Dict[str, Any]:
        result = self.result.to_dict() if hasattr(self.result, "to_dict") else self.result
        return {
            "task_id": self.task_id,
            "name": self.name,
            "status": self.status,
            "result": result,
            "error": self.error,
            "started_at": self.started_at.isoformat() if self.started_at else None,
            "completed_at": self.completed_at.isoformat() if self.completed_at else None,
        }


Listener = Callable[[TaskOutcome], None]


class AfterCommitQueue:
    """FIFO of follow-up tasks plus the listeners told about each outcome."""

    def __init__(self) -> None:
        self._pending: Deque[Tuple[str, str, Task]] = deque()
        self._listeners: List[Listener] = []
        self._lock = threading.Lock()

    def enqueue(self, name: str, task: Task) -> str:
        """
        Queue a task to run on the next ``run_pending``.

        Args:
            name: Label used in logs and outcomes (e.g. 'sale_completion_sync').
            task: Zero-argument callable.

        Returns:
            Task ID string.
        """
        task_id = f"{name}_{uuid.uuid4().hex[:12]}"
        with self._lock:
            self._pending.append((task_id, name, task))
        return task_id

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a listener; returns a function that unsubscribes it."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def __len__(self) -> int:
        return len(self._pending)

    def run_pending(self) -> List[TaskOutcome]:
        """Run every queued task in order and report each outcome."""
        outcomes: List[TaskOutcome] = []
        while True:
            with self._lock:
                if not self._pending:
                    break
                task_id, name, task = self._pending.popleft()

            outcome = TaskOutcome(task_id=task_id, name=name, status="running", started_at=utcnow())
            try:
                outcome.result = task()
                outcome.status = "completed"
            except Exception as e:
                outcome.status = "failed"
                outcome.error = f"{type(e).__name__}: {e}"
                LOGGER.error(f"Follow-up task {name} failed: {outcome.error}")
            outcome.completed_at = utcnow()

            self._publish(outcome)
            outcomes.append(outcome)
        return outcomes

    def _publish(self, outcome: TaskOutcome) -> None:
        for listener in list(self._listeners):
            try:
                listener(outcome)
            except Exception as e:
                LOGGER.warning(f"Task listener raised {type(e).__name__}: {e}")


__all__ = [
    "Task",
    "TaskOutcome",
    "Listener",
    "AfterCommitQueue",
]
