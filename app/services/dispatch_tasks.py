"""
Dispatch Task Runner - observable background processing.

Webhook entry points queue dispatch work instead of firing and forgetting
it. Every submission gets a task record whose state, result and error can
be read back, and failures are logged rather than lost.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, Optional
import logging
import uuid

from pydantic import BaseModel, Field

from app.models.dispatch import DispatchResult

logger = logging.getLogger(__name__)


class TaskState(str, Enum):
    QUEUED = "queued"
    RUNNING = "running"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


class DispatchTask(BaseModel):
    task_id: str
    incident_id: str
    reason: str = ""
    state: TaskState = TaskState.QUEUED
    result: Optional[DispatchResult] = None
    error: Optional[str] = None
    submitted_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    started_at: Optional[datetime] = None
    finished_at: Optional[datetime] = None


class DispatchTaskRunner:
    """
    Registry of dispatch tasks.

    submit() records a queued task; run() executes it. Routes hand run()
    to FastAPI BackgroundTasks so the HTTP response is not held up.
    """

    # Oldest finished tasks are evicted beyond this size
    MAX_TASKS = 1000

    def __init__(self):
        self.tasks: Dict[str, DispatchTask] = {}

    def submit(self, incident_id: str, reason: str = "") -> DispatchTask:
        task = DispatchTask(task_id=uuid.uuid4().hex, incident_id=incident_id, reason=reason)
        self.tasks[task.task_id] = task
        self._evict()
        logger.info(f"Queued dispatch task {task.task_id} for incident {incident_id} ({reason})")
        return task

    def get(self, task_id: str) -> Optional[DispatchTask]:
        return self.tasks.get(task_id)

    async def run(self, task_id: str, job: Callable[[], Awaitable[Any]]) -> None:
        task = self.tasks.get(task_id)
        if task is None:
            logger.error(f"Unknown dispatch task {task_id}")
            return

        task.state = TaskState.RUNNING
        task.started_at = datetime.now(timezone.utc)
        try:
            result = await job()
            if isinstance(result, DispatchResult):
                task.result = result
                task.state = TaskState.SUCCEEDED if result.success else TaskState.FAILED
                task.error = result.error
            elif result is None:
                task.state = TaskState.FAILED
                task.error = f"Incident {task.incident_id} not found"
            else:
                task.state = TaskState.SUCCEEDED
        except Exception as e:
            logger.error(f"Dispatch task {task_id} for incident {task.incident_id} failed: {e}", exc_info=True)
            task.state = TaskState.FAILED
            task.error = str(e)
        finally:
            task.finished_at = datetime.now(timezone.utc)

        if task.state == TaskState.FAILED:
            logger.warning(f"Dispatch task {task_id} for incident {task.incident_id} finished with error: {task.error}")
        else:
            logger.info(f"Dispatch task {task_id} for incident {task.incident_id} finished")

    def _evict(self) -> None:
        if len(self.tasks) <= self.MAX_TASKS:
            return
        finished = [t for t in self.tasks.values() if t.finished_at is not None]
        finished.sort(key=lambda t: t.finished_at)
        for task in finished[: len(self.tasks) - self.MAX_TASKS]:
            del self.tasks[task.task_id]


# Global runner instance (singleton pattern)
_task_runner = None


def get_dispatch_task_runner() -> DispatchTaskRunner:
    global _task_runner
    if _task_runner is None:
        _task_runner = DispatchTaskRunner()
    return _task_runner
