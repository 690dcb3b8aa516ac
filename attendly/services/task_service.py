import logging
import traceback
from typing import Any, Callable, Dict, Optional
from datetime import datetime, timezone
from fastapi import BackgroundTasks
from sqlalchemy.orm import Session, sessionmaker

from attendly.core.config import settings
from attendly.services.base import BaseService
from attendly.models.task import Task
from attendly.services.badge_service import badge_task_handler

logger = logging.getLogger(__name__)

BADGE_EVALUATION = "badge_evaluation"

# Registry of task handlers
TASK_HANDLERS: Dict[str, Callable[[Session, Dict[str, Any]], Any]] = {
    BADGE_EVALUATION: badge_task_handler,
}


class TaskService(BaseService):
    """
    Manages persistent background tasks with DB state and retries.
    Handlers run after the response is sent, each attempt in its own session.
    """

    def __init__(
        self,
        background_tasks: Optional[BackgroundTasks],
        db: Session,
        session_factory: Optional[sessionmaker] = None,
        max_attempts: Optional[int] = None,
    ):
        super().__init__(db)
        self.background_tasks = background_tasks
        self.session_factory = session_factory
        self.max_attempts = max_attempts or settings.task_max_attempts

    def enqueue(self, task_type: str, payload: Dict[str, Any]) -> Task:
        """
        Create a persistent task and schedule it for execution.
        """
        if task_type not in TASK_HANDLERS:
            raise ValueError(f"Unknown task type: {task_type}")

        # 1. Create DB Record (PENDING)
        task = Task(type=task_type, status="PENDING", payload=payload)
        self.db.add(task)
        try:
            self.db.commit()
            self.db.refresh(task)
        except Exception:
            self.db.rollback()
            raise

        self.log_info(f"Enqueued Task {task.id} [{task_type}]", task_id=task.id, task_type=task_type)

        # 2. Schedule Execution
        if self.background_tasks is not None:
            self.background_tasks.add_task(self.process_task_wrapper, task.id)
        return task

    def process_task_wrapper(self, task_id: int):
        """
        Runs after the response, when the request session may already be closed,
        so every attempt gets a fresh session.
        """
        if self.session_factory is None:
            from attendly.database import SessionLocal
            factory = SessionLocal
        else:
            factory = self.session_factory

        db = factory()
        try:
            while self.process_task(db, task_id) == "RETRYING":
                continue
        except Exception as e:
            logger.error(f"Critical error in task wrapper for {task_id}: {e}", exc_info=True)
        finally:
            db.close()

    def process_task(self, db: Session, task_id: int) -> Optional[str]:
        """
        Executes one attempt and returns the task's resulting status.
        """
        task = db.query(Task).filter(Task.id == task_id).first()
        if not task:
            logger.error(f"Task {task_id} not found during processing.")
            return None

        # Double check status to avoid double processing if we had multiple workers
        if task.status not in ["PENDING", "RETRYING"]:
            return task.status

        task.status = "PROCESSING"
        task.attempts = (task.attempts or 0) + 1
        task.updated_at = datetime.now(timezone.utc)
        self._commit(db)

        handler = TASK_HANDLERS.get(task.type)
        if not handler:
            task.status = "FAILED"
            task.error = f"No handler for type {task.type}"
            self._commit(db)
            return task.status

        try:
            logger.info(f"Processing Task {task.id} [{task.type}] attempt {task.attempts}")
            result = handler(db, task.payload or {})
            task.status = "COMPLETED"
            task.result = result
            task.error = None
        except Exception as e:
            db.rollback()
            task = db.query(Task).filter(Task.id == task_id).first()
            task.error = f"{e.__class__.__name__}: {e}"
            if task.attempts >= self.max_attempts:
                task.status = "FAILED"
                logger.error(
                    f"Task {task.id} [{task.type}] failed after {task.attempts} attempt(s): {e}",
                    extra={"traceback": traceback.format_exc()},
                )
            else:
                task.status = "RETRYING"
                self.log_warning(f"Task {task.id} [{task.type}] attempt {task.attempts} failed, retrying: {e}",
                                 task_id=task.id, attempts=task.attempts)

        task.updated_at = datetime.now(timezone.utc)
        self._commit(db)
        return task.status

    @staticmethod
    def _commit(db: Session):
        try:
            db.commit()
        except Exception:
            db.rollback()
            raise
