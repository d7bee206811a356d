"""Job run bookkeeping."""

from __future__ import annotations

import time
import uuid
from contextlib import AbstractContextManager
from datetime import datetime, timezone
from typing import Callable, Optional

from sqlalchemy import update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from newsroom.db.models import JobRun, JobStage, JobStatus
from newsroom.db.session import session_scope
from newsroom.utils.logging import get_logger

logger = get_logger(__name__)


class JobRunRecorder:
    """Durable audit row for one pipeline invocation.

    The row is inserted as RUNNING on entry and closed on exit with the final
    status and counters. Each write is its own short transaction, so the item
    loop never holds the row locked.
    """

    def __init__(
        self,
        *,
        stage: JobStage,
        task_name: str,
        trace_id: str | None = None,
        test_mode: bool = False,
        session_factory: Callable[[], AbstractContextManager[Session]] = session_scope,
    ) -> None:
        self.stage = stage
        self.task_name = task_name
        self.trace_id = trace_id
        self.test_mode = test_mode
        self.items_requested = 0
        self.items_published = 0
        self.items_failed = 0
        self.job_id: Optional[uuid.UUID] = None
        self._session_factory = session_factory
        self._started = 0.0

    def __enter__(self) -> "JobRunRecorder":
        self._started = time.monotonic()
        with self._session_factory() as session:
            job = JobRun(
                stage=self.stage,
                status=JobStatus.RUNNING,
                task_name=self.task_name,
                trace_id=self.trace_id,
                test_mode=self.test_mode,
                started_at=datetime.now(timezone.utc),
            )
            session.add(job)
            session.flush()
            self.job_id = job.id
        return self

    def __exit__(self, exc_type, exc, tb) -> None:  # noqa: ANN001
        status = JobStatus.SUCCEEDED if exc is None else JobStatus.FAILED
        extra = {
            "trace_id": self.trace_id,
            "stage": self.stage.value,
            "status": status.value,
            "items_published": self.items_published,
            "items_failed": self.items_failed,
            "duration_ms": int((time.monotonic() - self._started) * 1000),
        }
        try:
            with self._session_factory() as session:
                session.execute(
                    update(JobRun)
                    .where(JobRun.id == self.job_id)
                    .values(
                        status=status,
                        finished_at=datetime.now(timezone.utc),
                        items_requested=self.items_requested,
                        items_published=self.items_published,
                        items_failed=self.items_failed,
                        error_message=None if exc is None else str(exc)[:512],
                    )
                    .execution_options(synchronize_session=False)
                )
        except SQLAlchemyError:
            # Closing the audit row must not mask the run's own outcome
            logger.exception("job_run.close_failed", extra=extra)
            return
        logger.info("job_run.finished", extra=extra)
