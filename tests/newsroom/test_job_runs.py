from __future__ import annotations

import pytest
from sqlalchemy import select

from newsroom.db.models import JobRun, JobStage, JobStatus
from newsroom.repositories.job_runs import JobRunRecorder


def _only_job(session) -> JobRun:
    session.expire_all()
    return session.execute(select(JobRun)).scalar_one()


def test_successful_run_records_counters(db_session):
    with JobRunRecorder(stage=JobStage.PUBLISH, task_name="publish", trace_id="t-1", test_mode=True) as job:
        running = _only_job(db_session)
        assert running.status == JobStatus.RUNNING
        job.items_requested = 3
        job.items_published = 2
        job.items_failed = 1

    row = _only_job(db_session)
    assert row.status == JobStatus.SUCCEEDED
    assert row.test_mode is True
    assert row.trace_id == "t-1"
    assert (row.items_requested, row.items_published, row.items_failed) == (3, 2, 1)
    assert row.finished_at is not None
    assert row.error_message is None


def test_failed_run_keeps_error_and_reraises(db_session):
    with pytest.raises(RuntimeError):
        with JobRunRecorder(stage=JobStage.IMAGE_REPAIR, task_name="repair"):
            raise RuntimeError("queue exploded")

    row = _only_job(db_session)
    assert row.stage == JobStage.IMAGE_REPAIR
    assert row.status == JobStatus.FAILED
    assert row.error_message == "queue exploded"
