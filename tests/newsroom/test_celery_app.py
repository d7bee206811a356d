import pytest

celery = pytest.importorskip("celery")  # noqa: F841

from newsroom.celery_app import PUBLISH_TASK_NAME, create_celery_app
from newsroom.settings import Settings


def _make_settings(**overrides) -> Settings:
    values = dict(
        database_url="sqlite:///./var/test.db",
        broker_url="redis://localhost:6379/0",
        publish_schedule="20,8,12",
        structlog_level="DEBUG",
        celery_worker_concurrency=2,
        celery_task_soft_time_limit=600,
    )
    values.update(overrides)
    return Settings(**values)


def test_create_celery_app_schedules_publish_runs():
    app = create_celery_app(_make_settings())

    entry = app.conf.beat_schedule["publish.auto_articles"]
    assert entry["task"] == PUBLISH_TASK_NAME
    assert entry["options"] == {"queue": "newsroom.publish"}
    assert entry["schedule"].hour == {8, 12, 20}
    assert entry["schedule"].minute == {0}
    assert app.conf.worker_concurrency == 2
    assert app.conf.task_soft_time_limit == 600
    assert "newsroom.tasks.publish" in app.conf.include


def test_empty_schedule_disables_beat():
    app = create_celery_app(_make_settings(publish_schedule=""))

    assert app.conf.beat_schedule == {}
