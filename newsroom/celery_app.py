"""Celery application bootstrap."""

from __future__ import annotations

import logging
from typing import Any, Dict

from celery import Celery
from celery.schedules import crontab

from .settings import Settings, get_settings
from .utils.logging import configure_logging

_CELERY_APP: Celery | None = None

TASK_MODULES = ["newsroom.tasks.publish", "newsroom.tasks.images"]
PUBLISH_TASK_NAME = "newsroom.tasks.publish.publish_pending_articles"


def create_celery_app(settings: Settings | None = None) -> Celery:
    """Build a Celery instance from settings."""
    config = settings or get_settings()
    configure_logging(config.structlog_level, json_enabled=config.log_json)

    app = Celery("newsroom", broker=config.broker_url, backend=config.broker_url, include=TASK_MODULES)
    app.conf.update(
        task_default_queue="newsroom.default",
        task_default_exchange="newsroom",
        task_default_routing_key="newsroom.default",
        task_soft_time_limit=config.celery_task_soft_time_limit,
        worker_concurrency=config.celery_worker_concurrency,
        beat_schedule=_build_beat_schedule(config),
        timezone="UTC",
        enable_utc=True,
        worker_send_task_events=True,
        task_send_sent_event=True,
    )

    _install_signal_handlers(app)
    return app


def get_celery_app() -> Celery:
    """Return the singleton Celery instance."""
    global _CELERY_APP
    if _CELERY_APP is None:
        _CELERY_APP = create_celery_app()
    return _CELERY_APP


def _build_beat_schedule(settings: Settings) -> Dict[str, Dict[str, Any]]:
    hours = settings.publish_schedule_hours
    if not hours:
        return {}
    return {
        "publish.auto_articles": {
            "task": PUBLISH_TASK_NAME,
            "schedule": crontab(minute=0, hour=",".join(str(h) for h in hours)),
            "options": {"queue": "newsroom.publish"},
        }
    }


def _install_signal_handlers(app: Celery) -> None:
    from celery import signals

    logger = logging.getLogger("newsroom.worker")

    @signals.worker_shutdown.connect  # type: ignore[attr-defined]
    def _on_worker_shutdown(sender=None, **kwargs):  # noqa: ANN001
        logger.info("Celery worker shutdown detected", extra={"sender": str(sender)})
