from __future__ import annotations

from typing import Any, Dict

import pytest
from sqlalchemy import select
from sqlalchemy.exc import OperationalError

from newsroom.db.models import Article, ArticleStatus, AutomationSetting, FallbackImage, JobRun, JobStage, JobStatus
from newsroom.settings import reset_settings_cache
from newsroom.tasks import images as images_mod
from newsroom.tasks import publish as publish_mod
from tests.factories import PNG_B64


def _ok_image(_: Dict[str, Any]) -> Dict[str, Any]:
    return {"data": [{"b64_json": PNG_B64}]}


def _failing_image(_: Dict[str, Any]) -> Dict[str, Any]:
    raise RuntimeError("image quota exceeded")


@pytest.fixture()
def install_image(monkeypatch, pipeline_env):
    def _install(provider):
        monkeypatch.setattr(publish_mod, "IMAGE_PROVIDER_FACTORY", lambda: provider)

    return _install


def _add_article(session, slug: str, image: str | None = None, status=ArticleStatus.PUBLISHED) -> Article:
    article = Article(
        title=f"Title {slug}",
        slug=slug,
        content="<p>x</p>",
        main_keyword="reflorestamento",
        featured_image=image,
        status=status,
    )
    session.add(article)
    session.commit()
    return article


def test_dry_run_lists_without_changes(install_image, db_session):
    install_image(_ok_image)
    missing = _add_article(db_session, "missing")
    _add_article(db_session, "blank", image="")
    _add_article(db_session, "has-image", image="https://img/x")
    _add_article(db_session, "draft", status=ArticleStatus.DRAFT)

    result = images_mod.repair_missing_images_core(limit=10, dry_run=True)

    assert result.dry_run is True
    assert result.total == 2
    assert {c.title for c in result.articles_to_fix} == {"Title missing", "Title blank"}
    db_session.expire_all()
    assert db_session.get(Article, missing.id).featured_image is None


def test_repair_attaches_generated_images(install_image, db_session):
    install_image(_ok_image)
    article = _add_article(db_session, "needs-image")

    result = images_mod.repair_missing_images_core(limit=5)

    assert (result.fixed, result.failed, result.total) == (1, [], 1)
    db_session.expire_all()
    repaired = db_session.get(Article, article.id)
    assert repaired.featured_image.startswith("https://cdn.example.com/storage/article-images/needs-image-")
    assert repaired.featured_image_alt == "reflorestamento - illustrative image for Title needs-image"

    job = db_session.execute(select(JobRun).where(JobRun.stage == JobStage.IMAGE_REPAIR)).scalar_one()
    assert job.status == JobStatus.SUCCEEDED
    assert (job.items_requested, job.items_published, job.items_failed) == (1, 1, 0)


def test_repair_uses_fallback_pool_when_generation_fails(install_image, db_session):
    install_image(_failing_image)
    db_session.add(FallbackImage(url="https://img/forest-1", category="forest"))
    db_session.commit()
    article = _add_article(db_session, "forest-story")
    article.main_keyword = "Floresta"
    db_session.commit()

    result = images_mod.repair_missing_images_core()

    assert result.fixed == 1
    db_session.expire_all()
    assert db_session.get(Article, article.id).featured_image == "https://img/forest-1"


def test_repair_reports_failures_when_fallback_disabled(install_image, db_session):
    install_image(_failing_image)
    db_session.add(AutomationSetting(key="image_fallback_enabled", value=False))
    db_session.commit()
    article = _add_article(db_session, "stuck")

    result = images_mod.repair_missing_images_core()

    assert result.fixed == 0
    assert [(f.id, f.title) for f in result.failed] == [(article.id, "Title stuck")]
    assert result.failed[0].error == "No image could be resolved"


def test_nothing_to_fix(install_image):
    install_image(_ok_image)

    result = images_mod.repair_missing_images_core()

    assert (result.total, result.fixed, result.failed) == (0, 0, [])


def test_alt_text_falls_back_to_title():
    assert images_mod.build_image_alt_text("", "Carbon") == "Carbon - illustrative image for Carbon"


def test_unreachable_database_is_fatal(install_image, monkeypatch, pipeline_env):
    install_image(_ok_image)
    monkeypatch.setenv("DATABASE_URL", f"sqlite:///{pipeline_env / 'missing-dir' / 'x.db'}")
    reset_settings_cache()

    with pytest.raises(publish_mod.QueueUnavailableError, match="Failed to fetch articles"):
        images_mod.repair_missing_images_core()


def test_job_run_that_cannot_be_recorded_aborts_repair(install_image, db_session, monkeypatch):
    install_image(_ok_image)
    article = _add_article(db_session, "bare")

    class _Unrecordable:
        def __init__(self, **_: Any) -> None:
            pass

        def __enter__(self):
            raise OperationalError("INSERT", {}, Exception("disk I/O error"))

        def __exit__(self, *exc_info) -> None:
            return None

    monkeypatch.setattr(publish_mod, "JobRunRecorder", _Unrecordable)

    with pytest.raises(publish_mod.QueueUnavailableError, match="Database unavailable"):
        images_mod.repair_missing_images_core()

    db_session.expire_all()
    assert db_session.get(Article, article.id).featured_image is None
