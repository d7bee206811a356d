from __future__ import annotations

import sys
from pathlib import Path
from typing import Iterator

import pytest
from sqlalchemy.orm import Session

ROOT = Path(__file__).resolve().parents[1]

if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from llm.settings import reset_generation_settings_cache  # noqa: E402
from newsroom.db.models import Base  # noqa: E402
from newsroom.db.session import dispose_engine, get_engine, get_sessionmaker  # noqa: E402
from newsroom.settings import reset_settings_cache  # noqa: E402


@pytest.fixture()
def pipeline_env(monkeypatch, tmp_path: Path) -> Iterator[Path]:
    """SQLite database, local storage and generation credentials under tmp_path."""
    reset_settings_cache()
    reset_generation_settings_cache()
    monkeypatch.setenv("DATABASE_URL", f"sqlite:///{tmp_path / 'newsroom.db'}")
    monkeypatch.setenv("OPENAI_API_KEY", "sk-test-123")
    monkeypatch.setenv("ITEM_DELAY_SECONDS", "0")
    monkeypatch.setenv("STORAGE_BACKEND", "local")
    monkeypatch.setenv("LOCAL_STORAGE_ROOT", str(tmp_path / "storage"))
    monkeypatch.setenv("PUBLIC_STORAGE_BASE_URL", "https://cdn.example.com/storage/")
    Base.metadata.create_all(bind=get_engine())
    yield tmp_path
    dispose_engine()
    reset_settings_cache()
    reset_generation_settings_cache()


@pytest.fixture()
def db_session(pipeline_env) -> Iterator[Session]:
    session = get_sessionmaker()()
    try:
        yield session
    finally:
        session.close()
