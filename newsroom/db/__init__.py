"""Database utilities for the publishing service."""

from .models import (  # noqa: F401
    Article,
    ArticleStatus,
    Author,
    AutomationSetting,
    Base,
    FallbackImage,
    JobRun,
    JobStage,
    JobStatus,
    SourceItem,
)
from .session import dispose_engine, get_engine, get_sessionmaker, session_scope  # noqa: F401

__all__ = [
    "Article",
    "ArticleStatus",
    "Author",
    "AutomationSetting",
    "Base",
    "FallbackImage",
    "JobRun",
    "JobStage",
    "JobStatus",
    "SourceItem",
    "dispose_engine",
    "get_engine",
    "get_sessionmaker",
    "session_scope",
]
