"""Settings resolver for the automation_settings key/value table."""

from __future__ import annotations

from typing import Any, Callable, Dict, Optional

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from newsroom.db.models import AutomationSetting
from newsroom.models.domain import AutomationSettings
from newsroom.utils.logging import get_logger

logger = get_logger(__name__)


def _parse_positive_int(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value if value > 0 else None
    if isinstance(value, float) and value.is_integer():
        return int(value) if value > 0 else None
    if isinstance(value, str):
        try:
            parsed = int(value.strip())
        except ValueError:
            return None
        return parsed if parsed > 0 else None
    return None


def _parse_bool(value: Any) -> Optional[bool]:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered == "true":
            return True
        if lowered == "false":
            return False
    return None


_PARSERS: Dict[str, Callable[[Any], Any]] = {
    "articles_per_execution": _parse_positive_int,
    "daily_target": _parse_positive_int,
    "image_fallback_enabled": _parse_bool,
    "trending_boost_enabled": _parse_bool,
}


def resolve_automation_settings(rows: Dict[str, Any]) -> AutomationSettings:
    """Apply known, well-formed keys over the defaults."""
    overrides: Dict[str, Any] = {}
    for key, raw in rows.items():
        parser = _PARSERS.get(key)
        if parser is None:
            continue
        parsed = parser(raw)
        if parsed is None:
            logger.warning("settings.invalid_value", extra={"key": key, "value": repr(raw)})
            continue
        overrides[key] = parsed
    return AutomationSettings(**overrides)


def load_automation_settings(session: Session) -> AutomationSettings:
    """Read every automation setting row; never raises."""
    try:
        rows = session.execute(select(AutomationSetting.key, AutomationSetting.value)).all()
    except SQLAlchemyError:
        logger.exception("settings.load_failed")
        session.rollback()
        return AutomationSettings()
    return resolve_automation_settings({key: value for key, value in rows})
