"""Dialect-aware INSERT ... ON CONFLICT DO UPDATE."""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.sql.dml import Insert

from marketdesk.core.exceptions import ErrorCode, PersistenceError
from marketdesk.models.base import Base, utcnow

_INSERT_FACTORIES = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}


def build_upsert(
    dialect_name: str,
    model: type[Base],
    values: dict[str, Any],
    *,
    conflict_columns: Sequence[str],
    update_columns: Sequence[str] | None = None,
) -> Insert:
    """Build an upsert statement keyed on ``conflict_columns``.

    By default every supplied column outside the conflict key is overwritten.
    ``updated_at`` is refreshed when the table has one.

    Raises:
        PersistenceError: If the dialect has no ON CONFLICT support here.
    """
    factory = _INSERT_FACTORIES.get(dialect_name)
    if factory is None:
        raise PersistenceError(
            f"Upsert is not supported for dialect {dialect_name!r}",
            operation="upsert",
            error_code=ErrorCode.UNSUPPORTED_DIALECT,
        )

    stmt = factory(model).values(**values)
    if update_columns is None:
        update_columns = [name for name in values if name not in conflict_columns]

    set_: dict[str, Any] = {name: stmt.excluded[name] for name in update_columns}
    if "updated_at" in model.__table__.c:
        set_["updated_at"] = utcnow()

    return stmt.on_conflict_do_update(index_elements=list(conflict_columns), set_=set_)
