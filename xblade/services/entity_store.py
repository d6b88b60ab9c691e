"""Storage primitives shared by the membership, roster and cascade services.

The important one is ``find_or_create``: an atomic insert-or-fetch keyed on a
unique constraint that reports whether this call created the row. Services
never check-then-insert.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Generic, TypeVar

from sqlalchemy import and_, delete, insert, select, update
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import SQLModel

from xblade.services.errors import ConflictError

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=SQLModel)

_UPSERT_DIALECTS = {
    "postgresql": pg_insert,
    "sqlite": sqlite_insert,
}


@dataclass
class FindOrCreateResult(Generic[ModelT]):
    """Tagged result of an insert-or-fetch."""

    row: ModelT
    created: bool

    @property
    def status(self) -> str:
        return "created" if self.created else "existing"


def _dialect_name(db: AsyncSession) -> str:
    return db.get_bind().dialect.name


def _key_clause(model: type[ModelT], key: dict[str, Any]):
    clauses = []
    for column, value in key.items():
        attr = getattr(model, column)
        clauses.append(attr.is_(None) if value is None else attr == value)
    return and_(*clauses)


async def find_one(db: AsyncSession, model: type[ModelT], **key: Any) -> ModelT | None:
    """Fetch a single row matching all equality predicates."""
    result = await db.execute(select(model).where(_key_clause(model, key)))
    return result.scalars().first()


async def find_or_create(
    db: AsyncSession,
    model: type[ModelT],
    *,
    key: dict[str, Any],
    values: dict[str, Any] | None = None,
) -> FindOrCreateResult[ModelT]:
    """Insert a row unless one already exists for ``key``; return either one.

    ``key`` must name exactly the columns of a unique constraint on the table.
    On PostgreSQL and SQLite this is ``INSERT ... ON CONFLICT DO NOTHING
    RETURNING id`` followed by a fetch, so two concurrent callers converge on
    the same row. Other dialects insert inside a savepoint and fall back to a
    fetch when the constraint fires.

    Raises:
        ConflictError: The insert was rejected but no matching row could be
            read back (for example a concurrent delete won the race).
    """
    row_values = {**(values or {}), **key}
    table = model.__table__  # type: ignore[attr-defined]
    upsert = _UPSERT_DIALECTS.get(_dialect_name(db))

    if upsert is not None and None not in key.values():
        stmt = (
            upsert(table)
            .values(**row_values)
            .on_conflict_do_nothing(index_elements=list(key))
            .returning(table.c.id)
        )
        inserted_id = (await db.execute(stmt)).scalar_one_or_none()
        if inserted_id is not None:
            row = await db.get(model, inserted_id)
            assert row is not None
            return FindOrCreateResult(row=row, created=True)
    else:
        # NULLs never collide on a unique constraint, so a plain insert is
        # the only option; it is still the constraint that arbitrates.
        try:
            async with db.begin_nested():
                result = await db.execute(insert(table).values(**row_values).returning(table.c.id))
                inserted_id = result.scalar_one()
            row = await db.get(model, inserted_id)
            assert row is not None
            return FindOrCreateResult(row=row, created=True)
        except IntegrityError:
            logger.debug("find_or_create hit unique constraint on %s %s", table.name, key)

    existing = await find_one(db, model, **key)
    if existing is None:
        raise ConflictError(
            f"{table.name} row for {key} was rejected as a duplicate but could not be read back"
        )
    return FindOrCreateResult(row=existing, created=False)


async def delete_where(db: AsyncSession, model: type[ModelT], *criteria: Any) -> int:
    """Delete rows matching ``criteria``; return the number removed."""
    result = await db.execute(
        delete(model).where(*criteria).execution_options(synchronize_session="fetch")
    )
    return result.rowcount or 0


async def update_where(
    db: AsyncSession, model: type[ModelT], values: dict[str, Any], *criteria: Any
) -> int:
    """Apply ``values`` to rows matching ``criteria``; return the number changed."""
    result = await db.execute(
        update(model)
        .where(*criteria)
        .values(**values)
        .execution_options(synchronize_session="fetch")
    )
    return result.rowcount or 0
