"""
Dialect-aware conditional insert.

``INSERT … ON CONFLICT DO NOTHING`` is spelled the same way by the
PostgreSQL and SQLite dialects but lives in different modules.  Rows
that collide with an existing unique key are skipped, and the returned
count covers only rows actually inserted.
"""

from typing import Any, Sequence

from sqlmodel import Session, SQLModel

# Keeps every statement well below SQLite's bound-parameter limit
_CHUNK_SIZE = 500


def _insert_for(session: Session):
    dialect = session.get_bind().dialect.name
    if dialect == "postgresql":
        from sqlalchemy.dialects.postgresql import insert
    elif dialect == "sqlite":
        from sqlalchemy.dialects.sqlite import insert
    else:
        raise NotImplementedError(f"Conditional insert not supported for dialect '{dialect}'")
    return insert


def insert_ignoring_conflicts(session: Session, model: type[SQLModel], rows: Sequence[dict[str, Any]],
                              conflict_columns: Sequence[str], ) -> int:
    """Insert ``rows`` into ``model``'s table, skipping unique-key collisions.

    Does not commit; the caller owns the transaction.

    Returns:
        Number of rows inserted.
    """
    if not rows:
        return 0

    insert = _insert_for(session)
    inserted = 0
    for offset in range(0, len(rows), _CHUNK_SIZE):
        chunk = list(rows[offset:offset + _CHUNK_SIZE])
        statement = insert(model).values(chunk).on_conflict_do_nothing(index_elements=list(conflict_columns))
        result = session.execute(statement)
        inserted += max(result.rowcount or 0, 0)
    return inserted
