# Overview: Transaction scope and row locking helpers used by multi-statement writes.

from __future__ import annotations

from contextlib import contextmanager

from sqlalchemy import text

from ..extensions import db


def lock_for_update(query):
    """
    Apply row-level locking for critical operations.

    NOTE: SQLite ignores SELECT ... FOR UPDATE, but other DBs will honor it.
    """
    return query.with_for_update()


@contextmanager
def transaction():
    """
    All-or-nothing scope over the request session.

    Commits when the block exits cleanly; on any exception the session is
    rolled back before the exception propagates, so no partial writes from the
    block are ever visible. There are no retries.
    """
    if db.session().in_transaction():
        # Leftover autobegun transaction from earlier reads in this request
        db.session.commit()

    if db.engine.dialect.name == "sqlite":
        # Take the write lock up front so concurrent writers serialize
        db.session.execute(text("BEGIN IMMEDIATE"))

    try:
        yield db.session
        db.session.commit()
    except BaseException:
        db.session.rollback()
        raise
