# Overview: Transaction scoping for multi-statement writes.

from __future__ import annotations

from contextlib import contextmanager
from typing import Iterator

from sqlalchemy import text
from sqlalchemy.orm import Session


def begin_write(session: Session) -> None:
    """
    Start the write transaction.

    NOTE: SQLite defers its write lock to the first UPDATE/INSERT, which lets
    two checkouts both read stock and then deadlock on upgrade. BEGIN IMMEDIATE
    takes the lock up front; other backends rely on the conditional decrement.
    """
    if session.get_bind().dialect.name == "sqlite":
        session.execute(text("BEGIN IMMEDIATE"))


@contextmanager
def write_transaction(session: Session) -> Iterator[Session]:
    """
    Run a block as one transaction: commit on success, roll back on any
    exception, and always release the session's connection on exit.
    """
    try:
        begin_write(session)
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()
