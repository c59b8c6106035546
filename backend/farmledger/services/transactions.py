# Overview: Transaction boundaries for multi-step writes.

from __future__ import annotations

from contextlib import contextmanager

from ..extensions import db


@contextmanager
def atomic():
    """
    Run a block of writes as one all-or-nothing unit.

    Commits when the block exits normally. Any exception rolls the session
    back and is re-raised unchanged, so nothing flushed inside the block
    survives a failure.
    """
    try:
        yield db.session
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise
