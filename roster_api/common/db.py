# roster_api/common/db.py
from __future__ import annotations

from contextlib import contextmanager
import logging

from sqlalchemy.exc import SQLAlchemyError

from roster_api.extensions import db
from roster_api.common.errors import PersistenceFailure

log = logging.getLogger(__name__)


@contextmanager
def atomic(label: str):
    """
    One unit of work on ``db.session``.

    Commits when the block exits cleanly. Any exception rolls the whole
    session back first, so nothing written inside the block survives.
    SQLAlchemy errors surface as PersistenceFailure (cause attached);
    domain errors (NotFound, Conflict...) are re-raised unchanged.
    """
    try:
        yield db.session
        db.session.commit()
    except SQLAlchemyError as e:
        db.session.rollback()
        log.exception("[%s] transaction rolled back", label)
        raise PersistenceFailure(f"{label} failed, no changes were saved", cause=e) from e
    except Exception:
        db.session.rollback()
        raise
