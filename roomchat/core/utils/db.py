"""Unit-of-work helper shared by the service layer."""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Iterator

from sqlalchemy.exc import SQLAlchemyError

from roomchat.core.errors import RoomchatError, StorageFailure
from roomchat.extensions import db

logger = logging.getLogger(__name__)


@contextmanager
def transaction(action: str) -> Iterator[None]:
    """Commit on success; roll back on any domain or storage error.

    Storage errors are logged with their cause and re-raised as ``StorageFailure`` so the
    driver message never reaches a client.
    """
    try:
        yield
        db.session.commit()
    except RoomchatError:
        db.session.rollback()
        raise
    except SQLAlchemyError as exc:
        db.session.rollback()
        logger.exception("storage failure during %s", action)
        raise StorageFailure() from exc
