"""Helpers and Flask application integration."""

import logging
from typing import Generator, Optional
from contextlib import contextmanager

from flask import Flask
from sqlalchemy import text
from sqlalchemy.orm.session import Session

from .models import db

logger = logging.getLogger(__name__)


@contextmanager
def transaction(commit: bool = True) -> Generator[Session, None, None]:
    """
    Context manager for database transaction.

    Parameters
    ----------
    commit : bool
        If ``False``, changes are flushed but left for an enclosing
        transaction to commit.

    """
    try:
        yield db.session
        # Changes may already have been flushed (e.g. to obtain a primary
        # key), so an empty ``session.new`` does not mean there is nothing
        # to commit.
        if commit:
            db.session.commit()
        else:
            db.session.flush()
    except Exception as e:
        logger.error('Commit failed, rolling back: %s', str(e))
        db.session.rollback()
        raise


def init_app(app: Optional[Flask]) -> None:
    """Set configuration defaults and attach session to the application."""
    db.init_app(app)


def current_session() -> Session:
    """Get/create database session for this context."""
    return db.session


def create_all() -> None:
    """Create all tables in the database."""
    db.create_all()


def drop_all() -> None:
    """Drop all tables in the database."""
    db.drop_all()


def is_available() -> bool:
    """Check our connection to the database."""
    try:
        db.session.execute(text('SELECT 1'))
    except Exception as e:
        logger.error('Encountered an error talking to database: %s', e)
        return False
    return True
