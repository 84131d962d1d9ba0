"""SQLAlchemy models for database integration."""

from datetime import datetime

from flask_sqlalchemy import SQLAlchemy
from sqlalchemy import Boolean, Column, DateTime, Integer, String, JSON
from sqlalchemy.orm import validates

from ... import domain

db: SQLAlchemy = SQLAlchemy()


class DBUser(db.Model):  # type: ignore
    """Persistence for :class:`domain.User`."""

    __tablename__ = 'users'
    __table_args__ = {'sqlite_autoincrement': True}   # Ids are never reused.

    user_id = Column(Integer, primary_key=True, autoincrement=True)
    username = Column(String(255), nullable=False, unique=True, index=True)
    email = Column(String(255), nullable=False, unique=True, index=True)
    admin = Column(Boolean, nullable=False, default=False)
    credential_hash = Column(String(255), nullable=False)
    created = Column(DateTime, default=datetime.now)
    updated = Column(DateTime, default=datetime.now, onupdate=datetime.now)

    def to_domain(self) -> domain.User:
        """Generate a :class:`domain.User` from this row."""
        return domain.User(
            user_id=str(self.user_id),
            username=self.username,
            email=self.email,
            admin=bool(self.admin),
            credential_hash=self.credential_hash,
            created=self.created,
            updated=self.updated
        )


class DBActivity(db.Model):  # type: ignore
    """
    Persistence for :class:`domain.ActivityEntry`.

    ``owner_id`` is deliberately not a foreign key: entries outlive the users
    that own them.
    """

    __tablename__ = 'activities'

    entry_id = Column(Integer, primary_key=True, autoincrement=True)
    action = Column(String(32), nullable=False)
    trackable_type = Column(String(64), nullable=False, default='user')
    trackable_id = Column(String(64), nullable=True)
    owner_id = Column(String(64), nullable=True, index=True)
    owner_name = Column(String(255), nullable=True)
    username = Column(String(255), nullable=True)
    parameters = Column(JSON, nullable=True)
    created = Column(DateTime, default=datetime.now)

    @validates('action')
    def validate_action(self, key: str, action: str) -> str:
        """Only known lifecycle actions may be stored."""
        if action not in domain.ActivityEntry.ACTIONS:
            raise ValueError(f'Unknown activity action: {action}')
        return action

    def to_domain(self) -> domain.ActivityEntry:
        """Generate a :class:`domain.ActivityEntry` from this row."""
        return domain.ActivityEntry(
            entry_id=str(self.entry_id),
            action=self.action,
            trackable_type=self.trackable_type,
            trackable_id=self.trackable_id,
            owner_id=self.owner_id,
            owner_name=self.owner_name,
            username=self.username,
            parameters=dict(self.parameters or {}),
            created=self.created
        )
