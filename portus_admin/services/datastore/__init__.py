"""Database integration for persisting users of the admin screen."""

import logging
from typing import Any, Mapping, Optional

from sqlalchemy.exc import IntegrityError

from . import util, models, validation
from .. import credentials
from ... import domain

logger = logging.getLogger(__name__)


class NoSuchUser(RuntimeError):
    """A user was requested that does not exist."""


class InvalidUser(RuntimeError):
    """User data violates a field rule or a uniqueness invariant."""

    def __init__(self, field: str, reason: str) -> None:
        """Keep the failing field and the reason, for reporting."""
        self.field = field
        self.reason = reason
        super(InvalidUser, self).__init__(f'{field} {reason}')


TAKEN = 'has already been taken'

init_app = util.init_app
create_all = util.create_all
drop_all = util.drop_all
transaction = util.transaction
is_available = util.is_available


def username_exists(username: str, exclude: Optional[str] = None) -> bool:
    """
    Determine whether a user with a particular username already exists.

    Parameters
    ----------
    username : str
    exclude : str or None
        ID of a user to leave out of the check (e.g. the user being updated).

    Returns
    -------
    bool

    """
    with util.transaction() as dbsession:
        query = dbsession.query(models.DBUser) \
            .filter(models.DBUser.username == username)
        if exclude is not None:
            query = query.filter(models.DBUser.user_id != _pk(exclude))
        return query.first() is not None


def email_exists(email: str, exclude: Optional[str] = None) -> bool:
    """Determine whether a user with a particular address already exists."""
    with util.transaction() as dbsession:
        query = dbsession.query(models.DBUser) \
            .filter(models.DBUser.email == email)
        if exclude is not None:
            query = query.filter(models.DBUser.user_id != _pk(exclude))
        return query.first() is not None


def get_user(user_id: str) -> domain.User:
    """Load a :class:`domain.User` from the datastore."""
    with util.transaction() as dbsession:
        return _load_dbuser(user_id, dbsession).to_domain()


def get_user_by_username(username: str) -> domain.User:
    """Load a :class:`domain.User` by username."""
    with util.transaction() as dbsession:
        db_user = dbsession.query(models.DBUser) \
            .filter(models.DBUser.username == username) \
            .first()
        if db_user is None:
            raise NoSuchUser(f'User {username} does not exist')
        return db_user.to_domain()


def count_users() -> int:
    """Get the number of users in the datastore."""
    with util.transaction() as dbsession:
        count: int = dbsession.query(models.DBUser).count()
    return count


def list_users(page: int = 1, per_page: int = 25) -> domain.UserPage:
    """Load one page of users, ordered by username."""
    page = max(page, 1)
    per_page = max(per_page, 1)
    with util.transaction() as dbsession:
        query = dbsession.query(models.DBUser) \
            .order_by(models.DBUser.username)
        total = query.count()
        db_users = query.offset((page - 1) * per_page).limit(per_page).all()
        users = [db_user.to_domain() for db_user in db_users]
    return domain.UserPage(users=users, page=page, per_page=per_page,
                           total=total)


def create_user(fields: Mapping[str, Any], admin: bool = False) \
        -> domain.User:
    """
    Persist a new :class:`domain.User`.

    Parameters
    ----------
    fields : mapping
        Should include ``username``, ``email``, ``password`` and
        ``password_confirmation``. Any other keys are ignored.
    admin : bool
        Whether the new user is an administrator. This cannot be set via
        ``fields``.

    Returns
    -------
    :class:`domain.User`

    Raises
    ------
    :class:`InvalidUser`
        If the data is missing, malformed, or clashes with an existing user.

    """
    data, error = validation.check_new(fields)
    if error is not None:
        raise InvalidUser(*error)

    try:
        with util.transaction() as dbsession:
            _check_unique(dbsession, data)
            db_user = models.DBUser(
                username=data['username'],
                email=data['email'],
                admin=admin,
                credential_hash=credentials.hash_password(data['password'])
            )
            dbsession.add(db_user)
    except IntegrityError as e:
        # Lost a race with a concurrent request for the same name/address.
        raise _integrity_error(e) from e
    user = db_user.to_domain()
    logger.debug('Created user %s (%s)', user.username, user.user_id)
    return user


def update_user(user_id: str, fields: Mapping[str, Any]) -> domain.User:
    """
    Apply a partial update to a :class:`domain.User`.

    Only ``username``, ``email`` and ``password`` (with an optional, matching
    ``password_confirmation``) can be changed this way; anything else in
    ``fields`` is silently ignored.
    """
    changes, error = validation.check_changes(fields)
    if error is not None:
        raise InvalidUser(*error)

    try:
        with util.transaction() as dbsession:
            db_user = _load_dbuser(user_id, dbsession)
            _check_unique(dbsession, changes, exclude=db_user.user_id)
            if 'username' in changes:
                db_user.username = changes['username']
            if 'email' in changes:
                db_user.email = changes['email']
            if 'password' in changes:
                db_user.credential_hash = \
                    credentials.hash_password(changes['password'])
            dbsession.add(db_user)
    except IntegrityError as e:
        raise _integrity_error(e) from e
    logger.debug('Updated %s on user %s', sorted(changes), user_id)
    return db_user.to_domain()


def set_admin(user_id: str, admin: bool) -> domain.User:
    """Set the administrator flag of a user."""
    with util.transaction() as dbsession:
        db_user = _load_dbuser(user_id, dbsession)
        db_user.admin = admin
        dbsession.add(db_user)
    return db_user.to_domain()


def delete_user(user_id: str, commit: bool = True) -> domain.User:
    """
    Delete a user from the datastore.

    Returns
    -------
    :class:`domain.User`
        The user as it was immediately before deletion.

    """
    with util.transaction(commit) as dbsession:
        db_user = _load_dbuser(user_id, dbsession)
        user = db_user.to_domain()
        dbsession.delete(db_user)
    logger.debug('Deleted user %s (%s)', user.username, user.user_id)
    return user


def _pk(user_id: Any) -> int:
    try:
        return int(user_id)
    except (TypeError, ValueError) as e:
        raise NoSuchUser(f'User {user_id} does not exist') from e


def _check_unique(dbsession: util.Session, data: Mapping[str, str],
                  exclude: Optional[int] = None) -> None:
    for field, column in (('username', models.DBUser.username),
                          ('email', models.DBUser.email)):
        if field not in data:
            continue
        query = dbsession.query(models.DBUser).filter(column == data[field])
        if exclude is not None:
            query = query.filter(models.DBUser.user_id != exclude)
        if query.first() is not None:
            raise InvalidUser(field, TAKEN)


def _integrity_error(e: IntegrityError) -> InvalidUser:
    message = str(e.orig).lower()
    field = 'email' if 'email' in message else 'username'
    logger.debug('Unique constraint violated: %s', message)
    return InvalidUser(field, TAKEN)


def _load_dbuser(user_id: str, dbsession: util.Session) -> models.DBUser:
    db_user: Optional[models.DBUser] = dbsession.query(models.DBUser) \
        .filter(models.DBUser.user_id == _pk(user_id)) \
        .first()
    if db_user is None:
        raise NoSuchUser(f'User {user_id} does not exist')
    return db_user
