"""
User lifecycle operations for the admin user-management screen.

Each operation takes the acting :class:`.domain.Principal` (or ``None``),
consults :mod:`.auth.guard` before touching anything, and returns a
:class:`.domain.Result`. Expected failures (denied, unknown user, invalid
data, directory refusal) are reported via :attr:`.domain.Result.error` and
never raised; when an operation fails, neither the user datastore nor the
activity log has been changed.

Successful mutations are recorded in the activity log:

- ``create``: ``user.create``, owned by the acting admin.
- ``update`` and ``toggle_admin``: ``user.update``, owned by the acting
  admin; a toggle carries the new value in ``parameters['admin']``.
- ``destroy``: ``user.destroy``, owned by the acting admin, with a snapshot
  of the deleted username. The deleted user's own entries are detached
  from their id and stamped with that same username.
"""

import logging
from typing import Any, Mapping, Optional

from .auth import guard
from .services import datastore, activity, directory
from .services.datastore import validation
from .services.datastore.validation import PERMITTED_FIELDS
from . import domain

logger = logging.getLogger(__name__)


def permitted(fields: Optional[Mapping[str, Any]]) -> dict:
    """Select the fields that may be set via create/update."""
    if not fields:
        return {}
    return {key: value for key, value in fields.items()
            if key in PERMITTED_FIELDS}


def list_users(principal: Optional[domain.Principal], page: int = 1,
               per_page: int = 25) -> domain.Result:
    """Get a page of users."""
    denied = guard.check(principal, guard.LIST)
    if denied:
        return domain.Result(error=denied)
    return domain.Result(datastore.list_users(page, per_page))


def new_user(principal: Optional[domain.Principal]) -> domain.Result:
    """Get the (blank) fields for creating a user."""
    denied = guard.check(principal, guard.NEW)
    if denied:
        return domain.Result(error=denied)
    return domain.Result({field: '' for field in PERMITTED_FIELDS})


def create_user(principal: Optional[domain.Principal],
                fields: Optional[Mapping[str, Any]]) -> domain.Result:
    """
    Create a new (non-admin) user.

    The data is validated first; the requested username is then checked
    with the external user directory, if one is configured, before anything
    is written.
    """
    denied = guard.check(principal, guard.CREATE)
    if denied:
        return domain.Result(error=denied)
    assert principal is not None
    data = permitted(fields)

    cleaned, error = validation.check_new(data)
    if error is not None:
        logger.debug('Invalid new user: %s %s', *error)
        return domain.Result(error=domain.ValidationError(*error))

    message = directory.check_user(cleaned['username'])
    if message:
        logger.debug('Directory refused %s', cleaned['username'])
        return domain.Result(error=domain.ExternalCheckFailed(message=message))

    try:
        user = datastore.create_user(data)
    except datastore.InvalidUser as e:
        logger.debug('Could not create user: %s', e)
        return domain.Result(error=domain.ValidationError(e.field, e.reason))

    activity.record(domain.ActivityEntry.CREATE,
                    owner_id=principal.user_id,
                    owner_name=principal.username,
                    username=user.username,
                    trackable_id=user.user_id)
    return domain.Result(user)


def edit_user(principal: Optional[domain.Principal],
              user_id: str) -> domain.Result:
    """Get a user for editing. Admins cannot edit themselves here."""
    denied = guard.check(principal, guard.EDIT, user_id)
    if denied:
        return domain.Result(error=denied)
    try:
        return domain.Result(datastore.get_user(user_id))
    except datastore.NoSuchUser:
        return domain.Result(error=domain.NotFound('user', str(user_id)))


def update_user(principal: Optional[domain.Principal], user_id: str,
                fields: Optional[Mapping[str, Any]]) -> domain.Result:
    """
    Update the username, email, and/or password of another user.

    Fields other than those in
    :data:`.services.datastore.validation.PERMITTED_FIELDS` are dropped
    before the datastore sees them, so e.g. ``admin`` cannot be set here.
    """
    denied = guard.check(principal, guard.UPDATE, user_id)
    if denied:
        return domain.Result(error=denied)
    assert principal is not None
    try:
        datastore.get_user(user_id)
    except datastore.NoSuchUser:
        return domain.Result(error=domain.NotFound('user', str(user_id)))

    data = permitted(fields)
    try:
        user = datastore.update_user(user_id, data)
    except datastore.InvalidUser as e:
        logger.debug('Could not update user %s: %s', user_id, e)
        return domain.Result(error=domain.ValidationError(e.field, e.reason))

    activity.record(domain.ActivityEntry.UPDATE,
                    owner_id=principal.user_id,
                    owner_name=principal.username,
                    username=user.username,
                    trackable_id=user.user_id,
                    parameters={'fields': sorted(
                        key for key in data if key != 'password_confirmation'
                    )})
    return domain.Result(user)


def toggle_admin(principal: Optional[domain.Principal],
                 user_id: str) -> domain.Result:
    """Grant or revoke admin privileges. Admins cannot toggle themselves."""
    denied = guard.check(principal, guard.TOGGLE_ADMIN, user_id)
    if denied:
        return domain.Result(error=denied)
    assert principal is not None
    try:
        user = datastore.get_user(user_id)
        user = datastore.set_admin(user_id, not user.admin)
    except datastore.NoSuchUser:
        return domain.Result(error=domain.NotFound('user', str(user_id)))

    logger.debug('%s set admin=%s on %s', principal.username, user.admin,
                 user.username)
    activity.record(domain.ActivityEntry.UPDATE,
                    owner_id=principal.user_id,
                    owner_name=principal.username,
                    username=user.username,
                    trackable_id=user.user_id,
                    parameters={'admin': user.admin})
    return domain.Result(user)


def destroy_user(principal: Optional[domain.Principal],
                 user_id: str) -> domain.Result:
    """
    Delete another user, and record the deletion.

    The deletion and both changes to the activity log are committed
    together.
    """
    denied = guard.check(principal, guard.DESTROY, user_id)
    if denied:
        return domain.Result(error=denied)
    assert principal is not None
    try:
        datastore.get_user(user_id)
        with datastore.transaction():
            user = datastore.delete_user(user_id, commit=False)
            activity.detach_owner(user.user_id, user.username, commit=False)
            activity.record(domain.ActivityEntry.DESTROY,
                            owner_id=principal.user_id,
                            owner_name=principal.username,
                            username=user.username,
                            trackable_id=user.user_id,
                            commit=False)
    except datastore.NoSuchUser:
        return domain.Result(error=domain.NotFound('user', str(user_id)))
    return domain.Result(user)
