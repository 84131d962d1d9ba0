"""
Authorization decisions for user-management actions.

:func:`check` is a pure function of the acting principal, the action, and the
target user. It returns ``None`` if the action is allowed, or a typed
failure describing why it is not:

- No principal: :class:`.domain.Unauthenticated`. Callers are expected to
  send the user to log in, rather than answer 401.
- A principal without administrator privileges:
  :class:`.domain.Forbidden` with reason ``not-admin``.
- An administrator acting on their own account with :data:`SELF_DENIED`
  actions: :class:`.domain.Forbidden` with reason ``self-action``. Admins
  cannot revoke their own privileges, edit their own account from the admin
  screen, or delete themselves.
"""

import logging
from typing import Optional

from .. import domain

logger = logging.getLogger(__name__)

LIST = 'list'
NEW = 'new'
CREATE = 'create'
EDIT = 'edit'
UPDATE = 'update'
DESTROY = 'destroy'
TOGGLE_ADMIN = 'toggle_admin'

ACTIONS = (LIST, NEW, CREATE, EDIT, UPDATE, DESTROY, TOGGLE_ADMIN)
SELF_DENIED = (EDIT, UPDATE, DESTROY, TOGGLE_ADMIN)


def check(principal: Optional[domain.Principal], action: str,
          target_id: Optional[str] = None) -> Optional[domain.Failure]:
    """
    Decide whether ``principal`` may perform ``action`` on ``target_id``.

    Parameters
    ----------
    principal : :class:`.domain.Principal` or None
    action : str
        One of :data:`ACTIONS`.
    target_id : str or None
        The user acted upon, for actions that have one.

    Returns
    -------
    None or failure
        ``None`` if allowed.

    """
    if action not in ACTIONS:
        raise ValueError(f'Unknown action: {action}')
    if principal is None:
        logger.debug('No principal for %s', action)
        return domain.Unauthenticated()
    if not principal.is_admin:
        logger.debug('%s is not an admin; denied %s', principal.username,
                     action)
        return domain.Forbidden(reason=domain.Forbidden.NOT_ADMIN)
    if action in SELF_DENIED and is_self(principal, target_id):
        logger.debug('%s may not %s themselves', principal.username, action)
        return domain.Forbidden(reason=domain.Forbidden.SELF_ACTION)
    return None


def is_self(principal: domain.Principal, target_id: Optional[str]) -> bool:
    """Determine whether ``target_id`` identifies the principal."""
    return target_id is not None and str(target_id) == str(principal.user_id)
