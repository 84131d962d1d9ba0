"""
Controllers for the admin user-management screen.

Each controller calls the corresponding :mod:`.lifecycle` operation and maps
its :class:`.domain.Result` onto response data, a status code, and headers.
Failures map as follows:

- :class:`.domain.Unauthenticated`: 302 to the login page.
- :class:`.domain.Forbidden` (``not-admin``): 401.
- :class:`.domain.Forbidden` (``self-action``): 403.
- :class:`.domain.NotFound`: 404.
- :class:`.domain.ValidationError` and :class:`.domain.ExternalCheckFailed`:
  422, or a 302 back to the edit view for updates.
"""

import logging
from http import HTTPStatus as status
from typing import Any, Mapping, Optional, Tuple
from urllib.parse import urlencode

from flask import current_app, request, url_for
from werkzeug.datastructures import MultiDict

from .. import domain, lifecycle

logger = logging.getLogger(__name__)

ResponseData = Tuple[dict, int, dict]

MAX_PAGE = 100000
MAX_PER_PAGE = 100

NOT_ADMIN = 'Administrator privileges are required'
SELF_ACTION = 'You cannot perform this action on your own account'


def list_users(principal: Optional[domain.Principal],
               params: MultiDict) -> ResponseData:
    """Handle requests for the user listing."""
    page = _int_param(params, 'page', 1, MAX_PAGE)
    per_page = _int_param(params, 'per_page',
                          current_app.config.get('USERS_PER_PAGE', 25),
                          MAX_PER_PAGE)
    result = lifecycle.list_users(principal, page, per_page)
    if not result.ok:
        return handle_failure(result.error)
    user_page: domain.UserPage = result.value
    data = {
        'users': [domain.to_dict(user) for user in user_page.users],
        'page': user_page.page,
        'per_page': user_page.per_page,
        'pages': user_page.pages,
        'total': user_page.total
    }
    return data, status.OK, {}


def new_user(principal: Optional[domain.Principal]) -> ResponseData:
    """Handle requests for the new-user form."""
    result = lifecycle.new_user(principal)
    if not result.ok:
        return handle_failure(result.error)
    return {'user': result.value}, status.OK, {}


def create_user(principal: Optional[domain.Principal],
                params: Mapping[str, Any]) -> ResponseData:
    """Handle a submitted new-user form."""
    result = lifecycle.create_user(principal, params)
    if not result.ok:
        return handle_failure(result.error)
    user: domain.User = result.value
    location = url_for('admin.edit_user', user_id=int(user.user_id))
    return {'user': domain.to_dict(user)}, status.CREATED, \
        {'Location': location}


def edit_user(principal: Optional[domain.Principal],
              user_id: str) -> ResponseData:
    """Handle requests for the edit-user form."""
    result = lifecycle.edit_user(principal, user_id)
    if not result.ok:
        return handle_failure(result.error)
    return {'user': domain.to_dict(result.value)}, status.OK, {}


def update_user(principal: Optional[domain.Principal], user_id: str,
                params: Mapping[str, Any]) -> ResponseData:
    """
    Handle a submitted edit-user form.

    Both outcomes redirect: to the listing on success, or back to the edit
    view if the data was not valid. In that case the response data carries
    ``errors``, for the route to flash; the redirect itself has no body.
    """
    result = lifecycle.update_user(principal, user_id, params)
    if result.ok:
        return {'user': domain.to_dict(result.value)}, status.FOUND, \
            {'Location': url_for('admin.list_users')}
    if isinstance(result.error, domain.ValidationError):
        data = {'errors': {result.error.field: [result.error.reason]}}
        location = url_for('admin.edit_user', user_id=int(user_id))
        return data, status.FOUND, {'Location': location}
    return handle_failure(result.error)


def toggle_admin(principal: Optional[domain.Principal],
                 user_id: str) -> ResponseData:
    """Handle requests to grant or revoke admin privileges."""
    result = lifecycle.toggle_admin(principal, user_id)
    if not result.ok:
        return handle_failure(result.error)
    return {'user': domain.to_dict(result.value)}, status.OK, {}


def destroy_user(principal: Optional[domain.Principal],
                 user_id: str) -> ResponseData:
    """Handle requests to delete a user."""
    result = lifecycle.destroy_user(principal, user_id)
    if not result.ok:
        return handle_failure(result.error)
    return {'user': domain.to_dict(result.value)}, status.FOUND, \
        {'Location': url_for('admin.list_users')}


def handle_failure(error: Optional[domain.Failure]) -> ResponseData:
    """Map a lifecycle failure onto a response."""
    if isinstance(error, domain.Unauthenticated):
        return {'reason': error.reason}, status.FOUND, \
            {'Location': login_url()}
    if isinstance(error, domain.Forbidden):
        if error.reason == domain.Forbidden.NOT_ADMIN:
            return {'reason': NOT_ADMIN}, status.UNAUTHORIZED, {}
        return {'reason': SELF_ACTION}, status.FORBIDDEN, {}
    if isinstance(error, domain.NotFound):
        reason = f'No such {error.resource}: {error.resource_id}'
        return {'reason': reason}, status.NOT_FOUND, {}
    if isinstance(error, domain.ValidationError):
        return {'errors': {error.field: [error.reason]}}, \
            status.UNPROCESSABLE_ENTITY, {}
    if isinstance(error, domain.ExternalCheckFailed):
        return {'errors': {'username': [error.message]}}, \
            status.UNPROCESSABLE_ENTITY, {}
    raise TypeError(f'Not a failure: {error!r}')


def login_url() -> str:
    """Build the login URL, with a pointer back to the current URL."""
    query = urlencode({'next_page': request.full_path.rstrip('?')})
    return f"{current_app.config['LOGIN_URL']}?{query}"


def _int_param(params: Mapping[str, Any], key: str, default: int,
               maximum: int) -> int:
    try:
        value = int(params.get(key, default))
    except (TypeError, ValueError):
        return default
    return min(max(value, 1), maximum)
