"""
Controllers for signing in and out.

Signing in exchanges a username and password for a signed token (see
:mod:`.auth.tokens`). The token is returned in the response data, and is
also set as a cookie by the route, so that it works for both API clients and
browsers.
"""

import logging
from http import HTTPStatus as status
from typing import Any, Mapping, Optional, Tuple

from flask import current_app

from ..auth import tokens
from ..services import credentials, datastore

logger = logging.getLogger(__name__)

ResponseData = Tuple[dict, int, dict]

INVALID = 'Invalid username or password'


def login(method: str, params: Mapping[str, Any],
          next_page: Optional[str] = None) -> ResponseData:
    """
    Provide the sign-in form, or sign a user in.

    Parameters
    ----------
    method : str
        ``GET`` or ``POST``.
    params : mapping
        Should include ``username`` and ``password`` when POSTed.
    next_page : str or None
        Page to which the user should be redirected upon sign-in.

    Returns
    -------
    dict
        Response data. On success, includes ``token`` and the ``cookies`` to
        set.
    int
        Status code. 303 if ``next_page`` was given, otherwise 200 on
        success; 401 on failure.
    dict
        Headers to add to the response.

    """
    if next_page and not good_next_page(next_page):
        logger.debug('Ignoring next_page %s', next_page)
        next_page = None
    if method == 'GET':
        return {'fields': ['username', 'password'], 'next_page': next_page}, \
            status.OK, {}

    username = str(params.get('username') or '').strip()
    password = str(params.get('password') or '')
    if not username or not password:
        return {'reason': INVALID}, status.UNAUTHORIZED, {}
    try:
        user = datastore.get_user_by_username(username)
        credentials.check_password(password, user.credential_hash or '')
    except (datastore.NoSuchUser,
            credentials.PasswordAuthenticationFailed) as e:
        logger.debug('Sign-in failed for %s: %s', username, e)
        return {'reason': INVALID}, status.UNAUTHORIZED, {}

    expires_in = current_app.config.get('TOKEN_EXPIRES_IN', 3600)
    token = tokens.encode(str(user.user_id),
                          current_app.config['JWT_SECRET'], expires_in)
    logger.debug('Signed in %s', user.username)
    data = {
        'token': token,
        'user_id': user.user_id,
        'cookies': {'auth_session_cookie': (token, expires_in)}
    }
    if next_page:
        return data, status.SEE_OTHER, {'Location': next_page}
    return data, status.OK, {}


def good_next_page(next_page: str) -> bool:
    """Only allow redirects to paths on this site."""
    return next_page.startswith('/') and not next_page.startswith('//')


def logout(next_page: str) -> ResponseData:
    """Sign out, by expiring the token cookie."""
    data = {'cookies': {'auth_session_cookie': ('', 0)}}
    return data, status.SEE_OTHER, {'Location': next_page}
