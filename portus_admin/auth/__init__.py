"""
Resolves the acting principal for each request.

Intended for use in a Flask application factory, for example:

.. code-block:: python

   from flask import Flask
   from portus_admin.auth import Auth


   def create_web_app() -> Flask:
      app = Flask('someapp')
      app.config.from_pyfile('config.py')
      Auth(app)   # Attaches ``request.auth`` before each request.
      return app

A signed token (see :mod:`.tokens`) is read from the ``Authorization`` header
(with or without a ``Bearer`` prefix) or, failing that, from the cookie
named by ``AUTH_SESSION_COOKIE_NAME``. If the token is valid and names a user
that still exists, a :class:`.domain.Principal` for that user is attached to
the request as ``request.auth``. Otherwise ``request.auth`` is ``None``, and
it is up to the application to decide what to do about it; see
:mod:`.guard`.
"""

import logging
from typing import Optional

from flask import Flask, request, current_app

from . import exceptions, tokens
from .. import domain
from ..services import datastore

logger = logging.getLogger(__name__)


class Auth(object):
    """Attaches the acting :class:`.domain.Principal` to the request."""

    def __init__(self, app: Optional[Flask] = None) -> None:
        """
        Initialize ``app``, if provided.

        Parameters
        ----------
        app : :class:`Flask`

        """
        if app is not None:
            self.init_app(app)

    def init_app(self, app: Flask) -> None:
        """
        Attach :meth:`.load_principal` to the Flask app.

        Parameters
        ----------
        app : :class:`Flask`

        """
        app.config.setdefault('AUTH_SESSION_COOKIE_NAME', 'portus_session')
        app.config.setdefault('LOGIN_URL', '/users/sign_in')
        if not app.config.get('JWT_SECRET'):
            raise exceptions.ConfigurationError('JWT_SECRET is not set')
        app.before_request(self.load_principal)

    def load_principal(self) -> None:
        """Look for a valid token, and attach its principal to the request."""
        request.auth = self.resolve(get_token())

    @staticmethod
    def resolve(token: Optional[str]) -> Optional[domain.Principal]:
        """
        Get the :class:`.domain.Principal` for a token.

        Returns ``None`` if the token is missing or invalid, or if the user it
        names no longer exists.
        """
        if token is None:
            logger.debug('No auth token')
            return None
        try:
            user_id = tokens.decode(token, current_app.config['JWT_SECRET'])
        except (exceptions.InvalidToken, exceptions.MissingToken) as e:
            logger.debug('Auth token not valid: %s', e)
            return None
        try:
            user = datastore.get_user(user_id)
        except datastore.NoSuchUser:
            logger.debug('Token for unknown user %s', user_id)
            return None
        return user.as_principal()


def get_token() -> Optional[str]:
    """Get the auth token from the current request, if there is one."""
    header = request.headers.get('Authorization')
    if header:
        if header.lower().startswith('bearer '):
            return header[7:].strip()
        return header.strip()
    cookie_name = current_app.config['AUTH_SESSION_COOKIE_NAME']
    return request.cookies.get(cookie_name) or None
