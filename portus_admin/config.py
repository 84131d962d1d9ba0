"""Flask configuration."""

import os

VERSION = '0.1.0'

SECRET_KEY = os.environ.get('SECRET_KEY', 'asdf1234')
SERVER_NAME = os.environ.get('PORTUS_SERVER_NAME')

LOGFILE = os.environ.get('LOGFILE')
LOGLEVEL = os.environ.get('LOGLEVEL', 20)

JWT_SECRET = os.environ.get('JWT_SECRET', 'foosecret')
"""Secret used to sign and verify auth tokens."""

TOKEN_EXPIRES_IN = int(os.environ.get('TOKEN_EXPIRES_IN', '3600'))
"""Lifetime of issued auth tokens, in seconds."""

AUTH_SESSION_COOKIE_NAME = os.environ.get('AUTH_SESSION_COOKIE_NAME',
                                          'portus_session')
"""Cookie that may carry the auth token instead of the Authorization header."""

LOGIN_URL = os.environ.get('LOGIN_URL', '/users/sign_in')
"""Where unauthenticated users are sent to log in."""

SQLALCHEMY_DATABASE_URI = os.environ.get('SQLALCHEMY_DATABASE_URI',
                                         'sqlite://')
SQLALCHEMY_TRACK_MODIFICATIONS = False
CREATE_DB = bool(int(os.environ.get('CREATE_DB', 0)))

USERS_PER_PAGE = int(os.environ.get('USERS_PER_PAGE', '25'))
"""Default page size for the user listing."""

DIRECTORY_URL = os.environ.get('DIRECTORY_URL')
"""
Base URL of the external user directory.

If set, new usernames are checked against ``{DIRECTORY_URL}/users/{name}``
before an account is created. If not set, the check is skipped.
"""

DIRECTORY_TIMEOUT = float(os.environ.get('DIRECTORY_TIMEOUT', '5'))
