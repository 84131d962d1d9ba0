"""Testing helpers."""

from contextlib import contextmanager
from typing import Generator

from flask import Flask

from ..auth import tokens
from ..factory import create_web_app
from ..services import datastore
from .. import domain

SECRET = 'foosecret'
PASSWORD = 'password'


def create_test_app(**config: object) -> Flask:
    """Create an app backed by a fresh in-memory sqlite database."""
    settings = {
        'TESTING': True,
        'SECRET_KEY': 'testsecret',
        'JWT_SECRET': SECRET,
        'SQLALCHEMY_DATABASE_URI': 'sqlite://',
        'CREATE_DB': False,
        'DIRECTORY_URL': None,
        'LOGLEVEL': 'WARNING',
        'LOGFILE': None,
    }
    settings.update(config)
    app = create_web_app(settings)
    with app.app_context():
        datastore.create_all()
    return app


@contextmanager
def temporary_app(**config: object) -> Generator[Flask, None, None]:
    """Provide an app, inside its app context, with an empty database."""
    app = create_test_app(**config)
    with app.app_context():
        try:
            yield app
        finally:
            datastore.drop_all()


def add_user(username: str, admin: bool = False,
             email: str = '', password: str = PASSWORD) -> domain.User:
    """Create a user. Must be called inside an app context."""
    return datastore.create_user({
        'username': username,
        'email': email or f'{username}@example.org',
        'password': password,
        'password_confirmation': password
    }, admin=admin)


def auth_header(user: domain.User) -> dict:
    """Headers that sign requests in as ``user``."""
    return {'Authorization': tokens.encode(str(user.user_id), SECRET)}
