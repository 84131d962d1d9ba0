"""Functions for working with auth tokens on user requests."""

from datetime import datetime, timedelta
from typing import Optional

import jwt
from pytz import UTC

from . import exceptions


def encode(user_id: str, secret: str, expires_in: Optional[int] = 3600) \
        -> str:
    """
    Encode a user identity as a signed JWT.

    Parameters
    ----------
    user_id : str
        The user on whose behalf the token acts.
    secret : str
        Signing secret; see ``JWT_SECRET``.
    expires_in : int or None
        Lifetime of the token in seconds. If ``None``, the token does not
        expire.

    """
    now = datetime.now(tz=UTC)
    claims = {'sub': str(user_id), 'iat': now}
    if expires_in is not None:
        claims['exp'] = now + timedelta(seconds=expires_in)
    return jwt.encode(claims, secret, algorithm='HS256')


def decode(token: str, secret: str) -> str:
    """Decode an auth token, and get the ID of the user it acts for."""
    if not token:
        raise exceptions.MissingToken('No token')
    try:
        data: dict = jwt.decode(token, secret, algorithms=['HS256'])
    except jwt.exceptions.InvalidTokenError as e:
        raise exceptions.InvalidToken('Not a valid token') from e
    if not data.get('sub'):
        raise exceptions.InvalidToken('Token does not identify a user')
    return str(data['sub'])
