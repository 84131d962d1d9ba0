"""
Integration with an external user directory.

Before a new account is created, the requested username may be checked
against an external directory (e.g. an HTTP front for LDAP). The directory
answers ``GET {DIRECTORY_URL}/users/{username}``:

- ``404``: the name is free; the account can be created.
- ``200`` with ``{"error": "..."}``: the directory objects to the name.
- ``200`` without an error: the name belongs to a directory user and is free
  for use by them.

Anything else, including a network failure, is reported as an error so that
no account is created when the directory cannot be consulted.
"""

import logging
from typing import Optional
from urllib.parse import quote

import requests
from flask import current_app

logger = logging.getLogger(__name__)


class DirectoryService(object):
    """Thin client for the external user directory."""

    def __init__(self, endpoint: str, timeout: float = 5.0) -> None:
        self._endpoint = endpoint.rstrip('/')
        self._timeout = timeout
        self._session = requests.Session()

    def check_user(self, username: str) -> Optional[str]:
        """
        Check whether ``username`` may be used for a new account.

        Returns
        -------
        str or None
            An error message if the directory refuses the name, or could not
            be consulted; otherwise ``None``.

        """
        url = f'{self._endpoint}/users/{quote(username, safe="")}'
        try:
            response = self._session.get(url, timeout=self._timeout)
        except requests.exceptions.RequestException as e:
            logger.error('Directory lookup for %s failed: %s', username, e)
            return 'The user directory could not be reached'
        if response.status_code == 404:
            return None
        if response.status_code != 200:
            logger.error('Directory lookup for %s returned %i', username,
                         response.status_code)
            return 'The user directory could not be reached'
        try:
            data = response.json()
        except ValueError:
            data = {}
        error: Optional[str] = data.get('error') \
            if isinstance(data, dict) else None
        if error:
            logger.debug('Directory refused %s: %s', username, error)
        return error

    def close(self) -> None:
        """Release the HTTP session."""
        self._session.close()


def get_service() -> Optional[DirectoryService]:
    """Get a :class:`DirectoryService` for the current app, if configured."""
    endpoint = current_app.config.get('DIRECTORY_URL')
    if not endpoint:
        return None
    return DirectoryService(endpoint,
                            current_app.config.get('DIRECTORY_TIMEOUT', 5.0))


def check_user(username: str) -> Optional[str]:
    """Check a username with the configured directory; ``None`` if OK."""
    service = get_service()
    if service is None:
        return None
    try:
        return service.check_user(username)
    finally:
        service.close()
