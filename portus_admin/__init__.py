"""
Admin user-management service for the Portus registry front end.

Administrators use this service to list, create, edit, update and delete
registry users, and to grant or revoke administrator privileges. Every
operation is authorized by :mod:`.auth.guard` against the acting principal,
which is resolved from a signed token by :class:`.auth.Auth`. Users are
kept in a relational datastore (:mod:`.services.datastore`), and successful
changes are written to an append-only activity log
(:mod:`.services.activity`).

The operations themselves live in :mod:`.lifecycle`. They return typed
results rather than raising, and the controllers in
:mod:`.controllers.users` map those results onto HTTP responses.
"""
