"""Defines the core data structures for the admin user-management service."""

from typing import Any, Optional, NamedTuple, List, Union
from datetime import datetime


class Principal(NamedTuple):
    """The authenticated actor performing a request."""

    user_id: str
    """Identifier of the :class:`.User` behind the request."""

    username: str
    """Username of the acting user, at the time the request was resolved."""

    is_admin: bool = False
    """Whether the acting user holds administrator privileges."""


class User(NamedTuple):
    """Represents a registry user."""

    username: str
    """Slug-like username. Unique across the registry."""

    email: str
    """The user's e-mail address. Unique across the registry."""

    user_id: Optional[str] = None
    """Unique identifier for the user. If ``None``, the user does not exist."""

    admin: bool = False
    """Whether or not the user is a registry administrator."""

    credential_hash: Optional[str] = None
    """Opaque password hash; see :mod:`.services.credentials`."""

    created: Optional[datetime] = None
    """When the user was created."""

    updated: Optional[datetime] = None
    """When the user was last changed."""

    def as_principal(self) -> Principal:
        """Get a :class:`.Principal` acting as this user."""
        return Principal(user_id=str(self.user_id), username=self.username,
                         is_admin=self.admin)


class UserPage(NamedTuple):
    """One page of a user listing."""

    users: List[User]
    page: int
    per_page: int
    total: int

    @property
    def pages(self) -> int:
        """Number of pages available at :attr:`per_page`."""
        if self.total == 0:
            return 1
        return -(-self.total // self.per_page)


class ActivityEntry(NamedTuple):
    """An append-only record of a lifecycle event."""

    CREATE = 'create'
    UPDATE = 'update'
    DESTROY = 'destroy'
    ACTIONS = (CREATE, UPDATE, DESTROY)

    action: str
    """Must be one of :attr:`.ACTIONS`."""

    owner_id: Optional[str]
    """The user responsible for the event. Not enforced as a reference."""

    owner_name: Optional[str]
    """Username of the owner when the entry was recorded."""

    username: Optional[str] = None
    """Username of the subject when the entry was recorded, if any."""

    trackable_type: str = 'user'
    """Kind of thing the entry is about, e.g. ``user`` or ``team``."""

    trackable_id: Optional[str] = None
    """Identifier of the thing the entry is about."""

    parameters: Optional[dict] = None
    """Additional event details, if any."""

    entry_id: Optional[str] = None
    """Unique identifier for the entry, set once it is stored."""

    created: Optional[datetime] = None
    """When the entry was recorded."""

    @property
    def key(self) -> str:
        """Event key, e.g. ``user.destroy``."""
        return f'{self.trackable_type}.{self.action}'


# Typed failures. These cross the lifecycle service boundary instead of
# exceptions; the transport adapter maps them onto responses.


class Unauthenticated(NamedTuple):
    """The request carries no authenticated principal."""

    reason: str = 'authentication required'


class Forbidden(NamedTuple):
    """The principal is authenticated but may not perform the action."""

    NOT_ADMIN = 'not-admin'
    SELF_ACTION = 'self-action'

    reason: str
    """Either :attr:`.NOT_ADMIN` or :attr:`.SELF_ACTION`."""


class NotFound(NamedTuple):
    """The target of the action does not exist."""

    resource: str
    resource_id: Optional[str] = None


class ValidationError(NamedTuple):
    """Submitted data violates a field rule or a uniqueness invariant."""

    field: str
    reason: str


class ExternalCheckFailed(NamedTuple):
    """The external user directory refused or could not vet the user."""

    message: str


Failure = Union[Unauthenticated, Forbidden, NotFound, ValidationError,
                ExternalCheckFailed]


class Result(NamedTuple):
    """Outcome of a lifecycle operation."""

    value: Any = None
    """The payload of a successful operation."""

    error: Optional[Failure] = None
    """Set if the operation failed; nothing was changed in that case."""

    @property
    def ok(self) -> bool:
        """Whether the operation succeeded."""
        return self.error is None


def to_dict(obj: tuple) -> dict:
    """
    Generate a dict representation of a NamedTuple instance.

    Child NamedTuples are converted recursively, and datetimes are rendered
    as ISO-8601 strings, so that the result can be serialized as JSON.
    Credential hashes are never included.

    Parameters
    ----------
    obj : tuple
        A NamedTuple instance.

    Returns
    -------
    dict

    """
    if not hasattr(obj, '_asdict'):  # NamedTuple-generated classes have this.
        return {}
    data = obj._asdict()  # type: ignore
    _data = {}

    def _cast(obj: Any) -> Any:
        if hasattr(obj, '_asdict'):
            obj = to_dict(obj)
        elif isinstance(obj, datetime):
            obj = obj.isoformat()
        elif isinstance(obj, list):
            obj = [_cast(o) for o in obj]
        return obj

    for key, value in data.items():
        if key == 'credential_hash':
            continue
        _data[key] = _cast(value)
    return _data
