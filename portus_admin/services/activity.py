"""
Append-only activity log for lifecycle events.

Entries are never removed. Each entry keeps a snapshot of its owner's
username (and, where relevant, the subject's username) so that it stays
meaningful after the users it refers to are deleted. When an owner is
deleted, :func:`detach_owner` refreshes that snapshot one last time and
drops the reference to the owner's id.
"""

import logging
from typing import List, Optional

from .datastore import util, models
from .. import domain

logger = logging.getLogger(__name__)


def record(action: str, owner_id: Optional[str], owner_name: Optional[str],
           username: Optional[str] = None, trackable_type: str = 'user',
           trackable_id: Optional[str] = None,
           parameters: Optional[dict] = None,
           commit: bool = True) -> domain.ActivityEntry:
    """
    Append an entry to the activity log.

    Parameters
    ----------
    action : str
        One of :attr:`domain.ActivityEntry.ACTIONS`.
    owner_id : str or None
        The user responsible for the event.
    owner_name : str or None
        Username of the owner, snapshot now.
    username : str or None
        Username of the subject of the event, snapshot now.
    trackable_type : str
        Kind of thing the event is about, e.g. ``user`` or ``team``.
    trackable_id : str or None
        Identifier of the thing the event is about.
    parameters : dict or None
        Additional event details.
    commit : bool
        If ``False``, the entry is left for an enclosing transaction to
        commit.

    Returns
    -------
    :class:`domain.ActivityEntry`

    """
    if action not in domain.ActivityEntry.ACTIONS:
        raise ValueError(f'Unknown activity action: {action}')
    with util.transaction(commit) as dbsession:
        db_entry = models.DBActivity(
            action=action,
            trackable_type=trackable_type,
            trackable_id=trackable_id,
            owner_id=owner_id,
            owner_name=owner_name,
            username=username,
            parameters=parameters or {}
        )
        dbsession.add(db_entry)
        dbsession.flush()
        entry = db_entry.to_domain()
    logger.debug('Recorded %s by %s', entry.key, owner_name)
    return entry


def detach_owner(owner_id: str, owner_name: str,
                 commit: bool = True) -> int:
    """
    Stamp ``owner_name`` onto an owner's entries, and forget the owner's id.

    Called as the owner is deleted, so that the entries carry the name the
    owner had at that moment, and cannot be claimed by whoever gets the id
    next.

    Returns
    -------
    int
        The number of entries detached.

    """
    with util.transaction(commit) as dbsession:
        count: int = dbsession.query(models.DBActivity) \
            .filter(models.DBActivity.owner_id == str(owner_id)) \
            .update({'owner_name': owner_name, 'owner_id': None},
                    synchronize_session='fetch')
    logger.debug('Detached %i entries from %s', count, owner_name)
    return count


def list_entries(owner_id: Optional[str] = None) \
        -> List[domain.ActivityEntry]:
    """Load activity entries in the order they were recorded."""
    with util.transaction() as dbsession:
        query = dbsession.query(models.DBActivity)
        if owner_id is not None:
            query = query.filter(models.DBActivity.owner_id == owner_id)
        return [db_entry.to_domain() for db_entry
                in query.order_by(models.DBActivity.entry_id).all()]


def count_entries() -> int:
    """Get the number of entries in the activity log."""
    with util.transaction() as dbsession:
        count: int = dbsession.query(models.DBActivity).count()
    return count
