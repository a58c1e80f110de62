"""
Per-user chat session storage.

A session holds the in-progress order and the recent conversation. The turn
pipeline only sees the `SessionStore` interface; the SQL store persists to
the `user_sessions` table, the memory store is for tests and local runs.
"""

import copy
import logging
from typing import Optional, Protocol

from sqlalchemy import delete, select

from orderdesk.core.orders.models import Session
from orderdesk.db.database import Database, db as default_db
from orderdesk.db.models import UserSession

logger = logging.getLogger(__name__)


class SessionStore(Protocol):
    async def load(self, user_id: int) -> Optional[Session]: ...

    async def save(self, user_id: int, session: Session) -> None: ...

    async def delete(self, user_id: int) -> bool: ...


class SqlSessionStore:
    """Sessions stored as JSON rows, one per user (last writer wins)."""

    def __init__(self, database: Database | None = None):
        self.db = database or default_db

    async def load(self, user_id: int) -> Optional[Session]:
        async with self.db.session() as db_session:
            row = (
                await db_session.execute(select(UserSession).where(UserSession.user_id == user_id))
            ).scalar_one_or_none()

        if row is None:
            return None

        try:
            return Session.from_dict(row.session_data)
        except (KeyError, TypeError, ValueError) as e:
            logger.warning(f"Discarding unreadable session for user {user_id}: {e}")
            return None

    async def save(self, user_id: int, session: Session) -> None:
        async with self.db.session() as db_session:
            await db_session.merge(UserSession(user_id=user_id, session_data=session.to_dict()))

        logger.debug(f"Session saved for user {user_id}")

    async def delete(self, user_id: int) -> bool:
        async with self.db.session() as db_session:
            result = await db_session.execute(delete(UserSession).where(UserSession.user_id == user_id))

        return result.rowcount > 0


class MemorySessionStore:
    """Process-local session store."""

    def __init__(self):
        self._sessions: dict[int, dict] = {}

    async def load(self, user_id: int) -> Optional[Session]:
        data = self._sessions.get(user_id)
        return Session.from_dict(copy.deepcopy(data)) if data is not None else None

    async def save(self, user_id: int, session: Session) -> None:
        self._sessions[user_id] = copy.deepcopy(session.to_dict())

    async def delete(self, user_id: int) -> bool:
        return self._sessions.pop(user_id, None) is not None
