"""
Session Manager.

Owns the in-memory session table for the lifetime of the process. Sessions
are created or resumed by id, carry a bounded history buffer used as model
context, and are evicted from memory (never from storage) after a period of
inactivity. The durable log stays the source of truth: a session that is not
live in memory but exists in storage is rehydrated from its latest messages.

Dependencies: asyncio, sqlalchemy, widgetchat.boundary.db
System role: Session state between the connection layer and the message log
"""

import asyncio
import contextlib
import logging
from collections import deque
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Callable

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from widgetchat.boundary.db.base import new_id, utc_now
from widgetchat.boundary.db.CRUD.chat_message_crud import chat_message_crud
from widgetchat.boundary.db.CRUD.chat_session_crud import chat_session_crud
from widgetchat.boundary.db.CRUD.widget_crud import widget_crud
from widgetchat.boundary.db.models.chat_message_model import ChatMessageModel
from widgetchat.configs.chat import ChatSettings
from widgetchat.core.exceptions import PersistenceError, SessionNotFoundError
from widgetchat.models.chat import ChatMessage, MessageRole

logger = logging.getLogger(__name__)


def ensure_utc(value: datetime) -> datetime:
    """Attach UTC to naive datetimes read back from storage."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def message_from_row(row: ChatMessageModel) -> ChatMessage:
    return ChatMessage(
        id=row.id,
        session_id=row.session_id,
        content=row.content,
        role=MessageRole(row.role),
        attachments=row.attachments or [],
        timestamp=ensure_utc(row.created_at),
    )


@dataclass
class SessionHandle:
    """
    Live chat session.

    Attributes:
        id: Session id
        user_id: Authenticated owner, None for anonymous sessions
        widget_id: Widget binding, None when unbound
        created_at: Creation time
        last_activity: Last activity time, never moves backwards
        history: Bounded recency buffer of messages
        lock: Held while a message of this session is being processed
    """

    id: str
    user_id: str | None
    widget_id: str | None
    created_at: datetime
    last_activity: datetime
    history: deque = field(default_factory=deque)
    lock: asyncio.Lock = field(default_factory=asyncio.Lock)

    def touch(self, at: datetime) -> None:
        if at > self.last_activity:
            self.last_activity = at

    def history_entries(self) -> list[dict[str, str]]:
        """History as role/content pairs, oldest first."""
        return [message.to_history_entry() for message in self.history]


@dataclass(frozen=True)
class ResumeOutcome:
    """
    Result of `SessionManager.resume`.

    Attributes:
        session: Live session handle
        created: True when this call created the durable session row
        welcome_message: Welcome message persisted by this call, if any
    """

    session: SessionHandle
    created: bool
    welcome_message: ChatMessage | None = None


class SessionManager:
    """
    In-memory session table with idle eviction.

    Args:
        session_factory: Async session factory for the durable log
        history_size: Messages kept per session history buffer
        idle_threshold: Inactivity after which a session is evicted
        sweep_interval: Period of the background eviction sweep
        clock: Source of "now", injectable for tests
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        history_size: int = 20,
        idle_threshold: timedelta = timedelta(minutes=30),
        sweep_interval: timedelta = timedelta(minutes=30),
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._session_factory = session_factory
        self.history_size = history_size
        self.idle_threshold = idle_threshold
        self.sweep_interval = sweep_interval
        self._clock = clock
        self._sessions: dict[str, SessionHandle] = {}
        self._creation_locks: dict[str, asyncio.Lock] = {}
        self._sweep_task: asyncio.Task | None = None

    @classmethod
    def from_settings(
        cls,
        settings: ChatSettings,
        session_factory: async_sessionmaker[AsyncSession],
    ) -> "SessionManager":
        return cls(
            session_factory=session_factory,
            history_size=settings.history_size,
            idle_threshold=timedelta(seconds=settings.idle_threshold_seconds),
            sweep_interval=timedelta(seconds=settings.sweep_interval_seconds),
        )

    def __len__(self) -> int:
        return len(self._sessions)

    def __contains__(self, session_id: str) -> bool:
        return session_id in self._sessions

    def get(self, session_id: str) -> SessionHandle | None:
        return self._sessions.get(session_id)

    def _new_handle(
        self,
        session_id: str,
        user_id: str | None,
        widget_id: str | None,
        created_at: datetime,
        last_activity: datetime,
    ) -> SessionHandle:
        return SessionHandle(
            id=session_id,
            user_id=user_id,
            widget_id=widget_id,
            created_at=created_at,
            last_activity=last_activity,
            history=deque(maxlen=self.history_size),
        )

    async def resume(
        self,
        session_id: str | None = None,
        widget_id: str | None = None,
        user_id: str | None = None,
    ) -> ResumeOutcome:
        """
        Return the live session for `session_id`, creating it when needed.

        A live session is returned as is. A session that exists only in storage
        is rehydrated without a welcome message. Otherwise a new session row is
        written, together with the widget's welcome message when it has one.
        Concurrent calls for the same new id create a single row.

        Args:
            session_id: Client-supplied id; generated when absent
            widget_id: Widget binding for new sessions
            user_id: Authenticated user id for new sessions

        Returns:
            ResumeOutcome

        Raises:
            PersistenceError: If the session row cannot be read or written
        """
        if session_id:
            live = self._sessions.get(session_id)
            if live is not None:
                live.touch(self._clock())
                return ResumeOutcome(session=live, created=False)

        sid = session_id or new_id()
        lock = self._creation_locks.setdefault(sid, asyncio.Lock())
        try:
            async with lock:
                live = self._sessions.get(sid)
                if live is not None:
                    live.touch(self._clock())
                    return ResumeOutcome(session=live, created=False)

                outcome = await self._load_or_create(sid, widget_id, user_id)
                self._sessions[sid] = outcome.session
                return outcome
        finally:
            self._creation_locks.pop(sid, None)

    async def _load_or_create(
        self,
        session_id: str,
        widget_id: str | None,
        user_id: str | None,
    ) -> ResumeOutcome:
        now = self._clock()
        try:
            async with self._session_factory() as db:
                row = await chat_session_crud.get_by_id(db, session_id)
                if row is not None:
                    recent = await chat_message_crud.get_recent(db, session_id, self.history_size)
                    handle = self._new_handle(
                        session_id,
                        row.user_id,
                        row.widget_id,
                        ensure_utc(row.created_at),
                        max(ensure_utc(row.last_activity), now),
                    )
                    handle.history.extend(message_from_row(m) for m in recent)
                    logger.info(
                        "Rehydrated chat session from storage",
                        extra={"session_id": session_id, "messages": len(recent)},
                    )
                    return ResumeOutcome(session=handle, created=False)

                widget = None
                if widget_id:
                    widget = await widget_crud.get_by_id(db, widget_id)
                    if widget is None:
                        logger.warning(
                            "Unknown widget, creating unbound session",
                            extra={"session_id": session_id, "widget_id": widget_id},
                        )

                bound_widget_id = widget.id if widget is not None else None
                await chat_session_crud.create(
                    db,
                    id=session_id,
                    user_id=user_id,
                    widget_id=bound_widget_id,
                    created_at=now,
                    last_activity=now,
                )

                welcome = None
                if widget is not None and widget.welcome_message:
                    welcome = ChatMessage(
                        id=new_id(),
                        session_id=session_id,
                        content=widget.welcome_message,
                        role=MessageRole.ASSISTANT,
                        timestamp=now,
                    )
                    await chat_message_crud.add_message(db, welcome)

                await db.commit()
        except SQLAlchemyError as e:
            raise PersistenceError(
                f"Failed to create chat session: {e}",
                operation="create_session",
                details={"session_id": session_id},
            ) from e

        handle = self._new_handle(session_id, user_id, bound_widget_id, now, now)
        if welcome is not None:
            handle.history.append(welcome)
        logger.info(
            "Created chat session",
            extra={
                "session_id": session_id,
                "widget_id": bound_widget_id,
                "authenticated": user_id is not None,
                "welcome": welcome is not None,
            },
        )
        return ResumeOutcome(session=handle, created=True, welcome_message=welcome)

    def append_local(self, session_id: str, message: ChatMessage) -> SessionHandle:
        """
        Append a message to the session's history buffer and refresh activity.

        Raises:
            SessionNotFoundError: If the session is not live
        """
        handle = self._sessions.get(session_id)
        if handle is None:
            raise SessionNotFoundError(session_id)
        handle.history.append(message)
        handle.touch(max(message.timestamp, self._clock()))
        return handle

    def evict_idle(
        self,
        now: datetime | None = None,
        idle_threshold: timedelta | None = None,
    ) -> list[str]:
        """
        Drop sessions idle for longer than the threshold from memory.

        Sessions with a message in flight are kept. Idempotent.

        Returns:
            Evicted session ids
        """
        now = now or self._clock()
        threshold = idle_threshold if idle_threshold is not None else self.idle_threshold
        evicted = [
            sid
            for sid, handle in self._sessions.items()
            if now - handle.last_activity > threshold and not handle.lock.locked()
        ]
        for sid in evicted:
            del self._sessions[sid]
        if evicted:
            logger.info(
                "Evicted idle chat sessions",
                extra={"count": len(evicted), "remaining": len(self._sessions)},
            )
        return evicted

    async def _sweep_loop(self) -> None:
        while True:
            await asyncio.sleep(self.sweep_interval.total_seconds())
            try:
                self.evict_idle()
            except Exception:
                logger.exception("Idle session sweep failed")

    def start(self) -> None:
        """Schedule the periodic eviction sweep on the running loop."""
        if self._sweep_task is None or self._sweep_task.done():
            self._sweep_task = asyncio.create_task(self._sweep_loop(), name="session-eviction")
            logger.info(
                "Session eviction sweep started",
                extra={"interval_seconds": self.sweep_interval.total_seconds()},
            )

    async def stop(self) -> None:
        """Cancel the eviction sweep."""
        if self._sweep_task is None:
            return
        self._sweep_task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await self._sweep_task
        self._sweep_task = None
        logger.info("Session eviction sweep stopped")
