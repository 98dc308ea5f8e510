"""SQLite conversation log.

Durable, best-effort audit log of every message exchanged with the
assistant. Rows are scoped by a session id generated once per process,
so clearing the conversation only removes the current run's rows.
Uses aiosqlite for async access from the background event loop.
"""

import asyncio
import logging
from datetime import datetime
from pathlib import Path
from uuid import uuid4

import aiosqlite

logger = logging.getLogger(__name__)


class ConversationLog:
    """SQLite-backed message log.

    The connection is opened lazily on first use, from whatever event
    loop the first call runs on.
    """

    def __init__(self, path: str | Path = "data/clippy.db", session_id: str | None = None):
        self._db_path = Path(path)
        self.session_id = session_id or uuid4().hex
        self._connection: aiosqlite.Connection | None = None
        self._connect_lock = asyncio.Lock()

    async def connect(self) -> None:
        """Initialize database connection and schema."""
        async with self._connect_lock:
            if self._connection is not None:
                return
            if str(self._db_path) != ":memory:":
                self._db_path.parent.mkdir(parents=True, exist_ok=True)
            self._connection = await aiosqlite.connect(self._db_path)
            await self._create_schema()
        logger.info(f"✓ Conversation log ready at {self._db_path} (session {self.session_id[:8]})")

    async def _create_schema(self) -> None:
        await self._connection.execute("""
            CREATE TABLE IF NOT EXISTS messages (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                session_id TEXT NOT NULL,
                role TEXT NOT NULL,
                content TEXT NOT NULL,
                model TEXT NOT NULL,
                created_at TEXT NOT NULL
            )
        """)
        await self._connection.execute("""
            CREATE INDEX IF NOT EXISTS idx_messages_session
            ON messages(session_id, id)
        """)
        await self._connection.commit()

    async def disconnect(self) -> None:
        """Close database connection."""
        if self._connection:
            await self._connection.close()
            self._connection = None

    async def append(self, role: str, content: str, backend_label: str) -> None:
        """Store one message of the current session."""
        await self.connect()
        await self._connection.execute(
            """
            INSERT INTO messages (session_id, role, content, model, created_at)
            VALUES (?, ?, ?, ?, ?)
            """,
            (self.session_id, role, content, backend_label, datetime.now().isoformat()),
        )
        await self._connection.commit()

    async def append_turn(self, user_text: str, reply: str, backend_label: str) -> None:
        """Store a user message and its reply in one transaction."""
        await self.connect()
        created_at = datetime.now().isoformat()
        await self._connection.executemany(
            """
            INSERT INTO messages (session_id, role, content, model, created_at)
            VALUES (?, ?, ?, ?, ?)
            """,
            [
                (self.session_id, "user", user_text, backend_label, created_at),
                (self.session_id, "assistant", reply, backend_label, created_at),
            ],
        )
        await self._connection.commit()

    async def clear_current_session(self) -> int:
        """Delete the current session's rows. Returns the number removed."""
        await self.connect()
        cursor = await self._connection.execute(
            "DELETE FROM messages WHERE session_id = ?", (self.session_id,)
        )
        await self._connection.commit()
        return cursor.rowcount

    async def session_messages(self) -> list[tuple[str, str, str]]:
        """(role, content, model) rows of the current session, oldest first."""
        await self.connect()
        async with self._connection.execute(
            "SELECT role, content, model FROM messages WHERE session_id = ? ORDER BY id ASC",
            (self.session_id,),
        ) as cursor:
            rows = await cursor.fetchall()
        return [tuple(row) for row in rows]

    async def stats(self) -> str:
        """Human readable summary of what the log contains."""
        await self.connect()

        async with self._connection.execute(
            "SELECT COUNT(*) FROM messages WHERE session_id = ?", (self.session_id,)
        ) as cursor:
            (in_session,) = await cursor.fetchone()

        async with self._connection.execute(
            "SELECT COUNT(*), COUNT(DISTINCT session_id) FROM messages"
        ) as cursor:
            total, sessions = await cursor.fetchone()

        async with self._connection.execute(
            "SELECT model, COUNT(*) FROM messages GROUP BY model ORDER BY COUNT(*) DESC"
        ) as cursor:
            per_model = await cursor.fetchall()

        lines = [
            "📊 Статистика:",
            f"• Сообщений в сессии: {in_session}",
            f"• Всего сообщений: {total}",
            f"• Сессий: {sessions}",
        ]
        for model, count in per_model:
            lines.append(f"• {model}: {count}")
        return "\n".join(lines)
