"""SQLite conversation store.

Provides persistent conversation storage using a SQLite database file.
Uses aiosqlite for async access.
"""

import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

import aiosqlite

from ..config import DEFAULT_CONVERSATION_TITLE
from .base import ConversationStore
from .models import ConversationRecord, MessageRecord


class SQLiteConversationStore(ConversationStore):
    """SQLite-backed conversation store.

    Supports persistent storage across sessions.
    """

    def __init__(self, path: str | Path = "./lexa_conversations.db"):
        self._db_path = Path(path)
        self._connection: aiosqlite.Connection | None = None

    async def connect(self) -> None:
        """Initialize database connection and schema."""
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        self._connection = await aiosqlite.connect(self._db_path)
        await self._connection.execute("PRAGMA foreign_keys = ON")
        await self._create_schema()

    async def _create_schema(self) -> None:
        """Create database tables."""
        await self._connection.execute("""
            CREATE TABLE IF NOT EXISTS chat_conversations (
                id TEXT PRIMARY KEY,
                user_id TEXT,
                title TEXT NOT NULL,
                created_at TEXT NOT NULL,
                updated_at TEXT NOT NULL
            )
        """)

        await self._connection.execute("""
            CREATE TABLE IF NOT EXISTS chat_messages (
                id TEXT PRIMARY KEY,
                conversation_id TEXT NOT NULL,
                seq INTEGER NOT NULL,
                role TEXT NOT NULL CHECK (role IN ('user', 'assistant', 'system')),
                content TEXT NOT NULL,
                agent_name TEXT,
                metadata TEXT,
                created_at TEXT NOT NULL,
                FOREIGN KEY (conversation_id) REFERENCES chat_conversations(id) ON DELETE CASCADE
            )
        """)

        await self._connection.execute("""
            CREATE INDEX IF NOT EXISTS idx_chat_messages_conversation
            ON chat_messages(conversation_id, seq)
        """)

        await self._connection.commit()

    async def disconnect(self) -> None:
        """Close database connection."""
        if self._connection:
            await self._connection.close()
            self._connection = None

    def _require_connection(self) -> aiosqlite.Connection:
        if self._connection is None:
            raise RuntimeError("SQLite conversation store is not connected")
        return self._connection

    async def create_conversation(
        self,
        user_id: str | None = None,
        title: str | None = None
    ) -> ConversationRecord:
        connection = self._require_connection()
        record = ConversationRecord(
            user_id=user_id,
            title=title or DEFAULT_CONVERSATION_TITLE,
        )
        await connection.execute("""
            INSERT INTO chat_conversations (id, user_id, title, created_at, updated_at)
            VALUES (?, ?, ?, ?, ?)
        """, (
            record.id,
            record.user_id,
            record.title,
            record.created_at.isoformat(),
            record.updated_at.isoformat(),
        ))
        await connection.commit()
        return record

    async def append_message(
        self,
        conversation_id: str,
        role: str,
        content: str,
        agent_name: str | None = None,
        metadata: dict[str, Any] | None = None
    ) -> MessageRecord:
        connection = self._require_connection()

        async with connection.execute(
            "SELECT COALESCE(MAX(seq), 0) + 1 FROM chat_messages WHERE conversation_id = ?",
            (conversation_id,)
        ) as cursor:
            row = await cursor.fetchone()
            seq = row[0]

        record = MessageRecord(
            conversation_id=conversation_id,
            seq=seq,
            role=role,
            content=content,
            agent_name=agent_name,
            metadata=metadata,
        )

        await connection.execute("""
            INSERT INTO chat_messages
            (id, conversation_id, seq, role, content, agent_name, metadata, created_at)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?)
        """, (
            record.id,
            record.conversation_id,
            record.seq,
            record.role,
            record.content,
            record.agent_name,
            json.dumps(record.metadata) if record.metadata is not None else None,
            record.created_at.isoformat(),
        ))

        await connection.execute(
            "UPDATE chat_conversations SET updated_at = ? WHERE id = ?",
            (datetime.now(timezone.utc).isoformat(), conversation_id)
        )

        await connection.commit()
        return record

    async def get_messages(self, conversation_id: str) -> list[MessageRecord]:
        connection = self._require_connection()

        async with connection.execute(
            """
            SELECT id, seq, role, content, agent_name, metadata, created_at
            FROM chat_messages
            WHERE conversation_id = ?
            ORDER BY seq ASC
            """,
            (conversation_id,)
        ) as cursor:
            rows = await cursor.fetchall()

        records = []
        for row in rows:
            message_id, seq, role, content, agent_name, metadata_json, ts = row
            records.append(MessageRecord(
                id=message_id,
                conversation_id=conversation_id,
                seq=seq,
                role=role,
                content=content,
                agent_name=agent_name,
                metadata=json.loads(metadata_json) if metadata_json else None,
                created_at=datetime.fromisoformat(ts),
            ))

        return records

    @property
    def backend_type(self) -> str:
        return "sqlite"

    @property
    def db_path(self) -> Path:
        return self._db_path
