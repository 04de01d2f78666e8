# ltm_mem/storage/sqlite_store.py

import hashlib
import json
import logging
import os
import sqlite3
import threading
from datetime import datetime, timezone
from typing import Any, Optional
from uuid import uuid4

from ..exceptions import StorageError
from ..models import MEMORY_TYPES, ChatSession, MemoryModel

logger = logging.getLogger(__name__)

_ORDER_COLUMNS = {
    "updated_at": "updated_at DESC, rowid DESC",
    "created_at": "created_at DESC, rowid DESC",
}


def now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def summary_fingerprint(summary: str) -> str:
    """Hash of the lower-cased, whitespace-collapsed summary."""
    normalized = " ".join(summary.lower().split())
    return hashlib.sha256(normalized.encode("utf-8")).hexdigest()


class SqliteStore:
    """
    SQLite-backed datastore for memories and the sessions they are checked against.

    - one shared connection guarded by an RLock
    - (user_id, memory_type, summary_fingerprint) is unique, so concurrent
      extractions cannot persist the same summary twice
    - sqlite3 errors are logged and re-raised as StorageError
    """

    def __init__(self, path: str = "~/.ltm_mem/memories.db") -> None:
        if path == ":memory:":
            self.path = path
        else:
            self.path = os.path.expanduser(path)
            os.makedirs(os.path.dirname(self.path) or ".", exist_ok=True)
        self._lock = threading.RLock()
        self.conn = sqlite3.connect(self.path, check_same_thread=False)
        self.conn.row_factory = sqlite3.Row
        self._init_schema()

    def _init_schema(self) -> None:
        with self._lock:
            cur = self.conn.cursor()
            cur.execute(
                """
                CREATE TABLE IF NOT EXISTS chat_sessions (
                    id TEXT PRIMARY KEY,
                    user_id TEXT NOT NULL,
                    title TEXT,
                    created_at TEXT NOT NULL
                );
                """
            )
            cur.execute(
                """
                CREATE TABLE IF NOT EXISTS memories (
                    id TEXT PRIMARY KEY,
                    user_id TEXT NOT NULL,
                    embedding TEXT NOT NULL,
                    memory_type TEXT NOT NULL,
                    summary TEXT NOT NULL,
                    summary_fingerprint TEXT NOT NULL,
                    full_text TEXT NOT NULL,
                    details TEXT,
                    confidence_score REAL,
                    created_at TEXT NOT NULL,
                    updated_at TEXT NOT NULL
                );
                """
            )
            cur.execute("CREATE INDEX IF NOT EXISTS idx_mem_user ON memories(user_id);")
            cur.execute(
                "CREATE INDEX IF NOT EXISTS idx_mem_user_type ON memories(user_id, memory_type);"
            )
            cur.execute(
                "CREATE UNIQUE INDEX IF NOT EXISTS idx_mem_fingerprint "
                "ON memories(user_id, memory_type, summary_fingerprint);"
            )
            self.conn.commit()

    def _execute(self, sql: str, params: tuple | list = ()) -> sqlite3.Cursor:
        with self._lock:
            try:
                cur = self.conn.cursor()
                cur.execute(sql, params)
                self.conn.commit()
                return cur
            except sqlite3.Error as e:
                self.conn.rollback()
                logger.exception("[SqliteStore] query failed")
                raise StorageError(f"Datastore operation failed: {e}") from e

    def _query(self, sql: str, params: tuple | list = ()) -> list[sqlite3.Row]:
        with self._lock:
            return self._execute(sql, params).fetchall()

    @staticmethod
    def _row_to_model(row: sqlite3.Row) -> MemoryModel:
        return MemoryModel(
            id=row["id"],
            user_id=row["user_id"],
            embedding=json.loads(row["embedding"]),
            memory_type=row["memory_type"],
            summary=row["summary"],
            full_text=row["full_text"],
            details=json.loads(row["details"]) if row["details"] else None,
            confidence_score=row["confidence_score"],
            created_at=row["created_at"],
            updated_at=row["updated_at"],
        )

    # ------------------------------------------------------------------ #
    # Sessions
    # ------------------------------------------------------------------ #

    def create_session(self, user_id: str, title: str | None = None) -> ChatSession:
        session = ChatSession(id=str(uuid4()), user_id=user_id, title=title, created_at=now_iso())
        self._execute(
            "INSERT INTO chat_sessions (id, user_id, title, created_at) VALUES (?, ?, ?, ?);",
            (session.id, session.user_id, session.title, session.created_at),
        )
        return session

    def get_session(self, session_id: str) -> ChatSession | None:
        rows = self._query("SELECT * FROM chat_sessions WHERE id = ? LIMIT 1;", (session_id,))
        if not rows:
            return None
        row = rows[0]
        return ChatSession(
            id=row["id"], user_id=row["user_id"], title=row["title"], created_at=row["created_at"]
        )

    # ------------------------------------------------------------------ #
    # Memories
    # ------------------------------------------------------------------ #

    def insert_memory(
        self,
        user_id: str,
        memory_type: str,
        summary: str,
        full_text: str,
        embedding: list[float],
        details: dict[str, Any] | None = None,
        confidence_score: float | None = None,
    ) -> MemoryModel | None:
        """
        Insert a memory and return it with its generated id and timestamps.

        Returns None when the same summary already exists for this
        (user, type); the unique fingerprint index decides.
        """
        ts = now_iso()
        mem = MemoryModel(
            id=str(uuid4()),
            user_id=user_id,
            embedding=embedding,
            memory_type=memory_type,
            summary=summary,
            full_text=full_text,
            details=details,
            confidence_score=confidence_score,
            created_at=ts,
            updated_at=ts,
        )
        cur = self._execute(
            """
            INSERT OR IGNORE INTO memories (
                id,
                user_id,
                embedding,
                memory_type,
                summary,
                summary_fingerprint,
                full_text,
                details,
                confidence_score,
                created_at,
                updated_at
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                mem.id,
                mem.user_id,
                json.dumps(mem.embedding),
                mem.memory_type,
                mem.summary,
                summary_fingerprint(mem.summary),
                mem.full_text,
                json.dumps(mem.details) if mem.details is not None else None,
                mem.confidence_score,
                mem.created_at,
                mem.updated_at,
            ),
        )
        if cur.rowcount == 0:
            logger.debug("[SqliteStore.insert_memory] fingerprint conflict for user=%s", user_id)
            return None
        return mem

    def get_by_id(self, mem_id: str) -> MemoryModel | None:
        rows = self._query("SELECT * FROM memories WHERE id = ? LIMIT 1;", (mem_id,))
        if not rows:
            return None
        return self._row_to_model(rows[0])

    def list_by_user(
        self,
        user_id: str,
        memory_type: str | None = None,
        order_by: str = "updated_at",
        limit: int = 50,
        offset: int = 0,
    ) -> list[MemoryModel]:
        order = _ORDER_COLUMNS.get(order_by)
        if order is None:
            raise ValueError(f"unsupported ordering: {order_by}")

        sql = "SELECT * FROM memories WHERE user_id = ?"
        params: list[Any] = [user_id]
        if memory_type is not None:
            sql += " AND memory_type = ?"
            params.append(memory_type)
        sql += f" ORDER BY {order} LIMIT ? OFFSET ?;"
        params.extend([limit, offset])

        rows = self._query(sql, params)
        return [self._row_to_model(r) for r in rows]

    def delete_memory(self, mem_id: str, user_id: str) -> bool:
        """Delete a memory owned by user_id. False when nothing matched."""
        cur = self._execute(
            "DELETE FROM memories WHERE id = ? AND user_id = ?;",
            (mem_id, user_id),
        )
        return cur.rowcount > 0

    def memory_stats(self, user_id: str, since: str) -> dict[str, Any]:
        """Aggregate counts for one user; `since` bounds the recent window."""
        by_type = {t: 0 for t in MEMORY_TYPES}
        for row in self._query(
            "SELECT memory_type, COUNT(*) AS n FROM memories WHERE user_id = ? GROUP BY memory_type;",
            (user_id,),
        ):
            by_type[row["memory_type"]] = row["n"]

        row = self._query(
            """
            SELECT
                COUNT(*) AS total,
                SUM(CASE WHEN created_at >= ? THEN 1 ELSE 0 END) AS recent,
                AVG(confidence_score) AS avg_conf
            FROM memories
            WHERE user_id = ?;
            """,
            (since, user_id),
        )[0]

        avg_conf: Optional[float] = row["avg_conf"]
        return {
            "total_memories": row["total"],
            "memories_by_type": by_type,
            "recent_memories": row["recent"] or 0,
            "avg_confidence_score": round(avg_conf, 3) if avg_conf is not None else None,
        }

    def close(self) -> None:
        with self._lock:
            self.conn.close()
