"""SQLite storage adapter.

Implements the core StoragePort using a simple SQLite database. SQLite
serializes writers internally, which is all the locking the core needs.
"""

from __future__ import annotations

import logging
import sqlite3
from contextlib import contextmanager
from typing import Iterator

from core.errors import PersistenceError
from core.models import Rule, Schedule

LOGGER = logging.getLogger(__name__)


class SQLiteStorage:
    """Thin SQLite wrapper that satisfies the StoragePort contract."""

    def __init__(self, db_path: str) -> None:
        self._db_path = db_path

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self._db_path)
        conn.row_factory = sqlite3.Row
        return conn

    @contextmanager
    def _transaction(self) -> Iterator[sqlite3.Connection]:
        """Yield a connection that commits on success and always closes.

        Any sqlite3 error is logged and re-raised as PersistenceError so the
        caller can abort without touching its in-memory state.
        """

        try:
            conn = self._connect()
        except sqlite3.Error as exc:
            LOGGER.exception("Failed to open database %s", self._db_path)
            raise PersistenceError() from exc
        try:
            with conn:
                yield conn
        except sqlite3.Error as exc:
            LOGGER.exception("Database operation failed")
            raise PersistenceError() from exc
        finally:
            conn.close()

    def init_db(self) -> None:
        """Create tables if they do not exist.

        Tables:
        - rules: trigger -> reply, listed in insertion order (rowid)
        - authorized_numbers: contacts allowed on the secondary channel
        - schedules: daily sends, keyed by "<contact>_<HH:MM>"
        """

        with self._transaction() as conn:
            # "trigger" is an SQL keyword, so it is always quoted.
            # Fields:
            # - trigger: lower-cased match text (PRIMARY KEY)
            # - reply: text sent back when the trigger matches
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS rules (
                    "trigger" TEXT PRIMARY KEY,
                    reply TEXT NOT NULL
                )
                """
            )
            # Fields:
            # - contact_id: normalized digits with country code (PRIMARY KEY)
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS authorized_numbers (
                    contact_id TEXT PRIMARY KEY
                )
                """
            )
            # Fields:
            # - id: contact_id + "_" + HH:MM, also the dedup key (PRIMARY KEY)
            # - contact_id: destination on the secondary channel
            # - message: text to send
            # - hour/minute: local wall-clock time of the daily send
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS schedules (
                    id TEXT PRIMARY KEY,
                    contact_id TEXT NOT NULL,
                    message TEXT NOT NULL,
                    hour INTEGER NOT NULL,
                    minute INTEGER NOT NULL
                )
                """
            )

    def list_rules(self) -> list[Rule]:
        """Return all rules in storage order."""

        with self._transaction() as conn:
            rows = conn.execute('SELECT "trigger", reply FROM rules ORDER BY rowid').fetchall()
        return [Rule(trigger=row["trigger"], reply=row["reply"]) for row in rows]

    def upsert_rule(self, trigger: str, reply: str) -> None:
        """Insert or overwrite a rule; an overwrite keeps its position."""

        with self._transaction() as conn:
            conn.execute(
                """
                INSERT INTO rules ("trigger", reply)
                VALUES (?, ?)
                ON CONFLICT("trigger") DO UPDATE SET reply = excluded.reply
                """,
                (trigger, reply),
            )

    def delete_rule(self, trigger: str) -> bool:
        with self._transaction() as conn:
            cur = conn.execute('DELETE FROM rules WHERE "trigger" = ?', (trigger,))
            return cur.rowcount > 0

    def list_contacts(self) -> list[str]:
        with self._transaction() as conn:
            rows = conn.execute("SELECT contact_id FROM authorized_numbers ORDER BY rowid").fetchall()
        return [row["contact_id"] for row in rows]

    def has_contact(self, contact_id: str) -> bool:
        with self._transaction() as conn:
            row = conn.execute(
                "SELECT 1 FROM authorized_numbers WHERE contact_id = ?",
                (contact_id,),
            ).fetchone()
        return row is not None

    def add_contact(self, contact_id: str) -> bool:
        """Insert a contact if it does not exist; True when a row was added."""

        with self._transaction() as conn:
            cur = conn.execute(
                "INSERT OR IGNORE INTO authorized_numbers (contact_id) VALUES (?)",
                (contact_id,),
            )
            return cur.rowcount > 0

    def delete_contact(self, contact_id: str) -> bool:
        with self._transaction() as conn:
            cur = conn.execute("DELETE FROM authorized_numbers WHERE contact_id = ?", (contact_id,))
            return cur.rowcount > 0

    def list_schedules(self) -> list[Schedule]:
        with self._transaction() as conn:
            rows = conn.execute(
                "SELECT contact_id, message, hour, minute FROM schedules ORDER BY rowid"
            ).fetchall()
        return [
            Schedule(
                contact_id=row["contact_id"],
                message=row["message"],
                hour=int(row["hour"]),
                minute=int(row["minute"]),
            )
            for row in rows
        ]

    def upsert_schedule(self, schedule: Schedule) -> None:
        with self._transaction() as conn:
            conn.execute(
                """
                INSERT INTO schedules (id, contact_id, message, hour, minute)
                VALUES (?, ?, ?, ?, ?)
                ON CONFLICT(id) DO UPDATE SET
                    contact_id = excluded.contact_id,
                    message = excluded.message,
                    hour = excluded.hour,
                    minute = excluded.minute
                """,
                (schedule.id, schedule.contact_id, schedule.message, schedule.hour, schedule.minute),
            )

    def delete_schedule(self, schedule_id: str) -> bool:
        with self._transaction() as conn:
            cur = conn.execute("DELETE FROM schedules WHERE id = ?", (schedule_id,))
            return cur.rowcount > 0
