"""Async Data Access Layer for the plant_scans table.

Provides the ScanDAL class with async operations compatible with
`utils.database_init.AsyncDatabaseInitializer`.
"""

from __future__ import annotations

import time
import uuid
from dataclasses import replace
from typing import List, Optional, Sequence

from models.scan_record import ScanRecord
from utils.database_init import AsyncDatabaseInitializer


class ScanDAL:
    """Data access layer for scan records.

    The constructor accepts an `AsyncDatabaseInitializer` (or any object
    exposing an async `connection()` context manager that yields an
    `aiosqlite.Connection`).
    """

    _COLUMNS = (
        "id",
        "user_id",
        "image_path",
        "image_url",
        "disease_detected",
        "diagnosis",
        "recommendations",
        "confidence_score",
        "created_at",
    )
    _COLUMN_LIST = ", ".join(_COLUMNS)
    _PLACEHOLDERS = ", ".join("?" for _ in _COLUMNS)

    def __init__(self, db_initializer: AsyncDatabaseInitializer) -> None:
        self._db = db_initializer

    async def create_scan(self, record: ScanRecord) -> ScanRecord:
        """Insert a new scan row and return the stored record.

        Args:
            record: ScanRecord with `id=None`; id and created_at are assigned here
                unless already set.

        Returns:
            The record as persisted, including its id and creation time.
        """
        stored = replace(
            record,
            id=record.id or uuid.uuid4().hex,
            created_at=record.created_at if record.created_at is not None else time.time(),
        )

        async with self._db.connection() as conn:
            await conn.execute(
                f"INSERT INTO plant_scans ({self._COLUMN_LIST}) VALUES ({self._PLACEHOLDERS})",
                (
                    stored.id,
                    stored.user_id,
                    stored.image_path,
                    stored.image_url,
                    stored.disease_detected,
                    stored.diagnosis,
                    stored.recommendations,
                    stored.confidence_score,
                    stored.created_at,
                ),
            )
            await conn.commit()
        return stored

    async def get_scan(self, scan_id: str) -> Optional[ScanRecord]:
        """Return the ScanRecord for `scan_id`, or None if not found."""
        async with self._db.connection() as conn:
            cur = await conn.execute(
                f"SELECT {self._COLUMN_LIST} FROM plant_scans WHERE id = ?",
                (scan_id,),
            )
            row = await cur.fetchone()
            return self._row_to_record(row) if row else None

    async def list_scans_for_user(self, user_id: str, limit: int = 100, offset: int = 0) -> List[ScanRecord]:
        """List a user's scans, newest first.

        Args:
            user_id: Identity whose scans are listed.
            limit: Maximum number of rows to return.
            offset: Rows to skip.
        """
        async with self._db.connection() as conn:
            cur = await conn.execute(
                f"SELECT {self._COLUMN_LIST} FROM plant_scans WHERE user_id = ? "
                "ORDER BY created_at DESC, rowid DESC LIMIT ? OFFSET ?",
                (user_id, limit, offset),
            )
            rows = await cur.fetchall()
            return [self._row_to_record(r) for r in rows]

    async def delete_scan(self, scan_id: str) -> bool:
        """Delete a scan row by id. Returns True if a row was deleted."""
        async with self._db.connection() as conn:
            await conn.execute("DELETE FROM plant_scans WHERE id = ?", (scan_id,))
            await conn.commit()
            cur = await conn.execute("SELECT changes()")
            changed = await cur.fetchone()
            return bool(changed and changed[0] > 0)

    @staticmethod
    def _row_to_record(row: Sequence[object]) -> ScanRecord:
        """Convert a DB row tuple into a ScanRecord."""
        return ScanRecord(
            id=row[0],
            user_id=row[1],
            image_path=row[2],
            image_url=row[3],
            disease_detected=row[4],
            diagnosis=row[5],
            recommendations=row[6],
            confidence_score=row[7],
            created_at=row[8],
        )
