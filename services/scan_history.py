"""Scan history: list a user's scans and delete them together with their images."""

from __future__ import annotations

import logging
from typing import List

from dal.object_storage import LocalObjectStorage
from dal.scan_dal import ScanDAL
from models.scan_errors import StorageError
from models.scan_record import ScanRecord

LOGGER = logging.getLogger(__name__)


class ScanNotFound(KeyError):
    """Raised when a scan does not exist or belongs to another user."""


class ScanHistoryService:
    """Read and prune the scan history of one identity."""

    def __init__(self, records: ScanDAL, storage: LocalObjectStorage) -> None:
        self._records = records
        self._storage = storage

    async def list_scans(self, identity: str, limit: int = 100, offset: int = 0) -> List[ScanRecord]:
        """Return the user's scans, newest first."""
        return await self._records.list_scans_for_user(identity, limit=limit, offset=offset)

    async def delete_scan(self, identity: str, scan_id: str) -> ScanRecord:
        """Delete a scan record and then its image.

        The record goes first so it can never point at a deleted image. If the
        image cannot be removed afterwards it is left orphaned and logged.

        Raises:
            ScanNotFound: If the scan is missing or owned by someone else.
        """
        record = await self._records.get_scan(scan_id)
        if record is None or record.user_id != identity:
            raise ScanNotFound(scan_id)

        if not await self._records.delete_scan(scan_id):
            raise ScanNotFound(scan_id)

        path = record.image_path or self._storage.path_from_url(record.image_url)
        if path:
            try:
                removed = await self._storage.delete(path)
            except StorageError:
                LOGGER.exception("Scan %s deleted but its image %s could not be removed", scan_id, path)
            else:
                if not removed:
                    LOGGER.warning("Scan %s deleted; image %s was already gone", scan_id, path)
        LOGGER.info("Deleted scan %s for user %s", scan_id, identity)
        return record
