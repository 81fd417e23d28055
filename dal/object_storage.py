"""Async local object storage for scanned plant images.

Objects are written under `<root_dir>/<bucket>/<path>` using `aiofiles` and
addressed publicly as `<public_base_url>/<bucket>/<path>`; the FastAPI app
mounts the bucket directory so these URLs resolve.
"""

from __future__ import annotations

import logging
from pathlib import Path, PurePosixPath
from typing import Optional
from urllib.parse import quote, unquote

import aiofiles
import aiofiles.os

from models.scan_errors import StorageError

LOGGER = logging.getLogger(__name__)


class LocalObjectStorage:
	"""Filesystem backed object store with public URL resolution.

	Usage:
		storage = LocalObjectStorage("./storage", "http://localhost:8000")
		await storage.put("u1/1700000000000.jpg", data)
		url = storage.resolve_public_url("u1/1700000000000.jpg")
	"""

	def __init__(self, root_dir: str | Path, public_base_url: str, bucket: str = "plant-images") -> None:
		self.bucket = bucket.strip("/")
		self.bucket_dir = Path(root_dir).expanduser().resolve() / self.bucket
		self.public_base_url = public_base_url.rstrip("/")

	def _resolve(self, path: str) -> Path:
		"""Map an object path to a file under the bucket directory.

		Raises:
			StorageError: If the path is empty, absolute or escapes the bucket.
		"""
		parts = PurePosixPath(path or "").parts
		if not parts or path.startswith("/") or any(part in ("..", ".") for part in parts):
			raise StorageError(f"Invalid object path: {path!r}")
		return self.bucket_dir.joinpath(*parts)

	async def put(self, path: str, data: bytes) -> None:
		"""Write `data` at `path`. Existing objects are never overwritten.

		Raises:
			StorageError: If the object already exists or the write fails.
		"""
		target = self._resolve(path)
		try:
			await aiofiles.os.makedirs(target.parent, exist_ok=True)
			async with aiofiles.open(target, "xb") as f:
				await f.write(data)
		except FileExistsError as exc:
			raise StorageError(f"Object already exists: {path}") from exc
		except OSError as exc:
			raise StorageError(f"Failed to write object {path}: {exc}") from exc
		LOGGER.debug("Stored %d bytes at %s", len(data), target)

	def resolve_public_url(self, path: str) -> str:
		"""Return the public URL for an object path.

		Path segments are percent-encoded so identities with reserved
		characters (`#`, `?`, spaces) still address the stored object.
		"""
		self._resolve(path)
		return f"{self.public_base_url}/{self.bucket}/{quote(path, safe='/')}"

	def path_from_url(self, url: str) -> Optional[str]:
		"""Recover the object path from a public URL, or None if it is not ours."""
		marker = f"/{self.bucket}/"
		if not url or marker not in url:
			return None
		path = unquote(url.split(marker, 1)[1])
		return path or None

	async def delete(self, path: str) -> bool:
		"""Delete the object at `path`. Returns False if it did not exist.

		Raises:
			StorageError: If the object exists but cannot be removed.
		"""
		target = self._resolve(path)
		try:
			await aiofiles.os.remove(target)
		except FileNotFoundError:
			return False
		except OSError as exc:
			raise StorageError(f"Failed to delete object {path}: {exc}") from exc
		return True
