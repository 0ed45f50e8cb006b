"""
Object Store - Path-addressed blob storage, organised in buckets.
"""

import asyncio
import logging
import os
from dataclasses import dataclass
from pathlib import Path, PurePosixPath
from typing import Dict, Optional, Protocol, Tuple

from ..exceptions import StorageError

logger = logging.getLogger(__name__)


class ObjectStore(Protocol):
    async def download(self, bucket: str, path: str) -> bytes: ...

    async def upload(self, bucket: str, path: str, data: bytes,
                     content_type: str, overwrite: bool = False) -> None: ...

    async def exists(self, bucket: str, path: str) -> bool: ...


def _validate_key(bucket: str, path: str) -> PurePosixPath:
    key = PurePosixPath(path)
    if not bucket or "/" in bucket or bucket in (".", ".."):
        raise StorageError(f"Invalid bucket name {bucket!r}")
    if not path or key.is_absolute() or ".." in key.parts:
        raise StorageError(f"Invalid object path {path!r}", context={'bucket': bucket})
    return key


class LocalObjectStore:
    """
    Stores objects as files under ``root/<bucket>/<path>``.

    Blocking file I/O runs in the default executor. Content types are not
    persisted; the file extension carries that information.
    """

    def __init__(self, root: str):
        self.root = Path(root)

    def _resolve(self, bucket: str, path: str) -> Path:
        key = _validate_key(bucket, path)
        return self.root / bucket / Path(*key.parts)

    async def download(self, bucket: str, path: str) -> bytes:
        file_path = self._resolve(bucket, path)
        loop = asyncio.get_event_loop()
        try:
            return await loop.run_in_executor(None, file_path.read_bytes)
        except OSError as e:
            raise StorageError(
                f"Failed to download {bucket}/{path}: {e.strerror or e}",
                context={'bucket': bucket, 'path': path}
            ) from e

    async def upload(self, bucket: str, path: str, data: bytes,
                     content_type: str, overwrite: bool = False) -> None:
        file_path = self._resolve(bucket, path)
        loop = asyncio.get_event_loop()
        try:
            await loop.run_in_executor(None, self._write_sync, file_path, data, overwrite)
        except FileExistsError as e:
            raise StorageError(
                f"Object {bucket}/{path} already exists",
                context={'bucket': bucket, 'path': path}
            ) from e
        except OSError as e:
            raise StorageError(
                f"Failed to upload {bucket}/{path}: {e.strerror or e}",
                context={'bucket': bucket, 'path': path}
            ) from e

        logger.info(f"Stored {bucket}/{path} ({len(data)} bytes, {content_type})")

    async def exists(self, bucket: str, path: str) -> bool:
        file_path = self._resolve(bucket, path)
        loop = asyncio.get_event_loop()
        return await loop.run_in_executor(None, file_path.is_file)

    @staticmethod
    def _write_sync(file_path: Path, data: bytes, overwrite: bool):
        if not overwrite and file_path.exists():
            raise FileExistsError(str(file_path))

        file_path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = file_path.with_name(f".{file_path.name}.tmp")
        tmp_path.write_bytes(data)
        os.replace(tmp_path, file_path)


@dataclass
class StoredObject:
    data: bytes
    content_type: str


class InMemoryObjectStore:
    """Process-local store, handy for tests and single-process runs."""

    def __init__(self, objects: Optional[Dict[Tuple[str, str], StoredObject]] = None):
        self.objects: Dict[Tuple[str, str], StoredObject] = objects if objects is not None else {}

    async def download(self, bucket: str, path: str) -> bytes:
        _validate_key(bucket, path)
        try:
            return self.objects[(bucket, path)].data
        except KeyError:
            raise StorageError(
                f"Object {bucket}/{path} not found",
                context={'bucket': bucket, 'path': path}
            ) from None

    async def upload(self, bucket: str, path: str, data: bytes,
                     content_type: str, overwrite: bool = False) -> None:
        _validate_key(bucket, path)
        if not overwrite and (bucket, path) in self.objects:
            raise StorageError(
                f"Object {bucket}/{path} already exists",
                context={'bucket': bucket, 'path': path}
            )
        self.objects[(bucket, path)] = StoredObject(bytes(data), content_type)

    async def exists(self, bucket: str, path: str) -> bool:
        _validate_key(bucket, path)
        return (bucket, path) in self.objects
