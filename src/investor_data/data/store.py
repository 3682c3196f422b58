"""Keyed, timestamped local store for cached API payloads."""

import hashlib
import logging
import os
import sqlite3
import tempfile
import time
from collections.abc import Callable
from pathlib import Path
from typing import Any, TypeVar

import diskcache

from investor_data import CACHE_SCHEMA_VERSION
from investor_data.config import DEFAULT_CACHE_DIR, DEFAULT_INLINE_THRESHOLD
from investor_data.errors import StorageError

logger = logging.getLogger(__name__)

T = TypeVar("T")

_MEDIUM_INLINE = "inline"
_MEDIUM_FILE = "file"


class PersistentCacheStore:
    """
    One slot per key: a payload record plus a paired "<key>.timestamp" record.

    Small payloads live inline in a diskcache register. Payloads larger than
    ``inline_threshold_bytes`` (a full market's stock list runs to several MB)
    are written to a content-addressed file and the register only holds a
    pointer. Every record carries a sha256 prefix; anything that fails to
    verify or decode reads back as a miss.
    """

    def __init__(
        self,
        cache_dir: str | os.PathLike[str] | None = None,
        *,
        inline_threshold_bytes: int = DEFAULT_INLINE_THRESHOLD,
        clock: Callable[[], float] = time.time,
    ):
        if cache_dir is None:
            cache_dir = os.environ.get("INVESTOR_CACHE_DIR", DEFAULT_CACHE_DIR)
        self._root = Path(cache_dir)
        self._files_dir = self._root / "files"
        self._files_dir.mkdir(parents=True, exist_ok=True)
        self.records: diskcache.Cache = diskcache.Cache(str(self._root / "records"))
        self._inline_threshold = inline_threshold_bytes
        self._clock = clock

    @staticmethod
    def data_key(key: str) -> str:
        return f"{key}.data"

    @staticmethod
    def timestamp_key(key: str) -> str:
        return f"{key}.timestamp"

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def put(
        self,
        key: str,
        value: T,
        encode: Callable[[T], bytes],
        *,
        stored_at: float | None = None,
    ) -> float:
        """
        Encode and store value under key, all-or-nothing.

        Args:
            key: Slot key (e.g. "stock_list:US")
            value: Value to persist
            encode: Serializer producing the payload bytes
            stored_at: Epoch seconds for the timestamp record (default: now)

        Returns:
            The timestamp written for the slot

        Raises:
            StorageError: If encoding fails or the write cannot be committed.
                The previous slot content stays readable in that case.
        """
        try:
            blob = encode(value)
        except Exception as e:
            raise StorageError(key, f"encode failed: {e}") from e
        if not isinstance(blob, (bytes, bytearray)):
            raise StorageError(key, f"encoder returned {type(blob).__name__}, expected bytes")
        blob = bytes(blob)

        digest = hashlib.sha256(blob).hexdigest()
        timestamp = self._clock() if stored_at is None else stored_at
        record: dict[str, Any] = {
            "schema": CACHE_SCHEMA_VERSION,
            "hash": digest[:16],
            "size_bytes": len(blob),
        }

        previous = self._read_record(key)
        new_file: str | None = None
        try:
            if len(blob) > self._inline_threshold:
                new_file = self._write_file(key, blob, digest)
                record["medium"] = _MEDIUM_FILE
                record["file"] = new_file
            else:
                record["medium"] = _MEDIUM_INLINE
                record["payload"] = blob

            # Payload pointer and timestamp must never disagree
            with self.records.transact():
                self.records.set(self.data_key(key), record)
                self.records.set(self.timestamp_key(key), timestamp)
        except (OSError, sqlite3.Error) as e:
            if new_file is not None and new_file != _file_of(previous):
                self._remove_file(new_file)
            raise StorageError(key, str(e)) from e

        old_file = _file_of(previous)
        if old_file is not None and old_file != new_file:
            self._remove_file(old_file)

        logger.debug(
            f"cache put {key}: {len(blob)} bytes ({record['medium']}), hash={record['hash']}"
        )
        return timestamp

    def _write_file(self, key: str, blob: bytes, digest: str) -> str:
        key_hash = hashlib.sha256(key.encode("utf-8")).hexdigest()[:16]
        name = f"{key_hash}-{digest[:16]}.bin"
        final_path = self._files_dir / name

        fd, tmp_path = tempfile.mkstemp(dir=self._files_dir, prefix=".tmp-", suffix=".bin")
        try:
            with os.fdopen(fd, "wb") as f:
                f.write(blob)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_path, final_path)
        except OSError:
            Path(tmp_path).unlink(missing_ok=True)
            raise
        return name

    def _remove_file(self, name: str) -> None:
        try:
            (self._files_dir / name).unlink(missing_ok=True)
        except OSError as e:
            logger.warning(f"Could not remove stale cache file {name}: {e}")

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def _read_record(self, key: str) -> dict[str, Any] | None:
        try:
            record = self.records.get(self.data_key(key))
        except Exception as e:
            logger.warning(f"cache record for {key} unreadable, treating as miss: {e}")
            return None
        if record is None:
            return None
        if (
            not isinstance(record, dict)
            or record.get("schema") != CACHE_SCHEMA_VERSION
            or record.get("medium") not in (_MEDIUM_INLINE, _MEDIUM_FILE)
        ):
            logger.warning(f"cache record for {key} has unexpected layout, treating as miss")
            return None
        return record

    def _read_payload(self, key: str, record: dict[str, Any]) -> bytes | None:
        if record["medium"] == _MEDIUM_INLINE:
            blob = record.get("payload")
            if not isinstance(blob, bytes):
                return None
        else:
            path = self._files_dir / str(record.get("file"))
            try:
                blob = path.read_bytes()
            except FileNotFoundError:
                logger.warning(f"cache file for {key} is missing, treating as miss")
                return None
            except OSError as e:
                logger.warning(f"cache file for {key} unreadable, treating as miss: {e}")
                return None

        if hashlib.sha256(blob).hexdigest()[:16] != record.get("hash"):
            logger.warning(f"cache payload for {key} failed checksum, treating as miss")
            return None
        return blob

    def get_bytes(self, key: str) -> bytes | None:
        """Raw payload bytes for key, or None on any miss."""
        record = self._read_record(key)
        if record is None:
            return None
        return self._read_payload(key, record)

    def get(self, key: str, decode: Callable[[bytes], T]) -> T | None:
        """
        Decode the payload stored under key.

        Returns:
            Decoded value, or None if the slot is absent, its backing file is
            gone, or the bytes fail to verify or decode
        """
        blob = self.get_bytes(key)
        if blob is None:
            return None
        try:
            return decode(blob)
        except Exception as e:
            logger.warning(f"cached payload for {key} failed to decode, treating as miss: {e}")
            return None

    def timestamp(self, key: str) -> float | None:
        """Epoch seconds of the last successful put, or None."""
        try:
            value = self.records.get(self.timestamp_key(key))
        except Exception as e:
            logger.warning(f"cache timestamp for {key} unreadable: {e}")
            return None
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            return None
        return float(value)

    def exists(self, key: str) -> bool:
        """Check if key has a payload record."""
        return self.data_key(key) in self.records

    # ------------------------------------------------------------------
    # Clearing
    # ------------------------------------------------------------------

    def clear(self, key: str) -> None:
        """
        Remove payload, backing file and timestamp. No-op for unknown keys.

        Raises:
            StorageError: If the register cannot be updated
        """
        record = self._read_record(key)
        try:
            with self.records.transact():
                self.records.pop(self.data_key(key), default=None)
                self.records.pop(self.timestamp_key(key), default=None)
        except (OSError, sqlite3.Error) as e:
            raise StorageError(key, f"clear failed: {e}") from e
        old_file = _file_of(record)
        if old_file is not None:
            self._remove_file(old_file)
        logger.debug(f"cache cleared {key}")

    def clear_prefix(self, prefix: str) -> int:
        """Clear every slot whose key starts with prefix. Returns the count cleared."""
        keys: set[str] = set()
        try:
            record_keys = list(self.records.iterkeys())
        except (OSError, sqlite3.Error) as e:
            raise StorageError(f"{prefix}*", f"clear failed: {e}") from e
        for record_key in record_keys:
            if not isinstance(record_key, str) or not record_key.startswith(prefix):
                continue
            for suffix in (".data", ".timestamp"):
                if record_key.endswith(suffix):
                    keys.add(record_key[: -len(suffix)])
        for key in keys:
            self.clear(key)
        return len(keys)

    def close(self) -> None:
        self.records.close()


def _file_of(record: dict[str, Any] | None) -> str | None:
    if record is None or record.get("medium") != _MEDIUM_FILE:
        return None
    name = record.get("file")
    return name if isinstance(name, str) else None
