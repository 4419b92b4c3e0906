"""Secret storage for opaque credential blobs keyed by name.

The file-backed store keeps one entry per key inside a per-service directory
that only the current user can read. Entries are written with an atomic
replace so a reader never observes a partially written value, and payloads are
wrapped in a small envelope so they are not readable as plaintext in place.
"""

from __future__ import annotations

import base64
import binascii
import hashlib
import logging
import os
import stat
import tempfile
import threading
from contextlib import suppress
from pathlib import Path
from typing import Protocol

logger = logging.getLogger(__name__)

_ENVELOPE_MAGIC = b"SSCRED1\n"
_ENTRY_SUFFIX = ".cred"


class CredentialStoreError(Exception):
    """Raised when the credential store cannot complete an operation."""


class ItemNotFoundError(CredentialStoreError):
    """No entry exists for the requested key."""

    def __init__(self, key: str):
        super().__init__(f"No credential stored for key '{key}'")
        self.key = key


class UnexpectedDataError(CredentialStoreError):
    """The stored bytes could not be interpreted as a credential entry."""

    def __init__(self, key: str, reason: str):
        super().__init__(f"Unexpected data stored for key '{key}': {reason}")
        self.key = key
        self.reason = reason


class CredentialStore(Protocol):
    def save(self, data: bytes, key: str) -> None:
        ...

    def load(self, key: str) -> bytes:
        ...

    def delete(self, key: str) -> None:
        ...

    def exists(self, key: str) -> bool:
        ...


def _encode_entry(data: bytes) -> bytes:
    return _ENVELOPE_MAGIC + base64.b64encode(data[::-1])


def _decode_entry(key: str, raw: bytes) -> bytes:
    if not raw.startswith(_ENVELOPE_MAGIC):
        raise UnexpectedDataError(key, "missing envelope header")
    try:
        reversed_data = base64.b64decode(raw[len(_ENVELOPE_MAGIC) :], validate=True)
    except (binascii.Error, ValueError) as exc:
        raise UnexpectedDataError(key, str(exc)) from exc
    return reversed_data[::-1]


class FileCredentialStore:
    """Credential store persisting entries as owner-only files."""

    def __init__(self, directory: Path, *, service: str = "com.sparkstats.spotify"):
        self._service = service
        self._directory = Path(directory) / service

    @property
    def directory(self) -> Path:
        return self._directory

    def _entry_path(self, key: str) -> Path:
        if not key:
            raise CredentialStoreError("Credential key must not be empty")
        digest = hashlib.sha256(key.encode("utf-8")).hexdigest()[:32]
        return self._directory / f"{digest}{_ENTRY_SUFFIX}"

    def _ensure_dir(self) -> None:
        self._directory.mkdir(parents=True, exist_ok=True)
        if os.name == "posix":
            os.chmod(self._directory, stat.S_IRWXU)

    def save(self, data: bytes, key: str) -> None:
        """Store ``data`` under ``key``, replacing any previous value."""

        path = self._entry_path(key)
        try:
            self._ensure_dir()
            fd, tmp_name = tempfile.mkstemp(
                prefix=".tmp-", suffix=_ENTRY_SUFFIX, dir=self._directory
            )
            try:
                with os.fdopen(fd, "wb") as handle:
                    handle.write(_encode_entry(data))
                    handle.flush()
                    os.fsync(handle.fileno())
                if os.name == "posix":
                    os.chmod(tmp_name, stat.S_IRUSR | stat.S_IWUSR)
                os.replace(tmp_name, path)
            except BaseException:
                with suppress(OSError):
                    os.unlink(tmp_name)
                raise
        except OSError as exc:
            raise CredentialStoreError(
                f"Failed to save credential '{key}': {exc}"
            ) from exc
        logger.debug("Saved credential entry %s", key)

    def load(self, key: str) -> bytes:
        path = self._entry_path(key)
        try:
            raw = path.read_bytes()
        except FileNotFoundError as exc:
            raise ItemNotFoundError(key) from exc
        except OSError as exc:
            raise CredentialStoreError(
                f"Failed to read credential '{key}': {exc}"
            ) from exc
        return _decode_entry(key, raw)

    def delete(self, key: str) -> None:
        """Remove ``key``; deleting a missing entry is not an error."""

        path = self._entry_path(key)
        try:
            path.unlink()
        except FileNotFoundError:
            return
        except OSError as exc:
            raise CredentialStoreError(
                f"Failed to delete credential '{key}': {exc}"
            ) from exc
        logger.debug("Deleted credential entry %s", key)

    def exists(self, key: str) -> bool:
        return self._entry_path(key).is_file()


class InMemoryCredentialStore:
    """Credential store kept in process memory (lost on exit)."""

    def __init__(self) -> None:
        self._entries: dict[str, bytes] = {}
        self._lock = threading.Lock()

    def save(self, data: bytes, key: str) -> None:
        with self._lock:
            self._entries[key] = _encode_entry(bytes(data))

    def load(self, key: str) -> bytes:
        with self._lock:
            raw = self._entries.get(key)
        if raw is None:
            raise ItemNotFoundError(key)
        return _decode_entry(key, raw)

    def delete(self, key: str) -> None:
        with self._lock:
            self._entries.pop(key, None)

    def exists(self, key: str) -> bool:
        with self._lock:
            return key in self._entries

    def put_raw(self, key: str, raw: bytes) -> None:
        """Store ``raw`` bytes without the envelope (corruption scenarios)."""

        with self._lock:
            self._entries[key] = raw


__all__ = [
    "CredentialStore",
    "CredentialStoreError",
    "FileCredentialStore",
    "InMemoryCredentialStore",
    "ItemNotFoundError",
    "UnexpectedDataError",
]
