"""
BlobStore: on-disk key/value storage for audio bytes and cached dictionary entries.

Stores live under STORAGE_DIR:
- audio_files/: one file per session id (raw uploaded bytes).
- dictionary/: one JSON file per lower-cased word.
- pronunciations/: cached TTS audio (see echolisten.tts.service).

Keys map one-to-one to safe file names; reads of missing keys return None.
Write failures are logged and reported as False, never raised into the caller.
"""
from __future__ import annotations

import hashlib
import json
import logging
import os
import re
from typing import Any

from echolisten.config import get_settings

logger = logging.getLogger(__name__)

AUDIO_STORE = "audio_files"
DICTIONARY_STORE = "dictionary"

_PLAIN_KEY = re.compile(r"^[A-Za-z0-9_-][A-Za-z0-9._-]{0,127}$")


def _safe_key(key: str) -> str:
    """Plain keys (session ids, ASCII words) are the file name; anything else is hashed."""
    key = (key or "").strip()
    if _PLAIN_KEY.match(key):
        return key
    return "h-" + hashlib.sha1(key.encode("utf-8")).hexdigest()


class BlobStore:
    """Directory-backed store. One file per key."""

    def __init__(self, name: str, root: str | None = None) -> None:
        self._dir = os.path.join(root or get_settings().STORAGE_DIR, name)

    @property
    def directory(self) -> str:
        return self._dir

    def path_for(self, key: str) -> str:
        return os.path.join(self._dir, _safe_key(key))

    def put(self, key: str, data: bytes) -> bool:
        path = self.path_for(key)
        try:
            os.makedirs(self._dir, exist_ok=True)
            tmp = path + ".tmp"
            with open(tmp, "wb") as f:
                f.write(data)
            os.replace(tmp, path)
            return True
        except OSError as e:
            logger.warning("Blob write failed for %s: %s", path, e)
            return False

    def get(self, key: str) -> bytes | None:
        path = self.path_for(key)
        try:
            with open(path, "rb") as f:
                return f.read()
        except FileNotFoundError:
            return None
        except OSError as e:
            logger.warning("Blob read failed for %s: %s", path, e)
            return None

    def exists(self, key: str) -> bool:
        return os.path.isfile(self.path_for(key))

    def delete(self, key: str) -> bool:
        """Remove key. Return True if it existed."""
        try:
            os.remove(self.path_for(key))
            return True
        except FileNotFoundError:
            return False
        except OSError as e:
            logger.warning("Blob delete failed for %s: %s", key, e)
            return False

    def put_json(self, key: str, value: Any) -> bool:
        return self.put(key, json.dumps(value, ensure_ascii=False).encode("utf-8"))

    def get_json(self, key: str) -> Any | None:
        raw = self.get(key)
        if raw is None:
            return None
        try:
            return json.loads(raw.decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError) as e:
            logger.warning("Corrupt JSON blob %s: %s", key, e)
            return None


def audio_store() -> BlobStore:
    return BlobStore(AUDIO_STORE)


def dictionary_store() -> BlobStore:
    return BlobStore(DICTIONARY_STORE)
