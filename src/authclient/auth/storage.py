"""
Client-local key/value storage backends for credential records.

FileTokenStorage keeps a small JSON document on disk so a session survives
process restarts. MemoryTokenStorage keeps values in-process only.
"""

import json
import logging
import os
import tempfile
import threading
from pathlib import Path

logger = logging.getLogger(__name__)


class MemoryTokenStorage:
    """In-process storage. Values are lost when the process exits."""

    def __init__(self, initial: dict[str, str] | None = None):
        self._items: dict[str, str] = dict(initial or {})

    def get_item(self, key: str) -> str | None:
        return self._items.get(key)

    def set_item(self, key: str, value: str) -> None:
        self._items[key] = value

    def remove_item(self, key: str) -> None:
        self._items.pop(key, None)


class FileTokenStorage:
    """
    JSON-file storage.

    The file holds one JSON object mapping keys to string values. Writes go
    through a temporary file in the same directory followed by os.replace(),
    so readers never observe a half-written document. The file is created
    with owner-only permissions.

    Example:
        >>> storage = FileTokenStorage("~/.config/authclient/tokens.json")
        >>> storage.set_item("auth_tokens", '{"access": "...", "refresh": "..."}')
    """

    def __init__(self, path: str | Path):
        self.path = Path(path).expanduser()
        self._lock = threading.Lock()

    def _read_document(self) -> dict[str, str]:
        if not self.path.exists():
            return {}
        with open(self.path, "r", encoding="utf-8") as f:
            content = f.read()
        if not content.strip():
            return {}
        data = json.loads(content)
        if not isinstance(data, dict):
            raise ValueError(f"Token file {self.path} does not contain a JSON object")
        return data

    def _write_document(self, data: dict[str, str]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(
            dir=str(self.path.parent), prefix=f".{self.path.name}.", suffix=".tmp"
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(data, f)
            os.chmod(tmp_path, 0o600)
            os.replace(tmp_path, self.path)
        except BaseException:
            if os.path.exists(tmp_path):
                os.unlink(tmp_path)
            raise

    def get_item(self, key: str) -> str | None:
        with self._lock:
            value = self._read_document().get(key)
        return value if isinstance(value, str) else None

    def set_item(self, key: str, value: str) -> None:
        with self._lock:
            try:
                data = self._read_document()
            except ValueError:
                logger.warning(
                    "Token file unreadable, overwriting",
                    extra={"destination_path": str(self.path)},
                )
                data = {}
            data[key] = value
            self._write_document(data)

    def remove_item(self, key: str) -> None:
        with self._lock:
            try:
                data = self._read_document()
            except ValueError:
                data = {key: ""}
            if key not in data:
                return
            data.pop(key)
            if data:
                self._write_document(data)
            else:
                self.path.unlink(missing_ok=True)


__all__ = ["MemoryTokenStorage", "FileTokenStorage"]
