import os
import threading
import uuid
from dataclasses import dataclass


class InvalidPath(ValueError):
    """Registration path is empty or does not name an existing file."""


@dataclass(frozen=True)
class ShareEntry:
    share_id: str
    file_path: str


class ShareRegistry:
    """In-memory share table: share id -> absolute file path.

    Entries keep their registration order. Ids are random UUID4s, so an id is
    not handed out twice, even after revocation.
    All operations take the same lock, so the registry can be used from the
    request threads of a threaded server.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._entries: dict[str, ShareEntry] = {}
        # Append-only; revoked ids stay here until compaction.
        self._order: list[str] = []

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def register(self, path: str) -> str:
        if not path:
            raise InvalidPath("File does not exist")
        # Taken literally; "~" is not expanded.
        if not os.path.isfile(path):
            raise InvalidPath("File does not exist")
        file_path = os.path.abspath(path)

        with self._lock:
            share_id = str(uuid.uuid4())
            self._entries[share_id] = ShareEntry(share_id, file_path)
            self._order.append(share_id)
        return share_id

    def lookup(self, share_id: str) -> str | None:
        with self._lock:
            entry = self._entries.get(share_id)
        return entry.file_path if entry else None

    def revoke(self, share_id: str) -> bool:
        with self._lock:
            if self._entries.pop(share_id, None) is None:
                return False
            if len(self._order) > 2 * len(self._entries):
                self._order = [sid for sid in self._order if sid in self._entries]
            return True

    def list(self) -> list[ShareEntry]:
        with self._lock:
            return [self._entries[sid] for sid in self._order if sid in self._entries]

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()
            self._order.clear()
