from __future__ import annotations

import re
from abc import ABC, abstractmethod
from pathlib import Path
from typing import List

_UNSAFE_RE = re.compile(r"[^A-Za-z0-9_.-]+")


def safe_key(part: str) -> str:
    """Fold an arbitrary identifier (endpoint, session id) into a path segment."""
    cleaned = _UNSAFE_RE.sub("_", str(part)).strip("._")
    if not cleaned:
        raise ValueError(f"invalid storage key: {part!r}")
    return cleaned


class StorageBackend(ABC):
    """
    Abstract key/blob store used to persist session state (Local, Redis, S3, etc.).
    """

    @abstractmethod
    def write_bytes(self, key: str, data: bytes) -> None:
        pass

    @abstractmethod
    def read_bytes(self, key: str) -> bytes:
        pass

    @abstractmethod
    def exists(self, key: str) -> bool:
        pass

    @abstractmethod
    def delete(self, key: str) -> None:
        """Remove a blob; missing keys are ignored."""
        pass

    @abstractmethod
    def list_keys(self, prefix: str) -> List[str]:
        pass


class LocalFileSystemStorage(StorageBackend):
    """
    Stores each blob as a file below ``root``.
    """

    def __init__(self, root: Path):
        self.root = Path(root).resolve()
        self.root.mkdir(parents=True, exist_ok=True)

    def _resolve(self, key: str) -> Path:
        # Prevent path traversal attacks
        full_path = (self.root / key).resolve()
        if full_path != self.root and self.root not in full_path.parents:
            raise ValueError(f"Access denied: {key}")
        return full_path

    def write_bytes(self, key: str, data: bytes) -> None:
        p = self._resolve(key)
        p.parent.mkdir(parents=True, exist_ok=True)
        tmp = p.with_suffix(p.suffix + ".tmp")
        tmp.write_bytes(data)
        tmp.replace(p)

    def read_bytes(self, key: str) -> bytes:
        return self._resolve(key).read_bytes()

    def exists(self, key: str) -> bool:
        return self._resolve(key).is_file()

    def delete(self, key: str) -> None:
        p = self._resolve(key)
        if p.is_file():
            p.unlink()

    def list_keys(self, prefix: str) -> List[str]:
        p = self._resolve(prefix)
        if not p.is_dir():
            return []
        return sorted(
            str(f.relative_to(self.root))
            for f in p.rglob("*")
            if f.is_file() and not f.name.endswith(".tmp")
        )


class MemoryStorage(StorageBackend):
    """In-process storage, handy for tests and single-process deployments."""

    def __init__(self) -> None:
        self._blobs: dict[str, bytes] = {}

    def write_bytes(self, key: str, data: bytes) -> None:
        self._blobs[key] = bytes(data)

    def read_bytes(self, key: str) -> bytes:
        try:
            return self._blobs[key]
        except KeyError:
            raise FileNotFoundError(key)

    def exists(self, key: str) -> bool:
        return key in self._blobs

    def delete(self, key: str) -> None:
        self._blobs.pop(key, None)

    def list_keys(self, prefix: str) -> List[str]:
        return sorted(k for k in self._blobs if k.startswith(prefix))
