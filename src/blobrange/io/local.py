"""Blob store backed by a local directory tree."""

from pathlib import Path
from typing import Optional, Union

from ..core.config import TransportConfig
from ..core.model import BlobLocator, MisuseError
from .base import HTTP_NOT_FOUND, TransportError


class LocalReadChannel:
    """Read channel over a local file; the chunk size caps each read."""

    def __init__(self, path: Path, config: TransportConfig):
        self.path = path
        self._config = config
        self._chunk_size = config.chunk_size
        self.bytes_fetched = 0
        self.requests_made = 0
        try:
            self._file = open(path, 'rb')
        except (FileNotFoundError, IsADirectoryError, NotADirectoryError) as e:
            raise TransportError(f"No such blob file: {path}", status=HTTP_NOT_FOUND) from e
        except OSError as e:
            raise TransportError(f"Cannot open {path}: {e}") from e

    def seek(self, offset: int) -> None:
        self._check_open()
        try:
            self._file.seek(offset)
        except OSError as e:
            raise TransportError(f"Cannot seek {self.path} to {offset}: {e}") from e

    def set_chunk_size(self, size: int) -> None:
        self._chunk_size = size if size > 0 else self._config.chunk_size

    def default_chunk_size(self) -> int:
        return self._config.chunk_size

    def fetch(self, buffer) -> int:
        self._check_open()
        view = memoryview(buffer).cast("B")
        # unlike HTTP the whole destination can be filled in one go
        limit = max(self._chunk_size, len(view))
        self.requests_made += 1
        try:
            read = self._file.readinto(view[:limit])
        except OSError as e:
            raise TransportError(f"Read failed for {self.path}: {e}") from e
        read = read or 0
        self.bytes_fetched += read
        return read

    def is_open(self) -> bool:
        return self._file is not None and not self._file.closed

    def close(self) -> None:
        if self._file is not None:
            self._file.close()

    def _check_open(self):
        if not self.is_open():
            raise MisuseError(f"read channel for {self.path} is closed")


class LocalBlobStoreClient:
    """Blob ``container/name`` lives at ``<root>/container/name``.

    Without a root the container is taken as a directory path on its own.
    """

    def __init__(self, root: Optional[Union[Path, str]] = None, config: Optional[TransportConfig] = None):
        self.root = Path(root) if root is not None else None
        self.config = config or TransportConfig()

    def path_for(self, locator: BlobLocator) -> Path:
        base = Path(locator.container)
        if self.root is not None:
            base = self.root / locator.container.lstrip("/")
        return base / locator.name

    def open_read_channel(self, locator: BlobLocator) -> LocalReadChannel:
        return LocalReadChannel(self.path_for(locator), self.config)

    def max_transport_attempts(self) -> int:
        return self.config.max_attempts


def open_local_client(root: Optional[Union[Path, str]] = None,
                      config: Optional[TransportConfig] = None) -> LocalBlobStoreClient:
    """Create a blob store client over a local directory."""
    return LocalBlobStoreClient(root, config)
