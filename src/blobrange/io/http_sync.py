"""Synchronous HTTP blob store using requests and Range requests."""

import logging
from typing import Optional
from urllib.parse import quote

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from ..core.config import TransportConfig
from ..core.model import BlobLocator, MisuseError
from .base import HTTP_NOT_FOUND, RangeNotSupportedError, TransportError

logger = logging.getLogger(__name__)

HTTP_RANGE_NOT_SATISFIABLE = 416


def _create_session(config: TransportConfig) -> requests.Session:
    session = requests.Session()
    retry_strategy = Retry(
        total=config.max_attempts - 1,
        backoff_factor=config.backoff_factor,
        status_forcelist=[500, 502, 503, 504],
        allowed_methods=["HEAD", "GET"]
    )
    adapter = HTTPAdapter(
        max_retries=retry_strategy,
        pool_connections=config.pool_connections,
        pool_maxsize=config.pool_maxsize
    )
    session.mount("https://", adapter)
    session.mount("http://", adapter)
    session.headers.update(config.headers)
    return session


class HTTPReadChannel:
    """Chunked read channel over one URL.

    Each remote request asks for max(chunk size, destination size) bytes from
    the current position; bytes beyond what the caller asked for are kept and
    served by the next fetch.
    """

    def __init__(self, session: requests.Session, url: str, config: TransportConfig):
        self.url = url
        self._session = session
        self._config = config
        self._chunk_size = config.chunk_size
        self._position = 0
        self._pending = b""
        self._eof = False
        self._open = True
        self.bytes_fetched = 0
        self.requests_made = 0

    def seek(self, offset: int) -> None:
        self._check_open()
        if offset < 0:
            raise ValueError(f"offset must be non-negative, got {offset}")
        self._position = offset
        self._pending = b""
        self._eof = False

    def set_chunk_size(self, size: int) -> None:
        self._chunk_size = size if size > 0 else self._config.chunk_size

    def default_chunk_size(self) -> int:
        return self._config.chunk_size

    def _request_range(self, start: int, length: int) -> bytes:
        end = start + length - 1
        headers = {'Range': f'bytes={start}-{end}'}
        self.requests_made += 1
        try:
            response = self._session.get(
                self.url,
                headers=headers,
                timeout=(self._config.connect_timeout, self._config.read_timeout),
            )
            if response.status_code == HTTP_NOT_FOUND:
                raise TransportError(f"Resource not found: {self.url}", status=HTTP_NOT_FOUND)
            if response.status_code == HTTP_RANGE_NOT_SATISFIABLE:
                return b""
            if response.status_code == 200:
                raise RangeNotSupportedError(
                    f"Server returned status 200 - range requests not supported for {self.url}")
            if response.status_code != 206:
                raise TransportError(f"Range request failed for {self.url}", status=response.status_code)
            data = response.content
        except requests.RequestException as e:
            raise TransportError(f"Range request {start}-{end} failed: {e}") from e

        self.bytes_fetched += len(data)
        return data

    def fetch(self, buffer) -> int:
        self._check_open()
        view = memoryview(buffer).cast("B")
        if len(view) == 0:
            return 0
        if not self._pending and not self._eof:
            size = max(self._chunk_size, len(view))
            data = self._request_range(self._position, size)
            if len(data) < size:
                self._eof = True
            self._pending = data
        if not self._pending:
            return 0

        n = min(len(view), len(self._pending))
        view[:n] = self._pending[:n]
        self._pending = self._pending[n:]
        self._position += n
        return n

    def is_open(self) -> bool:
        return self._open

    def close(self) -> None:
        # the session belongs to the client
        self._open = False
        self._pending = b""

    def _check_open(self):
        if not self._open:
            raise MisuseError(f"read channel for {self.url} is closed")


class HTTPBlobStoreClient:
    """Blob store served over HTTP: blob ``container/name`` lives at ``<base_url>/container/name``."""

    def __init__(self, base_url: str, config: Optional[TransportConfig] = None):
        if not base_url:
            raise ValueError("base_url cannot be empty")
        self.base_url = base_url.rstrip("/")
        self.config = config or TransportConfig()
        self._session = _create_session(self.config)

    def url_for(self, locator: BlobLocator) -> str:
        container = quote(locator.container.strip("/"))
        name = quote(locator.name)
        if container:
            return f"{self.base_url}/{container}/{name}"
        return f"{self.base_url}/{name}"

    def open_read_channel(self, locator: BlobLocator) -> HTTPReadChannel:
        # lazy, like the cloud SDK readers: a missing object shows up on the first fetch
        logger.debug("opening read channel for %s", self.url_for(locator))
        return HTTPReadChannel(self._session, self.url_for(locator), self.config)

    def max_transport_attempts(self) -> int:
        return self.config.max_attempts

    def close(self):
        self._session.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()


def open_http_client(base_url: str, config: Optional[TransportConfig] = None) -> HTTPBlobStoreClient:
    """Create a synchronous HTTP blob store client."""
    return HTTPBlobStoreClient(base_url, config)
