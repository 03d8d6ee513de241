"""Transport settings shared by the blob store clients, overridable from the environment."""

import os
from dataclasses import dataclass, field
from typing import Dict, Mapping, Optional

DEFAULT_CHUNK_SIZE = 2 * 1024 * 1024  # 2 MB
ENV_PREFIX = "BLOBRANGE_"


@dataclass(frozen=True)
class TransportConfig:
    """
    Configuration shared by the blob store clients.

    Attributes:
        connect_timeout: Connection timeout in seconds (default: 10.0)
        read_timeout: Read timeout in seconds (default: 60.0)
        max_attempts: Attempts the transport makes per request; the read stream
            allows one more reopen-and-read attempt than this (default: 3)
        backoff_factor: Exponential backoff factor for transport retries (default: 0.5)
        chunk_size: Default number of bytes requested per fetch (default: 2 MB)
        pool_connections: Number of connection pools (default: 10)
        pool_maxsize: Maximum size of each pool (default: 10)
        headers: Custom HTTP headers to include in requests
    """
    connect_timeout: float = 10.0
    read_timeout: float = 60.0
    max_attempts: int = 3
    backoff_factor: float = 0.5
    chunk_size: int = DEFAULT_CHUNK_SIZE
    pool_connections: int = 10
    pool_maxsize: int = 10
    headers: Dict[str, str] = field(default_factory=lambda: {
        'User-Agent': 'blobrange/0.1',
        'Accept-Encoding': 'identity',
        'Connection': 'keep-alive'
    })

    def __post_init__(self):
        if self.max_attempts < 1:
            raise ValueError(f"max_attempts must be >= 1, got {self.max_attempts}")
        if self.chunk_size <= 0:
            raise ValueError(f"chunk_size must be positive, got {self.chunk_size}")

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None, **overrides) -> "TransportConfig":
        """Build a config from BLOBRANGE_* environment variables.

        Recognised: CONNECT_TIMEOUT, READ_TIMEOUT, MAX_ATTEMPTS, BACKOFF_FACTOR,
        CHUNK_SIZE. Explicit keyword overrides win over the environment.
        """
        env = os.environ if environ is None else environ
        kwargs = {}
        for name, conv in (("connect_timeout", float), ("read_timeout", float),
                           ("max_attempts", int), ("backoff_factor", float),
                           ("chunk_size", int)):
            raw = env.get(ENV_PREFIX + name.upper())
            if raw:
                try:
                    kwargs[name] = conv(raw)
                except ValueError as e:
                    raise ValueError(f"Invalid value for {ENV_PREFIX}{name.upper()}: {raw!r}") from e
        kwargs.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**kwargs)
