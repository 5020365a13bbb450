"""Utility functions for Marine Report."""
from .file_io import (
    ensure_dir,
    read_json,
    write_json,
)
from .http import (
    HttpClient,
    create_session,
    query,
)
from .logging_config import (
    setup_logging,
    get_logging_config,
)
from .retry import (
    retry_async,
)
from .solar import (
    sunrise_sunset,
)

__all__ = [
    # File I/O
    "ensure_dir",
    "read_json",
    "write_json",

    # HTTP
    "HttpClient",
    "create_session",
    "query",

    # Logging
    "setup_logging",
    "get_logging_config",

    # Retry
    "retry_async",

    # Astronomy
    "sunrise_sunset",
]
