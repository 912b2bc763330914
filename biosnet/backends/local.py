"""
Local filesystem cache for fetched references.

Holds the raw bytes of every artifact and discovery document we fetched,
plus the name -> content mapping for every resolved name, so that a later
run can rebuild the graph without touching the network.
"""

from typing import BinaryIO, List
from pathlib import Path
from urllib.parse import quote, unquote
import hashlib
import logging

from ..core.errors import LocalIOError

logger = logging.getLogger(__name__)

# Most file systems cap a single name at 255 bytes
MAX_NAME_LENGTH = 200
HASHED_NAME_PREFIX = "="


class ContentCache:
    """
    Write-through, best-effort reference cache.

    Directory structure:
    cache_path/
        %2Fipfs%2FQmAbC...       <- raw bytes of that content
        %2Fipns%2FQmXyZ...       <- the content ref that name resolved to

    Every reference is percent-encoded into a single file name, so any two
    distinct references map to distinct files. References too long for a
    file name are stored under a hash of the reference instead.
    """

    def __init__(self, cache_path: Path):
        """
        Initialize the cache.

        Args:
            cache_path: Directory for cached files (created on first use)
        """
        self.cache_path = Path(cache_path)

        logger.info(f"Initialized reference cache at {self.cache_path}")

    def ensure_exists(self):
        """Create the cache directory."""
        try:
            self.cache_path.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise LocalIOError(f"creating cache path {self.cache_path}: {e}") from e

    def exists(self, ref: str) -> bool:
        """Check if a reference is cached."""
        return self.path_for(ref).is_file()

    def write(self, ref: str, data: bytes, strict: bool = False) -> bool:
        """
        Store bytes under a reference.

        Failures are logged and swallowed unless ``strict`` is set.

        Args:
            ref: Content or name reference
            data: Bytes to store
            strict: Raise LocalIOError instead of swallowing failures

        Returns:
            True if written
        """
        file_path = self.path_for(ref)
        try:
            file_path.parent.mkdir(parents=True, exist_ok=True)
            with open(file_path, "wb") as f:
                f.write(data)
        except OSError as e:
            if strict:
                raise LocalIOError(f"writing {ref!r} to cache: {e}") from e
            logger.warning(f"Failed to cache {ref!r}: {e}")
            return False

        logger.debug(f"Cached {ref!r} ({len(data)} bytes)")
        return True

    def read(self, ref: str) -> bytes:
        """
        Read cached bytes.

        Raises:
            LocalIOError: if the reference is not cached or unreadable
        """
        file_path = self.path_for(ref)
        try:
            with open(file_path, "rb") as f:
                return f.read()
        except OSError as e:
            raise LocalIOError(f"reading {ref!r} from cache: {e}") from e

    def open(self, ref: str) -> BinaryIO:
        """Open a cached reference for streaming reads."""
        try:
            return open(self.path_for(ref), "rb")
        except OSError as e:
            raise LocalIOError(f"opening {ref!r} from cache: {e}") from e

    def path_for(self, ref: str) -> Path:
        """File backing a reference (whether or not it exists yet)."""
        return self.cache_path / sanitize_ref(ref)

    def list_refs(self) -> List[str]:
        """List all cached references whose name can be decoded back."""
        if not self.cache_path.is_dir():
            return []
        return sorted(
            unquote(p.name)
            for p in self.cache_path.iterdir()
            if p.is_file() and not p.name.startswith(HASHED_NAME_PREFIX)
        )


def sanitize_ref(ref: str) -> str:
    """
    Turn a reference into a single, filesystem-safe file name.

    Long references would exceed the file system's name limit, so they are
    stored under ``=<sha256 of the ref>`` instead. ``quote`` always encodes
    "=", so hashed names never collide with encoded ones.
    """
    if not ref:
        raise ValueError("cannot cache an empty reference")
    name = quote(ref, safe="")
    # "." and ".." are the only encodings that still mean something to the fs
    if name in (".", ".."):
        name = name.replace(".", "%2E")
    if len(name.encode("utf-8")) > MAX_NAME_LENGTH:
        name = HASHED_NAME_PREFIX + hashlib.sha256(ref.encode("utf-8")).hexdigest()
    return name
