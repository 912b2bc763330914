"""
Errors raised while building the peer graph.

Any of these aborts the whole graph rebuild. The context attributes are
filled in as the error travels up (artifact, then peer, then phase) so the
final message says where things went wrong.
"""

from typing import Optional


class BiosNetworkError(Exception):
    """Base error for graph traversal, verification and ranking."""

    def __init__(
        self,
        message: str,
        *,
        phase: Optional[str] = None,
        peer: Optional[str] = None,
        link: Optional[str] = None,
        artifact: Optional[str] = None,
    ):
        super().__init__(message)
        self.message = message
        self.phase = phase
        self.peer = peer
        self.link = link
        self.artifact = artifact

    def __str__(self) -> str:
        parts = []
        if self.phase:
            parts.append(self.phase)
        if self.peer:
            parts.append(f"peer {self.peer!r}")
        if self.link:
            parts.append(f"fetching {self.link!r}")
        if self.artifact:
            parts.append(self.artifact)
        parts.append(self.message)
        return ": ".join(parts)


class LocalIOError(BiosNetworkError):
    """Reading or writing local files failed."""


class ParseError(BiosNetworkError):
    """A discovery document could not be decoded."""


class ValidationError(BiosNetworkError):
    """A discovery document broke a semantic rule."""


class FetchError(BiosNetworkError):
    """An artifact could not be obtained from the discovery store."""


class EmptyReferenceError(FetchError):
    """A content reference was required but empty."""


class MalformedReferenceError(FetchError):
    """A content reference lacks the ``/ipfs/`` prefix."""


class DuplicateIdentityError(BiosNetworkError):
    """Two discovery files claim the same account name."""


class DanglingReferenceError(BiosNetworkError):
    """A peer link points at a name that traversal never resolved."""


class EmptyGraphError(BiosNetworkError):
    """No peers have been discovered yet."""
