from __future__ import annotations

from typing import Any, Dict, List, Protocol

from .entities import ResolvedContext, Track


class ContextService(Protocol):
    """Port defining the remote calls the pages loader depends on.

    Implementations block for the duration of the round-trip and propagate
    transport failures as domain errors without retrying them.
    """

    def resolve_context(self, context_uri: str) -> ResolvedContext:
        """Resolve a bare context locator into its pages and metadata."""

    def fetch_tracks(self, url: str) -> List[Track]:
        """Fetch the tracks of one page from its page or continuation locator."""


class JsonTransport(Protocol):
    """Port for the synchronous read request used by the page fetcher."""

    def get_json(self, locator: str) -> Dict[str, Any]:
        """Issue a read request for the locator and return the decoded body."""
