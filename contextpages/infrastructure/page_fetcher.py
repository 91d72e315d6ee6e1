import logging
from typing import List

from contextpages.domain.entities import ResolvedContext, Track
from contextpages.domain.ports import ContextService, JsonTransport
from contextpages.infrastructure.codec import resolved_context_from_json, tracks_from_json

logger = logging.getLogger(__name__)

CONTEXT_RESOLVE_ENDPOINT = 'hm://context-resolve/v1/'


class PageFetcher(ContextService):
    """Stateless adapter between the pages loader and the JSON transport."""

    def __init__(self, transport: JsonTransport):
        self._transport = transport

    def resolve_context(self, context_uri: str) -> ResolvedContext:
        body = self._transport.get_json(CONTEXT_RESOLVE_ENDPOINT + context_uri)
        resolved = resolved_context_from_json(body)
        logger.debug("Resolved %s into %d page(s)", context_uri, len(resolved.pages))
        return resolved

    def fetch_tracks(self, url: str) -> List[Track]:
        body = self._transport.get_json(url)
        return tracks_from_json(body.get('tracks'))
