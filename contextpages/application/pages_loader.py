from __future__ import annotations

import logging
from contextlib import nullcontext
from dataclasses import replace
from enum import Enum
from typing import List, Optional, Sequence, Tuple

from contextpages.crosscutting.logging import CorrelationContext, log_error
from contextpages.crosscutting.metrics import MetricsCollector
from contextpages.domain.entities import (
    BarePage, CachedPage, Context, ContextPage, PendingPage, ResolvedPage, Track,
    UnresolvedPage, cached_page_from,
)
from contextpages.domain.errors import PageIndexError, PageStateError, UnsupportedPageError
from contextpages.domain.ports import ContextService
from contextpages.domain.sanitizer import sanitize_tracks
from contextpages.domain.spotify_id import infer_uri_prefix

logger = logging.getLogger(__name__)

NOT_STARTED = -1


class Advance(Enum):
    """Outcome of moving the loader to the following page."""

    ADVANCED = "advanced"
    END_OF_PAGES = "end_of_pages"

    def __bool__(self) -> bool:
        return self is Advance.ADVANCED


class PagesLoader:
    """Lazily resolves the pages of one playback context.

    Pages are resolved strictly in order and cached in place, so every page is
    fetched at most once. Not safe for concurrent use: one loader belongs to
    one playback session and all calls must be serialized by its owner.
    """

    def __init__(self, service: ContextService, metrics: Optional[MetricsCollector] = None):
        self._service = service
        self._metrics = metrics
        self._pages: List[CachedPage] = []
        self._cursor = NOT_STARTED
        self._pending_locator: Optional[str] = None
        self._context_uri: Optional[str] = None
        self._uri_prefix: Optional[str] = None
        self._context_description: Optional[str] = None

    @classmethod
    def from_locator(cls, service: ContextService, context_uri: str,
                     metrics: Optional[MetricsCollector] = None) -> 'PagesLoader':
        """Loader that resolves ``context_uri`` remotely on first access."""
        loader = cls(service, metrics)
        loader._pending_locator = context_uri
        loader._set_context_uri(context_uri)
        return loader

    @classmethod
    def from_pages(cls, service: ContextService, pages: List[ContextPage],
                   context_uri: Optional[str] = None,
                   metrics: Optional[MetricsCollector] = None) -> 'PagesLoader':
        loader = cls(service, metrics)
        loader.put_first_pages(pages, context_uri)
        return loader

    @classmethod
    def from_tracks(cls, service: ContextService, tracks: List[Track],
                    context_uri: Optional[str] = None,
                    metrics: Optional[MetricsCollector] = None) -> 'PagesLoader':
        loader = cls(service, metrics)
        loader.put_first_page(tracks, context_uri)
        return loader

    @classmethod
    def from_context(cls, service: ContextService, context: Context,
                     metrics: Optional[MetricsCollector] = None) -> 'PagesLoader':
        """Use the pages the context already carries, or resolve it lazily if it has none."""
        if not context.pages:
            return cls.from_locator(service, context.uri, metrics)
        return cls.from_pages(service, context.pages, context.uri, metrics)

    @property
    def cursor(self) -> int:
        return self._cursor

    @property
    def page_count(self) -> int:
        """Number of pages known so far. Grows as continuations are followed."""
        return len(self._pages)

    def put_first_pages(self, pages: List[ContextPage], context_uri: Optional[str] = None) -> None:
        """Seed the loader with prepared pages. Only valid before traversal starts."""
        self._ensure_fresh()
        self._set_context_uri(context_uri)
        for page in pages:
            self._pages.append(cached_page_from(page, self._sanitized(page.tracks)))
        self._pending_locator = None

    def put_first_page(self, tracks: List[Track], context_uri: Optional[str] = None) -> None:
        self._ensure_fresh()
        self._set_context_uri(context_uri)
        self._pages.append(ResolvedPage(tracks=self._sanitized(tracks)))
        self._pending_locator = None

    def current_page(self) -> List[Track]:
        return self.get_page(self._cursor)

    def current_page_description(self) -> Optional[str]:
        """Description captured by the initial remote resolution, if there was one."""
        return self._context_description

    def advance(self) -> Advance:
        """Resolve the page after the cursor and move onto it.

        Returns ``Advance.END_OF_PAGES`` when the context is exhausted. Every
        other failure propagates.
        """
        index = self._cursor + 1
        self._resolve_context_if_pending(index)
        if self._is_exhausted(index):
            logger.info("End of context %s after %d page(s)", self._context_uri, len(self._pages))
            if self._metrics:
                self._metrics.record_end_of_pages()
            return Advance.END_OF_PAGES

        self.get_page(index)
        self._cursor = index
        return Advance.ADVANCED

    def next_page(self) -> bool:
        return bool(self.advance())

    def get_page(self, index: int) -> List[Track]:
        """Return the tracks of page ``index``, resolving it if needed."""
        if index == NOT_STARTED:
            raise PageStateError("You must advance to a page before reading it")
        if index < 0:
            raise PageIndexError(f"Invalid page index {index}")

        self._resolve_context_if_pending(index)

        with CorrelationContext(context_uri=self._context_uri, page_index=index):
            if index < len(self._pages):
                return self._resolve_cached(index)
            if index > len(self._pages):
                raise PageIndexError(
                    f"Page {index} requested but only {len(self._pages)} page(s) are known; "
                    f"pages must be resolved in order")
            return self._follow_continuation(index)

    def _resolve_cached(self, index: int) -> List[Track]:
        page = self._pages[index]
        if isinstance(page, ResolvedPage):
            logger.debug("Page %d served from cache", index)
            if self._metrics:
                self._metrics.record_cache_hit()
            return list(page.tracks)
        if isinstance(page, UnresolvedPage):
            tracks = self._fetch('page', page.page_url)
            self._pages[index] = ResolvedPage(tracks=tracks, next_page_url=page.next_page_url)
            return list(tracks)
        if isinstance(page, PendingPage):
            raise UnsupportedPageError(f"Page {index} is still loading upstream")
        if isinstance(page, BarePage):
            raise PageStateError(f"Cannot load page {index}, not enough information")
        raise TypeError(f"Unknown cached page type: {type(page).__name__}")

    def _follow_continuation(self, index: int) -> List[Track]:
        if index == 0:
            raise PageStateError("No pages known and nothing to resolve them from")
        prev = self._pages[index - 1]
        if not prev.next_page_url:
            raise PageStateError(f"Page {index - 1} has no link to page {index}")

        tracks = self._fetch('continuation', prev.next_page_url)
        self._pages.append(ResolvedPage(tracks=tracks))
        self._pages[index - 1] = replace(prev, next_page_url=None)
        return list(tracks)

    def _is_exhausted(self, index: int) -> bool:
        if index != len(self._pages):
            return False
        return index == 0 or not self._pages[index - 1].next_page_url

    def _resolve_context_if_pending(self, index: int) -> None:
        if index != 0 or self._pages or self._pending_locator is None:
            return

        # Consumed before the call: a failed resolution is never retried.
        locator, self._pending_locator = self._pending_locator, None
        with CorrelationContext(context_uri=locator, stage='resolve'):
            logger.info("Resolving context %s", locator)
            try:
                with self._measure('resolve'):
                    resolved = self._service.resolve_context(locator)
            except Exception as e:
                log_error(logger, "Failed to resolve context", e, context_uri=locator)
                raise

        self._context_description = resolved.context_description
        for page in resolved.pages:
            self._pages.append(cached_page_from(page, self._sanitized(page.tracks)))

    def _fetch(self, kind: str, url: str) -> Tuple[Track, ...]:
        logger.debug("Fetching %s tracks from %s", kind, url)
        try:
            with self._measure(kind):
                tracks = self._service.fetch_tracks(url)
        except Exception as e:
            log_error(logger, f"Failed to fetch {kind} tracks", e, url=url)
            raise
        return self._sanitized(tracks)

    def _measure(self, kind: str):
        if self._metrics is None:
            return nullcontext()
        return self._metrics.measure(kind)

    def _sanitized(self, tracks: Sequence[Track]) -> Tuple[Track, ...]:
        return tuple(sanitize_tracks(list(tracks), self._uri_prefix))

    def _set_context_uri(self, context_uri: Optional[str]) -> None:
        self._context_uri = context_uri
        self._uri_prefix = infer_uri_prefix(context_uri)

    def _ensure_fresh(self) -> None:
        if self._cursor != NOT_STARTED or self._pages:
            raise PageStateError("Loader already started; first pages can only be put once")
