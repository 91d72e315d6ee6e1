from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Tuple, Union


@dataclass(frozen=True)
class Track:
    """Domain entity representing a playable item of a context."""

    uri: Optional[str] = None
    uid: Optional[str] = None
    gid: Optional[bytes] = None
    metadata: Dict[str, str] = field(default_factory=dict, hash=False)

    def __post_init__(self):
        if self.metadata is None:
            object.__setattr__(self, 'metadata', {})

    @property
    def has_uri(self) -> bool:
        return bool(self.uri)


@dataclass
class ContextPage:
    """Page description as handed over by an upstream resolver."""

    tracks: List[Track] = field(default_factory=list)
    page_url: Optional[str] = None
    next_page_url: Optional[str] = None
    loading: Optional[bool] = None
    metadata: Dict[str, str] = field(default_factory=dict)


@dataclass
class Context:
    """Playback context: a locator plus whatever pages are already known."""

    uri: str
    url: Optional[str] = None
    pages: List[ContextPage] = field(default_factory=list)
    metadata: Dict[str, str] = field(default_factory=dict)


@dataclass
class ResolvedContext:
    """Response of the initial remote resolution of a context."""

    uri: Optional[str] = None
    pages: List[ContextPage] = field(default_factory=list)
    metadata: Dict[str, str] = field(default_factory=dict)

    @property
    def context_description(self) -> Optional[str]:
        return self.metadata.get('context_description')


# Cached page states. Every state can carry the continuation link to the
# following page until that page has been appended.

@dataclass(frozen=True)
class ResolvedPage:
    tracks: Tuple[Track, ...]
    next_page_url: Optional[str] = None


@dataclass(frozen=True)
class UnresolvedPage:
    page_url: str
    next_page_url: Optional[str] = None


@dataclass(frozen=True)
class PendingPage:
    """Upstream has not finished computing this page."""

    next_page_url: Optional[str] = None


@dataclass(frozen=True)
class BarePage:
    """No tracks, no url and not loading: nothing to resolve it from."""

    next_page_url: Optional[str] = None


CachedPage = Union[ResolvedPage, UnresolvedPage, PendingPage, BarePage]


def cached_page_from(page: ContextPage, tracks: Optional[Sequence[Track]] = None) -> CachedPage:
    """Classify a page description. Inline tracks always win over a url."""
    tracks = tuple(page.tracks if tracks is None else tracks)
    if tracks:
        return ResolvedPage(tracks=tracks, next_page_url=page.next_page_url)
    if page.page_url:
        return UnresolvedPage(page_url=page.page_url, next_page_url=page.next_page_url)
    if page.loading:
        return PendingPage(next_page_url=page.next_page_url)
    return BarePage(next_page_url=page.next_page_url)
