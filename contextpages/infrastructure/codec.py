from typing import Any, Dict, List, Optional

from contextpages.domain.entities import Context, ContextPage, ResolvedContext, Track
from contextpages.domain.errors import PermanentFailure


def _metadata(obj: Dict[str, Any]) -> Dict[str, str]:
    raw = obj.get('metadata') or {}
    if not isinstance(raw, dict):
        raise PermanentFailure(f"Expected metadata object, got {type(raw).__name__}")
    return {str(k): str(v) for k, v in raw.items()}


def _gid(value: Optional[str]) -> Optional[bytes]:
    if not value:
        return None
    try:
        return bytes.fromhex(value)
    except ValueError:
        raise PermanentFailure(f"Invalid hex gid: {value!r}")


def track_from_json(obj: Dict[str, Any]) -> Track:
    """Convert a JSON track descriptor to a domain Track."""
    if not isinstance(obj, dict):
        raise PermanentFailure(f"Expected track object, got {type(obj).__name__}")
    return Track(
        uri=obj.get('uri') or None,
        uid=obj.get('uid') or None,
        gid=_gid(obj.get('gid')),
        metadata=_metadata(obj),
    )


def tracks_from_json(array: Any) -> List[Track]:
    if not isinstance(array, list):
        raise PermanentFailure("Response has no 'tracks' array")
    return [track_from_json(item) for item in array]


def page_from_json(obj: Dict[str, Any]) -> ContextPage:
    if not isinstance(obj, dict):
        raise PermanentFailure(f"Expected page object, got {type(obj).__name__}")
    return ContextPage(
        tracks=tracks_from_json(obj.get('tracks', [])),
        page_url=obj.get('page_url') or None,
        next_page_url=obj.get('next_page_url') or None,
        loading=obj.get('loading'),
        metadata=_metadata(obj),
    )


def _pages_from_json(obj: Dict[str, Any]) -> List[ContextPage]:
    pages = obj.get('pages', [])
    if not isinstance(pages, list):
        raise PermanentFailure("Response 'pages' is not an array")
    return [page_from_json(page) for page in pages]


def context_from_json(obj: Dict[str, Any]) -> Context:
    """Convert a JSON context (as sent by an upstream resolver) to a Context."""
    uri = obj.get('uri')
    if not uri:
        raise PermanentFailure("Context has no uri")
    return Context(
        uri=uri,
        url=obj.get('url') or None,
        pages=_pages_from_json(obj),
        metadata=_metadata(obj),
    )


def resolved_context_from_json(obj: Dict[str, Any]) -> ResolvedContext:
    """Convert a context-resolve response to a ResolvedContext."""
    if not isinstance(obj, dict):
        raise PermanentFailure(f"Expected context object, got {type(obj).__name__}")
    return ResolvedContext(
        uri=obj.get('uri') or None,
        pages=_pages_from_json(obj),
        metadata=_metadata(obj),
    )
