from __future__ import annotations

from dataclasses import replace
from typing import List, Optional

from .entities import Track
from .spotify_id import ID_LENGTH, TRACK_URI_PREFIX, encode_base62


def sanitize_track(track: Track, uri_prefix: Optional[str]) -> Track:
    if track.has_uri or not track.gid:
        return track
    prefix = TRACK_URI_PREFIX if uri_prefix is None else uri_prefix
    return replace(track, uri=prefix + encode_base62(track.gid, ID_LENGTH))


def sanitize_tracks(tracks: List[Track], uri_prefix: Optional[str]) -> List[Track]:
    """Fill in missing uris from raw identifiers, replacing tracks in place.

    Tracks that already carry a uri, or carry neither a uri nor a raw
    identifier, are left untouched. Returns the same list.
    """
    for i, track in enumerate(tracks):
        tracks[i] = sanitize_track(track, uri_prefix)
    return tracks
