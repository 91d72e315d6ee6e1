from __future__ import annotations

from typing import Optional


BASE62_ALPHABET = "0123456789abcdefghijklmnopqrstuvwxyzABCDEFGHIJKLMNOPQRSTUVWXYZ"
ID_LENGTH = 22
GID_LENGTH = 16

TRACK_URI_PREFIX = "spotify:track:"
EPISODE_URI_PREFIX = "spotify:episode:"

_EPISODE_CONTEXT_PREFIXES = ("spotify:episode:", "spotify:show:")
_BASE62_INDEX = {c: i for i, c in enumerate(BASE62_ALPHABET)}


def encode_base62(data: bytes, length: int = ID_LENGTH) -> str:
    """Encode raw bytes as a fixed-length base-62 token.

    The bytes are read as one big-endian integer; the result is left-filled
    with the zero digit up to ``length``.
    """
    value = int.from_bytes(data, "big")
    digits = []
    while value:
        value, rem = divmod(value, 62)
        digits.append(BASE62_ALPHABET[rem])
    if len(digits) > length:
        raise ValueError(f"{len(data)} bytes do not fit in {length} base62 characters")
    return "".join(reversed(digits)).rjust(length, BASE62_ALPHABET[0])


def decode_base62(text: str, size: int = GID_LENGTH) -> bytes:
    value = 0
    for c in text:
        try:
            value = value * 62 + _BASE62_INDEX[c]
        except KeyError:
            raise ValueError(f"Invalid base62 character {c!r} in {text!r}")
    return value.to_bytes(size, "big")


def infer_uri_prefix(context_uri: Optional[str]) -> Optional[str]:
    """Guess the uri prefix of tracks belonging to a context."""
    if context_uri is None:
        return None
    if context_uri.startswith(_EPISODE_CONTEXT_PREFIXES):
        return EPISODE_URI_PREFIX
    return TRACK_URI_PREFIX
