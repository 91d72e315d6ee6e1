import pytest

from contextpages.domain.errors import PermanentFailure
from contextpages.infrastructure.codec import (
    context_from_json, page_from_json, resolved_context_from_json, track_from_json, tracks_from_json,
)


class TestCodec:
    """Tests for JSON to domain conversion."""

    def test_track_from_json(self):
        track = track_from_json({
            'uri': 'spotify:track:6rqhFgbbKwnb9MLmUQDhG6',
            'uid': 'a1b2c3',
            'metadata': {'is_queued': False},
        })

        assert track.uri == 'spotify:track:6rqhFgbbKwnb9MLmUQDhG6'
        assert track.uid == 'a1b2c3'
        assert track.gid is None
        assert track.metadata == {'is_queued': 'False'}

    def test_track_gid_is_hex_decoded(self):
        track = track_from_json({'gid': '000000000000000000000000000000ff'})

        assert track.gid == bytes(15) + b'\xff'
        assert track.uri is None

    def test_invalid_gid_is_malformed(self):
        with pytest.raises(PermanentFailure):
            track_from_json({'gid': 'zz'})

    def test_tracks_require_array(self):
        with pytest.raises(PermanentFailure):
            tracks_from_json(None)
        with pytest.raises(PermanentFailure):
            tracks_from_json({'uri': 'spotify:track:x'})

    def test_page_from_json(self):
        page = page_from_json({
            'page_url': 'hm://context-resolve/v1/page/1',
            'next_page_url': 'hm://context-resolve/v1/page/2',
            'loading': False,
        })

        assert page.tracks == []
        assert page.page_url == 'hm://context-resolve/v1/page/1'
        assert page.next_page_url == 'hm://context-resolve/v1/page/2'
        assert page.loading is False

    def test_resolved_context_from_json(self):
        resolved = resolved_context_from_json({
            'uri': 'spotify:album:4aawyAB9vmqN3uQ7FjRGTy',
            'metadata': {'context_description': 'Global Warming'},
            'pages': [
                {'tracks': [{'uri': 'spotify:track:a'}, {'uri': 'spotify:track:b'}]},
                {'page_url': 'hm://page/1'},
            ],
        })

        assert resolved.context_description == 'Global Warming'
        assert len(resolved.pages) == 2
        assert [t.uri for t in resolved.pages[0].tracks] == ['spotify:track:a', 'spotify:track:b']
        assert resolved.pages[1].page_url == 'hm://page/1'

    def test_resolved_context_pages_must_be_array(self):
        with pytest.raises(PermanentFailure):
            resolved_context_from_json({'pages': {}})

    def test_context_from_json_requires_uri(self):
        with pytest.raises(PermanentFailure):
            context_from_json({'pages': []})

    def test_context_from_json(self):
        context = context_from_json({
            'uri': 'spotify:playlist:37i9dQZF1DXcBWIGoYBM5M',
            'url': 'context://spotify:playlist:37i9dQZF1DXcBWIGoYBM5M',
        })

        assert context.uri == 'spotify:playlist:37i9dQZF1DXcBWIGoYBM5M'
        assert context.pages == []
