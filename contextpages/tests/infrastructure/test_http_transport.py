from unittest.mock import Mock

import pytest
import requests

from contextpages.crosscutting.config import TransportSettings
from contextpages.domain.errors import RateLimited, TemporaryFailure, PermanentFailure, NotFound
from contextpages.infrastructure.http_transport import HttpTransport


def _response(status=200, body=None, headers=None, json_error=None):
    response = Mock()
    response.status_code = status
    response.headers = headers or {}
    if json_error is not None:
        response.json.side_effect = json_error
    else:
        response.json.return_value = body if body is not None else {}
    return response


class TestHttpTransport:
    """Tests for the requests based transport."""

    def setup_method(self):
        """Set up test fixtures."""
        self.session = Mock()
        self.session.headers = {}
        self.transport = HttpTransport(
            base_url='https://spclient.example.com/',
            access_token='BQDtestaccesstoken1234567890',
            timeout=5.0,
            session=self.session,
        )

    def test_authorization_header_is_set(self):
        assert self.session.headers['Authorization'] == 'Bearer BQDtestaccesstoken1234567890'
        assert self.session.headers['Accept'] == 'application/json'

    def test_hermes_locator_is_joined_onto_base_url(self):
        assert self.transport.url_for('hm://context-resolve/v1/spotify:album:x') == \
            'https://spclient.example.com/context-resolve/v1/spotify:album:x'

    def test_relative_locator_is_joined_onto_base_url(self):
        assert self.transport.url_for('/radio-apollo/v3/tracks') == \
            'https://spclient.example.com/radio-apollo/v3/tracks'

    def test_absolute_locator_is_used_as_is(self):
        assert self.transport.url_for('https://cdn.example.com/page.json') == 'https://cdn.example.com/page.json'

    def test_get_json_returns_body(self):
        self.session.get.return_value = _response(body={'tracks': []})

        assert self.transport.get_json('hm://page/1') == {'tracks': []}
        self.session.get.assert_called_once_with('https://spclient.example.com/page/1', timeout=5.0)

    def test_rate_limit_uses_retry_after(self):
        self.session.get.return_value = _response(status=429, headers={'Retry-After': '3'})

        with pytest.raises(RateLimited) as exc_info:
            self.transport.get_json('hm://page/1')
        assert exc_info.value.retry_after_ms == 3000

    def test_not_found(self):
        self.session.get.return_value = _response(status=404)

        with pytest.raises(NotFound):
            self.transport.get_json('hm://page/1')

    @pytest.mark.parametrize('status', [400, 401, 403])
    def test_client_errors_are_permanent(self, status):
        self.session.get.return_value = _response(status=status)

        with pytest.raises(PermanentFailure):
            self.transport.get_json('hm://page/1')

    def test_server_error_is_temporary(self):
        self.session.get.return_value = _response(status=503)

        with pytest.raises(TemporaryFailure):
            self.transport.get_json('hm://page/1')

    def test_connection_error_is_temporary(self):
        self.session.get.side_effect = requests.ConnectionError('connection reset')

        with pytest.raises(TemporaryFailure):
            self.transport.get_json('hm://page/1')

    def test_timeout_is_temporary(self):
        self.session.get.side_effect = requests.Timeout('read timed out')

        with pytest.raises(TemporaryFailure):
            self.transport.get_json('hm://page/1')

    def test_malformed_json_is_permanent(self):
        self.session.get.return_value = _response(json_error=ValueError('Expecting value'))

        with pytest.raises(PermanentFailure):
            self.transport.get_json('hm://page/1')

    def test_non_object_json_is_permanent(self):
        self.session.get.return_value = _response(body=[1, 2, 3])

        with pytest.raises(PermanentFailure):
            self.transport.get_json('hm://page/1')

    def test_from_settings(self):
        settings = TransportSettings(base_url='https://api.example.com', access_token=None, timeout_seconds=2.5)
        session = Mock()
        session.headers = {}

        transport = HttpTransport.from_settings(settings, session=session)

        assert transport.base_url == 'https://api.example.com'
        assert transport.timeout == 2.5
        assert 'Authorization' not in session.headers
