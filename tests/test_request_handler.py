"""
Unit tests for utils/request_handler.py
"""
import os
import sys
import pytest
from unittest.mock import patch, MagicMock
import requests

# Add project root to path
project_root = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
sys.path.insert(0, project_root)

from utils.request_handler import (
    FetchError,
    RequestConfig,
    RequestHandler,
    create_request_handler_from_config,
)


def _response(status_code=200, text='<html></html>'):
    response = MagicMock()
    response.status_code = status_code
    response.text = text
    return response


def _handler(session, **config_kwargs):
    config_kwargs.setdefault('delay_listing', (0, 0))
    config_kwargs.setdefault('delay_detail', (0, 0))
    config_kwargs.setdefault('delay_resolver', (0, 0))
    config_kwargs.setdefault('delay_default', (0, 0))
    return RequestHandler(config=RequestConfig(**config_kwargs), session=session)


class TestRequestConfig:
    """Test cases for RequestConfig class."""

    def test_default_values(self):
        """Test default configuration values."""
        config = RequestConfig()

        assert config.timeout == 30.0
        assert config.max_retries == 2
        assert 503 in config.retry_status_codes
        assert 404 not in config.retry_status_codes
        assert config.session_cookie is None
        assert config.proxy_http is None
        assert 'nexdrive.lol' in config.resolver_hosts

    def test_custom_values(self):
        """Test custom configuration values."""
        config = RequestConfig(base_url='https://custom.example', max_retries=0,
                               session_cookie='cf_clearance=abc', proxy_http='http://proxy:8080')

        assert config.base_url == 'https://custom.example'
        assert config.max_retries == 0
        assert config.session_cookie == 'cf_clearance=abc'
        assert config.proxy_http == 'http://proxy:8080'


class TestHeadersAndProxies:
    """Test cases for header and proxy construction."""

    def test_browser_headers_with_referer(self):
        handler = _handler(MagicMock(), base_url='https://catalog.example/')
        headers = handler._build_headers()

        assert 'Mozilla' in headers['User-Agent']
        assert headers['Referer'] == 'https://catalog.example/'
        assert 'Cookie' not in headers

    def test_cookie_and_user_agent(self):
        handler = _handler(MagicMock(), session_cookie='a=b', user_agent='TestAgent/1.0')
        headers = handler._build_headers()

        assert headers['Cookie'] == 'a=b'
        assert headers['User-Agent'] == 'TestAgent/1.0'

    def test_no_proxies(self):
        assert _handler(MagicMock())._get_proxies() is None

    def test_proxies(self):
        handler = _handler(MagicMock(), proxy_http='http://p:1', proxy_https='http://p:2')
        assert handler._get_proxies() == {'http': 'http://p:1', 'https': 'http://p:2'}


class TestDelayRange:
    """Test cases for per-URL pacing."""

    def test_url_kinds(self):
        handler = RequestHandler(config=RequestConfig(
            delay_listing=(1, 0), delay_detail=(2, 0), delay_resolver=(3, 0), delay_default=(4, 0)))

        assert handler.get_delay_range('https://catalog.example/page/2/') == (1, 0)
        assert handler.get_delay_range('https://catalog.example/download-show-2023/') == (2, 0)
        assert handler.get_delay_range('https://nexdrive.lol/abc/') == (3, 0)
        assert handler.get_delay_range('https://catalog.example/about/') == (4, 0)

    @patch('utils.request_handler.time.sleep')
    @patch('utils.request_handler.random.uniform', return_value=0.05)
    def test_wait_sleeps_min_plus_jitter(self, mock_uniform, mock_sleep):
        handler = RequestHandler(config=RequestConfig(delay_default=(0.15, 0.05)))
        handler._wait_before_request('https://catalog.example/about/')

        mock_uniform.assert_called_once_with(0, 0.05)
        mock_sleep.assert_called_once()
        assert mock_sleep.call_args[0][0] == pytest.approx(0.20)


@patch('utils.request_handler.time.sleep')
class TestFetch:
    """Test cases for fetch/get_page retries."""

    def test_success(self, mock_sleep):
        session = MagicMock()
        session.get.return_value = _response(text='<html>ok</html>')
        handler = _handler(session, timeout=12)

        assert handler.fetch('https://catalog.example/a/') == '<html>ok</html>'
        assert handler.request_count == 1
        _, kwargs = session.get.call_args
        assert kwargs['timeout'] == 12

    def test_retries_transient_status(self, mock_sleep):
        session = MagicMock()
        session.get.side_effect = [_response(503), _response(200, 'fine')]
        handler = _handler(session)

        assert handler.fetch('https://catalog.example/a/') == 'fine'
        assert session.get.call_count == 2

    def test_no_retry_on_404(self, mock_sleep):
        session = MagicMock()
        session.get.return_value = _response(404)
        handler = _handler(session)

        with pytest.raises(FetchError) as exc_info:
            handler.fetch('https://catalog.example/missing/')
        assert exc_info.value.status_code == 404
        assert session.get.call_count == 1

    def test_retries_exhausted(self, mock_sleep):
        session = MagicMock()
        session.get.side_effect = requests.Timeout('slow')
        handler = _handler(session, max_retries=2)

        with pytest.raises(FetchError) as exc_info:
            handler.fetch('https://catalog.example/a/')
        assert session.get.call_count == 3
        assert exc_info.value.url == 'https://catalog.example/a/'
        assert exc_info.value.status_code is None

    def test_backoff_between_attempts(self, mock_sleep):
        session = MagicMock()
        session.get.side_effect = [_response(502), _response(502), _response(200, 'x')]
        handler = _handler(session, retry_backoff=1.5)

        handler.fetch('https://catalog.example/a/')
        assert [c[0][0] for c in mock_sleep.call_args_list] == [1.5, 3.0]

    def test_get_page_returns_none_on_failure(self, mock_sleep):
        session = MagicMock()
        session.get.side_effect = requests.ConnectionError('down')
        handler = _handler(session, max_retries=0)

        assert handler.get_page('https://catalog.example/a/') is None

    def test_fetch_error_is_runtime_error(self, mock_sleep):
        assert issubclass(FetchError, RuntimeError)


class TestFactory:
    def test_create_request_handler_from_config(self):
        session = MagicMock()
        handler = create_request_handler_from_config(session=session, base_url='https://x.example',
                                                     max_retries=5)
        assert handler.session is session
        assert handler.config.base_url == 'https://x.example'
        assert handler.config.max_retries == 5
