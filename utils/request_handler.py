"""
Request Handler for the Catalog Spider

This module provides the HTTP fetch collaborator used by the spider and the
link resolver:
- Session reuse with browser-like headers and an optional session cookie
- A jittered delay before every request, chosen by URL kind (listing page,
  detail page, resolver page, anything else)
- Bounded retries on network errors and transient HTTP status codes

Usage:
    from utils.request_handler import RequestHandler, RequestConfig

    handler = RequestHandler(config=RequestConfig(base_url='https://catalog.example'))
    html = handler.get_page(url)      # None on failure
    html = handler.fetch(url)         # raises FetchError on failure
"""

import random
import time
import logging
from dataclasses import dataclass
from typing import Dict, Optional, Sequence, Tuple

import requests

logger = logging.getLogger(__name__)


# Status codes worth another attempt
RETRY_STATUS_CODES = (408, 413, 429, 500, 502, 503, 504, 521, 522, 524)


class FetchError(RuntimeError):
    """Raised by ``RequestHandler.fetch`` when a page cannot be retrieved."""

    def __init__(self, url: str, message: str, status_code: Optional[int] = None):
        super().__init__(f"{message} ({url})")
        self.url = url
        self.status_code = status_code


@dataclass
class RequestConfig:
    """Configuration for request handler"""
    base_url: str = 'https://vegamovies.yoga'
    timeout: float = 30.0
    max_retries: int = 2
    retry_status_codes: Sequence[int] = RETRY_STATUS_CODES
    retry_backoff: float = 1.0
    session_cookie: Optional[str] = None
    user_agent: Optional[str] = None
    proxy_http: Optional[str] = None
    proxy_https: Optional[str] = None
    # (min seconds, random range seconds) per URL kind
    delay_listing: Tuple[float, float] = (0.10, 0.05)
    delay_detail: Tuple[float, float] = (0.15, 0.05)
    delay_resolver: Tuple[float, float] = (0.15, 0.05)
    delay_default: Tuple[float, float] = (0.15, 0.05)
    resolver_hosts: Sequence[str] = ('nexdrive.lol', 'gdtot', 'gdflix', 'driveleech')


class RequestHandler:
    """
    HTTP request handler with session reuse, pacing and retries.

    One handler owns one ``requests.Session``; create one handler per worker
    thread.
    """

    # Browser-like headers for direct requests to the catalog site
    BROWSER_HEADERS = {
        'User-Agent': 'Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/136.0.0.0 Safari/537.36',
        'Accept': 'text/html,application/xhtml+xml,application/xml;q=0.9,image/avif,image/webp,image/apng,*/*;q=0.8',
        'Accept-Language': 'en-US,en;q=0.9',
        'Accept-Encoding': 'gzip, deflate',
        'Connection': 'keep-alive',
        'Upgrade-Insecure-Requests': '1',
        'Sec-Fetch-Dest': 'document',
        'Sec-Fetch-Mode': 'navigate',
        'Sec-Fetch-Site': 'none',
        'Sec-Fetch-User': '?1',
        'Sec-Ch-Ua': '"Chromium";v="136", "Google Chrome";v="136", "Not.A/Brand";v="99"',
        'Sec-Ch-Ua-Mobile': '?0',
        'Sec-Ch-Ua-Platform': '"Windows"',
        'Cache-Control': 'max-age=0',
    }

    def __init__(self, config: Optional[RequestConfig] = None,
                 session: Optional[requests.Session] = None):
        """
        Initialize request handler.

        Args:
            config: RequestConfig instance with configuration settings
            session: Session to reuse (cookies, connection pool); a new one
                is created when omitted
        """
        self.config = config or RequestConfig()
        self.session = session or requests.Session()
        self.request_count = 0

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _build_headers(self) -> Dict[str, str]:
        headers = dict(self.BROWSER_HEADERS)
        if self.config.user_agent:
            headers['User-Agent'] = self.config.user_agent
        if self.config.session_cookie:
            headers['Cookie'] = self.config.session_cookie
        headers['Referer'] = f"{self.config.base_url.rstrip('/')}/"
        return headers

    def _get_proxies(self) -> Optional[Dict[str, str]]:
        proxies = {}
        if self.config.proxy_http:
            proxies['http'] = self.config.proxy_http
        if self.config.proxy_https:
            proxies['https'] = self.config.proxy_https
        return proxies or None

    def get_delay_range(self, url: str) -> Tuple[float, float]:
        """Return the (min, range) delay for the kind of page *url* is."""
        if 'page/' in url:
            return self.config.delay_listing
        if any(host in url for host in self.config.resolver_hosts):
            return self.config.delay_resolver
        if 'download-' in url:
            return self.config.delay_detail
        return self.config.delay_default

    def _wait_before_request(self, url: str) -> None:
        minimum, spread = self.get_delay_range(url)
        delay = minimum + random.uniform(0, spread)
        if delay > 0:
            logger.debug(f"Waiting {delay:.2f}s before fetching {url}")
            time.sleep(delay)

    def _do_request(self, url: str) -> Tuple[Optional[str], Optional[FetchError], bool]:
        """Execute a single HTTP request.

        Returns:
            (html, error, retryable)
        """
        try:
            response = self.session.get(url, headers=self._build_headers(), proxies=self._get_proxies(),
                                        timeout=self.config.timeout)
        except requests.RequestException as e:
            logger.warning(f"Request error for {url}: {e}")
            return None, FetchError(url, f"{type(e).__name__}: {e}"), True

        self.request_count += 1
        if response.status_code >= 400:
            retryable = response.status_code in self.config.retry_status_codes
            logger.warning(f"HTTP {response.status_code} for {url}")
            return None, FetchError(url, f"HTTP {response.status_code}", response.status_code), retryable

        logger.debug(f"Response: HTTP {response.status_code}, Text-Length: {len(response.text)} chars")
        return response.text, None, False

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def fetch(self, url: str) -> str:
        """
        Fetch a page, retrying transient failures.

        Args:
            url: Absolute URL

        Returns:
            Response body

        Raises:
            FetchError: when every attempt failed or a non-retryable status
                was returned
        """
        attempts = self.config.max_retries + 1
        last_error: Optional[FetchError] = None

        for attempt in range(attempts):
            self._wait_before_request(url)
            logger.debug(f"Fetching URL: {url} (attempt {attempt + 1}/{attempts})")
            html, error, retryable = self._do_request(url)
            if error is None:
                return html
            last_error = error
            if not retryable:
                break
            if attempt < attempts - 1 and self.config.retry_backoff > 0:
                time.sleep(self.config.retry_backoff * (attempt + 1))

        logger.error(f"Failed to fetch {url}: {last_error}")
        raise last_error

    def get_page(self, url: str) -> Optional[str]:
        """
        Fetch a page, returning None instead of raising on failure.
        """
        try:
            return self.fetch(url)
        except FetchError:
            return None


def create_request_handler_from_config(session: Optional[requests.Session] = None,
                                       **config_kwargs) -> RequestHandler:
    """
    Create a RequestHandler instance from configuration.

    Args:
        session: Optional session to reuse
        **config_kwargs: Configuration parameters for RequestConfig

    Returns:
        Configured RequestHandler instance
    """
    config = RequestConfig(**config_kwargs)
    return RequestHandler(config=config, session=session)
