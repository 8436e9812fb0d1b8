#!/usr/bin/env python3
"""
Network utilities for SubRouter
HTTP session with a total per-fetch timeout and a selectable client identity
"""

import time
import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry
from typing import Optional
from urllib.parse import urlparse, urlunparse
from requests_file import FileAdapter

from config import MAX_RETRIES, USER_AGENT_LINKS, get_proxy_config, get_timeout
from error_handling import FetchError
from logger import get_logger, log_network_error

logger = get_logger()

class RobustSession:
    """HTTP session for subscription fetches"""

    def __init__(self, proxy: Optional[str] = None, timeout: Optional[float] = None):
        self.session = requests.Session()
        self.session.trust_env = False
        self.timeout = timeout or get_timeout()

        proxy = proxy or get_proxy_config()
        if proxy:
            self.session.proxies = {'http': proxy, 'https': proxy}
            logger.info(f"Using proxy: {sanitize_url(proxy)}")

        self.session.headers["User-Agent"] = USER_AGENT_LINKS

        # Local subscriptions
        self.session.mount('file://', FileAdapter())

        retry_strategy = Retry(
            total=MAX_RETRIES,
            raise_on_status=False,
            allowed_methods=["HEAD", "GET"]
        )

        adapter = HTTPAdapter(max_retries=retry_strategy)
        self.session.mount("http://", adapter)
        self.session.mount("https://", adapter)

    def get(self, url: str, user_agent: Optional[str] = None,
            timeout: Optional[float] = None, **kwargs) -> requests.Response:
        """Make a single GET request, raising on HTTP error status"""
        headers = kwargs.pop('headers', {})
        if user_agent:
            headers['User-Agent'] = user_agent
        response = self.session.get(url, headers=headers, timeout=timeout or self.timeout, **kwargs)
        response.raise_for_status()
        return response

    def fetch_bytes(self, url: str, user_agent: Optional[str] = None,
                    timeout: Optional[float] = None) -> bytes:
        """Fetch a subscription body, FetchError on failure or empty content

        The timeout bounds the whole attempt, including a slowly sent body.
        """
        if not is_valid_url(url):
            raise FetchError(f"Invalid subscription URL: {sanitize_url(url)}", url=url)

        timeout = timeout or self.timeout
        deadline = time.monotonic() + timeout
        try:
            response = self.get(url, user_agent=user_agent, timeout=timeout, stream=True)
            try:
                content = self._download(response, deadline, timeout)
            finally:
                response.close()
        except requests.exceptions.RequestException as e:
            log_network_error(sanitize_url(url), e)
            raise FetchError(f"Failed to fetch subscription from {sanitize_url(url)}: {str(e)}", url=url) from e

        if not content or not content.strip():
            raise FetchError(f"Empty response from {sanitize_url(url)}", url=url)

        logger.debug(f"Fetched {len(content)} bytes from {sanitize_url(url)} as '{user_agent}'")
        return content

    def _download(self, response: requests.Response, deadline: float, timeout: float) -> bytes:
        chunks = []
        for chunk in response.iter_content(chunk_size=8192):
            if time.monotonic() > deadline:
                raise requests.exceptions.Timeout(f"Download exceeded {timeout}s total time limit")
            chunks.append(chunk)
        return b''.join(chunks)

    def close(self):
        """Close the session"""
        self.session.close()

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()

def is_valid_url(url: str) -> bool:
    """Validate if a URL is properly formatted"""
    try:
        result = urlparse(url)
        return bool(result.scheme) and bool(result.netloc or result.scheme == 'file')
    except (ValueError, AttributeError):
        return False

def sanitize_url(url: str) -> str:
    """Sanitize URL for logging (remove query, fragment and credentials)"""
    try:
        parsed = urlparse(url)
        netloc = parsed.hostname or ''
        if parsed.port:
            netloc += f":{parsed.port}"
        return urlunparse((
            parsed.scheme,
            netloc,
            parsed.path,
            '', '', ''
        ))
    except ValueError:
        return url

def create_session(proxy: Optional[str] = None, timeout: Optional[float] = None) -> RobustSession:
    """Create a new robust session"""
    return RobustSession(proxy, timeout)
