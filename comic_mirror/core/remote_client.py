"""
Remote Source Client

This module talks to the remote numbered archive: a "latest" descriptor,
one descriptor per remote number, and the asset URL embedded in each
descriptor.
"""

from __future__ import annotations

import logging
import time
from dataclasses import replace
from typing import Optional, Protocol

import requests

from .errors import AssetFetchFailed, EntryFetchFailed, EntryParseFailed, RemoteUnavailable
from .record import Entry, secure_asset_url


DEFAULT_BASE_URL = "https://xkcd.com"
DEFAULT_USER_AGENT = "comic_mirror/1.0 (Offline Archive Mirror)"

# Status codes that will not change on retry
PERMANENT_STATUS_CODES = (403, 404, 410)


def _decode(response: requests.Response, url: str) -> str:
    # Metadata is stored verbatim, so decode the body bytes directly
    try:
        return response.content.decode("utf-8")
    except UnicodeDecodeError as e:
        raise EntryParseFailed(url, f"body is not UTF-8: {e}") from e


class RemoteSource(Protocol):
    def fetch_latest(self) -> Entry: ...

    def fetch_entry(self, entry_id: int) -> Entry: ...

    def fetch_asset(self, entry: Entry) -> bytes: ...


class RemoteClient:
    """
    Fetches descriptors and assets from the remote archive over HTTP.

    Local ids are zero-based; the remote numbering is one-based, so entry
    ``id`` is requested as remote number ``id + 1``. A single session is
    shared by all worker threads.
    """

    def __init__(self,
                 base_url: str = DEFAULT_BASE_URL,
                 timeout: Optional[float] = None,
                 max_retries: int = 0,
                 retry_delay: float = 1.0,
                 user_agent: str = DEFAULT_USER_AGENT,
                 session: Optional[requests.Session] = None):
        """
        Initialize the remote client.

        Args:
            base_url: Root URL of the remote archive
            timeout: Per-request timeout in seconds; None waits indefinitely
            max_retries: Extra attempts for transient failures
            retry_delay: Base delay for exponential backoff between attempts
            user_agent: User-Agent header sent with every request
            session: Pre-built session (mainly for tests)
        """
        self.base_url = base_url.rstrip('/')
        self.timeout = timeout
        self.max_retries = max_retries
        self.retry_delay = retry_delay
        self.logger = logging.getLogger(__name__)

        self.session = session or requests.Session()
        self.session.headers.update({
            'User-Agent': user_agent,
            'Accept': 'application/json, */*;q=0.8',
        })

    def latest_url(self) -> str:
        return f"{self.base_url}/info.0.json"

    def entry_url(self, remote_number: int) -> str:
        return f"{self.base_url}/{remote_number}/info.0.json"

    def fetch_latest(self) -> Entry:
        """
        Fetch the descriptor of the newest entry.

        Raises:
            RemoteUnavailable: If the descriptor cannot be fetched or parsed
        """
        url = self.latest_url()
        try:
            response = self._get(url)
            latest = Entry.from_json(0, _decode(response, url))
        except requests.exceptions.RequestException as e:
            raise RemoteUnavailable(url, str(e)) from e
        except EntryParseFailed as e:
            raise RemoteUnavailable(url, f"malformed descriptor: {e}") from e
        latest = replace(latest, id=latest.remote_number - 1)
        self.logger.info(f"Latest remote entry: {latest.id}")
        return latest

    def fetch_entry(self, entry_id: int) -> Entry:
        """
        Fetch the descriptor for local id ``entry_id``.

        Raises:
            EntryFetchFailed: On transport or HTTP errors
            EntryParseFailed: If the descriptor is not a valid entry
        """
        url = self.entry_url(entry_id + 1)
        try:
            response = self._get(url)
        except requests.exceptions.RequestException as e:
            raise EntryFetchFailed(entry_id, str(e)) from e
        return Entry.from_json(entry_id, _decode(response, url))

    def fetch_asset(self, entry: Entry) -> bytes:
        """
        Download an entry's asset, always over https.

        Raises:
            AssetFetchFailed: On transport or HTTP errors
        """
        url = secure_asset_url(entry.img)
        try:
            response = self._get(url)
        except requests.exceptions.RequestException as e:
            raise AssetFetchFailed(entry.id, url, str(e)) from e
        return response.content

    def _get(self, url: str) -> requests.Response:
        """
        GET a URL with retries for transient failures.

        Raises:
            requests.RequestException: When every attempt failed
        """
        for attempt in range(self.max_retries + 1):
            if attempt > 0:
                delay = self.retry_delay * (2 ** (attempt - 1))  # Exponential backoff
                self.logger.debug(f"Retry {attempt} for {url} after {delay:.1f}s")
                time.sleep(delay)
            try:
                response = self.session.get(url, timeout=self.timeout)
                response.raise_for_status()
                return response
            except requests.exceptions.HTTPError as e:
                status_code = e.response.status_code if e.response is not None else None
                if status_code in PERMANENT_STATUS_CODES or attempt >= self.max_retries:
                    raise
                self.logger.warning(f"HTTP error {status_code} for {url} (attempt {attempt + 1})")
            except requests.exceptions.RequestException as e:
                if attempt >= self.max_retries:
                    raise
                self.logger.warning(f"Request error for {url} (attempt {attempt + 1}): {e}")
        raise requests.exceptions.RequestException(f"No attempts made for {url}")

    def close(self):
        """Close the HTTP session."""
        self.session.close()
        self.logger.debug("Remote client session closed")
