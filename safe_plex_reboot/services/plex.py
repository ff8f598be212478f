"""
Plex service checker for Safe Plex Reboot.

This module implements connectivity validation and session polling for Plex
Media Server. Sessions are counted from the ``/status/sessions`` XML listing.

Example:
    >>> checker = PlexChecker(load_config())
    >>> checker.test_connection()
    >>> streams = checker.check_activity()
"""

import re
import xml.etree.ElementTree as ET
from typing import Optional
from urllib.parse import urljoin

import requests

from safe_plex_reboot.config import GuardConfig
from safe_plex_reboot.services.base import (
    ServiceChecker,
    ServiceConnectionError,
    ServiceResponseError,
    ServiceCheckError
)

# Elements of a session listing that represent one playback stream
SESSION_TAGS = ('Video', 'Track')

_SESSION_MARKER = re.compile(r'<(?:%s)\b' % '|'.join(SESSION_TAGS))


def count_session_entries(payload: str) -> int:
    """
    Count playback entries in a ``/status/sessions`` payload.

    Well-formed XML is parsed and every ``Video`` or ``Track`` element is
    counted. A malformed or truncated body falls back to counting the opening
    markers in the raw text, which may under- or over-count but never fails.

    Args:
        payload: Response body

    Returns:
        int: Number of playback entries
    """
    if not payload.strip():
        return 0

    try:
        root = ET.fromstring(payload)
    except ET.ParseError:
        return len(_SESSION_MARKER.findall(payload))

    return sum(1 for element in root.iter() if element.tag in SESSION_TAGS)


class PlexChecker(ServiceChecker):
    """
    Service checker for Plex Media Server.

    Attributes:
        url (str): Base URL of the Plex server
        token (str): X-Plex-Token, sent as a query parameter
        connect_timeout (int): Timeout for the connectivity check in seconds
        request_timeout (int): Timeout for session polls in seconds
    """

    def __init__(self, config: GuardConfig, session: Optional[requests.Session] = None):
        """
        Initialize Plex checker with configuration.

        Args:
            config: Run configuration
            session: Optional requests session to reuse

        Raises:
            ServiceConfigError: If required configuration is missing
        """
        super().__init__(config)
        self.validate_config()

        self.url = config.plex_url.rstrip('/')
        self.token = config.token
        self.connect_timeout = config.connect_timeout
        self.request_timeout = config.request_timeout
        self.session = session or requests.Session()

        self.logger.debug(f"Initialized Plex checker for {self.url}")

    def test_connection(self) -> None:
        """
        Test connection to Plex server.

        Raises:
            ServiceConnectionError: If the server root is not reachable
        """
        try:
            self._make_request("/", self.connect_timeout)
        except ServiceCheckError as e:
            raise ServiceConnectionError(
                f"Cannot connect to Plex server at {self.url}: {e}"
            ) from e

    def check_activity(self) -> int:
        """
        Count active Plex playback sessions.

        Returns:
            int: Number of active streams

        Raises:
            ServiceConnectionError: If the request fails or times out
            ServiceCheckError: On any other failure
        """
        try:
            response = self._make_request("/status/sessions", self.request_timeout)
            body = response.text
            self.logger.debug(f"Plex API response size: {len(body)} bytes")

            count = count_session_entries(body)
            self.logger.debug(f"Stream count calculation result: {count}")
            return count

        except ServiceCheckError:
            raise
        except Exception as e:
            raise ServiceCheckError(f"Error checking Plex sessions: {e}")

    def _make_request(self, endpoint: str, timeout: int) -> requests.Response:
        """
        Make authenticated request to Plex API.

        Args:
            endpoint: API endpoint path
            timeout: Request timeout in seconds

        Returns:
            The successful response

        Raises:
            ServiceConnectionError: If the request fails or times out
            ServiceResponseError: If the status is not 2xx
        """
        try:
            response = self.session.get(
                urljoin(self.url + '/', endpoint.lstrip('/')),
                params={'X-Plex-Token': self.token},
                headers={'Accept': 'application/xml'},
                timeout=timeout
            )
            response.raise_for_status()
            return response

        except requests.exceptions.Timeout:
            raise ServiceConnectionError(
                f"Plex API request to {endpoint} timed out after {timeout}s"
            ) from None
        except requests.exceptions.HTTPError as e:
            status = e.response.status_code if e.response is not None else 'unknown'
            raise ServiceResponseError(
                f"Plex API returned HTTP {status} for {self.url}{endpoint}"
            ) from None
        except requests.exceptions.RequestException as e:
            raise ServiceConnectionError(
                f"Plex API request failed: {self._redact(str(e))}"
            ) from None

    def _redact(self, text: str) -> str:
        """Mask the token in text that may contain a request URL."""
        return text.replace(self.token, '***') if self.token else text
