#!/usr/bin/env python3
"""
HTTP transport for the router admin pages.
Threads one requests.Session from each page fetch to the postback that follows it.
"""

import logging
from dataclasses import dataclass
from typing import Any, Mapping, Optional, Protocol

import requests
import urllib3
from requests.adapters import HTTPAdapter
from requests.auth import HTTPBasicAuth
from urllib3.util.retry import Retry

from .auth import Credentials
from .exceptions import RouterConnectionError

log = logging.getLogger(__name__)


@dataclass
class HttpResponse:
    status: int
    body: str = ""
    session: Any = None


class HttpClient(Protocol):
    """Minimal GET/POST interface the page client needs."""

    def get(self, uri: str, credentials: Credentials) -> HttpResponse:
        ...

    def post(self, uri: str, session: Any, body: Mapping[str, str]) -> HttpResponse:
        ...

    def close(self) -> None:
        ...


class RequestsHttpClient:
    """
    HttpClient backed by requests.

    One session, authenticated with HTTP Basic auth, serves every request
    until close() or a change of credentials. Each GET hands it back so the
    postback that follows reuses its cookies.
    """

    def __init__(self, timeout: int = 10, verify_ssl: bool = False, max_retries: int = 3):
        """
        Args:
            timeout: Request timeout in seconds
            verify_ssl: Whether to verify TLS certificates
            max_retries: Retries for idempotent requests on 5xx/connection errors
        """
        self.timeout = timeout
        self.verify_ssl = verify_ssl
        self.max_retries = max_retries
        self.session: Optional[requests.Session] = None
        self._session_auth: Optional[tuple] = None

        if not verify_ssl:
            urllib3.disable_warnings(urllib3.exceptions.InsecureRequestWarning)

    def _new_session(self, credentials: Credentials) -> requests.Session:
        session = requests.Session()
        session.auth = HTTPBasicAuth(credentials.username, credentials.password)
        session.verify = self.verify_ssl

        # POST is not retried: a repeated postback could apply a change twice.
        retry_strategy = Retry(
            total=self.max_retries,
            backoff_factor=1,
            status_forcelist=[500, 502, 503, 504],
            allowed_methods=["GET"],
        )
        adapter = HTTPAdapter(max_retries=retry_strategy)
        session.mount("http://", adapter)
        session.mount("https://", adapter)
        return session

    def _session_for(self, credentials: Credentials) -> requests.Session:
        auth = (credentials.username, credentials.password)
        if self.session is None or self._session_auth != auth:
            self.close()
            self.session = self._new_session(credentials)
            self._session_auth = auth
        return self.session

    def get(self, uri: str, credentials: Credentials) -> HttpResponse:
        """
        Authenticated GET.

        Raises:
            RouterConnectionError: On connection failures and timeouts
        """
        session = self._session_for(credentials)
        log.debug(f"GET {uri}")
        try:
            response = session.get(uri, timeout=self.timeout)
        except requests.exceptions.RequestException as e:
            log.error(f"Error fetching {uri}: {e}")
            raise RouterConnectionError(f"GET {uri} failed: {e}", uri=uri)
        return HttpResponse(status=response.status_code, body=response.text, session=session)

    def post(self, uri: str, session: Optional[requests.Session],
             body: Mapping[str, str]) -> HttpResponse:
        """
        Form-encoded POST on the session of a previous GET.

        Raises:
            RouterConnectionError: On connection failures and timeouts
        """
        if session is None:
            raise RouterConnectionError(f"No session available for POST {uri}", uri=uri)

        log.debug(f"POST {uri} ({len(body)} fields)")
        try:
            response = session.post(uri, data=dict(body), timeout=self.timeout)
        except requests.exceptions.RequestException as e:
            log.error(f"Error posting to {uri}: {e}")
            raise RouterConnectionError(f"POST {uri} failed: {e}", uri=uri)
        return HttpResponse(status=response.status_code, body=response.text, session=session)

    def close(self) -> None:
        """Close the session and its connection pool."""
        if self.session is not None:
            self.session.close()
            log.debug("Router session closed")
        self.session = None
        self._session_auth = None
