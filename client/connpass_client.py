"""HTTP client for the connpass event search API."""
import dataclasses
import json
import logging
import platform
import threading
from typing import Any, Callable, Optional, Tuple, Type, TypeVar, Union
from urllib.parse import urljoin

import requests

from client.exceptions import RequestEncodeError, ResponseDecodeError
from client.query_builder import BASE_URL, LEGACY_MAX_MONTH, build_url, parse_url
from processor.models import QueryParams, Results
from processor.response_decoder import decode_into, encode_record

logger = logging.getLogger(__name__)

LIBRARY_VERSION = "1.0.0"
USER_AGENT = f"connpass-client/{LIBRARY_VERSION}"
MEDIA_TYPE = "application/json"

T = TypeVar('T')


def runtime_version() -> str:
    """Interpreter identifier appended to the User-Agent header."""
    return f"{platform.python_implementation()}/{platform.python_version()}"


class ConnpassClient:
    """Client for the connpass event search API."""

    def __init__(
        self,
        session: Optional[requests.Session] = None,
        base_url: str = BASE_URL,
        user_agent: str = USER_AGENT,
        timeout: Optional[float] = None,
        raise_for_status: bool = True,
        max_month: int = LEGACY_MAX_MONTH
    ):
        """
        Initialize the client.

        Args:
            session: Transport to send requests through. When omitted the
                client creates its own session on first use.
            base_url: API endpoint that request URLs are resolved against
            user_agent: Library part of the User-Agent header
            timeout: Passed to the transport on every send (default: None)
            raise_for_status: Raise requests.HTTPError on non-2xx responses
                instead of decoding their body
            max_month: Highest month accepted in date filters

        Raises:
            ConfigurationError: If base_url is malformed
        """
        parse_url(base_url)
        self.base_url = base_url
        self.user_agent = user_agent
        self.timeout = timeout
        self.raise_for_status = raise_for_status
        self.max_month = max_month
        self._session = session
        self._owns_session = session is None
        self._session_lock = threading.Lock()

    @property
    def session(self) -> requests.Session:
        """Transport used for requests."""
        if self._session is None:
            with self._session_lock:
                if self._session is None:
                    logger.debug("Creating HTTP session")
                    self._session = requests.Session()
        return self._session

    def close(self) -> None:
        """Close the session if this client created it."""
        if not self._owns_session:
            return
        with self._session_lock:
            if self._session is not None:
                self._session.close()
                self._session = None

    def __enter__(self) -> 'ConnpassClient':
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def search_events(self, params: QueryParams) -> Results:
        """
        Search events matching the given parameters.

        Args:
            params: Search parameters

        Returns:
            Results decoded from the response

        Raises:
            ConfigurationError: If the endpoint URL is malformed
            ResponseDecodeError: If the response does not decode into Results
            requests.RequestException: If the request fails
        """
        url = build_url(params, base_url=self.base_url, max_month=self.max_month)
        logger.info(f"Searching events: {url}")

        request = self.new_request('GET', url)
        results, _ = self.do(request, Results)

        logger.info(
            f"Received {results.results_returned} of "
            f"{results.results_available} available events"
        )
        return results

    def new_request(self, method: str, url: str, body: Any = None) -> requests.PreparedRequest:
        """
        Prepare a request against the API.

        Args:
            method: HTTP method
            url: URL relative to the base URL, or absolute
            body: Object serialized as the JSON payload, or None for no body

        Returns:
            Prepared request with JSON and User-Agent headers set

        Raises:
            ConfigurationError: If the resolved URL is malformed
            RequestEncodeError: If the body cannot be serialized
        """
        resolved = urljoin(self.base_url, url)
        parse_url(resolved)

        data = None
        if body is not None:
            try:
                data = json.dumps(encode_record(body)).encode('utf-8')
            except (TypeError, ValueError) as e:
                raise RequestEncodeError(f"Cannot serialize request body: {e}") from e

        headers = {
            'Content-Type': MEDIA_TYPE,
            'Accept': MEDIA_TYPE,
            'User-Agent': f"{self.user_agent} {runtime_version()}"
        }
        return requests.Request(method, resolved, headers=headers, data=data).prepare()

    def do(
        self,
        request: requests.PreparedRequest,
        into: Union[Type[T], Callable[[Any], T]]
    ) -> Tuple[T, requests.Response]:
        """
        Send a prepared request and decode the JSON response.

        Args:
            request: Request built by new_request
            into: Dataclass type to decode into, or a callable taking the
                parsed JSON

        Returns:
            Tuple of (decoded value, response). The response body is
            already consumed and closed.

        Raises:
            ResponseDecodeError: If the body is not JSON or does not match into
            requests.HTTPError: On a non-2xx status when raise_for_status is set
            requests.RequestException: If the transport fails
        """
        logger.debug(f"{request.method} {request.url}")
        with self.session.send(request, timeout=self.timeout) as response:
            logger.debug(f"Response status: {response.status_code}")
            if self.raise_for_status:
                response.raise_for_status()

            try:
                payload = response.json()
            except ValueError as e:
                raise ResponseDecodeError(f"Response body is not valid JSON: {e}") from e

        if dataclasses.is_dataclass(into):
            return decode_into(into, payload), response
        try:
            return into(payload), response
        except ResponseDecodeError:
            raise
        except (TypeError, ValueError) as e:
            raise ResponseDecodeError(f"Cannot decode response body: {e}") from e
