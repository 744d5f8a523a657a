"""
Base API client for cinescout external service integrations.
Provides common request handling and error parsing.
"""

import logging
import requests
from typing import Any, Dict, Optional

logger = logging.getLogger('cinescout')


class ExternalServiceError(Exception):
    """Raised when an upstream service fails or returns an unusable response."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class BaseAPIClient:
    """
    Base class for API clients with common request handling.

    Subclasses should:
    - Set `api_name` class attribute for error messages
    - Set `base_url` class attribute
    - Override `_get_headers()` / `_get_auth_params()` for credentials

    Requests are made once; there is no retry or backoff here. Callers decide
    whether a failure skips an item or aborts the operation.
    """

    api_name: str = "API"
    base_url: str = ""
    exception_class: type = ExternalServiceError
    request_timeout: int = 30

    def __init__(self, session: Optional[requests.Session] = None):
        """Initialize base client state."""
        self.session = session

    def _get_headers(self) -> Dict[str, str]:
        """Get headers for API requests. Override in subclass."""
        return {"Accept": "application/json"}

    def _get_auth_params(self) -> Dict[str, str]:
        """Get credential query parameters. Override in subclass."""
        return {}

    def _build_url(self, endpoint: str) -> str:
        """Build full URL from base and endpoint."""
        return f"{self.base_url}/{endpoint.lstrip('/')}"

    def _parse_error_response(self, response: requests.Response) -> str:
        """
        Parse error message from response body.

        Handles dicts with 'status_message' (TMDB style), 'message' or 'error'.

        Args:
            response: Failed HTTP response

        Returns:
            Extracted error message or raw response text
        """
        error_msg = response.text
        try:
            error_data = response.json()
            if isinstance(error_data, dict):
                error_msg = error_data.get(
                    'status_message', error_data.get('message', error_data.get('error', error_msg))
                )
        except ValueError as e:
            logger.debug(f"Failed to parse error response JSON: {e}")
        return error_msg

    def _handle_response(self, response: requests.Response) -> Any:
        """
        Handle HTTP response, raising exceptions for errors.

        Args:
            response: HTTP response object

        Returns:
            Parsed JSON response

        Raises:
            exception_class: For any non-success status or unparseable body
        """
        if response.status_code == 401:
            raise self.exception_class(f"{self.api_name}: invalid API key", status_code=401)
        elif response.status_code >= 400:
            error_msg = self._parse_error_response(response)
            raise self.exception_class(
                f"{self.api_name} error {response.status_code}: {error_msg}",
                status_code=response.status_code
            )

        try:
            return response.json()
        except ValueError as e:
            raise self.exception_class(f"{self.api_name} returned invalid JSON: {e}") from e

    def _make_request(self, method: str, endpoint: str,
                      params: Optional[Dict] = None) -> Any:
        """
        Make an HTTP request with error handling.

        Args:
            method: HTTP method (GET, POST, DELETE, etc.)
            endpoint: API endpoint (without base URL)
            params: Query parameters

        Returns:
            Response JSON data

        Raises:
            exception_class: If request fails
        """
        url = self._build_url(endpoint)
        query = dict(self._get_auth_params())
        if params:
            query.update(params)

        requester = self.session.request if self.session is not None else requests.request
        logger.debug(f"{self.api_name} {method} {endpoint} {params or ''}")

        try:
            response = requester(
                method=method,
                url=url,
                headers=self._get_headers(),
                params=query,
                timeout=self.request_timeout
            )
        except requests.exceptions.Timeout:
            raise self.exception_class(f"Request timeout after {self.request_timeout}s")
        except requests.exceptions.ConnectionError:
            raise self.exception_class(f"Could not connect to {self.api_name}")
        except requests.exceptions.RequestException as e:
            raise self.exception_class(f"Request failed: {e}")

        return self._handle_response(response)
